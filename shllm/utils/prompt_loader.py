from pathlib import Path
from typing import Optional


class PromptLoader:
    """
    System prompt loader with lazy caching keyed on the file's mtime.
    """

    def __init__(self, path: Optional[Path]):
        self.path = path
        self._cached_text: Optional[str] = None
        self._cached_mtime: Optional[float] = None

    def load(self) -> str:
        if self.path is None:
            return ""
        try:
            mtime = self.path.stat().st_mtime
            if self._cached_text is None or self._cached_mtime != mtime:
                self._cached_text = self.path.read_text(encoding="utf-8")
                self._cached_mtime = mtime
            return self._cached_text or ""
        except FileNotFoundError:
            # no file means no system prompt
            return ""
