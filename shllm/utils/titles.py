import re
from datetime import datetime
from typing import Optional, Sequence

_DISALLOWED = re.compile(r"[^a-zA-Z0-9_]+")


def derive_title(words: Sequence[str], now: Optional[datetime] = None) -> str:
    """Join CLI words with ``_``, keep only ``[a-z0-9_]``, lowercase.

    Falls back to ``unnamed_session_<YYYY-MM-DD HH:MM:SS>`` when nothing is left.
    """
    title = _DISALLOWED.sub("", "_".join(words)).lower()
    if not title:
        now = now or datetime.now()
        title = f"unnamed_session_{now.strftime('%Y-%m-%d %H:%M:%S')}"
    return title
