from datetime import date
from pathlib import Path
from typing import Optional


def expand_user(path: Path) -> Path:
    return Path(path).expanduser()


def ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def default_archive_path(notes_dir: Path, subdir: str = "shllm", today: Optional[date] = None) -> Path:
    """``<notes_dir>/<subdir>/YYYY-MM-DD.json``; the directory is created if needed."""
    today = today or date.today()
    archive_dir = ensure_dir(expand_user(notes_dir) / subdir)
    return archive_dir / f"{today.isoformat()}.json"


def resolve_archive_path(
    explicit: Optional[Path],
    notes_dir: Path,
    subdir: str = "shllm",
    today: Optional[date] = None,
) -> Path:
    if explicit:
        return expand_user(explicit)
    return default_archive_path(notes_dir, subdir, today)
