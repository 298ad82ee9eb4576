# config.py
# Paths and logging set up from the environment.
import logging
import os
from pathlib import Path


def _is_writable(folder: Path) -> bool:
    try:
        folder.mkdir(parents=True, exist_ok=True)
        check_file = folder / ".write-check"
        check_file.touch()
        check_file.unlink()
    except OSError:
        return False
    return True


def resolve_data_dir() -> Path:
    """DATA_DIR if set, else /data, else ./data; cwd when none is writable."""
    options = [Path(p) for p in (os.getenv("DATA_DIR"), "/data") if p]
    options.append(Path.cwd() / "data")
    return next((p for p in options if _is_writable(p)), Path.cwd())


DATA_DIR = resolve_data_dir()
SESSIONS_CSV = Path(os.getenv("SESSIONS_CSV", DATA_DIR / "time-sessions.csv"))
STATE_FILE = Path(os.getenv("STATE_FILE", DATA_DIR / "state.json"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def configure_logging(level: str = LOG_LEVEL) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
