"""Default locations for audio-source data, overridable through ``JUKEBOX_*`` variables."""

import os
from pathlib import Path


PROJECT_ROOT = Path(__file__).resolve().parent.parent
SCRIPTS_DIR = PROJECT_ROOT / "scripts"


def _env_path(name, default):
    return Path(os.environ.get(name) or default).resolve()


DATA_DIR = _env_path("JUKEBOX_DATA_DIR", PROJECT_ROOT / "data")
WORK_DIR = _env_path("JUKEBOX_WORK_DIR", DATA_DIR / "tmp")
STORAGE_DIR = _env_path("JUKEBOX_STORAGE_DIR", DATA_DIR / "storage")
LOG_DIR = _env_path("JUKEBOX_LOG_DIR", DATA_DIR / "logs")
DB_PATH = _env_path("JUKEBOX_DB_PATH", DATA_DIR / "assets.sqlite")


def ensure_dir(path):
    if path:
        os.makedirs(path, exist_ok=True)


def resolve_path(path, base_dir):
    """Resolve ``path`` against ``base_dir`` unless it is already absolute."""
    if not path:
        return str(base_dir)
    if os.path.isabs(path):
        return os.path.abspath(path)
    return os.path.abspath(os.path.join(base_dir, path))
