""".env loader: loads first found .env from ENV_PATH, cwd, parent dirs, or package root."""

import os
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv

_CORE_KEYS = [
    "DOCSTORE_CREDENTIALS",
    "DOCSTORE_CREDENTIALS_FILE",
]


def _already_loaded() -> bool:
    return any(os.getenv(k) for k in _CORE_KEYS)


def load_env(force: bool = False) -> Optional[Path]:
    """Load .env from ENV_PATH, cwd, parent dirs, or package root. Returns loaded path or None."""
    if _already_loaded() and not force:
        return None
    candidates = []
    override = os.getenv("ENV_PATH")
    if override:
        candidates.append(Path(override))
    cwd = Path.cwd()
    candidates.append(cwd / ".env")
    for parent in cwd.parents:
        candidates.append(parent / ".env")
    candidates.append(Path(__file__).resolve().parents[2] / ".env")
    for path in candidates:
        if path.is_file():
            load_dotenv(path, override=force)
            return path
    return None


__all__ = ["load_env"]
