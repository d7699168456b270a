from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

"""Environment helper utilities.

Loads a `.env` file from the project root so that settings such as
``INVENTORY_API_URL`` defined there become available via ``os.getenv``, and
provides typed readers used by ``config.config``.
"""

__all__ = ["load_project_dotenv", "env_float", "env_int"]

logger = logging.getLogger(__name__)


def _find_project_root(start: Path | None = None) -> Path:
    """Traverse upwards until we find a directory that contains `pyproject.toml`."""
    current = start or Path(__file__).resolve().parent
    for _ in range(10):  # safety break
        if (current / "pyproject.toml").exists():
            return current
        if current.parent == current:
            break
        current = current.parent
    return Path(__file__).resolve().parent


def load_project_dotenv() -> None:
    """Load environment variables from the project-level `.env` if present."""
    project_root = _find_project_root()
    dotenv_path = project_root / ".env"
    if dotenv_path.exists():
        load_dotenv(dotenv_path=dotenv_path, override=False)


def env_float(name: str, default: float) -> float:
    """Read a float setting, falling back to ``default`` on missing or bad values."""
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring non-numeric {name}={raw!r}; using {default}")
        return default


def env_int(name: str, default: int | None) -> int | None:
    """Read an integer setting, falling back to ``default`` on missing or bad values."""
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring non-integer {name}={raw!r}; using {default}")
        return default
