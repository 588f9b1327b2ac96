"""Shared package for the dictionary lookup service."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Tuple

from dotenv import load_dotenv

ENV_FILE_ENV = "DICTIONARY_API_ENV_FILE"
PROJECT_ROOT = Path(__file__).resolve().parents[1]

_LOADED_FILES: Tuple[Path, ...] | None = None


def load_environment(*, force: bool = False) -> Tuple[Path, ...]:
    """Load dotenv files into ``os.environ`` once and return the files read.

    ``$DICTIONARY_API_ENV_FILE`` names a single file to load. Without it,
    ``.env.local`` and then ``.env`` are read from the project root. Variables
    already set in the process are never overwritten, so ``.env.local`` wins
    over ``.env``.
    """

    global _LOADED_FILES
    if _LOADED_FILES is not None and not force:
        return _LOADED_FILES

    explicit = os.environ.get(ENV_FILE_ENV, "").strip()
    if explicit:
        candidates = [Path(explicit).expanduser()]
    else:
        candidates = [PROJECT_ROOT / ".env.local", PROJECT_ROOT / ".env"]

    _LOADED_FILES = tuple(
        path.resolve()
        for path in candidates
        if path.is_file() and load_dotenv(path, override=False)
    )
    return _LOADED_FILES


# Load as soon as the package is imported so the CLI entry point and the
# FastAPI app see the same settings.
load_environment()

__all__ = ["ENV_FILE_ENV", "load_environment"]
