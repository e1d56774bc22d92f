# src/crowdfund/env.py
from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

_LOADED_FROM: Optional[str] = None


def _resolve_dotenv_path(dotenv_path: Optional[str]) -> Optional[Path]:
    """Explicit arg, then CROWDFUND_DOTENV_PATH, then ./.env; None if nothing usable."""
    raw = dotenv_path or os.getenv("CROWDFUND_DOTENV_PATH", ".env")
    try:
        p = Path(raw).expanduser()
    except Exception:
        return None
    return p if p.is_file() else None


def load_dotenv_if_present(dotenv_path: Optional[str] = None, *, override: bool = False) -> bool:
    """
    Load CROWDFUND_* settings from a .env file once per process.

    Values already present in the environment win unless `override` is set,
    so operators can always pin a setting from the shell.

    Returns True only when a file was found and loaded by this call.
    """
    global _LOADED_FROM
    if _LOADED_FROM is not None and not override:
        return False

    path = _resolve_dotenv_path(dotenv_path)
    if path is None:
        _LOADED_FROM = ""
        return False

    load_dotenv(dotenv_path=str(path), override=override)
    _LOADED_FROM = str(path)
    return True


def dotenv_source() -> Optional[str]:
    """Path the process loaded its .env from ("" when none was found, None before loading)."""
    return _LOADED_FROM
