from __future__ import annotations

from pathlib import Path


def _package_dir() -> Path:
    """
    On-disk directory of the installed `levelgate` package.

    Assumes a filesystem-backed install (wheel or editable), not zipimport.
    """
    return Path(__file__).resolve().parent


def contracts_dir() -> Path:
    return _package_dir() / "contracts"


def schemas_dir() -> Path:
    return contracts_dir() / "schemas"
