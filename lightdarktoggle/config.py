"""
Module for configuration and misc things
"""

from __future__ import annotations

import os
import typing as ty
from pathlib import Path

from xdg import BaseDirectory

PACKAGE_NAME = "lightdarktoggle"

__all__ = (
    "get_config_file",
    "get_env",
    "get_log_file",
    "get_runtime_dir",
    "get_runtime_file",
    "save_config_file",
)


def get_env(name: str, default: str = "") -> str:
    """Get value of LIGHTDARKTOGGLE_<name> environment variable or default"""
    return os.getenv(f"LIGHTDARKTOGGLE_{name}", default)


def get_runtime_dir() -> str:
    """$XDG_RUNTIME_DIR; fallback to temp directory when not set."""
    return ty.cast(str, BaseDirectory.get_runtime_dir(strict=False))


def get_runtime_file(filename: str) -> Path:
    """Path to @filename in runtime dir.  Absolute @filename is returned
    as is."""
    path = Path(os.path.expanduser(filename))
    if path.is_absolute():
        return path

    return Path(get_runtime_dir(), path)


def get_log_file() -> Path:
    """Log file in XDG state directory (not created here)."""
    state_home = getattr(BaseDirectory, "xdg_state_home", None)
    state_home = state_home or os.path.expanduser("~/.local/state")
    return Path(state_home, f"{PACKAGE_NAME}.log")


def get_config_file(filename: str, package: str = PACKAGE_NAME) -> str | None:
    """Return path to @package/@filename if it exists anywhere in the config
    paths, else return None"""
    return ty.cast(
        ty.Union[str, None], BaseDirectory.load_first_config(package, filename)
    )


def save_config_file(filename: str) -> str | None:
    """Return filename in the XDG config home directory, where the directory
    is guaranteed to exist."""
    if direc := BaseDirectory.save_config_path(PACKAGE_NAME):
        return os.path.join(direc, filename)

    return None
