"""Common path utilities for gitpatch."""

from __future__ import annotations

import os
from pathlib import Path


def get_gitpatch_home() -> Path:
    """Return the base gitpatch directory, honoring GITPATCH_HOME if set."""

    env_path = os.environ.get("GITPATCH_HOME")
    return Path(env_path).expanduser() if env_path else Path.home() / ".gitpatch"


def runs_dir(base_dir: Path | None = None) -> Path:
    return (base_dir or get_gitpatch_home()) / "runs"


__all__ = ["get_gitpatch_home", "runs_dir"]
