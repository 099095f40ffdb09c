"""
Version helpers for the fuel-proxy service.

- __version__: semantic version for packaging.
- git_describe(): `git describe --tags --dirty --always` (or None if unavailable).
- version_with_git(): combines __version__ with git describe for diagnostics.
"""
from __future__ import annotations

import os
import subprocess
from functools import lru_cache
from pathlib import Path
from typing import Optional

__version__ = "0.1.0"


@lru_cache(maxsize=1)
def git_describe() -> Optional[str]:
    """
    Best-effort: return something like 'v0.1.0-12-gabcdef1-dirty'
    or None if we're not in a git checkout or git is missing.
    """
    root = Path(__file__).resolve().parent.parent
    try:
        out = subprocess.check_output(
            ["git", "-C", str(root), "describe", "--tags", "--dirty", "--always"],
            stderr=subprocess.DEVNULL,
            timeout=2.0,
        )
        return out.decode("utf-8").strip() or None
    except (OSError, subprocess.SubprocessError):
        # CI may provide the ref through the environment instead of a checkout
        return os.getenv("GIT_DESCRIBE") or None


def version_with_git() -> str:
    """
    Return a helpful version string for logs and the /version endpoint.
    e.g. '0.1.0+v0.1.0-12-gabcdef1' or just '0.1.0' if git is not present.
    """
    desc = git_describe()
    return f"{__version__}+{desc}" if desc else __version__


__all__ = ["__version__", "git_describe", "version_with_git"]
