"""Version information of the command line tool."""

from __future__ import annotations

import platform
import sys

VERSION = "0.10.0"
GIT_BRANCH = ""
GIT_HASH = ""


def git_info(branch: str, git_hash: str) -> str:
    """Return '@branch-hash', '@hash' or '' depending on what is known."""
    if branch and git_hash:
        return f"@{branch}-{git_hash}"
    if git_hash:
        return f"@{git_hash}"
    return ""


def version_line(
    program: str,
    version: str = VERSION,
    branch: str = GIT_BRANCH,
    git_hash: str = GIT_HASH,
) -> str:
    """Build the line printed by the version command."""
    runtime = f"python{platform.python_version()}"
    return (
        f"{program} {version}{git_info(branch, git_hash)} "
        f"compiled with {runtime} on {sys.platform}/{platform.machine()}"
    )