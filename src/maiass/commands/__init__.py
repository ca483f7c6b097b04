"""CLI command implementations for maiass.

This package contains the implementation of each CLI command,
separated from the CLI framework setup in cli.py.
"""

from .config import config
from .info import git_info
from .init import init
from .release import commit, release
from .version import version

__all__ = [
    "commit",
    "config",
    "git_info",
    "init",
    "release",
    "version",
]
