"""
gitsyncer - keep a workspace working copy in sync with a remote repository.

This package bootstraps a local working copy under a project's workspace
directory, synchronizes it against a remote repository and pushes local
changes to a freshly named remote branch, optionally opening a merge request.
"""

__version__ = "1.0.0"
__author__ = "gitsyncer Team"
__description__ = "Workspace synchronization helper for vendored repositories"

from .config import SyncConfig, load_configuration
from .errors import ErrorChannel, ErrorInfo, ErrorLevel, SyncAbort
from .git_sync import Syncer, SyncerGitOptions, HookName

__all__ = [
    "SyncConfig",
    "load_configuration",
    "ErrorChannel",
    "ErrorInfo",
    "ErrorLevel",
    "SyncAbort",
    "Syncer",
    "SyncerGitOptions",
    "HookName",
]
