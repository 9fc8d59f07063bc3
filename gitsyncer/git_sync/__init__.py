"""Workspace synchronization lifecycle for gitsyncer."""

from .lifecycle import Syncer, current_millis
from .options import (GitOptionSet, HookName, HookPoint, HookStage, HookTable,
                      SyncerGitOptions, default_diff, transfer_options)
from .shell import CommandResult, GitShell

__all__ = [
    'Syncer',
    'current_millis',
    'GitOptionSet',
    'HookName',
    'HookPoint',
    'HookStage',
    'HookTable',
    'SyncerGitOptions',
    'default_diff',
    'transfer_options',
    'CommandResult',
    'GitShell'
]
