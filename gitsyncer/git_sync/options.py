"""Per-invocation git options and lifecycle hooks.

Branch name, commit message, files to add and the diff predicate can each be
given as a constant or as a function of the ``Syncer``. Functions receive the
syncer explicitly and are evaluated on every access.
"""

import inspect
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import (Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence,
                    TypeVar, Union, TYPE_CHECKING)

from ..errors import ErrorChannel
from ..process import run_async, run_step

if TYPE_CHECKING:
    from .lifecycle import Syncer

T = TypeVar("T")

GitOption = Union[T, Callable[["Syncer"], T]]
SyncerHook = Callable[["Syncer"], Union[None, Awaitable[None]]]


def transfer_options(option: GitOption[T], context: "Syncer") -> Callable[[], T]:
    """
    Normalize a constant-or-function option into a zero-argument accessor.

    A function is called with ``context`` on every access, without
    memoization; a constant is returned as-is on every access.
    """
    if callable(option):
        def accessor() -> T:
            return option(context)
    else:
        def accessor() -> T:
            return option
    return accessor


def default_branch_name(syncer: "Syncer") -> str:
    return f"{syncer.sync_tag}-sync"


def default_commit_message(syncer: "Syncer") -> str:
    author = syncer.user_name or "unknown"
    return f"chore: sync {syncer.sync_tag} ({author}@{syncer.os_platform})"


def default_diff(syncer: "Syncer") -> bool:
    """
    Report whether any configured file differs from the remote default branch.

    Tracked paths are compared with ``git diff <ref>``; new files never show
    up there, so untracked, non-ignored paths count as changes too.
    """
    ref = syncer.config.remote_default_ref
    changed = False
    for file in syncer.git_options.add_files():
        diff = run_step(
            f"git diff {ref} -- {file}",
            lambda file=file: syncer.git_shell.diff(file, ref),
            syncer.channel
        )
        untracked = run_step(
            f"git ls-files --others -- {file}",
            lambda file=file: syncer.git_shell.untracked(file),
            syncer.channel
        )
        if diff.stdout.strip() or untracked.stdout.strip():
            changed = True
    return changed


@dataclass
class SyncerGitOptions:
    """Raw option values as supplied by the caller."""
    branch_name: GitOption[str] = default_branch_name
    commit_message: GitOption[str] = default_commit_message
    add_files: GitOption[Sequence[str]] = field(default_factory=lambda: ["."])
    diff: GitOption[bool] = default_diff


@dataclass
class GitOptionSet:
    """Resolved accessors; each call evaluates the underlying option."""
    branch_name: Callable[[], str]
    commit_message: Callable[[], str]
    add_files: Callable[[], Sequence[str]]
    diff: Callable[[], bool]

    @classmethod
    def resolve(cls, options: SyncerGitOptions, context: "Syncer") -> "GitOptionSet":
        return cls(
            branch_name=transfer_options(options.branch_name, context),
            commit_message=transfer_options(options.commit_message, context),
            add_files=transfer_options(options.add_files, context),
            diff=transfer_options(options.diff, context)
        )


class HookPoint(Enum):
    """Lifecycle operations that can be wrapped by hooks."""
    INIT = "init"
    RESET = "reset"
    SYNC_LOCAL = "sync_local"
    SYNC_REMOTE = "sync_remote"


class HookStage(Enum):
    BEFORE = "before"
    AFTER = "after"


class HookName(Enum):
    """Closed set of hook names."""
    BEFORE_INIT = "before_init"
    BEFORE_INIT_ASYNC = "before_init_async"
    AFTER_INIT = "after_init"
    AFTER_INIT_ASYNC = "after_init_async"
    BEFORE_RESET = "before_reset"
    BEFORE_RESET_ASYNC = "before_reset_async"
    AFTER_RESET = "after_reset"
    AFTER_RESET_ASYNC = "after_reset_async"
    BEFORE_SYNC_LOCAL = "before_sync_local"
    BEFORE_SYNC_LOCAL_ASYNC = "before_sync_local_async"
    AFTER_SYNC_LOCAL = "after_sync_local"
    AFTER_SYNC_LOCAL_ASYNC = "after_sync_local_async"
    BEFORE_SYNC_REMOTE = "before_sync_remote"
    BEFORE_SYNC_REMOTE_ASYNC = "before_sync_remote_async"
    AFTER_SYNC_REMOTE = "after_sync_remote"
    AFTER_SYNC_REMOTE_ASYNC = "after_sync_remote_async"

    @classmethod
    def for_point(cls, point: HookPoint, stage: HookStage, is_async: bool) -> "HookName":
        suffix = "_async" if is_async else ""
        return cls(f"{stage.value}_{point.value}{suffix}")

    @classmethod
    def parse(cls, name: Union[str, "HookName"]) -> "HookName":
        """Accept enum members, snake_case values or camelCase names like ``beforeSyncLocal``."""
        if isinstance(name, cls):
            return name
        snake = re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()
        try:
            return cls(snake)
        except ValueError:
            raise ValueError(f"Unknown hook name: {name!r}")


def call_hook(hook: SyncerHook, context: "Syncer") -> Any:
    """Call ``hook`` and drive an awaitable result to completion."""
    result = hook(context)
    if inspect.isawaitable(result):
        return run_async(result)
    return result


class HookTable:
    """Mapping from ``HookName`` to callback, fixed at construction."""

    def __init__(self, hooks: Optional[Mapping[Union[str, HookName], SyncerHook]] = None):
        self._hooks: Dict[HookName, SyncerHook] = {}
        for name, hook in (hooks or {}).items():
            if hook is None:
                continue
            if not callable(hook):
                raise ValueError(f"Hook {name!r} is not callable")
            self._hooks[HookName.parse(name)] = hook

    def hooks_for(self, point: HookPoint, stage: HookStage) -> List[HookName]:
        """Registered hook names for a stage, synchronous first."""
        names = [HookName.for_point(point, stage, False), HookName.for_point(point, stage, True)]
        return [name for name in names if name in self._hooks]

    def fire(self, point: HookPoint, stage: HookStage, context: "Syncer",
             channel: Optional[ErrorChannel] = None) -> None:
        """Run the sync then the async hook for ``stage`` of ``point``.

        With a channel, each hook runs as a step so a raising hook is reported
        like any failed git action.
        """
        for name in self.hooks_for(point, stage):
            hook = self._hooks[name]
            if channel is None:
                call_hook(hook, context)
            else:
                run_step(f"hook {name.value}", lambda hook=hook: call_hook(hook, context), channel)
