"""Sync lifecycle: bootstrap, local sync and remote sync of a workspace."""

import json
import logging
import shutil
import time
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from ..config import SyncConfig
from ..errors import ErrorChannel
from ..git_server import GitServer, create_git_server
from ..platform import get_platform_info, get_user_name
from ..process import run_async, run_step, run_step_async
from .options import (GitOptionSet, HookName, HookPoint, HookStage, HookTable,
                      SyncerGitOptions, SyncerHook)
from .shell import GitShell


def current_millis() -> int:
    """Milliseconds since the epoch."""
    return int(time.time() * 1000)


class Syncer:
    """
    Orchestrates a workspace working copy against a remote repository.

    Every git action runs through ``run_step``, so any failure aborts the
    whole operation by raising ``SyncAbort`` from the error channel. Nothing
    is rolled back: an aborted ``sync_remote`` may leave the working copy
    reset and pulled without having pushed.

    Operations block. Async hooks and the merge-request call get their own
    event loop, so callers inside a running loop must go through
    ``asyncio.to_thread``; otherwise those steps raise ``RuntimeError``.
    """

    def __init__(self, config: SyncConfig,
                 git_options: Optional[SyncerGitOptions] = None,
                 hooks: Optional[Mapping[Union[str, HookName], SyncerHook]] = None,
                 git_shell: Optional[GitShell] = None,
                 git_server: Optional[GitServer] = None,
                 channel: Optional[ErrorChannel] = None):
        """
        Initialize the lifecycle.

        Args:
            config: Workspace configuration
            git_options: Branch name, commit message, files and diff options
            hooks: Callbacks keyed by hook name, run around each operation
            git_shell: Command collaborator; defaults to a GitShell in the working copy
            git_server: Hosting client; defaults to the configured server type
            channel: Error channel; defaults to one using ``config.error_exit_code``

        Raises:
            SyncAbort: If git is not installed
        """
        self.config = config
        self.logger = logging.getLogger('gitsyncer.lifecycle')
        self.channel = channel or ErrorChannel(error_exit_code=config.error_exit_code)

        self._user_name = get_user_name()
        self._os_platform = get_platform_info().get_platform_name()

        self.hooks = HookTable(hooks)
        self.git_options = GitOptionSet.resolve(git_options or SyncerGitOptions(), self)

        self.git_shell = git_shell or GitShell(config.repository_dir, timeout=config.command_timeout)
        if not self.git_shell.installed:
            self.channel.fail("git is not installed")

        self.git_server = git_server or create_git_server(config.git_server, timeout=config.http_timeout)

    # Read-only state exposed to option functions and hooks

    @property
    def context(self) -> Path:
        return self.config.context

    @property
    def sync_tag(self) -> str:
        return self.config.sync_tag

    @property
    def workspace_dir(self) -> Path:
        return self.config.workspace_dir

    @property
    def repository_dir(self) -> Path:
        return self.config.repository_dir

    @property
    def log_file(self) -> Path:
        return self.config.log_file

    @property
    def repository_url(self) -> Optional[str]:
        return self.config.repository_url

    @property
    def user_name(self) -> str:
        return self._user_name

    @property
    def os_platform(self) -> str:
        return self._os_platform

    @property
    def has_bootstrap(self) -> bool:
        """True once the history log exists; checked on every access."""
        return self.log_file.exists()

    @property
    def has_init_git(self) -> bool:
        """True when the working copy has version-control metadata."""
        return self.repository_dir.exists() and (self.repository_dir / ".git").exists()

    # Lifecycle operations

    def bootstrap(self) -> None:
        """Create the workspace, register ignore patterns and the history log."""
        self._fire(HookPoint.INIT, HookStage.BEFORE)

        self.logger.info("create workspace...")
        self.repository_dir.mkdir(parents=True, exist_ok=True)

        self.logger.info("update git ignore...")
        self._update_ignore_file()

        self.logger.info("create log file")
        if not self.log_file.exists():
            self.log_file.write_text(
                json.dumps({"createTime": current_millis()}, indent=2),
                encoding="utf-8"
            )

        self._fire(HookPoint.INIT, HookStage.AFTER)

    def reset(self) -> None:
        """Delete the working copy and the history log; absent paths are ignored."""
        self._fire(HookPoint.RESET, HookStage.BEFORE)

        shutil.rmtree(self.repository_dir, ignore_errors=True)
        self.log_file.unlink(missing_ok=True)

        self._fire(HookPoint.RESET, HookStage.AFTER)

    def sync_local(self) -> None:
        """Bring the working copy up to date with the remote default branch."""
        self._fire(HookPoint.SYNC_LOCAL, HookStage.BEFORE)

        if self.has_init_git:
            self._sync_local_repo_without_init()
        else:
            self._sync_local_repo_with_init()

        self._fire(HookPoint.SYNC_LOCAL, HookStage.AFTER)

    def sync_remote(self) -> str:
        """
        Push local changes to a freshly named remote branch.

        Returns:
            The remote branch name that was pushed

        Raises:
            SyncAbort: ERROR when there is no working copy, WARNING when
                the diff predicate reports no change
        """
        if not self.has_init_git:
            self.channel.fail("there is no git repo in workspace, please init and sync-local first")

        self._fire(HookPoint.SYNC_REMOTE, HookStage.BEFORE)

        self._sync_local_repo_without_init()

        if not self.git_options.diff():
            self.channel.warn_and_stop("there is no change in dependencies")

        remote_branch = f"{self.git_options.branch_name()}-{current_millis()}"
        self._sync_remote_repo(remote_branch)

        if self.config.create_merge_request:
            self._create_merge_request(remote_branch)

        self._fire(HookPoint.SYNC_REMOTE, HookStage.AFTER)
        return remote_branch

    def read_history(self) -> Dict[str, Any]:
        """Return the persisted history record, or an empty dict."""
        if not self.log_file.exists():
            return {}
        return json.loads(self.log_file.read_text(encoding="utf-8"))

    def status(self) -> Dict[str, Any]:
        """Snapshot of the workspace state."""
        return {
            'sync_tag': self.sync_tag,
            'repository_url': self.repository_url,
            'workspace_dir': str(self.workspace_dir),
            'repository_dir': str(self.repository_dir),
            'log_file': str(self.log_file),
            'has_bootstrap': self.has_bootstrap,
            'has_init_git': self.has_init_git,
            'history': self.read_history(),
            'git_version': self.git_shell.version,
            'platform': self.os_platform
        }

    # Internal sequences

    def _fire(self, point: HookPoint, stage: HookStage) -> None:
        self.hooks.fire(point, stage, self, self.channel)

    def _ignore_patterns(self):
        workspace = Path(self.config.workspace_dir_name)
        repository_pattern = (workspace / self.config.repository_dir_name).as_posix() + "/"
        log_pattern = (workspace / self.log_file.name).as_posix()
        return [repository_pattern, log_pattern]

    def _update_ignore_file(self) -> None:
        ignore_file = self.config.ignore_file
        patterns = self._ignore_patterns()

        if not ignore_file.exists():
            ignore_file.write_text("\n".join(patterns) + "\n", encoding="utf-8")
            return

        content = ignore_file.read_text(encoding="utf-8")
        missing = [pattern for pattern in patterns if pattern not in content]
        if not missing:
            return

        if content and not content.endswith("\n"):
            content += "\n"
        content += "\n".join(missing) + "\n"
        ignore_file.write_text(content, encoding="utf-8")

    def _sync_local_repo_with_init(self) -> None:
        default_branch = self.config.default_branch
        branch_name = self.git_options.branch_name()

        run_step("git init", self.git_shell.init, self.channel)
        run_step("git set remote", lambda: self.git_shell.set_remote(self.repository_url), self.channel)
        run_step(f"git checkout branch [{branch_name}]",
                 lambda: self.git_shell.checkout(branch_name), self.channel)
        run_step(f"git pull from {default_branch}",
                 lambda: self.git_shell.pull(default_branch), self.channel)

    def _sync_local_repo_without_init(self) -> None:
        default_branch = self.config.default_branch

        run_step("git fetch all", self.git_shell.fetch, self.channel)
        run_step(f"git reset to {default_branch}",
                 lambda: self.git_shell.reset(self.config.remote_default_ref), self.channel)
        run_step(f"git pull from {default_branch}",
                 lambda: self.git_shell.pull(default_branch), self.channel)

    def _sync_remote_repo(self, dest_branch: str) -> None:
        """Stage, commit and push the local branch to ``dest_branch`` on origin."""
        branch_name = self.git_options.branch_name()

        run_step("git add", lambda: self.git_shell.add(list(self.git_options.add_files())), self.channel)
        run_step("git commit", lambda: self.git_shell.commit(self.git_options.commit_message()), self.channel)
        run_step("git push", lambda: self.git_shell.push(f"{branch_name}:{dest_branch}"), self.channel)

    def _create_merge_request(self, source_branch: str) -> None:
        target = self.config.default_branch
        run_async(run_step_async(
            f"create merge request {source_branch} -> {target}",
            lambda: self.git_server.create_merge_request(source_branch, target),
            self.channel
        ))
