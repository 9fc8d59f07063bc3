"""Git command collaborator built on GitPython's command wrapper."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Union

from git import cmd
from git.exc import GitCommandError, GitCommandNotFound

from ..platform import get_platform_info


@dataclass
class CommandResult:
    """Outcome of a single git invocation."""
    command: List[str]
    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def failed(self) -> bool:
        return self.exit_code != 0

    @property
    def output(self) -> str:
        """Combined stdout and stderr."""
        return "\n".join(part for part in (self.stdout, self.stderr) if part)

    @property
    def reason(self) -> str:
        """Failure reason suitable for the error channel."""
        text = " ".join(self.command)
        detail = self.stderr.strip() or self.stdout.strip()
        if detail:
            return f"{text} exited with status {self.exit_code}: {detail}"
        return f"{text} exited with status {self.exit_code}"


class GitShell:
    """
    Runs git subcommands in a fixed working directory.

    Each method maps to exactly one git invocation and returns a
    ``CommandResult``; non-zero exit codes are reported in the result rather
    than raised. Failure to launch git at all raises ``GitCommandNotFound``.
    """

    def __init__(self, working_dir: Union[str, Path], timeout: Optional[float] = None):
        """
        Initialize the shell and probe for a usable git executable.

        Args:
            working_dir: Directory every command runs in
            timeout: Optional seconds after which a command is killed
        """
        self.working_dir = Path(working_dir)
        self.timeout = timeout
        self.logger = logging.getLogger('gitsyncer.git_shell')
        self.version = ""
        self.installed = False

        try:
            status, stdout, _ = cmd.Git().execute(
                ["git", "--version"],
                with_extended_output=True,
                with_exceptions=False
            )
            if status == 0:
                self.version = stdout.strip()
                self.installed = True
        except (GitCommandNotFound, GitCommandError, OSError) as e:
            self.logger.debug(f"git probe failed on {get_platform_info().get_platform_name()}: {e}")

    def _run(self, args: Sequence[str]) -> CommandResult:
        command = ["git", *args]
        self.logger.debug(f"Running {' '.join(command)} in {self.working_dir}")

        status, stdout, stderr = cmd.Git(str(self.working_dir)).execute(
            command,
            with_extended_output=True,
            with_exceptions=False,
            kill_after_timeout=self.timeout
        )
        return CommandResult(command=command, exit_code=status, stdout=stdout, stderr=stderr)

    def init(self) -> CommandResult:
        """Initialize version-control metadata."""
        return self._run(["init"])

    def set_remote(self, remote_repo_url: str) -> CommandResult:
        """Register ``remote_repo_url`` as ``origin``."""
        return self._run(["remote", "add", "origin", remote_repo_url])

    def checkout(self, branch: str) -> CommandResult:
        """Create and switch to ``branch``."""
        return self._run(["checkout", "-b", branch])

    def pull(self, branch: str = "master") -> CommandResult:
        return self._run(["pull", "origin", branch])

    def add(self, files: Optional[Sequence[str]] = None) -> CommandResult:
        return self._run(["add", *(files or [])])

    def commit(self, message: str = "", *args: str) -> CommandResult:
        return self._run(["commit", "-m", message, *args])

    def push(self, refspec: str) -> CommandResult:
        """Push ``refspec`` (``branch`` or ``local:remote``) to origin."""
        return self._run(["push", "origin", refspec])

    def diff(self, file: str, ref: str = "origin/master") -> CommandResult:
        """Diff a single path against ``ref``."""
        return self._run(["diff", ref, "--", file])

    def untracked(self, file: str) -> CommandResult:
        """List untracked, non-ignored paths under ``file``."""
        return self._run(["ls-files", "--others", "--exclude-standard", "--", file])

    def fetch(self) -> CommandResult:
        return self._run(["fetch", "--all"])

    def reset(self, ref: str = "origin/master") -> CommandResult:
        """Hard reset to ``ref``, the remote default branch unless given."""
        return self._run(["reset", "--hard", ref])
