"""Recording stand-in for GitShell used by the gitsyncer tests."""

import sys
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

sys.path.insert(0, str(Path(__file__).parent))

from gitsyncer.git_sync.shell import CommandResult


class FakeGitShell:
    """Records every git call instead of running it.

    Subcommands named in ``fail_on`` return a non-zero exit code.
    """

    def __init__(self, installed: bool = True, fail_on: Optional[Iterable[str]] = None,
                 diff_output: str = "", untracked_output: str = ""):
        self.installed = installed
        self.version = "git version 2.43.0" if installed else ""
        self.fail_on = set(fail_on or [])
        self.diff_output = diff_output
        self.untracked_output = untracked_output
        self.calls: List[Tuple[str, ...]] = []

    @property
    def names(self) -> List[str]:
        return [call[0] for call in self.calls]

    def _record(self, name: str, *args: str, stdout: str = "") -> CommandResult:
        self.calls.append((name, *args))
        if name in self.fail_on:
            return CommandResult(command=["git", name, *args], exit_code=128,
                                 stderr=f"fatal: {name} failed")
        return CommandResult(command=["git", name, *args], exit_code=0, stdout=stdout)

    def init(self):
        return self._record("init")

    def set_remote(self, remote_repo_url):
        return self._record("set_remote", remote_repo_url)

    def checkout(self, branch):
        return self._record("checkout", branch)

    def pull(self, branch="master"):
        return self._record("pull", branch)

    def add(self, files=None):
        return self._record("add", *(files or []))

    def commit(self, message="", *args):
        return self._record("commit", message, *args)

    def push(self, refspec):
        return self._record("push", refspec)

    def diff(self, file, ref="origin/master"):
        return self._record("diff", ref, file, stdout=self.diff_output)

    def untracked(self, file):
        return self._record("untracked", file, stdout=self.untracked_output)

    def fetch(self):
        return self._record("fetch")

    def reset(self, ref="origin/master"):
        return self._record("reset", ref)
