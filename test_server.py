#!/usr/bin/env python3
"""Tests for the MCP tool registrations."""

import asyncio
import logging
import shutil
import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock

sys.path.insert(0, str(Path(__file__).parent))

from fake_git import FakeGitShell
from gitsyncer.config import SyncConfig
from gitsyncer.git_sync import Syncer
from gitsyncer.server import register_tools, setup_logging


class RecordingServer:
    """Collects tool functions the way FastMCP's ``tool()`` decorator receives them."""

    def __init__(self):
        self.tools = {}

    def tool(self):
        def decorator(fn):
            self.tools[fn.__name__] = fn
            return fn
        return decorator


class TestRegisterTools(unittest.TestCase):

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        self.config = SyncConfig(context=self.temp_dir, repository_url="https://example.test/repo.git")
        self.shell = FakeGitShell()
        self.received_options = []
        self.server = RecordingServer()

        def factory(git_options):
            self.received_options.append(git_options)
            return Syncer(self.config, git_options, git_shell=self.shell, git_server=MagicMock())

        register_tools(self.server, self.config, syncer_factory=factory)

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def call(self, name, **kwargs):
        return asyncio.run(self.server.tools[name](**kwargs))

    def test_registers_lifecycle_tools(self):
        self.assertEqual(set(self.server.tools),
                         {"bootstrap", "reset", "sync_local", "sync_remote", "status"})

    def test_bootstrap_then_status(self):
        response = self.call("bootstrap")

        self.assertTrue(response["success"])
        self.assertTrue(response["data"]["status"]["has_bootstrap"])
        self.assertIn("createTime", response["data"]["status"]["history"])

        status = self.call("status")
        self.assertTrue(status["data"]["status"]["has_bootstrap"])

    def test_reset(self):
        self.call("bootstrap")

        response = self.call("reset")

        self.assertFalse(response["data"]["status"]["has_bootstrap"])

    def test_sync_local_with_branch(self):
        response = self.call("sync_local", branch_name="vendor")

        self.assertTrue(response["success"])
        self.assertIn(("checkout", "vendor"), self.shell.calls)

    def test_sync_remote_without_working_copy_returns_error(self):
        response = self.call("sync_remote")

        self.assertEqual(response["error_code"], "SYNC_FAILED")
        self.assertEqual(response["level"], "error")
        self.assertEqual(self.shell.calls, [])

    def test_sync_remote_forwards_options(self):
        (self.config.repository_dir / ".git").mkdir(parents=True)
        self.shell.diff_output = "changed"

        response = self.call("sync_remote", branch_name="vendor", commit_message="bump",
                             add_files=["lock.json"])

        self.assertTrue(response["success"], response)
        self.assertTrue(response["data"]["result"].startswith("vendor-"))
        self.assertIn(("commit", "bump"), self.shell.calls)
        self.assertIn(("add", "lock.json"), self.shell.calls)
        self.assertEqual(self.received_options[-1].branch_name, "vendor")

    def test_sync_remote_without_changes_is_stopped(self):
        (self.config.repository_dir / ".git").mkdir(parents=True)

        response = self.call("sync_remote")

        self.assertEqual(response["error_code"], "SYNC_STOPPED")
        self.assertEqual(response["exit_code"], 0)


class TestSetupLogging(unittest.TestCase):

    def setUp(self):
        self.root = logging.getLogger()
        self.saved_handlers = self.root.handlers[:]
        self.saved_level = self.root.level

    def tearDown(self):
        self.root.handlers = self.saved_handlers
        self.root.setLevel(self.saved_level)

    def test_configures_root_logger(self):
        setup_logging(SyncConfig(log_level="DEBUG"))

        self.assertEqual(self.root.level, logging.DEBUG)
        self.assertEqual(len(self.root.handlers), 1)

        record = logging.LogRecord("gitsyncer.process", logging.INFO, __file__, 1,
                                   "git init success", None, None)
        record.step = "git init"
        self.assertIn("[git init] git init success", self.root.handlers[0].format(record))

    def test_step_prefix_does_not_accumulate(self):
        setup_logging(SyncConfig())
        handler = self.root.handlers[0]
        record = logging.LogRecord("gitsyncer.process", logging.INFO, __file__, 1,
                                   "git push success", None, None)
        record.step = "git push"

        handler.format(record)
        formatted = handler.format(record)

        self.assertEqual(formatted.count("[git push]"), 1)
        self.assertEqual(record.msg, "git push success")


if __name__ == "__main__":
    unittest.main(verbosity=2)
