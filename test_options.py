#!/usr/bin/env python3
"""Tests for option resolution and the hook table."""

import sys
import unittest
from pathlib import Path
from unittest.mock import MagicMock

sys.path.insert(0, str(Path(__file__).parent))

from gitsyncer.errors import ErrorChannel, SyncAbort
from gitsyncer.git_sync.options import (GitOptionSet, HookName, HookPoint, HookStage,
                                        HookTable, SyncerGitOptions, call_hook,
                                        default_branch_name, transfer_options)


class TestTransferOptions(unittest.TestCase):

    def test_constant_returns_same_value_every_call(self):
        files = ["a.txt", "b.txt"]
        accessor = transfer_options(files, MagicMock())

        self.assertIs(accessor(), files)
        self.assertIs(accessor(), files)

    def test_falsy_constants_are_kept(self):
        self.assertIs(transfer_options(False, MagicMock())(), False)
        self.assertEqual(transfer_options("", MagicMock())(), "")

    def test_function_is_called_anew_with_context(self):
        context = MagicMock()
        counter = {"calls": 0}

        def option(received):
            counter["calls"] += 1
            self.assertIs(received, context)
            return f"branch-{counter['calls']}"

        accessor = transfer_options(option, context)

        self.assertEqual(accessor(), "branch-1")
        self.assertEqual(accessor(), "branch-2")
        self.assertEqual(counter["calls"], 2)

    def test_option_set_resolves_each_field(self):
        context = MagicMock(sync_tag="deps")
        options = SyncerGitOptions(branch_name=lambda s: f"{s.sync_tag}-x",
                                   commit_message="msg",
                                   add_files=["one"],
                                   diff=True)

        resolved = GitOptionSet.resolve(options, context)

        self.assertEqual(resolved.branch_name(), "deps-x")
        self.assertEqual(resolved.commit_message(), "msg")
        self.assertEqual(resolved.add_files(), ["one"])
        self.assertTrue(resolved.diff())

    def test_defaults(self):
        context = MagicMock(sync_tag="assets")
        options = SyncerGitOptions()

        self.assertEqual(options.add_files, ["."])
        self.assertEqual(default_branch_name(context), "assets-sync")
        self.assertIsNot(SyncerGitOptions().add_files, options.add_files)


class TestHookNames(unittest.TestCase):

    def test_for_point_covers_every_name(self):
        names = {
            HookName.for_point(point, stage, is_async)
            for point in HookPoint
            for stage in HookStage
            for is_async in (False, True)
        }
        self.assertEqual(names, set(HookName))

    def test_parse_accepts_camel_and_snake_case(self):
        self.assertIs(HookName.parse("beforeInit"), HookName.BEFORE_INIT)
        self.assertIs(HookName.parse("afterSyncRemoteAsync"), HookName.AFTER_SYNC_REMOTE_ASYNC)
        self.assertIs(HookName.parse("before_reset_async"), HookName.BEFORE_RESET_ASYNC)
        self.assertIs(HookName.parse(HookName.AFTER_INIT), HookName.AFTER_INIT)

    def test_parse_rejects_unknown(self):
        with self.assertRaises(ValueError):
            HookName.parse("beforeDeploy")


class TestHookTable(unittest.TestCase):

    def test_unknown_hook_rejected_at_construction(self):
        with self.assertRaises(ValueError):
            HookTable({"duringInit": lambda s: None})

    def test_non_callable_rejected(self):
        with self.assertRaises(ValueError):
            HookTable({"beforeInit": "not a function"})

    def test_none_hooks_are_ignored(self):
        table = HookTable({"beforeInit": None})
        self.assertEqual(table.hooks_for(HookPoint.INIT, HookStage.BEFORE), [])

    def test_missing_hooks_are_noops(self):
        HookTable().fire(HookPoint.RESET, HookStage.BEFORE, MagicMock())

    def test_sync_then_async_order(self):
        events = []
        context = MagicMock()

        async def async_hook(received):
            self.assertIs(received, context)
            events.append("async")

        table = HookTable({
            "afterResetAsync": async_hook,
            "afterReset": lambda received: events.append("sync"),
            "beforeReset": lambda received: events.append("other stage"),
        })
        table.fire(HookPoint.RESET, HookStage.AFTER, context)

        self.assertEqual(events, ["sync", "async"])
        self.assertEqual(table.hooks_for(HookPoint.RESET, HookStage.AFTER),
                         [HookName.AFTER_RESET, HookName.AFTER_RESET_ASYNC])

    def test_async_hook_may_be_plain_function(self):
        events = []
        table = HookTable({"beforeInitAsync": lambda s: events.append("ran")})

        table.fire(HookPoint.INIT, HookStage.BEFORE, MagicMock())

        self.assertEqual(events, ["ran"])

    def test_fire_with_channel_reports_failures(self):
        def broken(context):
            raise RuntimeError("bad hook")

        table = HookTable({"beforeInit": broken})

        with self.assertRaises(SyncAbort) as ctx:
            table.fire(HookPoint.INIT, HookStage.BEFORE, MagicMock(), ErrorChannel())

        self.assertEqual(ctx.exception.info.messages, ["bad hook"])

    def test_call_hook_returns_awaited_value(self):
        async def hook(context):
            return 42

        self.assertEqual(call_hook(hook, MagicMock()), 42)


if __name__ == "__main__":
    unittest.main(verbosity=2)
