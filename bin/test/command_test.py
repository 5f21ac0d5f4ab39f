#!/usr/bin/env python3
"""Tests for the ceph command runner."""

from __future__ import annotations

import errno
import subprocess
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

from mdsctl.command import CephCommandRunner
from mdsctl.config import CephConfig
from mdsctl.errors import CommandFailure


class TestCephCommandRunner(unittest.TestCase):
    def setUp(self):
        self.runner = CephCommandRunner(CephConfig())

    def test_build_command_defaults(self):
        self.assertEqual(
            self.runner.build_command(["fs", "ls"]),
            ["ceph", "fs", "ls", "--cluster", "ceph", "--name", "client.admin", "--format", "json"],
        )

    def test_build_command_with_conf_and_keyring(self):
        runner = CephCommandRunner(
            CephConfig(
                binary="/usr/bin/ceph",
                cluster="rook",
                user="operator",
                conf_path=Path("/etc/ceph/rook.conf"),
                keyring=Path("/etc/ceph/keyring"),
            )
        )
        self.assertEqual(
            runner.build_command(["fs", "dump"]),
            [
                "/usr/bin/ceph",
                "fs",
                "dump",
                "--cluster",
                "rook",
                "--name",
                "client.operator",
                "--conf",
                "/etc/ceph/rook.conf",
                "--keyring",
                "/etc/ceph/keyring",
                "--format",
                "json",
            ],
        )

    @patch("mdsctl.command.subprocess.run")
    def test_run_returns_stdout(self, mock_run):
        mock_run.return_value = MagicMock(returncode=0, stdout=b"[]", stderr=b"")

        self.assertEqual(self.runner.run(["fs", "ls"]), b"[]")

        args, kwargs = mock_run.call_args
        self.assertEqual(args[0][:3], ["ceph", "fs", "ls"])
        self.assertIsNone(kwargs["timeout"])
        self.assertFalse(kwargs["check"])

    @patch("mdsctl.command.subprocess.run")
    def test_run_with_timeout_passes_timeout(self, mock_run):
        mock_run.return_value = MagicMock(returncode=0, stdout=b"[]", stderr=b"")

        self.runner.run_with_timeout(["fs", "subvolumegroup", "ls", "myfs"], 15)

        self.assertEqual(mock_run.call_args.kwargs["timeout"], 15)

    @patch("mdsctl.command.subprocess.run")
    def test_nonzero_exit_raises_with_code(self, mock_run):
        mock_run.return_value = MagicMock(
            returncode=errno.ENOENT, stdout=b"", stderr=b"Error ENOENT: filesystem 'x' not found"
        )

        with self.assertRaises(CommandFailure) as ctx:
            self.runner.run(["fs", "get", "x"])

        self.assertEqual(ctx.exception.exit_code, errno.ENOENT)
        self.assertEqual(ctx.exception.command, ["fs", "get", "x"])
        self.assertIn("filesystem 'x' not found", str(ctx.exception))
        self.assertIn("[fs get x] exited 2", str(ctx.exception))

    @patch("mdsctl.command.subprocess.run")
    def test_timeout_raises_command_failure(self, mock_run):
        mock_run.side_effect = subprocess.TimeoutExpired(cmd="ceph", timeout=5)

        with self.assertRaises(CommandFailure) as ctx:
            self.runner.run_with_timeout(["fs", "subvolume", "ls", "myfs"], 5)

        self.assertEqual(ctx.exception.exit_code, errno.ETIMEDOUT)

    @patch("mdsctl.command.subprocess.run")
    def test_missing_binary_raises_command_failure(self, mock_run):
        mock_run.side_effect = FileNotFoundError("ceph")

        with self.assertRaises(CommandFailure) as ctx:
            self.runner.run(["fs", "ls"])

        self.assertEqual(ctx.exception.exit_code, -1)
