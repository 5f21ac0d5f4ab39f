#!/usr/bin/env python3
"""Running ceph administrative commands."""

from __future__ import annotations

import errno
import logging
import shlex
import subprocess
from collections.abc import Sequence
from typing import Protocol

from mdsctl.config import CephConfig
from mdsctl.errors import CommandFailure

_LOGGER = logging.getLogger(__name__)

# Required explicit-intent marker for destructive commands
CONFIRM_FLAG = "--yes-i-really-mean-it"


class CommandRunner(Protocol):
    """Executes an administrative command and returns its raw JSON output."""

    def run(self, args: Sequence[str]) -> bytes: ...

    def run_with_timeout(self, args: Sequence[str], timeout: float) -> bytes: ...


class CephCommandRunner:
    """Runs the ceph CLI as a subprocess, asking for JSON output."""

    def __init__(self, config: CephConfig):
        self.config = config

    def build_command(self, args: Sequence[str]) -> list[str]:
        cmd = [self.config.binary, *args, "--cluster", self.config.cluster, "--name", f"client.{self.config.user}"]
        if self.config.conf_path:
            cmd.extend(["--conf", str(self.config.conf_path)])
        if self.config.keyring:
            cmd.extend(["--keyring", str(self.config.keyring)])
        cmd.extend(["--format", "json"])
        return cmd

    def run(self, args: Sequence[str]) -> bytes:
        return self._execute(args, timeout=None)

    def run_with_timeout(self, args: Sequence[str], timeout: float) -> bytes:
        return self._execute(args, timeout=timeout)

    def _execute(self, args: Sequence[str], timeout: float | None) -> bytes:
        cmd = self.build_command(args)
        _LOGGER.debug("Running: %s", shlex.join(cmd))
        try:
            result = subprocess.run(cmd, capture_output=True, check=False, timeout=timeout)
        except subprocess.TimeoutExpired as e:
            raise CommandFailure(
                f"command timed out after {timeout} seconds", command=args, exit_code=errno.ETIMEDOUT
            ) from e
        except OSError as e:
            raise CommandFailure(f"failed to execute {self.config.binary}: {e}", command=args, exit_code=-1) from e

        if result.returncode != 0:
            stderr = result.stderr.decode("utf-8", errors="replace")
            _LOGGER.debug("Command failed with exit code %d: %s", result.returncode, stderr.strip())
            raise CommandFailure("command failed", command=args, exit_code=result.returncode, stderr=stderr)
        return result.stdout
