#!/usr/bin/env python3
"""Access to a Ceph cluster's filesystem state through the ceph CLI.

Typed reads of filesystems, rank maps, daemon dumps and sub-entities, plus a raw
passthrough used to issue administrative commands.
"""

from __future__ import annotations

import errno
import json
import logging

from mdsctl.command import CommandRunner
from mdsctl.config import CephConfig
from mdsctl.errors import CommandFailure, NotFoundError, ParseError
from mdsctl.models import (
    FILESYSTEM_LIST,
    SUBVOLUME_GROUP_LIST,
    SUBVOLUME_LIST,
    SUBVOLUME_SNAPSHOT_LIST,
    DaemonDump,
    FilesystemDetails,
    FilesystemSummary,
    PendingClones,
    Subvolume,
    SubvolumeGroup,
    SubvolumeSnapshot,
    parse_response,
)
from mdsctl.version import CephVersion

_LOGGER = logging.getLogger(__name__)

# Passed as a group name to address subvolumes that are not in any group
NO_SUBVOLUME_GROUP = ""


class FilesystemClient:
    """Fetches fresh cluster state on every call; nothing is cached.

    Reads that a convergence poll repeats (`get_filesystem`, `get_mds_dump`) are
    bounded by the configured command timeout. `run` sends any other command,
    including mutating ones, unbounded and returns its raw output.
    """

    def __init__(self, runner: CommandRunner, config: CephConfig | None = None):
        self.runner = runner
        self.config = config or CephConfig()

    def run(self, args: list[str]) -> bytes:
        return self.runner.run(args)

    def list_filesystems(self) -> list[FilesystemSummary]:
        raw = self.runner.run(["fs", "ls"])
        return parse_response(FILESYSTEM_LIST, raw, "filesystem list")

    def get_filesystem(self, fs_name: str) -> FilesystemDetails:
        """Get the details and rank map of a filesystem.

        Raises:
            NotFoundError: if the cluster has no filesystem called `fs_name`
            ParseError: if the response cannot be decoded
        """
        try:
            raw = self.runner.run_with_timeout(["fs", "get", fs_name], self.config.command_timeout)
        except CommandFailure as e:
            if e.exit_code == errno.ENOENT:
                _LOGGER.debug("Filesystem %s does not exist", fs_name)
                raise NotFoundError(f"filesystem {fs_name!r} not found") from e
            raise
        return parse_response(FilesystemDetails, raw, f"details of filesystem {fs_name!r}")

    def get_mds_dump(self) -> DaemonDump:
        raw = self.runner.run_with_timeout(["fs", "dump"], self.config.command_timeout)
        return parse_response(DaemonDump, raw, "fs dump")

    def get_version(self) -> CephVersion:
        raw = self.runner.run(["version"])
        try:
            text = json.loads(raw)["version"]
        except (ValueError, KeyError, TypeError) as e:
            raise ParseError(f"failed to parse ceph version response {raw[:200]!r}") from e
        return CephVersion.parse(text)

    def list_subvolume_groups(self, fs_name: str) -> list[SubvolumeGroup]:
        raw = self.runner.run_with_timeout(["fs", "subvolumegroup", "ls", fs_name], self.config.command_timeout)
        return parse_response(SUBVOLUME_GROUP_LIST, raw, f"subvolume groups of filesystem {fs_name!r}")

    def list_subvolumes_in_group(self, fs_name: str, group_name: str = NO_SUBVOLUME_GROUP) -> list[Subvolume]:
        """List subvolumes of a group, or the ungrouped subvolumes when `group_name` is empty."""
        args = ["fs", "subvolume", "ls", fs_name]
        if group_name != NO_SUBVOLUME_GROUP:
            args.append(group_name)
        raw = self.runner.run_with_timeout(args, self.config.command_timeout)
        return parse_response(
            SUBVOLUME_LIST, raw, f"subvolumes of filesystem {fs_name!r} subvolume group {group_name!r}"
        )

    def list_subvolume_snapshots(self, fs_name: str, subvolume: str, group_name: str) -> list[SubvolumeSnapshot]:
        args = ["fs", "subvolume", "snapshot", "ls", fs_name, subvolume, "--group_name", group_name]
        raw = self.runner.run_with_timeout(args, self.config.command_timeout)
        return parse_response(
            SUBVOLUME_SNAPSHOT_LIST,
            raw,
            f"snapshots of subvolume {subvolume!r} in filesystem {fs_name!r} subvolume group {group_name!r}",
        )

    def list_snapshot_pending_clones(
        self, fs_name: str, subvolume: str, snapshot: str, group_name: str
    ) -> PendingClones:
        args = ["fs", "subvolume", "snapshot", "info", fs_name, subvolume, snapshot, "--group_name", group_name]
        raw = self.runner.run_with_timeout(args, self.config.command_timeout)
        return parse_response(
            PendingClones,
            raw,
            f"pending clones of snapshot {snapshot!r} in filesystem {fs_name!r} subvolume group {group_name!r}",
        )
