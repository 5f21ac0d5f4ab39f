#!/usr/bin/env python3
"""Lifecycle of CephFS filesystems and their MDS ranks.

Nothing is stored here: each operation reads fresh state from the cluster and
mutates it through individual ceph commands. Concurrent callers working on the
same filesystem are not serialized against each other.
"""

from __future__ import annotations

import errno
import logging
from collections.abc import Sequence

import humanfriendly

from mdsctl.client import FilesystemClient
from mdsctl.command import CONFIRM_FLAG
from mdsctl.config import PollConfig
from mdsctl.errors import CommandFailure, InvalidArgumentError, MdsError
from mdsctl.models import FilesystemDetails, FilesystemSummary
from mdsctl.poll import poll_until, ranks_converged
from mdsctl.pools import PoolCatalog, delete_filesystem_pools
from mdsctl.ranks import daemon_name_for_rank, filesystem_has_standby, standby_replay_daemons
from mdsctl.version import DUPLICATE_DATA_POOL_REJECTED_SINCE, ClusterContext

_LOGGER = logging.getLogger(__name__)


class FilesystemManager:
    """Creates, scales, fails over and removes CephFS filesystems."""

    def __init__(
        self,
        client: FilesystemClient,
        pools: PoolCatalog,
        context: ClusterContext,
        poll_config: PollConfig | None = None,
    ):
        self.client = client
        self.pools = pools
        self.context = context
        self.poll_config = poll_config or PollConfig()

    def _run(self, args: list[str], failure: str) -> bytes:
        try:
            return self.client.run(args)
        except CommandFailure as e:
            raise CommandFailure(failure, command=e.command, exit_code=e.exit_code, stderr=e.stderr) from e

    def list_filesystems(self) -> list[FilesystemSummary]:
        return self.client.list_filesystems()

    def get_filesystem(self, fs_name: str) -> FilesystemDetails:
        return self.client.get_filesystem(fs_name)

    def create(self, fs_name: str, metadata_pool: str, data_pools: Sequence[str]) -> None:
        """Create a filesystem on existing pools.

        The first data pool is bound at creation. The rest are attached one by
        one; a failure to attach one of them is logged and does not fail the
        creation.
        """
        if not data_pools:
            raise InvalidArgumentError(f"at least one data pool is required to create filesystem {fs_name!r}")

        _LOGGER.info(
            "Creating filesystem %s with metadata pool %s and data pools %s", fs_name, metadata_pool, list(data_pools)
        )
        # this may not be the first filesystem in the cluster
        self._run(
            ["fs", "flag", "set", "enable_multiple", "true", CONFIRM_FLAG], "failed to enable multiple filesystems"
        )
        self._run(["fs", "new", fs_name, metadata_pool, data_pools[0]], f"failed to create filesystem {fs_name!r}")

        for pool_name in data_pools[1:]:
            try:
                self.add_data_pool(fs_name, pool_name)
            except MdsError as e:
                _LOGGER.error("%s", e)

    def add_data_pool(self, fs_name: str, pool_name: str) -> None:
        """Attach a data pool to a filesystem. Attaching an already attached pool is not an error."""
        _LOGGER.info("Adding data pool %s to filesystem %s", pool_name, fs_name)
        try:
            self.client.run(["fs", "add_data_pool", fs_name, pool_name])
        except CommandFailure as e:
            # Older releases accept a duplicate add silently, newer ones reject it with EINVAL
            if self.context.version.is_at_least(DUPLICATE_DATA_POOL_REJECTED_SINCE) and e.exit_code == errno.EINVAL:
                _LOGGER.warning("Data pool %s is already part of filesystem %s", pool_name, fs_name)
                return
            raise CommandFailure(
                f"failed to add pool {pool_name!r} to filesystem {fs_name!r}",
                command=e.command,
                exit_code=e.exit_code,
                stderr=e.stderr,
            ) from e

    def allow_standby_replay(self, fs_name: str, allow: bool) -> None:
        _LOGGER.info("Setting allow_standby_replay to %s for filesystem %s", allow, fs_name)
        value = "true" if allow else "false"
        self._run(
            ["fs", "set", fs_name, "allow_standby_replay", value],
            f"failed to set allow_standby_replay for filesystem {fs_name!r}",
        )

    def set_num_mds_ranks(self, fs_name: str, active_mds_count: int) -> None:
        """Set max_mds. Does not wait; combine with wait_for_active_ranks for that."""
        _LOGGER.info("Setting number of mds ranks (max_mds) for filesystem %s to %d", fs_name, active_mds_count)
        self._run(
            ["fs", "set", fs_name, "max_mds", str(active_mds_count)],
            f"failed to set filesystem {fs_name!r} num mds ranks (max_mds) to {active_mds_count}",
        )

    def wait_for_active_ranks(self, fs_name: str, desired_ranks: int, allow_more: bool, timeout: float) -> None:
        """Block until the filesystem has `desired_ranks` active ranks (or more, with `allow_more`).

        Raises:
            PollTimeoutError: if the ranks did not converge within `timeout` seconds
            PollCancelledError: if the cluster context was cancelled
        """
        count_text = f"{desired_ranks} or more" if allow_more else str(desired_ranks)
        description = f"number of active mds daemons for filesystem {fs_name!r} to become {count_text}"
        _LOGGER.info("Waiting %s for %s", humanfriendly.format_timespan(timeout), description)

        def converged() -> bool:
            return ranks_converged(self.client.get_filesystem(fs_name), desired_ranks, allow_more)

        poll_until(
            converged,
            interval=self.poll_config.rank_interval,
            timeout=timeout,
            description=description,
            cancel=self.context.cancel,
        )
        _LOGGER.debug("mds ranks for filesystem %s successfully became %s", fs_name, count_text)

    def fail_all_standby_replay(self, fs_name: str) -> None:
        """Fail every daemon in up:standby-replay. Stops at the first daemon that cannot be failed."""
        details = self.client.get_filesystem(fs_name)
        for info in standby_replay_daemons(details):
            try:
                self._fail_mds(info.gid)
            except CommandFailure as e:
                raise CommandFailure(
                    f"failed to fail mds {info.name!r} for filesystem {fs_name!r} in up:standby-replay state",
                    command=e.command,
                    exit_code=e.exit_code,
                    stderr=e.stderr,
                ) from e

    def get_mds_name_by_rank(self, fs_name: str, rank: int) -> str:
        return daemon_name_for_rank(self.client.get_filesystem(fs_name), rank)

    def mark_down(self, fs_name: str) -> None:
        _LOGGER.info("Marking filesystem %s as down", fs_name)
        self._run(
            ["fs", "set", fs_name, "cluster_down", "true"], f"failed to set filesystem {fs_name!r} to cluster_down"
        )

    def _fail_mds(self, gid: int) -> None:
        _LOGGER.info("Failing mds %d", gid)
        self._run(["mds", "fail", str(gid)], f"failed to fail mds {gid}")

    def fail_filesystem(self, fs_name: str) -> None:
        """Mark the filesystem down and fail all its daemons with a single command."""
        _LOGGER.info("Failing filesystem %s", fs_name)
        self._run(["fs", "fail", fs_name], f"failed to fail filesystem {fs_name!r}")

    def remove(self, fs_name: str, preserve_pools: bool) -> None:
        """Remove a filesystem and, unless `preserve_pools`, the pools that backed it.

        Raises:
            NotFoundError: if the filesystem does not exist
        """
        # pool ids are only available while the filesystem still exists
        details = self.client.get_filesystem(fs_name)

        _LOGGER.info("Removing filesystem %s", fs_name)
        self._run(["fs", "rm", fs_name, CONFIRM_FLAG], f"failed to delete filesystem {fs_name!r}")

        if preserve_pools:
            _LOGGER.info("Pools of filesystem %s are preserved and will not be deleted", fs_name)
            return
        delete_filesystem_pools(self.pools, details)

    def wait_for_no_standbys(self, fs_name: str, interval: float | None = None, timeout: float | None = None) -> None:
        """Block until the daemon dump lists no standby that belongs to the filesystem by name."""
        interval = interval if interval is not None else self.poll_config.standby_interval
        timeout = timeout if timeout is not None else self.poll_config.standby_timeout

        def drained() -> bool:
            return not filesystem_has_standby(self.client.get_mds_dump(), fs_name)

        poll_until(
            drained,
            interval=interval,
            timeout=timeout,
            description=f"no standby mds daemons for filesystem {fs_name!r}",
            cancel=self.context.cancel,
        )
