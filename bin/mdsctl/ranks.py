#!/usr/bin/env python3
"""Resolve MDS daemon identity from rank maps and daemon dumps."""

from __future__ import annotations

import re

from mdsctl.errors import NotFoundError
from mdsctl.models import STATE_STANDBY_REPLAY, DaemonDump, DaemonInfo, FilesystemDetails


def rank_token(rank: int) -> str:
    return f"mds_{rank}"


def gid_token(gid: int) -> str:
    return f"gid_{gid}"


def daemon_info_for_rank(details: FilesystemDetails, rank: int) -> DaemonInfo:
    """Find the daemon currently serving `rank`.

    Raises:
        NotFoundError: if the rank is not up, or it is up but the rank map has no
            info for its daemon (an inconsistent map)
    """
    mdsmap = details.mdsmap
    gid = mdsmap.up.get(rank_token(rank))
    if gid is None:
        raise NotFoundError(f"failed to get mds gid from rank {rank} of filesystem {mdsmap.fs_name!r}")
    info = mdsmap.info.get(gid_token(gid))
    if info is None:
        raise NotFoundError(f"failed to get mds info for rank {rank} (gid {gid}) of filesystem {mdsmap.fs_name!r}")
    return info


def daemon_name_for_rank(details: FilesystemDetails, rank: int) -> str:
    return daemon_info_for_rank(details, rank).name


def standby_replay_daemons(details: FilesystemDetails) -> list[DaemonInfo]:
    """All daemons in the rank map that are in up:standby-replay. Order is not meaningful."""
    return [info for info in details.mdsmap.info.values() if info.state == STATE_STANDBY_REPLAY]


def standby_name_matches(fs_name: str, standby_name: str) -> bool:
    """Whether a standby daemon's name follows the "<fs_name>-<letter>" convention.

    The daemon dump does not say which filesystem a rankless standby belongs to,
    so ownership is guessed from the name: "myfs-a" belongs to "myfs". Daemons
    deployed with other naming schemes are never matched.
    """
    return re.fullmatch(f"{re.escape(fs_name)}-[a-z]", standby_name) is not None


def filesystem_owns_standby(dump: DaemonDump, fs_name: str, standby_name: str) -> bool:
    """Whether `standby_name` is a standby in `dump` that belongs to `fs_name` by name."""
    return any(
        standby.name == standby_name and standby_name_matches(fs_name, standby.name) for standby in dump.standbys
    )


def filesystem_has_standby(dump: DaemonDump, fs_name: str) -> bool:
    return any(standby_name_matches(fs_name, standby.name) for standby in dump.standbys)
