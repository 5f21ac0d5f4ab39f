#!/usr/bin/env python3
"""Typed views of the JSON documents returned by ceph.

Every field defaults to its zero value when the cluster omits it, and fields
this library does not use are ignored.
"""

from __future__ import annotations

import json
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from mdsctl.errors import ParseError

STATE_STANDBY_REPLAY = "up:standby-replay"

_RAW_EXCERPT_LIMIT = 500

T = TypeVar("T")


class _Response(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class FilesystemSummary(_Response):
    """One entry of `ceph fs ls`."""

    name: str = ""
    metadata_pool: str = ""
    metadata_pool_id: int = 0
    data_pools: list[str] = Field(default_factory=list)
    data_pool_ids: list[int] = Field(default_factory=list)


class DaemonInfo(_Response):
    """A single MDS daemon as described in a filesystem's rank map."""

    gid: int = 0
    name: str = ""
    rank: int = 0
    state: str = ""
    addr: str = ""


class RankMap(_Response):
    """The `mdsmap` section of `ceph fs get`.

    `up` maps rank tokens ("mds_<rank>") to daemon gids; `info` maps gid tokens
    ("gid_<gid>") to daemon details.
    """

    fs_name: str = ""
    enabled: bool = False
    root: int = 0
    tableserver: int = 0
    max_mds: int = 0
    in_ranks: list[int] = Field(default_factory=list, alias="in")
    up: dict[str, int] = Field(default_factory=dict)
    metadata_pool: int = 0
    data_pools: list[int] = Field(default_factory=list)
    failed: list[int] = Field(default_factory=list)
    damaged: list[int] = Field(default_factory=list)
    stopped: list[int] = Field(default_factory=list)
    info: dict[str, DaemonInfo] = Field(default_factory=dict)


class FilesystemDetails(_Response):
    """The result of `ceph fs get <name>`."""

    id: int = 0
    mdsmap: RankMap = Field(default_factory=RankMap)


class StandbyDaemon(_Response):
    name: str = ""
    # meaningless for a standby that holds no rank
    rank: int = 0


class DaemonDump(_Response):
    """The result of `ceph fs dump`."""

    standbys: list[StandbyDaemon] = Field(default_factory=list)
    filesystems: list[RankMap] = Field(default_factory=list)


class SubvolumeGroup(_Response):
    name: str = ""


class Subvolume(_Response):
    name: str = ""


class SubvolumeSnapshot(_Response):
    name: str = ""


class PendingClone(_Response):
    name: str = ""


class PendingClones(_Response):
    """The pending-clone part of `ceph fs subvolume snapshot info`."""

    pending_clones: list[PendingClone] = Field(default_factory=list)


def parse_response(adapter: TypeAdapter[T] | type[BaseModel], raw: bytes, what: str) -> Any:
    """Decode a raw JSON response into a model.

    Raises:
        ParseError: if the bytes are not JSON or do not match the model
    """
    try:
        data = json.loads(raw)
        if isinstance(adapter, TypeAdapter):
            return adapter.validate_python(data)
        return adapter.model_validate(data)
    except (ValueError, ValidationError) as e:
        excerpt = raw[:_RAW_EXCERPT_LIMIT].decode("utf-8", errors="replace")
        raise ParseError(f"failed to parse {what}: {e}. raw response: {excerpt!r}") from e


FILESYSTEM_LIST = TypeAdapter(list[FilesystemSummary])
SUBVOLUME_GROUP_LIST = TypeAdapter(list[SubvolumeGroup])
SUBVOLUME_LIST = TypeAdapter(list[Subvolume])
SUBVOLUME_SNAPSHOT_LIST = TypeAdapter(list[SubvolumeSnapshot])
