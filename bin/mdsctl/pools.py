#!/usr/bin/env python3
"""Deleting the pools that backed a removed filesystem."""

from __future__ import annotations

import logging
from typing import Protocol

from pydantic import BaseModel, ConfigDict, TypeAdapter

from mdsctl.command import CommandRunner
from mdsctl.errors import MdsError, NotFoundError
from mdsctl.models import FilesystemDetails, parse_response

_LOGGER = logging.getLogger(__name__)

POOL_DELETE_CONFIRM_FLAG = "--yes-i-really-really-mean-it"


class PoolCatalog(Protocol):
    """Pool lookup and deletion."""

    def pool_names_by_id(self) -> dict[int, str]: ...

    def delete_pool(self, name: str) -> None: ...


class _PoolDetail(BaseModel):
    pool_id: int = 0
    pool_name: str = ""

    model_config = ConfigDict(extra="ignore")


_POOL_DETAIL_LIST = TypeAdapter(list[_PoolDetail])


class CephPoolCatalog:
    """PoolCatalog backed by `ceph osd pool` commands."""

    def __init__(self, runner: CommandRunner):
        self.runner = runner

    def pool_names_by_id(self) -> dict[int, str]:
        raw = self.runner.run(["osd", "pool", "ls", "detail"])
        pools = parse_response(_POOL_DETAIL_LIST, raw, "pool details")
        return {pool.pool_id: pool.pool_name for pool in pools}

    def delete_pool(self, name: str) -> None:
        _LOGGER.info("Deleting pool %s", name)
        self.runner.run(["osd", "pool", "delete", name, name, POOL_DELETE_CONFIRM_FLAG])


def _delete_pool_by_id(catalog: PoolCatalog, pool_names: dict[int, str], pool_id: int, fs_name: str) -> None:
    name = pool_names.get(pool_id)
    if name is None:
        raise NotFoundError(f"pool {pool_id} of filesystem {fs_name!r} not found")
    catalog.delete_pool(name)


def delete_filesystem_pools(catalog: PoolCatalog, details: FilesystemDetails) -> None:
    """Delete the metadata pool and every data pool named in `details`.

    Every pool is attempted even when earlier ones fail. Each failure is logged
    but only the last one is raised.
    """
    pool_names = catalog.pool_names_by_id()
    pool_ids = [details.mdsmap.metadata_pool, *details.mdsmap.data_pools]

    last_error: MdsError | None = None
    for pool_id in pool_ids:
        try:
            _delete_pool_by_id(catalog, pool_names, pool_id, details.mdsmap.fs_name)
        except MdsError as e:
            _LOGGER.error("Failed to delete pool %d of filesystem %s: %s", pool_id, details.mdsmap.fs_name, e)
            last_error = e

    if last_error is not None:
        raise last_error
