from __future__ import annotations

import pytest
from mdsctl.client import FilesystemClient
from mdsctl.filesystem import FilesystemManager
from mdsctl.version import REEF, ClusterContext

from mdsctl_test_helpers import FakePoolCatalog, FakeRunner


@pytest.fixture
def runner():
    return FakeRunner()


@pytest.fixture
def context():
    return ClusterContext(version=REEF)


@pytest.fixture
def manager(runner, context):
    return FilesystemManager(FilesystemClient(runner), pools=FakePoolCatalog(), context=context)
