#!/usr/bin/env python3
"""Ceph release versions and the per-call cluster context."""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass, field

from mdsctl.errors import ParseError

_VERSION_RE = re.compile(r"(?:ceph version\s+)?v?(?P<major>\d+)\.(?P<minor>\d+)\.(?P<extra>\d+)")


@dataclass(frozen=True, order=True)
class CephVersion:
    """A comparable Ceph release number such as 18.2.1."""

    major: int
    minor: int = 0
    extra: int = 0

    @classmethod
    def parse(cls, text: str) -> CephVersion:
        """Parse `ceph version` output or a bare dotted version.

        Accepts e.g. "ceph version 18.2.1 (7fe91d5d) reef (stable)" or "18.2.1".
        """
        match = _VERSION_RE.search(text.strip())
        if not match:
            raise ParseError(f"cannot parse ceph version from {text!r}")
        return cls(int(match["major"]), int(match["minor"]), int(match["extra"]))

    def is_at_least(self, other: CephVersion) -> bool:
        return self >= other

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.extra}"


QUINCY = CephVersion(17, 0, 0)
REEF = CephVersion(18, 0, 0)
SQUID = CephVersion(19, 0, 0)

# Releases from this one onwards reject adding a data pool the filesystem already has (EINVAL)
DUPLICATE_DATA_POOL_REJECTED_SINCE = REEF


@dataclass(frozen=True)
class ClusterContext:
    """Live facts about the cluster a call is made against.

    `cancel` is the external cancellation signal threaded through every poll;
    setting it aborts any in-flight wait.
    """

    version: CephVersion
    cancel: threading.Event = field(default_factory=threading.Event, compare=False)
