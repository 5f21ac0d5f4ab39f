#!/usr/bin/env python3
"""Bounded polling of cluster state until a condition holds."""

from __future__ import annotations

import logging
import math
import threading
import time
from collections.abc import Callable

import humanfriendly

from mdsctl.errors import MdsError, PollCancelledError, PollTimeoutError
from mdsctl.models import FilesystemDetails

_LOGGER = logging.getLogger(__name__)


def attempts_for(interval: float, timeout: float) -> int:
    """Number of condition evaluations that fit in `timeout`, one per interval, starting immediately."""
    if interval <= 0:
        raise ValueError(f"poll interval must be positive, got {interval}")
    # tolerate float error so that e.g. 0.3 / 0.1 gives 3
    return max(1, math.floor(timeout / interval + 1e-9))


def poll_until(
    condition: Callable[[], bool],
    *,
    interval: float,
    timeout: float,
    description: str,
    cancel: threading.Event | None = None,
) -> int:
    """Evaluate `condition` every `interval` seconds until it is true.

    The first evaluation happens immediately. Evaluation stops at whichever comes
    first: `timeout / interval` evaluations, or the `timeout` deadline on the
    monotonic clock. Errors raised by the library while fetching state are logged
    and count as "not yet"; only the deadline or the cancellation signal end the
    poll unsuccessfully.

    Returns:
        The number of evaluations it took to converge

    Raises:
        PollTimeoutError: if the condition did not hold within `timeout`
        PollCancelledError: if `cancel` was set
    """
    attempts = attempts_for(interval, timeout)
    start = time.monotonic()
    deadline = start + timeout
    waiter = cancel if cancel is not None else threading.Event()
    evaluations = 0
    while evaluations < attempts:
        if waiter.is_set():
            raise PollCancelledError(description)
        if evaluations > 0 and time.monotonic() >= deadline:
            break
        evaluations += 1
        try:
            if condition():
                return evaluations
        except MdsError as e:
            _LOGGER.error("Error while waiting for %s: %s", description, e)
        if evaluations < attempts:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            if waiter.wait(min(interval, remaining)):
                raise PollCancelledError(description)
    _LOGGER.debug(
        "Gave up waiting for %s after %s", description, humanfriendly.format_timespan(time.monotonic() - start)
    )
    raise PollTimeoutError(description, evaluations)


def active_ranks_success(up_count: int, desired_ranks: int, allow_more: bool) -> bool:
    if allow_more:
        return up_count >= desired_ranks
    return up_count == desired_ranks


def ranks_converged(details: FilesystemDetails, desired_ranks: int, allow_more: bool) -> bool:
    """Whether the rank map has settled on `desired_ranks` active ranks.

    max_mds and the number of up daemons must both agree: while ceph moves
    between targets the up count can still match an old target.
    """
    mdsmap = details.mdsmap
    return mdsmap.max_mds == desired_ranks and active_ranks_success(len(mdsmap.up), desired_ranks, allow_more)
