"""Exceptions raised by the MDS lifecycle library."""

from __future__ import annotations

import shlex
from collections.abc import Sequence


class MdsError(Exception):
    """Base class for all errors raised by this library."""

    pass


class NotFoundError(MdsError):
    """A named cluster entity (filesystem, rank, daemon, pool id) is absent."""

    pass


class InvalidArgumentError(MdsError):
    """Caller-supplied input violates a precondition."""

    pass


class ParseError(MdsError):
    """A command response does not match the expected shape."""

    pass


class CommandFailure(MdsError):
    """The command gateway reported a failed invocation."""

    def __init__(
        self,
        message: str,
        command: Sequence[str] | None = None,
        exit_code: int | None = None,
        stderr: str | None = None,
    ):
        super().__init__(message)
        self.command = list(command) if command else []
        self.exit_code = exit_code
        self.stderr = stderr

    def __str__(self):
        text = super().__str__()
        if self.command:
            text += f" [{shlex.join(self.command)}]"
        if self.exit_code is not None:
            text += f" exited {self.exit_code}"
        # last stderr line only
        stderr_lines = self.stderr.strip().splitlines() if self.stderr else []
        if stderr_lines:
            text += f": {stderr_lines[-1]}"
        return text


class PollTimeoutError(MdsError):
    """A convergence poll did not succeed before its deadline."""

    def __init__(self, description: str, attempts: int):
        super().__init__(f"timeout waiting for {description} after {attempts} attempt(s)")
        self.description = description
        self.attempts = attempts


class PollCancelledError(MdsError):
    """A convergence poll was aborted by its cancellation signal."""

    def __init__(self, description: str):
        super().__init__(f"cancelled while waiting for {description}")
        self.description = description
