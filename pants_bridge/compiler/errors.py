"""Errors raised while driving a Pants build.

Every failure before or during the main Pants invocation aborts the build
attempt; callers catch :class:`PantsBuildError` to handle them all.
"""

from __future__ import annotations

from collections.abc import Sequence


class PantsBuildError(Exception):
    """Base class for build failures surfaced to the host."""


class ProbeError(PantsBuildError):
    """A required capability probe (``options`` / ``export``) failed.

    Attributes:
        probe: Name of the Pants subcommand that was probed.
        stderr: Captured standard error of the probe, if it ran.
    """

    def __init__(self, probe: str, message: str, stderr: str = "") -> None:
        self.probe = probe
        self.stderr = stderr
        super().__init__(f"./pants {probe} failed: {message}")


class ProcessLaunchError(PantsBuildError):
    """The Pants process could not be started at all."""

    def __init__(self, command: Sequence[str], cause: BaseException) -> None:
        self.command = list(command)
        self.cause = cause
        super().__init__(f"Could not start {self.command[0] if self.command else 'pants'}: {cause}")


class BuildFailedError(PantsBuildError):
    """Pants ran but reported failure; the message is its captured stderr."""

    def __init__(self, stderr: str, exit_code: int, command: Sequence[str] = ()) -> None:
        self.stderr = stderr
        self.exit_code = exit_code
        self.command = list(command)
        super().__init__(stderr or f"Pants exited with code {exit_code}")
