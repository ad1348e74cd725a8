"""Error taxonomy.

Callers need to tell "could not talk to the bus" apart from "the operation
ran and did not converge", so each kind gets its own class.
"""
from __future__ import annotations


class ToolkitError(Exception):
    """Base class for every error raised by this package."""


class BusError(ToolkitError):
    """Connecting, calling a method or reading a property failed."""

    def __init__(self, message: str, dbus_name: str | None = None):
        super().__init__(message)
        self.dbus_name = dbus_name


class DecodeError(ToolkitError):
    """A reply did not have the expected shape or type."""


class JobTimeoutError(ToolkitError):
    """No matching JobRemoved signal arrived before the deadline.

    The outcome of the job is unknown; re-check the unit state.
    """

    def __init__(self, job_path: str, timeout: float):
        super().__init__(f"job {job_path} did not complete within {timeout:g}s")
        self.job_path = job_path
        self.timeout = timeout


class ConvergenceError(ToolkitError):
    """The job finished but the unit is not in the requested state."""

    def __init__(self, unit: str, result: str, message: str):
        super().__init__(message)
        self.unit = unit
        self.result = result


class OperationInterrupted(ToolkitError):
    """Process shutdown was requested while waiting."""
