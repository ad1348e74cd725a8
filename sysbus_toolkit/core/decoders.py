"""Typed decoding of signal bodies and method replies.

Signal decoders fail closed: they return ``None`` for anything that does not
fit, because unrelated traffic on a connection is normal. Reply decoders
raise :class:`DecodeError` since a direct query with the wrong shape is a
real problem.
"""
from __future__ import annotations

from typing import Any, Callable, NamedTuple, Optional, Sequence

from ..constants import NM_DEVICE_STATE_SIGNATURE, NM_STATE_CHANGED_SIGNATURE, SYSTEMD_JOB_REMOVED_SIGNATURE
from ..errors import DecodeError
from ..infra.transport import RawNotification
from .states import JobResult, NMDeviceState, NMState

UINT32_MAX = 0xFFFFFFFF


class DeviceStateChange(NamedTuple):
    """(new state, old state, reason) from ``Device.StateChanged``."""

    new_state: int
    old_state: int
    reason: int

    @property
    def new(self) -> NMDeviceState:
        return NMDeviceState.parse(self.new_state)

    @property
    def old(self) -> NMDeviceState:
        return NMDeviceState.parse(self.old_state)


class ManagerStateChange(NamedTuple):
    state: int

    @property
    def value(self) -> NMState:
        return NMState.parse(self.state)


class JobRemoved(NamedTuple):
    job_id: int
    job_path: str
    unit: str
    result: str

    @property
    def outcome(self) -> JobResult:
        return JobResult.parse(self.result)


Decoder = Callable[[RawNotification], Optional[Any]]


def _is_uint32(value: Any) -> bool:
    # dbus.Boolean is an int subclass too, hence the class name check.
    if isinstance(value, bool) or type(value).__name__ == "Boolean":
        return False
    return isinstance(value, int) and 0 <= value <= UINT32_MAX


def _is_string(value: Any) -> bool:
    return isinstance(value, str)


_SCALAR_CHECKS = {
    "u": _is_uint32,
    "s": _is_string,
    "o": _is_string,
}


def body_matches(note: RawNotification, signature: str) -> bool:
    """True if *note* starts with at least ``len(signature)`` scalars of these types.

    Only single-character (scalar) type codes are supported in *signature*.
    """
    body: Sequence[Any] = note.body
    if len(body) < len(signature):
        return False
    if note.signature and not note.signature.startswith(signature):
        return False
    return all(_SCALAR_CHECKS[code](value) for code, value in zip(signature, body))


def decode_device_state_change(note: RawNotification) -> Optional[DeviceStateChange]:
    if not body_matches(note, NM_DEVICE_STATE_SIGNATURE):
        return None
    return DeviceStateChange(int(note.body[0]), int(note.body[1]), int(note.body[2]))


def decode_manager_state_change(note: RawNotification) -> Optional[ManagerStateChange]:
    if not body_matches(note, NM_STATE_CHANGED_SIGNATURE):
        return None
    return ManagerStateChange(int(note.body[0]))


def decode_job_removed(note: RawNotification) -> Optional[JobRemoved]:
    if not body_matches(note, SYSTEMD_JOB_REMOVED_SIGNATURE):
        return None
    job_id, job_path, unit, result = note.body[:4]
    return JobRemoved(int(job_id), str(job_path), str(unit), str(result))


# ---------------------------------------------------------------------------
# Reply decoders (raise)
# ---------------------------------------------------------------------------

def decode_uint32(value: Any, what: str) -> int:
    if not _is_uint32(value):
        raise DecodeError(f"expected uint32 for {what}, got {value!r}")
    return int(value)


def decode_string(value: Any, what: str) -> str:
    if not _is_string(value):
        raise DecodeError(f"expected string for {what}, got {value!r}")
    return str(value)


def decode_path_list(value: Any, what: str) -> list[str]:
    if isinstance(value, (str, bytes)) or not isinstance(value, (list, tuple)):
        raise DecodeError(f"expected object path array for {what}, got {value!r}")
    return [decode_string(item, what) for item in value]
