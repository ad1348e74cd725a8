"""State codes reported by NetworkManager and systemd.

Numeric values are the ones NetworkManager puts on the wire; anything we do
not recognise maps to the ``UNKNOWN`` member through ``parse()``.
"""
from __future__ import annotations

from enum import Enum, IntEnum


class _CodeEnum(IntEnum):

    @classmethod
    def parse(cls, code: int):
        try:
            return cls(code)
        except ValueError:
            return cls.UNKNOWN  # type: ignore[attr-defined]

    @property
    def label(self) -> str:
        return _LABELS.get((type(self).__name__, self.name), self.name.replace("_", " ").title())


class NMState(_CodeEnum):
    UNKNOWN          = 0   # networking state is unknown
    ASLEEP           = 10  # networking is not enabled
    DISCONNECTED     = 20  # there is no active network connection
    DISCONNECTING    = 30  # network connections are being cleaned up
    CONNECTING       = 40  # a network connection is being started
    CONNECTED_LOCAL  = 50  # only local IPv4 and/or IPv6 connectivity
    CONNECTED_SITE   = 60  # only site-wide IPv4 and/or IPv6 connectivity
    CONNECTED_GLOBAL = 70  # global IPv4 and/or IPv6 Internet connectivity


class NMConnectivity(_CodeEnum):
    UNKNOWN = 0  # connectivity is unknown
    NONE    = 1  # not connected to any network
    PORTAL  = 2  # behind a captive portal
    LIMITED = 3  # connected, but cannot reach the full Internet
    FULL    = 4  # connected and can reach the full Internet


class NMDeviceState(_CodeEnum):
    UNKNOWN      = 0
    UNMANAGED    = 10   # recognised, but not managed by NetworkManager
    UNAVAILABLE  = 20   # managed, but not available for use (rfkill, no carrier, ...)
    DISCONNECTED = 30   # can be activated, currently idle
    PREPARE      = 40
    CONFIG       = 50
    NEED_AUTH    = 60   # waiting for secrets
    IP_CONFIG    = 70
    IP_CHECK     = 80
    SECONDARIES  = 90   # waiting for a secondary connection (VPN, ...)
    ACTIVATED    = 100
    DEACTIVATING = 110
    FAILED       = 120


_LABELS = {
    ("NMState", "CONNECTED_LOCAL"):  "Connected - Local",
    ("NMState", "CONNECTED_SITE"):   "Connected - Site",
    ("NMState", "CONNECTED_GLOBAL"): "Connected - Global",
    ("NMDeviceState", "NEED_AUTH"):  "Need Auth",
    ("NMDeviceState", "IP_CONFIG"):  "IP Config",
    ("NMDeviceState", "IP_CHECK"):   "IP Check",
}


class UnitActiveState(str, Enum):
    ACTIVE       = "active"
    RELOADING    = "reloading"
    INACTIVE     = "inactive"
    FAILED       = "failed"
    ACTIVATING   = "activating"
    DEACTIVATING = "deactivating"
    MAINTENANCE  = "maintenance"
    REFRESHING   = "refreshing"
    UNKNOWN      = "unknown"

    @classmethod
    def parse(cls, value: str) -> "UnitActiveState":
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN

    @property
    def is_running(self) -> bool:
        # Anything that is not plainly down counts as running.
        return self not in (UnitActiveState.INACTIVE, UnitActiveState.FAILED)


class JobResult(str, Enum):
    DONE       = "done"
    CANCELED   = "canceled"
    TIMEOUT    = "timeout"
    FAILED     = "failed"
    DEPENDENCY = "dependency"
    SKIPPED    = "skipped"
    INVALID    = "invalid"
    UNKNOWN    = "unknown"

    @classmethod
    def parse(cls, value: str) -> "JobResult":
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN
