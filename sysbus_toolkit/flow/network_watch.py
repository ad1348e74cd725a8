"""Typed NetworkManager state-change subscriptions."""
from __future__ import annotations

from typing import Optional

from ..config import Settings
from ..constants import NM_DEVICE_IFACE, NM_IFACE, NM_OBJECT_PATH, NM_SIGNAL_STATE_CHANGED
from ..core.decoders import decode_device_state_change, decode_manager_state_change
from ..infra.bus_manager import get_transport
from ..infra.transport import Transport
from .subscription import OverflowPolicy, SignalMatch, SignalSubscription


def _options(capacity: Optional[int], overflow: Optional[OverflowPolicy]):
    if capacity is None or overflow is None:
        settings = Settings.from_env()
        if capacity is None:
            capacity = settings.signal_buffer
        if overflow is None:
            overflow = OverflowPolicy(settings.overflow_policy)
    return capacity, overflow


def device_state_match(device_path: str) -> SignalMatch:
    return SignalMatch(NM_DEVICE_IFACE, NM_SIGNAL_STATE_CHANGED, path=device_path)


def manager_state_match() -> SignalMatch:
    return SignalMatch(NM_IFACE, NM_SIGNAL_STATE_CHANGED, path=NM_OBJECT_PATH)


def subscribe_device_state_changes(
    device_path: str,
    transport: Optional[Transport] = None,
    capacity: Optional[int] = None,
    overflow: Optional[OverflowPolicy] = None,
) -> SignalSubscription:
    """Records are :class:`DeviceStateChange` (new state, old state, reason)."""
    capacity, overflow = _options(capacity, overflow)
    return SignalSubscription.subscribe(
        transport or get_transport(),
        device_state_match(device_path),
        decode_device_state_change,
        capacity=capacity,
        overflow=overflow,
    )


def subscribe_manager_state_changes(
    transport: Optional[Transport] = None,
    capacity: Optional[int] = None,
    overflow: Optional[OverflowPolicy] = None,
) -> SignalSubscription:
    """Records are :class:`ManagerStateChange` (new global state)."""
    capacity, overflow = _options(capacity, overflow)
    return SignalSubscription.subscribe(
        transport or get_transport(),
        manager_state_match(),
        decode_manager_state_change,
        capacity=capacity,
        overflow=overflow,
    )
