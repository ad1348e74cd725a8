"""Thin single-shot wrappers around NetworkManager D-Bus calls."""
from __future__ import annotations

from ..constants import (
    NM_ACTIVE_CONNECTION_IFACE,
    NM_DEVICE_IFACE,
    NM_IFACE,
    NM_METHOD_CHECK_CONNECTIVITY,
    NM_METHOD_DEVICE_BY_IFACE,
    NM_METHOD_GET_STATE,
    NM_OBJECT_PATH,
    NM_PROP_ACTIVE_DEVICES,
    NM_PROP_DEVICE_INTERFACE,
    NM_PROP_DEVICE_STATE,
    NM_PROP_PRIMARY_CONNECTION,
    NM_SERVICE_NAME,
)
from ..errors import DecodeError
from ..infra.transport import BusConnection, Transport
from ..logging_conf import get_logger
from .decoders import decode_path_list, decode_string, decode_uint32

log = get_logger(__name__)


def get_manager_state(transport: Transport, conn: BusConnection) -> int:
    """Global networking state, see :class:`NMState`."""
    reply = transport.call(conn, NM_SERVICE_NAME, NM_OBJECT_PATH, NM_IFACE, NM_METHOD_GET_STATE)
    return decode_uint32(reply, NM_METHOD_GET_STATE)


def check_connectivity(transport: Transport, conn: BusConnection) -> int:
    """Ask NetworkManager to re-check connectivity, see :class:`NMConnectivity`."""
    reply = transport.call(
        conn, NM_SERVICE_NAME, NM_OBJECT_PATH, NM_IFACE, NM_METHOD_CHECK_CONNECTIVITY
    )
    return decode_uint32(reply, NM_METHOD_CHECK_CONNECTIVITY)


def get_primary_device_path(transport: Transport, conn: BusConnection) -> str:
    conn_path = decode_string(
        transport.get_property(
            conn, NM_SERVICE_NAME, NM_OBJECT_PATH, NM_IFACE, NM_PROP_PRIMARY_CONNECTION
        ),
        NM_PROP_PRIMARY_CONNECTION,
    )
    if conn_path in ("", "/"):
        raise DecodeError("there is no primary connection")

    devices = decode_path_list(
        transport.get_property(
            conn, NM_SERVICE_NAME, conn_path, NM_ACTIVE_CONNECTION_IFACE, NM_PROP_ACTIVE_DEVICES
        ),
        f"{NM_ACTIVE_CONNECTION_IFACE}.{NM_PROP_ACTIVE_DEVICES}",
    )
    if not devices:
        raise DecodeError("no devices are associated with the primary connection")
    if len(devices) > 1:
        log.warning("More than one device path for primary connection %s: %s", conn_path, devices)
    return devices[0]


def get_device_path_by_iface(transport: Transport, conn: BusConnection, iface: str) -> str:
    reply = transport.call(
        conn, NM_SERVICE_NAME, NM_OBJECT_PATH, NM_IFACE, NM_METHOD_DEVICE_BY_IFACE, iface,
        signature="s",
    )
    return decode_string(reply, NM_METHOD_DEVICE_BY_IFACE)


def get_device_interface_name(transport: Transport, conn: BusConnection, device_path: str) -> str:
    return decode_string(
        transport.get_property(
            conn, NM_SERVICE_NAME, device_path, NM_DEVICE_IFACE, NM_PROP_DEVICE_INTERFACE
        ),
        f"{NM_DEVICE_IFACE}.{NM_PROP_DEVICE_INTERFACE}",
    )


def get_device_state(transport: Transport, conn: BusConnection, device_path: str) -> int:
    """Current state of one device, see :class:`NMDeviceState`."""
    return decode_uint32(
        transport.get_property(
            conn, NM_SERVICE_NAME, device_path, NM_DEVICE_IFACE, NM_PROP_DEVICE_STATE
        ),
        f"{NM_DEVICE_IFACE}.{NM_PROP_DEVICE_STATE}",
    )
