"""Transport over the real system bus (dbus-python + GLib)."""
from __future__ import annotations

from typing import Any, Optional

import dbus
import dbus.lowlevel
from dbus.exceptions import DBusException

from ..constants import DBUS_PROP_IFACE
from ..errors import BusError
from ..logging_conf import get_logger
from .event_pump import start_event_pump
from .transport import BusConnection, RawNotification, Transport

log = get_logger(__name__)


def _bus_error(what: str, exc: DBusException) -> BusError:
    return BusError(f"{what}: {exc}", exc.get_dbus_name())


class DBusTransport(Transport):
    """Every ``connect()`` dials a new private system-bus connection."""

    def connect(self) -> BusConnection:
        start_event_pump()
        try:
            bus = dbus.SystemBus(private=True)
        except DBusException as exc:
            raise _bus_error("failed to connect to the system bus", exc) from exc

        conn = BusConnection(bus)

        def _on_message(_bus, message):
            if isinstance(message, dbus.lowlevel.SignalMessage):
                conn.deliver(RawNotification(
                    path=message.get_path() or "",
                    interface=message.get_interface() or "",
                    member=message.get_member() or "",
                    signature=str(message.get_signature() or ""),
                    body=tuple(message.get_args_list()),
                ))
            return dbus.lowlevel.HANDLER_RESULT_NOT_YET_HANDLED

        bus.add_message_filter(_on_message)
        conn.message_filter = _on_message
        log.debug("Opened private system bus connection %s", bus.get_unique_name())
        return conn

    def call(
        self,
        conn: BusConnection,
        service: str,
        path: str,
        interface: str,
        method: str,
        *args: Any,
        signature: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        try:
            return conn.handle.call_blocking(
                service, path, interface, method, signature, args,
                timeout=-1.0 if timeout is None else timeout,
            )
        except DBusException as exc:
            raise _bus_error(f"call to {interface}.{method} on {path} failed", exc) from exc

    def get_property(
        self, conn: BusConnection, service: str, path: str, interface: str, prop: str
    ) -> Any:
        try:
            return conn.handle.call_blocking(
                service, path, DBUS_PROP_IFACE, "Get", "ss", (interface, prop),
            )
        except DBusException as exc:
            raise _bus_error(f"failed to read property {interface}.{prop} on {path}", exc) from exc

    def add_match_rule(self, conn: BusConnection, rule: str) -> None:
        try:
            conn.handle.add_match_string(rule)
        except DBusException as exc:
            raise _bus_error(f"bus rejected match rule {rule!r}", exc) from exc

    def close(self, conn: BusConnection) -> None:
        if not conn.mark_closed():
            return
        bus = conn.handle
        message_filter = getattr(conn, "message_filter", None)
        try:
            if message_filter is not None:
                bus.remove_message_filter(message_filter)
            bus.close()
        except DBusException as exc:
            log.warning("Error while closing bus connection: %s", exc)
        log.debug("Closed private system bus connection")
