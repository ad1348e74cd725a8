"""Command line front-end: ``python -m sysbus_toolkit <command>``."""
from __future__ import annotations

import argparse
import sys
from typing import Optional, Sequence

from .config import Settings
from .core import nm_helpers
from .core.states import NMConnectivity, NMDeviceState, NMState
from .errors import ToolkitError
from .flow.network_watch import subscribe_device_state_changes, subscribe_manager_state_changes
from .flow.subscription import OverflowPolicy, SignalSubscription
from .flow.unit_control import UnitController
from .infra.bus_manager import get_transport
from .infra.transport import Transport
from .logging_conf import configure, get_logger
from .utils.signals import install_shutdown_handlers, shutdown_event

log = get_logger("cli")


def cmd_report(transport: Transport, settings: Settings, args) -> None:
    conn = transport.connect()
    try:
        state = nm_helpers.get_manager_state(transport, conn)
        log.info("State: %d (%s)", state, NMState.parse(state).label)

        connectivity = nm_helpers.check_connectivity(transport, conn)
        log.info("Connectivity: %d (%s)", connectivity, NMConnectivity.parse(connectivity).label)

        primary = nm_helpers.get_primary_device_path(transport, conn)
        log.info("Primary Interface Name: %s",
                 nm_helpers.get_device_interface_name(transport, conn, primary))

        wifi = nm_helpers.get_device_path_by_iface(transport, conn, settings.wifi_iface)
        log.info("%s device: %s", settings.wifi_iface, wifi)

        dev_state = nm_helpers.get_device_state(transport, conn, primary)
        log.info("Device state: %d (%s)", dev_state, NMDeviceState.parse(dev_state).label)
    finally:
        transport.close(conn)


def cmd_status(transport: Transport, settings: Settings, args) -> None:
    state = UnitController(transport, settings.job_timeout).get_unit_state(args.unit)
    log.info("%s: %s (%s)", args.unit, state.value, "running" if state.is_running else "stopped")


def cmd_start(transport: Transport, settings: Settings, args) -> None:
    UnitController(transport, settings.job_timeout).start_service(args.unit)
    log.info("✅ %s is running", args.unit)


def cmd_stop(transport: Transport, settings: Settings, args) -> None:
    UnitController(transport, settings.job_timeout).stop_service(args.unit)
    log.info("✅ %s is stopped", args.unit)


def _drain(sub: SignalSubscription, describe) -> None:
    try:
        while not shutdown_event.is_set():
            record = sub.get(timeout=0.5)
            if record is not None:
                log.info("%s", describe(record))
    finally:
        sub.cancel()
        sub.join()
        if sub.dropped:
            log.warning("%d records were dropped while the consumer lagged", sub.dropped)


def cmd_watch_manager(transport: Transport, settings: Settings, args) -> None:
    install_shutdown_handlers()
    sub = subscribe_manager_state_changes(
        transport, settings.signal_buffer, OverflowPolicy(settings.overflow_policy)
    )
    _drain(sub, lambda change: f"NetworkManager state -> {change.state} ({change.value.label})")


def cmd_watch_device(transport: Transport, settings: Settings, args) -> None:
    conn = transport.connect()
    try:
        device_path = nm_helpers.get_device_path_by_iface(transport, conn, args.iface)
    finally:
        transport.close(conn)

    install_shutdown_handlers()
    sub = subscribe_device_state_changes(
        device_path, transport, settings.signal_buffer, OverflowPolicy(settings.overflow_policy)
    )
    _drain(sub, lambda change: (
        f"{args.iface}: {change.old.label} -> {change.new.label} (reason {change.reason})"
    ))


def cmd_serve(transport: Transport, settings: Settings, args) -> None:
    from .api_server import serve
    serve(settings)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sysbus_toolkit",
                                     description="systemd and NetworkManager over the system bus")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("report", help="print NetworkManager state").set_defaults(func=cmd_report)
    for name, func, text in (
        ("status", cmd_status, "show a unit's ActiveState"),
        ("start", cmd_start, "start a unit and wait for its job"),
        ("stop", cmd_stop, "stop a unit and wait for its job"),
    ):
        p = sub.add_parser(name, help=text)
        p.add_argument("unit")
        p.set_defaults(func=func)

    sub.add_parser("watch-manager", help="follow NetworkManager state changes") \
        .set_defaults(func=cmd_watch_manager)
    p = sub.add_parser("watch-device", help="follow state changes of one network device")
    p.add_argument("iface")
    p.set_defaults(func=cmd_watch_device)
    sub.add_parser("serve", help="run the HTTP API").set_defaults(func=cmd_serve)
    return parser


def main(argv: Optional[Sequence[str]] = None, transport: Optional[Transport] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = Settings.from_env()
    except ValueError as exc:
        log.error("Bad configuration: %s", exc)
        return 2
    configure(settings.log_level)

    try:
        args.func(transport or get_transport(), settings, args)
    except ToolkitError as exc:
        log.error("❌ %s: %s", type(exc).__name__, exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
