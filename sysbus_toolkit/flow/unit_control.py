# unit_control.py
"""unit_control
===============
Idempotent start / stop of systemd units, correlated by job path.

Every call follows the same sequence on its own private connection:

1.  Read ``ActiveState``; return at once if the unit is already where we
    want it.
2.  Register for ``Manager.JobRemoved`` (before the request, so a fast job
    cannot slip past us).
3.  ``StartUnit`` / ``StopUnit`` with mode ``replace`` → job path.
4.  Wait, up to ``job_timeout`` seconds, for the JobRemoved whose job path
    equals ours. Others are ignored.
5.  ``done`` → success. Anything else → re-read ``ActiveState``; the
    observed state wins over the reported result.

A missing signal is a :class:`JobTimeoutError`; the request is never
re-issued. Our own JobRemoved with a malformed body is a
:class:`DecodeError`.
"""

from __future__ import annotations

import threading
import time
from contextlib import contextmanager
from queue import Empty
from typing import Iterator, Optional

from ..config import Settings
from ..constants import (
    SYSTEMD_JOB_MODE_REPLACE,
    SYSTEMD_MANAGER_IFACE,
    SYSTEMD_METHOD_LOAD_UNIT,
    SYSTEMD_METHOD_START_UNIT,
    SYSTEMD_METHOD_STOP_UNIT,
    SYSTEMD_METHOD_SUBSCRIBE,
    SYSTEMD_OBJECT_PATH,
    SYSTEMD_SERVICE_NAME,
    SYSTEMD_SIGNAL_JOB_REMOVED,
    SYSTEMD_UNIT_IFACE,
    SYSTEMD_UNIT_STATE_PROPERTY,
)
from ..core.decoders import decode_job_removed, decode_string
from ..core.states import JobResult, UnitActiveState
from ..errors import BusError, ConvergenceError, DecodeError, JobTimeoutError, OperationInterrupted
from ..infra.bus_manager import get_transport
from ..infra.transport import BusConnection, Transport
from ..logging_conf import get_logger
from ..utils.signals import shutdown_event
from .subscription import SignalMatch

log = get_logger(__name__)

_WAIT_SLICE_S = 0.25   # how often the job wait re-checks the shutdown flag

JOB_REMOVED_MATCH = SignalMatch(
    SYSTEMD_MANAGER_IFACE, SYSTEMD_SIGNAL_JOB_REMOVED, path=SYSTEMD_OBJECT_PATH
)


class UnitController:
    """Start, stop and inspect units. Holds no connection between calls."""

    def __init__(
        self,
        transport: Optional[Transport] = None,
        job_timeout: Optional[float] = None,
        shutdown: Optional[threading.Event] = None,
    ):
        self.transport = transport or get_transport()
        self.job_timeout = Settings.from_env().job_timeout if job_timeout is None else job_timeout
        self.shutdown = shutdown_event if shutdown is None else shutdown

    # -----------------------------
    # Queries
    # -----------------------------

    def get_unit_state(self, name: str) -> UnitActiveState:
        with self._connection() as conn:
            return self._unit_state(conn, name)

    def check_service_status(self, name: str) -> bool:
        """True unless the unit is ``inactive`` or ``failed``."""
        return self.get_unit_state(name).is_running

    # -----------------------------
    # Transitions
    # -----------------------------

    def start_service(self, name: str) -> None:
        self._transition(name, want_running=True)

    def stop_service(self, name: str) -> None:
        self._transition(name, want_running=False)

    def wait_job_complete(
        self, conn: BusConnection, job_path: str, timeout: Optional[float] = None
    ) -> str:
        """Block until JobRemoved for *job_path* arrives on *conn*; return its result.

        The JobRemoved match rule must already be active on *conn*.
        """
        if timeout is None:
            timeout = self.job_timeout
        deadline = time.monotonic() + timeout

        while True:
            if self.shutdown.is_set():
                raise OperationInterrupted(f"shutdown requested while waiting for job {job_path}")
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise JobTimeoutError(job_path, timeout)
            try:
                note = conn.notifications.get(timeout=min(remaining, _WAIT_SLICE_S))
            except Empty:
                continue

            if note is None:
                if conn.closed:
                    raise BusError(f"connection closed while waiting for job {job_path}")
                continue
            if not JOB_REMOVED_MATCH.matches(note):
                continue

            job = decode_job_removed(note)
            if job is None:
                if len(note.body) >= 4 and note.body[1] == job_path:
                    raise DecodeError(f"unexpected JobRemoved body for job {job_path}: {note.body!r}")
                log.warning("Unexpected JobRemoved body: %r", note.body)
                continue
            if job.job_path != job_path:
                log.debug("Ignoring JobRemoved for %s (%s, %s)", job.job_path, job.unit, job.result)
                continue
            return job.result

    # -----------------------------
    # Internal helpers
    # -----------------------------

    @contextmanager
    def _connection(self) -> Iterator[BusConnection]:
        conn = self.transport.connect()
        try:
            yield conn
        finally:
            self.transport.close(conn)

    def _unit_path(self, conn: BusConnection, name: str) -> str:
        reply = self.transport.call(
            conn, SYSTEMD_SERVICE_NAME, SYSTEMD_OBJECT_PATH, SYSTEMD_MANAGER_IFACE,
            SYSTEMD_METHOD_LOAD_UNIT, name, signature="s",
        )
        return decode_string(reply, f"object path of unit {name}")

    def _unit_state(self, conn: BusConnection, name: str) -> UnitActiveState:
        unit_path = self._unit_path(conn, name)
        raw = self.transport.get_property(
            conn, SYSTEMD_SERVICE_NAME, unit_path, SYSTEMD_UNIT_IFACE, SYSTEMD_UNIT_STATE_PROPERTY,
        )
        state = decode_string(raw, f"{SYSTEMD_UNIT_STATE_PROPERTY} of {name}")
        log.info("Service %s has unit state: %s", name, state)
        return UnitActiveState.parse(state)

    def _request_job(self, conn: BusConnection, method: str, name: str) -> str:
        reply = self.transport.call(
            conn, SYSTEMD_SERVICE_NAME, SYSTEMD_OBJECT_PATH, SYSTEMD_MANAGER_IFACE,
            method, name, SYSTEMD_JOB_MODE_REPLACE, signature="ss",
        )
        return decode_string(reply, f"job path from {method}")

    def _transition(self, name: str, want_running: bool) -> None:
        verb = "start" if want_running else "stop"
        method = SYSTEMD_METHOD_START_UNIT if want_running else SYSTEMD_METHOD_STOP_UNIT

        with self._connection() as conn:
            if self._unit_state(conn, name).is_running == want_running:
                log.info("Unit %s is already %s.", name, "running" if want_running else "stopped")
                return

            # systemd only emits job signals to clients that subscribed.
            self.transport.add_match_rule(conn, JOB_REMOVED_MATCH.rule())
            self.transport.call(
                conn, SYSTEMD_SERVICE_NAME, SYSTEMD_OBJECT_PATH, SYSTEMD_MANAGER_IFACE,
                SYSTEMD_METHOD_SUBSCRIBE,
            )

            job_path = self._request_job(conn, method, name)
            log.info("Requested %s of %s (job %s)", verb, name, job_path)

            result = self.wait_job_complete(conn, job_path)
            log.info("Job to %s service %s completed with result: %s", verb, name, result)
            if result == JobResult.DONE:
                return

            try:
                running = self._unit_state(conn, name).is_running
            except BusError as exc:
                raise BusError(
                    f"job to {verb} {name} finished with {result!r} and checking its state failed: {exc}",
                    exc.dbus_name,
                ) from exc

            if running == want_running:
                log.warning("Job to %s %s reported %r but the unit is %s anyway",
                            verb, name, result, "running" if running else "stopped")
                return

            tail = "unit isn't running" if want_running else "unit is still running"
            raise ConvergenceError(name, result, f"job to {verb} service {name} failed ({result}) and {tail}")


# ---------------------------------------------------------------------------
# Module-level shortcuts
# ---------------------------------------------------------------------------

def start_service(name: str, transport: Optional[Transport] = None) -> None:
    UnitController(transport).start_service(name)


def stop_service(name: str, transport: Optional[Transport] = None) -> None:
    UnitController(transport).stop_service(name)


def check_service_status(name: str, transport: Optional[Transport] = None) -> bool:
    return UnitController(transport).check_service_status(name)
