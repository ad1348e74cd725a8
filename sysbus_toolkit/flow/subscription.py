# subscription.py
"""subscription
===============
One filtered listening session on the system bus.

*   :meth:`SignalSubscription.subscribe` dials a **dedicated** connection,
    registers a match rule and starts a single pump thread.
*   The pump reads raw signals in delivery order, keeps the ones whose
    path / name / body shape match, decodes them and puts the typed records
    on ``records`` (a bounded ``queue.Queue``).
*   ``cancel()`` + ``join()`` is the mandatory teardown: the pump closes the
    connection on its way out. ``join()`` without ``cancel()`` blocks for as
    long as the bus keeps running.

Usage
-----
```python
sub = SignalSubscription.subscribe(transport, match, decode_manager_state_change)
try:
    for change in sub:
        ...
finally:
    sub.cancel()
    sub.join()
```
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum
from queue import Empty, Full, Queue
from typing import Any, Iterator, Optional

from ..constants import DEFAULT_SIGNAL_BUFFER
from ..core.decoders import Decoder
from ..infra.transport import BusConnection, RawNotification, Transport
from ..logging_conf import get_logger

log = get_logger(__name__)

_BLOCK_SLICE_S = 0.1   # how often a blocked put re-checks for cancellation
_ITER_SLICE_S = 0.25


class OverflowPolicy(Enum):
    BLOCK       = "block"        # stall the pump until the consumer catches up
    DROP_OLDEST = "drop_oldest"  # evict the stalest queued record
    DROP_NEWEST = "drop_newest"  # discard the record that did not fit


class PumpState(Enum):
    RUNNING    = "running"
    CANCELLING = "cancelling"
    STOPPED    = "stopped"


@dataclass(frozen=True)
class SignalMatch:
    """Which signals a subscription cares about."""

    interface: str
    member: str
    path: Optional[str] = None

    @property
    def name(self) -> str:
        return f"{self.interface}.{self.member}"

    def rule(self) -> str:
        rule = f"type='signal',interface='{self.interface}',member='{self.member}'"
        if self.path:
            rule += f",path='{self.path}'"
        return rule

    def matches(self, note: RawNotification) -> bool:
        if self.path is not None and note.path != self.path:
            return False
        return note.interface == self.interface and note.member == self.member


class SignalSubscription:
    """Owns one connection, one pump thread and one output queue."""

    def __init__(
        self,
        transport: Transport,
        conn: BusConnection,
        match: SignalMatch,
        decoder: Decoder,
        capacity: int = DEFAULT_SIGNAL_BUFFER,
        overflow: OverflowPolicy = OverflowPolicy.DROP_OLDEST,
    ):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.match = match
        self.decoder = decoder
        self.overflow = overflow
        self.records: "Queue[Any]" = Queue(maxsize=capacity)
        self.dropped = 0

        self._transport = transport
        self._conn = conn
        self._lock = threading.Lock()
        self._state = PumpState.RUNNING
        self._cancel = threading.Event()
        self._stopped = threading.Event()
        self._thread = threading.Thread(
            target=self._pump, name=f"signal-pump:{match.name}", daemon=True
        )

    # -----------------------------
    # Construction
    # -----------------------------

    @classmethod
    def subscribe(
        cls,
        transport: Transport,
        match: SignalMatch,
        decoder: Decoder,
        capacity: int = DEFAULT_SIGNAL_BUFFER,
        overflow: OverflowPolicy = OverflowPolicy.DROP_OLDEST,
    ) -> "SignalSubscription":
        """Open a connection, register *match* and start pumping. Returns at once."""
        conn = transport.connect()
        try:
            transport.add_match_rule(conn, match.rule())
            sub = cls(transport, conn, match, decoder, capacity, overflow)
        except BaseException:
            transport.close(conn)
            raise
        sub._thread.start()
        log.info("Subscribed to %s (path=%s, capacity=%d, overflow=%s)",
                 match.name, match.path or "*", capacity, overflow.value)
        return sub

    # -----------------------------
    # Teardown
    # -----------------------------

    @property
    def state(self) -> PumpState:
        return self._state

    def cancel(self) -> None:
        """Ask the pump to stop at its next wait point. Idempotent."""
        with self._lock:
            if self._cancel.is_set():
                return
            self._cancel.set()
            if self._state is PumpState.RUNNING:
                self._state = PumpState.CANCELLING
        self._conn.interrupt()

    def join(self, timeout: Optional[float] = None) -> bool:
        """Block until the pump has exited and released its connection.

        Safe to call repeatedly and after the pump is gone. Returns False only
        if *timeout* expired first.
        """
        return self._stopped.wait(timeout)

    def close(self) -> None:
        self.cancel()
        self.join()

    def __enter__(self) -> "SignalSubscription":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # -----------------------------
    # Consumer side
    # -----------------------------

    def get(self, timeout: Optional[float] = None) -> Optional[Any]:
        """Next record, or None if *timeout* expired."""
        try:
            return self.records.get(timeout=timeout)
        except Empty:
            return None

    def __iter__(self) -> Iterator[Any]:
        """Yield records until the pump stopped and the queue ran dry."""
        while True:
            try:
                yield self.records.get(timeout=_ITER_SLICE_S)
            except Empty:
                if self._stopped.is_set() and self.records.empty():
                    return

    # -----------------------------
    # Pump (runs in its own thread)
    # -----------------------------

    def _pump(self) -> None:
        conn = self._conn
        try:
            while not self._cancel.is_set():
                note = conn.notifications.get()
                if self._cancel.is_set():
                    break                      # leave the rest undrained
                if note is None:
                    if conn.closed:
                        log.warning("Connection for %s closed underneath the pump", self.match.name)
                        break
                    continue
                if not self.match.matches(note):
                    continue
                record = self.decoder(note)
                if record is None:
                    log.debug("Discarding malformed %s from %s: %r", note.name, note.path, note.body)
                    continue
                self._publish(record)
        except Exception:
            log.exception("Signal pump for %s crashed", self.match.name)
        finally:
            with self._lock:
                if self._state is PumpState.RUNNING:
                    self._state = PumpState.CANCELLING
            self._transport.close(conn)
            with self._lock:
                self._state = PumpState.STOPPED
            self._stopped.set()
            log.info("Signal pump for %s stopped", self.match.name)

    def _publish(self, record: Any) -> None:
        if self.overflow is OverflowPolicy.BLOCK:
            while not self._cancel.is_set():
                try:
                    self.records.put(record, timeout=_BLOCK_SLICE_S)
                    return
                except Full:
                    continue
            return

        try:
            self.records.put_nowait(record)
            return
        except Full:
            pass

        if self.overflow is OverflowPolicy.DROP_NEWEST:
            self.dropped += 1
            log.warning("⚠️ %s queue full, dropping newest record %r", self.match.name, record)
            return

        # Only the pump puts, so the queue has room again after one get.
        try:
            stale = self.records.get_nowait()
        except Empty:
            # The consumer drained it meanwhile.
            self.records.put_nowait(record)
            return
        self.records.put_nowait(record)
        self.dropped += 1
        log.warning("⚠️ %s queue full, dropped oldest record %r", self.match.name, stale)
