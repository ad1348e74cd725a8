"""transport
============
The narrow interface every component talks to the bus through.

*   ``connect()`` hands out a **private** :class:`BusConnection`; nothing in
    this package shares a connection between two subscriptions or two job
    waits.
*   Every signal that reaches a connection is copied into its
    ``notifications`` queue as a :class:`RawNotification`, in delivery order.
*   ``close()`` must be called by whoever opened the connection.

The real implementation lives in :mod:`sysbus_toolkit.infra.dbus_transport`;
tests plug in an in-memory fake.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from queue import Queue
from typing import Any, NamedTuple, Optional, Tuple


class RawNotification(NamedTuple):
    """One signal as the transport delivered it. Opaque to everyone but the pump."""

    path: str
    interface: str
    member: str
    signature: Optional[str]
    body: Tuple[Any, ...]

    @property
    def name(self) -> str:
        return f"{self.interface}.{self.member}"


class BusConnection:
    """A single connection plus the queue its signals land in."""

    def __init__(self, handle: Any = None):
        self.handle = handle
        self.notifications: "Queue[Optional[RawNotification]]" = Queue()
        self._closed = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def deliver(self, note: RawNotification) -> None:
        if not self.closed:
            self.notifications.put(note)

    def interrupt(self) -> None:
        """Wake up whoever is blocked on ``notifications``."""
        self.notifications.put(None)

    def mark_closed(self) -> bool:
        """Flag the connection closed; False if it already was."""
        if self._closed.is_set():
            return False
        self._closed.set()
        self.interrupt()
        return True


class Transport(ABC):

    @abstractmethod
    def connect(self) -> BusConnection:
        ...

    @abstractmethod
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
        ...

    @abstractmethod
    def get_property(
        self, conn: BusConnection, service: str, path: str, interface: str, prop: str
    ) -> Any:
        ...

    @abstractmethod
    def add_match_rule(self, conn: BusConnection, rule: str) -> None:
        ...

    @abstractmethod
    def close(self, conn: BusConnection) -> None:
        ...
