# bus_manager.py
"""bus_manager
===============
Thread-safe **singleton** accessor for the default :class:`Transport`.

*   The transport object itself is stateless; it only knows how to dial.
*   Connections are **never** shared: every subscription and every job wait
    gets its own from ``transport.connect()`` and closes it when done.
*   Tests swap in a fake with :func:`set_transport`.

Usage
-----
```python
from sysbus_toolkit.infra.bus_manager import get_transport
transport = get_transport()     # safe in any thread
```
"""

from __future__ import annotations

import threading
from typing import Optional

from .transport import Transport

# ---------------------------------------------------------------------------
# Internal synchronisation primitives
# ---------------------------------------------------------------------------

_LOCK = threading.Lock()                 # guards first-time creation
_TRANSPORT: Optional[Transport] = None   # the singleton instance


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def get_transport() -> Transport:
    """Return the process-wide transport, creating a DBusTransport on first use."""
    global _TRANSPORT

    if _TRANSPORT is None:
        with _LOCK:
            # Double-checked locking: another thread may have won the race.
            if _TRANSPORT is None:
                from .dbus_transport import DBusTransport
                _TRANSPORT = DBusTransport()
    return _TRANSPORT


def set_transport(transport: Optional[Transport]) -> None:
    """Install *transport* as the default (``None`` resets to lazy creation)."""
    global _TRANSPORT

    with _LOCK:
        _TRANSPORT = transport
