# event_pump.py
import threading

import dbus.mainloop.glib
from gi.repository import GLib

from ..logging_conf import get_logger

log = get_logger(__name__)

_LOCK = threading.Lock()
_LOOP = None


def start_event_pump() -> None:
    """Start the GLib MainLoop in a background thread exactly once.

    dbus-python only dispatches incoming messages (and so only runs our
    message filters) while a main loop is iterating.
    """
    global _LOOP

    if _LOOP is not None:
        return
    with _LOCK:
        if _LOOP is not None:
            return
        # Must be the default before the first connection is created.
        dbus.mainloop.glib.DBusGMainLoop(set_as_default=True)
        loop = GLib.MainLoop()

        def _runner():
            log.info("🌀 GLib event loop running")
            loop.run()
            log.info("GLib event loop stopped")

        threading.Thread(target=_runner, name="glib-event-pump", daemon=True).start()
        _LOOP = loop
