"""Process-level shutdown flag driven by SIGINT / SIGTERM."""
from __future__ import annotations

import signal
import threading
from typing import Iterable

from ..logging_conf import get_logger

log = get_logger(__name__)

shutdown_event = threading.Event()

_installed = False


def _on_signal(signum, _frame):
    log.info("🛑 Received %s, shutting down", signal.Signals(signum).name)
    shutdown_event.set()


def install_shutdown_handlers(
    signals: Iterable[signal.Signals] = (signal.SIGINT, signal.SIGTERM),
) -> bool:
    """Route *signals* to :data:`shutdown_event`. Main thread only; idempotent."""
    global _installed

    if _installed:
        return True
    if threading.current_thread() is not threading.main_thread():
        log.warning("Shutdown handlers can only be installed from the main thread")
        return False
    for sig in signals:
        signal.signal(sig, _on_signal)
    _installed = True
    return True
