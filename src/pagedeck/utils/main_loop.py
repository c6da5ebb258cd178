"""
PageDeck - Main Loop Dispatch

Worker threads never touch models or widgets directly; they hand their
continuation to a dispatcher that runs it on the main loop.
"""

from collections.abc import Callable

Dispatcher = Callable[[Callable[[], None]], None]


def glib_dispatch(callback: Callable[[], None]) -> None:
    """Run ``callback`` once on the GLib main loop."""
    from gi.repository import GLib

    def _run() -> bool:
        callback()
        return False

    GLib.idle_add(_run)
