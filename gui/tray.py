"""
tray.py — System-tray icon for the running host process.

The icon is a small clock image generated with Pillow (no external asset
files needed), green while a schedule is active and grey otherwise.  The
menu shows the status, the next shutdown time, "Show Window" and "Quit".
"""
from __future__ import annotations

import math
import threading
from datetime import datetime
from typing import Any, Callable, Dict, Optional

import pystray
from PIL import Image, ImageDraw

_ACTIVE_RING   = (166, 227, 161)
_INACTIVE_RING = (150, 150, 170)


# ── Icon drawing ───────────────────────────────────────────────────────────
def _make_icon_image(active: bool, size: int = 64) -> Image.Image:
    """Draw a simple clock face as a PIL Image."""
    img = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    draw = ImageDraw.Draw(img)

    ring = _ACTIVE_RING if active else _INACTIVE_RING
    cx, cy, r = size // 2, size // 2, size // 2 - 2
    draw.ellipse([cx - r, cy - r, cx + r, cy + r], fill=(40, 40, 60), outline=ring, width=3)
    # Hands at ten o'clock
    for angle, length, width in [(300, r * 0.5, 3), (0, r * 0.7, 2)]:
        rad = math.radians(angle - 90)
        x2 = cx + length * math.cos(rad)
        y2 = cy + length * math.sin(rad)
        draw.line([(cx, cy), (x2, y2)], fill=(220, 220, 255), width=width)
    draw.ellipse([cx - 2, cy - 2, cx + 2, cy + 2], fill=(255, 255, 255))
    return img


def status_label(active: bool) -> str:
    return "Shutdown Active" if active else "Shutdown Inactive"


def tooltip(active: bool) -> str:
    return "Timed Shutdown: Active" if active else "Timed Shutdown: Inactive"


def next_shutdown_label(when: Optional[datetime]) -> str:
    if when is None:
        return "Next shutdown: none"
    return f"Next shutdown: {when:%a %H:%M}"


# ── Tray class ─────────────────────────────────────────────────────────────
class ScheduleTray:
    """Tray icon reflecting the scheduler state.

    Args:
        on_show:      Called (from the tray thread) for "Show Window".
        on_quit:      Called (from the tray thread) for "Quit".
        next_shutdown: Returns the next shutdown instant, or None.
    """

    def __init__(
        self,
        on_show: Callable[[], None],
        on_quit: Callable[[], None],
        next_shutdown: Optional[Callable[[], Optional[datetime]]] = None,
    ) -> None:
        self._on_show = on_show
        self._on_quit = on_quit
        self._next_shutdown = next_shutdown
        self._active = False
        self._icon: Optional[pystray.Icon] = None
        self._thread: Optional[threading.Thread] = None

    # ── Public API ─────────────────────────────────────────────────────────
    def start(self, active: bool = False) -> None:
        """Start the tray icon in a daemon thread."""
        self._active = active
        menu = pystray.Menu(
            pystray.MenuItem(lambda item: status_label(self._active), None, enabled=False),
            pystray.MenuItem(
                lambda item: self._next_text(), None, enabled=False,
                visible=lambda item: self._active,
            ),
            pystray.Menu.SEPARATOR,
            pystray.MenuItem("Show Window", self._show_clicked, default=True),
            pystray.MenuItem("Quit", self._quit_clicked),
        )
        self._icon = pystray.Icon(
            name="timed-shutdown",
            icon=_make_icon_image(active),
            title=tooltip(active),
            menu=menu,
        )
        self._thread = threading.Thread(
            target=self._icon.run,
            daemon=True,
            name="tray-icon",
        )
        self._thread.start()

    def on_state_changed(self, state: Dict[str, Any]) -> None:
        """Scheduler listener: redraw icon, tooltip and menu."""
        self._active = bool(state.get("active"))
        if self._icon is None:
            return
        self._icon.icon = _make_icon_image(self._active)
        self._icon.title = tooltip(self._active)
        self._icon.update_menu()

    def stop(self) -> None:
        """Remove the tray icon."""
        if self._icon is not None:
            self._icon.stop()
            self._icon = None

    # ── Menu handlers ──────────────────────────────────────────────────────
    def _next_text(self) -> str:
        return next_shutdown_label(self._next_shutdown() if self._next_shutdown else None)

    def _show_clicked(self, icon: pystray.Icon, item: pystray.MenuItem) -> None:
        self._on_show()

    def _quit_clicked(self, icon: pystray.Icon, item: pystray.MenuItem) -> None:
        self._on_quit()
