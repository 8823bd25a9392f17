"""
schedule_window.py — Tkinter window for editing the weekly shutdown.

Fields: shutdown time (HH:MM, 24h), one checkbox per weekday, and an
optional comma-separated list of reminder times.  Buttons:
  Activate   – arm the schedule (replaces any existing one)
  Update     – change an active schedule
  Deactivate – turn the schedule off

Closing the window only hides it; the host keeps running in the tray.
"""
from __future__ import annotations

import tkinter as tk
from tkinter import messagebox, ttk
from typing import Any, Callable, Dict, List

from core import ipc
from core.scheduler import ShutdownScheduler
from core.trigger import DAY_NAMES

# ── Colour palette ─────────────────────────────────────────────────────────
_BG      = "#1e1e2e"   # dark background
_FG      = "#cdd6f4"   # text
_ACCENT  = "#89b4fa"   # blue accent
_ENTRY   = "#313244"   # entry background
_BTN     = "#45475a"   # normal button
_BTN_ACT = "#89b4fa"   # activate button
_RED     = "#f38ba8"   # deactivate
_GREEN   = "#a6e3a1"   # active status

# Monday first, the way people read a week
_DAY_ORDER = DAY_NAMES[1:] + DAY_NAMES[:1]


def split_reminders(raw: str) -> List[str]:
    """``"21:00, 21:30"`` → ``["21:00", "21:30"]`` (blank entries dropped)."""
    return [part.strip() for part in raw.replace(";", ",").split(",") if part.strip()]


def describe_state(state: Dict[str, Any]) -> str:
    if not state.get("active"):
        return "Inactive"
    days = ", ".join(d[:3].capitalize() for d in state.get("days", []))
    text = f"Active: {state.get('time')} on {days}"
    if state.get("reminders"):
        text += f"\nReminders: {', '.join(state['reminders'])}"
    return text


class ScheduleWindow:
    """Main window of the host process.

    Args:
        scheduler: The scheduler this window drives.
        on_close:  Called after the window has been hidden.
    """

    def __init__(
        self,
        scheduler: ShutdownScheduler,
        on_close: Callable[[], None] = lambda: None,
    ) -> None:
        self._scheduler = scheduler
        self._on_close = on_close

        self._root = tk.Tk()
        self._root.title("Timed Shutdown")
        self._root.resizable(False, False)
        self._root.configure(bg=_BG)
        self._root.protocol("WM_DELETE_WINDOW", self.hide)

        # Centre on screen
        self._root.update_idletasks()
        w, h = 420, 400
        sw = self._root.winfo_screenwidth()
        sh = self._root.winfo_screenheight()
        self._root.geometry(f"{w}x{h}+{(sw-w)//2}+{(sh-h)//2}")

        self._build_styles()
        self._build_ui()

    # ── Styles ─────────────────────────────────────────────────────────────
    def _build_styles(self) -> None:
        style = ttk.Style(self._root)
        style.theme_use("clam")
        style.configure(".", background=_BG, foreground=_FG, font=("Segoe UI", 10))
        style.configure("TFrame",  background=_BG)
        style.configure("TLabel",  background=_BG, foreground=_FG)
        style.configure("TCheckbutton", background=_BG, foreground=_FG)
        style.map("TCheckbutton", background=[("active", _BTN)])
        style.configure("TEntry",  fieldbackground=_ENTRY, foreground=_FG,
                         insertcolor=_FG, borderwidth=0)
        style.configure("TButton", background=_BTN, foreground=_FG, padding=[10, 5])
        style.configure("Accent.TButton",
                         background=_BTN_ACT, foreground=_BG,
                         font=("Segoe UI", 10, "bold"), padding=[10, 5])
        style.map("Accent.TButton",
                  background=[("active", "#74c7ec"), ("pressed", "#74c7ec")])
        style.configure("Danger.TButton",
                         background=_RED, foreground=_BG, padding=[10, 5])
        style.map("Danger.TButton",
                  background=[("active", "#eba0ac"), ("pressed", "#eba0ac")])

    # ── UI construction ────────────────────────────────────────────────────
    def _build_ui(self) -> None:
        pad = {"padx": 16, "pady": 6}

        tk.Label(
            self._root, text="⏻  Timed Shutdown",
            font=("Segoe UI", 14, "bold"),
            bg=_BG, fg=_ACCENT,
        ).pack(pady=(18, 4))

        self._status = tk.Label(
            self._root, text="Inactive", justify="center",
            font=("Segoe UI", 10), bg=_BG, fg=_FG,
        )
        self._status.pack(pady=(0, 8))

        # Time row
        time_frame = ttk.Frame(self._root)
        time_frame.pack(fill="x", **pad)
        ttk.Label(time_frame, text="Shut down at").pack(side="left")
        ttk.Label(time_frame, text="(HH:MM, 24h)").pack(side="right")
        self._time_var = tk.StringVar(value="22:00")
        ttk.Entry(time_frame, textvariable=self._time_var, width=7,
                  font=("Segoe UI", 11), justify="center").pack(side="right", padx=6)

        # Day checkboxes
        days_frame = ttk.Frame(self._root)
        days_frame.pack(fill="x", **pad)
        self._day_vars: Dict[str, tk.BooleanVar] = {}
        for col, day in enumerate(_DAY_ORDER):
            var = tk.BooleanVar(value=False)
            self._day_vars[day] = var
            ttk.Checkbutton(days_frame, text=day[:3].capitalize(), variable=var).grid(
                row=0, column=col, padx=2,
            )

        # Reminders row
        rem_frame = ttk.Frame(self._root)
        rem_frame.pack(fill="x", **pad)
        ttk.Label(rem_frame, text="Reminders at").pack(side="left")
        self._rem_var = tk.StringVar()
        ttk.Entry(rem_frame, textvariable=self._rem_var, width=22).pack(side="right")
        ttk.Label(
            self._root, text="e.g. 21:30, 21:50", font=("Segoe UI", 8),
        ).pack(anchor="e", padx=16)

        ttk.Separator(self._root, orient="horizontal").pack(fill="x", padx=16, pady=10)

        # Buttons row
        btn_frame = ttk.Frame(self._root)
        btn_frame.pack(fill="x", padx=16, pady=(6, 16))

        ttk.Button(
            btn_frame, text="Deactivate",
            style="Danger.TButton",
            command=self._on_deactivate_click,
        ).pack(side="left")

        ttk.Button(
            btn_frame, text="Activate  ▶",
            style="Accent.TButton",
            command=self._on_activate_click,
        ).pack(side="right")

        ttk.Button(
            btn_frame, text="Update",
            command=self._on_update_click,
        ).pack(side="right", padx=6)

    # ── Form ↔ state ───────────────────────────────────────────────────────
    def _read_form(self) -> Dict[str, Any]:
        return {
            "time": self._time_var.get().strip(),
            "days": [day for day in _DAY_ORDER if self._day_vars[day].get()],
            "reminders": split_reminders(self._rem_var.get()),
        }

    def refresh(self, state: Dict[str, Any]) -> None:
        """Show *state* in the status line and, when active, in the form."""
        self._status.configure(
            text=describe_state(state),
            fg=_GREEN if state.get("active") else _FG,
        )
        if not state.get("active"):
            return
        self._time_var.set(state.get("time", ""))
        selected = {str(d).lower() for d in state.get("days", [])}
        for day, var in self._day_vars.items():
            var.set(day in selected)
        self._rem_var.set(", ".join(state.get("reminders", [])))

    # ── Button handlers ────────────────────────────────────────────────────
    def _on_activate_click(self) -> None:
        self._show_reply(ipc.handle_activate(self._scheduler, self._read_form()))

    def _on_update_click(self) -> None:
        self._show_reply(ipc.handle_update(self._scheduler, self._read_form()))

    def _on_deactivate_click(self) -> None:
        self._show_reply(ipc.handle_deactivate(self._scheduler))

    def _show_reply(self, reply: Dict[str, Any]) -> None:
        if reply["success"]:
            messagebox.showinfo("Timed Shutdown", reply["message"], parent=self._root)
        else:
            messagebox.showerror("Timed Shutdown", reply["message"], parent=self._root)
        self.refresh(ipc.handle_get_state(self._scheduler))

    # ── Visibility ─────────────────────────────────────────────────────────
    def show(self) -> None:
        self.refresh(ipc.handle_get_state(self._scheduler))
        self._root.deiconify()
        self._root.lift()
        self._root.focus_force()

    def hide(self) -> None:
        """Window X button — hide to the tray, keep the schedule running."""
        self._root.withdraw()
        self._on_close()

    def call_soon(self, fn: Callable[[], None]) -> None:
        """Run *fn* on the Tk thread (safe to call from the tray thread)."""
        self._root.after(0, fn)

    # ── Run ────────────────────────────────────────────────────────────────
    def run(self, visible: bool = True) -> None:
        """Enter the Tkinter event loop (blocks until quit() is called)."""
        if visible:
            self.show()
        else:
            self._root.withdraw()
        self._root.mainloop()

    def quit(self) -> None:
        self._root.quit()
        self._root.destroy()
