"""Global toggle hotkey adapter based on pynput."""

from __future__ import annotations

from typing import Callable, Optional

from config import DEFAULT_HOTKEY

try:
    from pynput import keyboard
except Exception:  # pragma: no cover - no display / backend
    keyboard = None  # type: ignore


class GlobalHotkeyAdapter:
    """Fires ``on_toggle`` once per press of a key combination such as
    ``<ctrl>+<shift>+<space>``."""

    def __init__(self, hotkey: str = DEFAULT_HOTKEY) -> None:
        self._hotkey = hotkey
        self._listener: Optional[object] = None

    @property
    def hotkey(self) -> str:
        return self._hotkey

    def start(self, on_toggle: Callable[[], None]) -> None:
        if keyboard is None:
            raise RuntimeError("pynput is not installed")
        if self._listener is not None:
            return
        keyboard.HotKey.parse(self._hotkey)  # raises ValueError on a bad binding
        self._listener = keyboard.GlobalHotKeys({self._hotkey: on_toggle})
        self._listener.start()

    def join(self) -> None:
        listener = self._listener
        if listener is not None:
            listener.join()

    def stop(self) -> None:
        listener = self._listener
        if listener is not None:
            listener.stop()
            self._listener = None
