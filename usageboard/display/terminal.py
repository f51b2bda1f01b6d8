"""
Raw keyboard input and terminal mode handling for the interactive view.
"""

import atexit
import os
import select
import signal
import sys
import termios
import tty
from typing import Iterator, Optional

from rich.console import Console

ESCAPE_SEQUENCES = {
    b"\x1b[A": "up",
    b"\x1b[B": "down",
    b"\x1b[C": "right",
    b"\x1b[D": "left",
    b"\x1b[Z": "shift-tab",
    b"\x1bOA": "up",
    b"\x1bOB": "down",
    b"\x1bOC": "right",
    b"\x1bOD": "left",
}

CONTROL_KEYS = {
    b"\t": "tab",
    b"\r": "enter",
    b"\n": "enter",
    b"\x03": "ctrl-c",
    b"\x04": "ctrl-d",
    b"\x7f": "backspace",
}


def decode_keys(data: bytes) -> list[str]:
    """
    Split a chunk read from the terminal into key names.

    Printable characters come back as themselves, lowercased; a few control
    bytes and arrow/shift-tab escape sequences get names.
    """
    keys = []
    i = 0
    while i < len(data):
        if data[i:i + 1] == b"\x1b":
            for sequence, name in ESCAPE_SEQUENCES.items():
                if data.startswith(sequence, i):
                    keys.append(name)
                    i += len(sequence)
                    break
            else:
                keys.append("escape")
                i += 1
            continue

        byte = data[i:i + 1]
        if byte in CONTROL_KEYS:
            keys.append(CONTROL_KEYS[byte])
        else:
            keys.append(byte.decode("latin-1").lower())
        i += 1
    return keys


class TerminalSession:
    """
    Puts the terminal in cbreak mode with a hidden cursor for the duration
    of a `with` block.

    The previous mode is restored when the block exits for any reason, on
    SIGTERM, and from an atexit hook as a last resort.
    """

    def __init__(
        self,
        console: Optional[Console] = None,
        stdin=None,
        poll_interval: float = 0.25,
    ):
        self.console = console or Console()
        self.stdin = stdin or sys.stdin
        self.poll_interval = poll_interval
        self._fd: Optional[int] = None
        self._saved_attrs = None
        self._saved_handlers: dict[int, object] = {}
        self._resized = False
        self._active = False

    def __enter__(self) -> "TerminalSession":
        self._fd = self.stdin.fileno()
        self._saved_attrs = termios.tcgetattr(self._fd)
        tty.setcbreak(self._fd)
        self._active = True

        self.console.show_cursor(False)
        atexit.register(self.restore)

        self._saved_handlers[signal.SIGWINCH] = signal.signal(signal.SIGWINCH, self._on_resize)
        self._saved_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, self._on_terminate)
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.restore()
        return False

    def restore(self) -> None:
        """Put the terminal back the way it was. Safe to call more than once."""
        if not self._active:
            return
        self._active = False

        termios.tcsetattr(self._fd, termios.TCSADRAIN, self._saved_attrs)
        self.console.show_cursor(True)
        self.console.print()

        for signum, handler in self._saved_handlers.items():
            signal.signal(signum, handler)
        self._saved_handlers.clear()
        atexit.unregister(self.restore)

    def _on_resize(self, signum, frame) -> None:
        self._resized = True

    def _on_terminate(self, signum, frame) -> None:
        raise SystemExit(128 + signum)

    def events(self) -> Iterator[str]:
        """Yield key names and "resize" until the caller stops pulling."""
        while True:
            if self._resized:
                self._resized = False
                yield "resize"
                continue

            try:
                ready, _, _ = select.select([self._fd], [], [], self.poll_interval)
            except InterruptedError:
                continue
            if not ready:
                continue

            data = os.read(self._fd, 32)
            if not data:
                # stdin closed
                return
            yield from decode_keys(data)
