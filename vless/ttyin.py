"""Reading single keystrokes from the terminal."""

from __future__ import annotations

import os

NUL_REPLACEMENT = 0o340


def tty_device() -> str:
    """Return the name of the terminal device attached to stderr."""
    try:
        return os.ttyname(2)
    except (OSError, AttributeError):
        return "/dev/tty"


def default_wheel_lines() -> int:
    """Return the number of lines one mouse-wheel step scrolls."""
    return 1


class KeyboardInput:
    """A source of keystrokes read one byte at a time."""

    def __init__(self, device: str | None = None) -> None:
        self.device = device
        self.fd: int | None = None
        self._owned = False

    def open(self) -> None:
        """Open the keyboard device, falling back to file descriptor 2."""
        path = self.device if self.device is not None else tty_device()
        try:
            self.fd = os.open(path, os.O_RDONLY)
            self._owned = True
        except OSError:
            self.fd = 2
            self._owned = False

    def close(self) -> None:
        """Close the keyboard device if it was opened here."""
        if self.fd is not None and self._owned:
            os.close(self.fd)
        self.fd = None
        self._owned = False

    def getchr(self) -> int:
        """Read one keystroke and return it as a byte value.

        A typed NUL is reported as 0o340, since NUL cannot be handled
        elsewhere.  Raises EOFError when the input has ended.
        """
        if self.fd is None:
            self.open()
        data = os.read(self.fd, 1)
        if not data:
            raise EOFError("keyboard input closed")
        c = data[0]
        if c == 0:
            c = NUL_REPLACEMENT
        return c & 0xFF

    def __enter__(self) -> "KeyboardInput":
        self.open()
        return self

    def __exit__(self, *args) -> None:
        self.close()