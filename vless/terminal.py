"""Terminal-specific screen manipulation built on terminal capabilities."""

from __future__ import annotations

import os
import time
from typing import Callable, Mapping, TextIO

from vless.color import Attr, ColorType, apply_at_specials, parse_color, sgr_color
from vless.termcap import (
    ESC,
    Capabilities,
    TermStrings,
    load_term_strings,
    screen_size,
    split_delays,
)

try:
    import termios
except ImportError:  # pragma: no cover - platforms without termios
    termios = None

VERY_QUIET = 2
BELL = "\x07"
DELETE = "\x7f"
CONTROL_K = "\x0b"
CONTROL_W = "\x17"

_SPECIAL_KEY_CAPS = {
    "RIGHT_ARROW": "kr",
    "LEFT_ARROW": "kl",
    "UP_ARROW": "ku",
    "DOWN_ARROW": "kd",
    "PAGE_UP": "kP",
    "PAGE_DOWN": "kN",
    "HOME": "kh",
    "END": "@7",
    "DELETE": "kD",
}


def _cc_char(value) -> str:
    if isinstance(value, bytes):
        return value.decode("latin-1")[:1] or "\0"
    return chr(value)


class Terminal:
    """Writes control sequences for screen operations to ``out``.

    Behaviour is tuned by plain attributes: ``no_init``, ``no_keypad``,
    ``mousecap``, ``quit_if_one_screen``, ``one_screen``, ``top_scroll``,
    ``oldbot``, ``quiet``, ``use_color``, ``binattr`` and ``color_map``
    (attribute value to colour string).  ``tty_fd`` is the keyboard
    descriptor used by :meth:`raw_mode`.
    """

    def __init__(self, out: TextIO, env: Mapping[str, str] | None = None) -> None:
        self.out = out
        self.env = dict(os.environ) if env is None else dict(env)
        self.capabilities = Capabilities(self.env)
        self.debug = self.capabilities.debug

        fd = None
        try:
            if out.isatty():
                fd = out.fileno()
        except (AttributeError, OSError, ValueError):
            fd = None
        self.width, self.height = screen_size(self.env, self.capabilities, fd)
        self.strings: TermStrings = load_term_strings(self.capabilities, self.height)
        self.is_tty = fd is not None

        self.no_init = False
        self.no_keypad = False
        self.mousecap = False
        self.quit_if_one_screen = False
        self.one_screen = False
        self.top_scroll = False
        self.oldbot = False
        self.quiet = 0
        self.use_color = True
        self.binattr: int = Attr.STANDOUT
        self.color_map: dict[int, str] = {}

        self.tty_fd: int | None = None
        self.erase_char = "\b"
        self.erase2_char = "\b"
        self.kill_char = ESC
        self.werase_char = CONTROL_W

        self.sleep: Callable[[float], None] = time.sleep
        self.attrmode: Attr = Attr.NORMAL
        self._attrcolor = -1
        self._init_done = False
        self._raw_on = False
        self._saved_term = None

    # -- output ------------------------------------------------------------

    def _puts(self, text: str | None, affcnt: int = 1) -> None:
        """Write a control string, performing its ``$<n>`` delays."""
        for part, delay in split_delays(text, affcnt):
            if part:
                self.out.write(part)
            if delay > 0:
                self.out.flush()
                self.sleep(delay / 1000)

    # -- initialisation ----------------------------------------------------

    def _whole_screen(self) -> bool:
        return not (self.quit_if_one_screen and self.one_screen)

    def init(self) -> None:
        """Put the terminal into the state used while paging."""
        if self._whole_screen():
            if not self.no_init:
                self._puts(self.strings.init, self.height)
            if not self.no_keypad:
                self._puts(self.strings.s_keypad, self.height)
            if self.mousecap:
                self.init_mouse()
        self._init_done = True
        if self.top_scroll:
            # Start with a whole screen without losing earlier lines.
            self.out.write("\n" * max(self.height - 1, 0))
        else:
            self.line_left()

    def deinit(self) -> None:
        """Undo what :meth:`init` did."""
        if not self._init_done:
            return
        if self._whole_screen():
            if self.mousecap:
                self.deinit_mouse()
            if not self.no_keypad:
                self._puts(self.strings.e_keypad, self.height)
            if not self.no_init:
                self._puts(self.strings.deinit, self.height)
        self._init_done = False

    def interactive(self) -> bool:
        """Tell whether output goes to an initialised terminal."""
        return bool(self.is_tty and self._init_done)

    # -- cursor and clearing -----------------------------------------------

    def home(self) -> None:
        """Move the cursor to the upper left corner."""
        self._puts(self.strings.home, 1)

    def clear(self) -> None:
        """Clear the screen."""
        self._puts(self.strings.clear, self.height)

    def clear_eol(self) -> None:
        """Clear from the cursor to the end of its line."""
        self._puts(self.strings.eol_clear, 1)

    def _clear_eol_bot(self) -> None:
        if self.strings.below_mem:
            self._puts(self.strings.eos_clear, 1)
        else:
            self._puts(self.strings.eol_clear, 1)

    def clear_bot(self) -> None:
        """Clear the bottom line, leaving the cursor at its start."""
        if self.oldbot:
            self.lower_left()
        else:
            self.line_left()
        if self.attrmode == Attr.NORMAL:
            self._clear_eol_bot()
        else:
            # Some terminals fill cleared space with the current attribute.
            saved = self.attrmode
            self.at_exit()
            self._clear_eol_bot()
            self.at_enter(saved)

    def lower_left(self) -> None:
        """Move the cursor to the start of the last line."""
        self._puts(self.strings.lower_left, 1)

    def line_left(self) -> None:
        """Move the cursor to the start of the current line."""
        self._puts(self.strings.return_, 1)

    def goto_line(self, sindex: int) -> None:
        """Move the cursor to the start of screen line ``sindex``."""
        self._puts(self.capabilities.goto(0, sindex), 1)

    def add_line(self) -> None:
        """Insert a blank line at the top, scrolling the rest down."""
        self._puts(self.strings.addline, self.height)

    # -- bells and backspace -----------------------------------------------

    def vbell(self) -> None:
        """Flash the screen, if the terminal can."""
        if not self.strings.visual_bell:
            return
        self._puts(self.strings.visual_bell, self.height)

    def bell(self) -> None:
        """Ring the bell, visually when in very quiet mode."""
        if self.quiet == VERY_QUIET:
            self.vbell()
        else:
            self.out.write(BELL)

    def putbs(self) -> None:
        """Move the cursor back one column without erasing."""
        if self.debug:
            self.out.write("<bs>")
        else:
            self._puts(self.strings.backspace, 1)

    # -- mouse -------------------------------------------------------------

    def init_mouse(self) -> None:
        """Make mouse clicks and wheel moves produce input."""
        self._puts(self.strings.s_mousecap, self.height)

    def deinit_mouse(self) -> None:
        """Hand mouse events back to the terminal."""
        self._puts(self.strings.e_mousecap, self.height)

    # -- attributes --------------------------------------------------------

    def _fmt(self, text: str, color: int) -> None:
        if color == self._attrcolor:
            return
        self._puts(text, 1)
        self._attrcolor = color

    def _color(self, text: str | None) -> None:
        if text == "*":
            self._fmt(f"{ESC}[m", -1)
            return
        kind, fg, bg = parse_color(text)
        if kind is ColorType.FOURBIT:
            if fg >= 0:
                code = sgr_color(fg)
                self._fmt(f"{ESC}[{code}m", code)
            if bg >= 0:
                code = sgr_color(bg) + 10
                self._fmt(f"{ESC}[{code}m", code)
        elif kind is ColorType.SIXBIT:
            if fg >= 0:
                self._fmt(f"{ESC}[38;5;{fg}m", fg)
            if bg >= 0:
                self._fmt(f"{ESC}[48;5;{bg}m", bg)

    def _inmode(self, mode_str: str, attr: int, bit: int) -> None:
        if not attr & bit:
            return
        color_str = self.color_map.get(int(bit))
        if not color_str or color_str.startswith("+"):
            self._puts(mode_str, 1)
            if not color_str:
                return
            color_str = color_str[1:]
        # A colour overrides the mode string.
        self._color(color_str)

    def _outmode(self, mode_str: str, bit: int) -> None:
        if self.attrmode & bit:
            self._puts(mode_str, 1)

    def at_enter(self, attr: int) -> None:
        """Start displaying text with attribute ``attr``."""
        attr = apply_at_specials(attr, self.binattr)
        s = self.strings
        self._inmode(s.u_in, attr, Attr.UNDERLINE)
        self._inmode(s.b_in, attr, Attr.BOLD)
        self._inmode(s.bl_in, attr, Attr.BLINK)
        if self.use_color and attr & Attr.COLOR:
            self._color(self.color_map.get(int(attr & Attr.COLOR)))
        else:
            self._inmode(s.s_in, attr, Attr.STANDOUT)
        self.attrmode = attr

    def at_exit(self) -> None:
        """Return to normal display, undoing modes in reverse order."""
        s = self.strings
        self._color("*")
        self._outmode(s.s_out, Attr.STANDOUT)
        self._outmode(s.bl_out, Attr.BLINK)
        self._outmode(s.b_out, Attr.BOLD)
        self._outmode(s.u_out, Attr.UNDERLINE)
        self.attrmode = Attr.NORMAL

    def at_switch(self, attr: int) -> None:
        """Change to attribute ``attr`` if it differs from the current one."""
        new_mode = apply_at_specials(attr, self.binattr)
        ignore = int(Attr.ANSI)
        if (int(new_mode) & ~ignore) != (int(self.attrmode) & ~ignore):
            self.at_exit()
            self.at_enter(attr)

    # -- keys --------------------------------------------------------------

    def special_key_str(self, key: str) -> str | None:
        """Return the characters a special key sends, or None if unknown.

        Keys are named ``RIGHT_ARROW``, ``LEFT_ARROW``, ``UP_ARROW``,
        ``DOWN_ARROW``, ``PAGE_UP``, ``PAGE_DOWN``, ``HOME``, ``END``,
        ``DELETE`` and ``CONTROL_K``.
        """
        if key == "CONTROL_K":
            return CONTROL_K
        cap = _SPECIAL_KEY_CAPS.get(key)
        if cap is None:
            return None
        s = self.capabilities.string(cap)
        if key == "DELETE" and s is None:
            return DELETE
        return s

    # -- terminal modes ----------------------------------------------------

    def raw_mode(self, on: bool) -> None:
        """Switch the keyboard to single-keystroke input, or restore it."""
        on = bool(on)
        if on == self._raw_on:
            return
        self.erase2_char = "\b"
        if termios is not None and self.tty_fd is not None:
            if on:
                attrs = termios.tcgetattr(self.tty_fd)
                if self._saved_term is None:
                    self._saved_term = [list(a) if isinstance(a, list) else a for a in attrs]
                cc = attrs[6]
                self.erase_char = _cc_char(cc[termios.VERASE])
                if hasattr(termios, "VERASE2"):
                    self.erase2_char = _cc_char(cc[termios.VERASE2])
                self.kill_char = _cc_char(cc[termios.VKILL])
                if hasattr(termios, "VWERASE"):
                    self.werase_char = _cc_char(cc[termios.VWERASE])
                else:
                    self.werase_char = CONTROL_W

                lflag_off = 0
                for name in ("ICANON", "ECHO", "ECHOE", "ECHOK", "ECHONL"):
                    lflag_off |= getattr(termios, name, 0)
                attrs[3] &= ~lflag_off

                oflag_on = 0
                for name in ("OXTABS", "TAB3", "XTABS"):
                    if hasattr(termios, name):
                        oflag_on |= getattr(termios, name)
                        break
                oflag_on |= getattr(termios, "OPOST", 0) | getattr(termios, "ONLCR", 0)
                attrs[1] |= oflag_on
                oflag_off = 0
                for name in ("ONOEOT", "OCRNL", "ONOCR", "ONLRET"):
                    oflag_off |= getattr(termios, name, 0)
                attrs[1] &= ~oflag_off

                cc[termios.VMIN] = 1
                cc[termios.VTIME] = 0
                for name in ("VLNEXT", "VDSUSP"):
                    if hasattr(termios, name):
                        cc[getattr(termios, name)] = b"\0"
            else:
                attrs = self._saved_term
            if attrs is not None:
                termios.tcsetattr(self.tty_fd, termios.TCSADRAIN, attrs)
        else:
            self.erase_char = "\b"
            self.kill_char = ESC
            self.werase_char = CONTROL_W
        self._raw_on = on