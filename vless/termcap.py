"""Terminal capabilities and the control strings built from them.

Capabilities are looked up by their two-letter termcap names.  An
environment variable ``LESS_TERMCAP_<name>`` overrides the terminal
database.  In debug mode every string capability reads as ``<name>``.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Mapping

ESC = "\x1b"
DEFAULT_TERM = "unknown"
DEF_SC_WIDTH = 80
DEF_SC_HEIGHT = 24
MAX_DELAY_PREFIX = 64

# Termcap names mapped to the terminfo names the database uses.
_FLAG_NAMES = {
    "am": "am",
    "xn": "xenl",
    "da": "da",
    "db": "db",
    "ut": "bce",
    "hc": "hc",
}
_NUM_NAMES = {
    "li": "lines",
    "co": "cols",
    "sg": "xmc",
}
_STR_NAMES = {
    "pc": "pad",
    "ks": "smkx",
    "ke": "rmkx",
    "@8": "kent",
    "ti": "smcup",
    "te": "rmcup",
    "ce": "el",
    "cd": "ed",
    "cl": "clear",
    "cm": "cup",
    "so": "smso",
    "se": "rmso",
    "us": "smul",
    "ue": "rmul",
    "md": "bold",
    "me": "sgr0",
    "mb": "blink",
    "vb": "flash",
    "ho": "home",
    "ll": "ll",
    "cr": "cr",
    "al": "il1",
    "sr": "ri",
    "kr": "kcuf1",
    "kl": "kcub1",
    "ku": "kcuu1",
    "kd": "kcud1",
    "kP": "kpp",
    "kN": "knp",
    "kh": "khome",
    "@7": "kend",
    "kD": "kdch1",
}

_FORMAT = re.compile(r":?([-+# 0]*)(\d*)(?:\.(\d+))?([doxXs])")
_DELAY_DIGITS = re.compile(r"[0-9]*")


def _atoi(text: str) -> int:
    """Convert a leading decimal number, as C's atoi does."""
    match = re.match(r"\s*([-+]?\d+)", text)
    return int(match.group(1)) if match else 0


def _expand_terminfo(cap: str, params: list[int]) -> str:
    params = params + [0] * (9 - len(params))
    stack: list[int | str] = []
    out: list[str] = []

    def pop() -> int | str:
        return stack.pop() if stack else 0

    i = 0
    while i < len(cap):
        c = cap[i]
        i += 1
        if c != "%":
            out.append(c)
            continue
        if i >= len(cap):
            break
        c = cap[i]
        if c == "%":
            out.append("%")
            i += 1
        elif c == "p" and i + 1 < len(cap) and cap[i + 1].isdigit():
            stack.append(params[int(cap[i + 1]) - 1])
            i += 2
        elif c == "i":
            params[0] += 1
            params[1] += 1
            i += 1
        elif c == "c":
            out.append(chr(int(pop())))
            i += 1
        elif c == "'" and i + 2 < len(cap):
            stack.append(ord(cap[i + 1]))
            i += 3
        elif c == "{":
            end = cap.find("}", i)
            if end < 0:
                break
            stack.append(int(cap[i + 1:end] or 0))
            i = end + 1
        elif c in "+-*/m":
            b, a = int(pop()), int(pop())
            if c == "+":
                stack.append(a + b)
            elif c == "-":
                stack.append(a - b)
            elif c == "*":
                stack.append(a * b)
            elif c == "/":
                stack.append(a // b if b else 0)
            else:
                stack.append(a % b if b else 0)
            i += 1
        else:
            match = _FORMAT.match(cap, i)
            if match is None:
                i += 1
                continue
            flags, width, precision, conv = match.groups()
            spec = "%" + flags + width + (f".{precision}" if precision else "") + conv
            value = pop()
            out.append(spec % (str(value) if conv == "s" else int(value)))
            i = match.end()
    return "".join(out)


def _expand_termcap(cap: str, row: int, col: int) -> str:
    args = [row, col]
    out: list[str] = []

    def take() -> int:
        return args.pop(0) if args else 0

    i = 0
    while i < len(cap):
        c = cap[i]
        i += 1
        if c != "%":
            out.append(c)
            continue
        if i >= len(cap):
            break
        c = cap[i]
        i += 1
        if c == "%":
            out.append("%")
        elif c == "d":
            out.append(str(take()))
        elif c == "2":
            out.append("%02d" % take())
        elif c == "3":
            out.append("%03d" % take())
        elif c == ".":
            out.append(chr(take()))
        elif c == "+" and i < len(cap):
            out.append(chr(take() + ord(cap[i])))
            i += 1
        elif c == "i":
            args = [a + 1 for a in args]
        elif c == "r":
            args.reverse()
    return "".join(out)


class Capabilities:
    """Lookup of terminal capabilities by termcap name.

    If the terminal is unknown to the database, or is a hardcopy
    terminal, only environment overrides are seen.
    """

    def __init__(self, env: Mapping[str, str] | None = None, debug: bool | None = None) -> None:
        self.env = dict(os.environ) if env is None else dict(env)
        if debug is None:
            debug = bool(self.env.get("LESS_TERMCAP_DEBUG"))
        self.debug = debug
        self.term = self.env.get("TERM")
        if self.term is None:
            self.term = DEFAULT_TERM
        self._curses = None
        self.hardcopy = False
        if not self.debug:
            self._curses = self._setup(self.term)
        if self._curses is None:
            self.hardcopy = True
        if self.flag("hc"):
            self.hardcopy = True

    @staticmethod
    def _setup(term: str):
        try:
            import curses
        except ImportError:
            return None
        try:
            fd = os.open(os.devnull, os.O_WRONLY)
        except OSError:
            return None
        try:
            curses.setupterm(term, fd)
        except (curses.error, OSError, TypeError, ValueError):
            return None
        finally:
            os.close(fd)
        return curses

    def _override(self, name: str) -> str | None:
        if self.debug:
            return f"<{name}>"
        return self.env.get(f"LESS_TERMCAP_{name}")

    def flag(self, name: str) -> bool:
        """Return a boolean capability."""
        s = self._override(name)
        if s is not None:
            return s != "" and s[0] != "0"
        if self.hardcopy or self._curses is None or name not in _FLAG_NAMES:
            return False
        try:
            return self._curses.tigetflag(_FLAG_NAMES[name]) > 0
        except self._curses.error:
            return False

    def num(self, name: str) -> int:
        """Return a numeric capability, or -1 when it is absent."""
        s = self._override(name)
        if s is not None:
            return _atoi(s)
        if self.hardcopy or self._curses is None or name not in _NUM_NAMES:
            return -1
        try:
            value = self._curses.tigetnum(_NUM_NAMES[name])
        except self._curses.error:
            return -1
        return value if value >= 0 else -1

    def string(self, name: str) -> str | None:
        """Return a string capability, or None when it is absent."""
        s = self._override(name)
        if s is not None:
            return s
        if self.hardcopy or self._curses is None or name not in _STR_NAMES:
            return None
        try:
            value = self._curses.tigetstr(_STR_NAMES[name])
        except self._curses.error:
            return None
        if value is None:
            return None
        return value.decode("latin-1")

    def goto(self, col: int, row: int) -> str:
        """Return the cursor-motion string for column ``col``, row ``row``."""
        cap = self.string("cm") or ""
        if "%p" in cap:
            return _expand_terminfo(cap, [row, col])
        return _expand_termcap(cap, row, col)


@dataclass
class TermStrings:
    """The control strings and properties of a terminal."""

    pad: str | None = None
    s_keypad: str = ""
    e_keypad: str = ""
    kent: str | None = None
    s_mousecap: str = ""
    e_mousecap: str = ""
    init: str = ""
    deinit: str = ""
    eol_clear: str = ""
    eos_clear: str = ""
    clear: str = ""
    move: str = ""
    s_in: str = ""
    s_out: str = ""
    u_in: str = ""
    u_out: str = ""
    b_in: str = ""
    b_out: str = ""
    bl_in: str = ""
    bl_out: str = ""
    visual_bell: str = ""
    backspace: str = "\b"
    home: str = ""
    lower_left: str = ""
    return_: str = "\r"
    addline: str = ""
    auto_wrap: bool = False
    ignaw: bool = False
    above_mem: bool = False
    below_mem: bool = False
    clear_bg: bool = False
    can_goto_line: bool = False
    missing_cap: bool = False
    no_back_scroll: bool = False
    attr_width: int = 0
    hilite_allowed: bool = True


def _cost(text: str) -> int:
    return sum(len(part) for part, _ in split_delays(text, 1))


def cheaper(t1: str, t2: str, default: str) -> str:
    """Return the cheaper of two strings, either if the other is empty,
    or ``default`` if both are empty."""
    if not t1 and not t2:
        return default
    if not t1:
        return t2
    if not t2:
        return t1
    return t1 if _cost(t1) < _cost(t2) else t2


def _tmodes(caps: Capabilities, incap: str, outcap: str, def_in: str, def_out: str) -> tuple[str, str]:
    s_in = caps.string(incap)
    if s_in is None:
        return def_in, def_out
    s_out = caps.string(outcap)
    if s_out is None:
        s_out = caps.string("me")
    if s_out is None:
        s_out = ""
    return s_in, s_out


def load_term_strings(capabilities: Capabilities, height: int) -> TermStrings:
    """Build the control strings for a screen ``height`` lines high."""
    caps = capabilities
    ts = TermStrings()
    ts.auto_wrap = caps.flag("am")
    ts.ignaw = caps.flag("xn")
    ts.above_mem = caps.flag("da")
    ts.below_mem = caps.flag("db")
    ts.clear_bg = caps.flag("ut")

    # "sg" is taken as the printed width of every attribute sequence.
    width = caps.num("sg")
    ts.attr_width = width if width >= 0 else 0
    # Highlighting on magic-cookie terminals would disturb line widths.
    ts.hilite_allowed = ts.attr_width == 0

    ts.pad = caps.string("pc")
    ts.s_keypad = caps.string("ks") or ""
    ts.e_keypad = caps.string("ke") or ""
    ts.kent = caps.string("@8")

    s = caps.string("MOUSE_START")
    ts.s_mousecap = s if s is not None else f"{ESC}[?1000h{ESC}[?1006h"
    s = caps.string("MOUSE_END")
    ts.e_mousecap = s if s is not None else f"{ESC}[?1006l{ESC}[?1000l"

    ts.init = caps.string("ti") or ""
    ts.deinit = caps.string("te") or ""

    s = caps.string("ce")
    if not s:
        ts.missing_cap = True
        s = ""
    ts.eol_clear = s

    s = caps.string("cd")
    if ts.below_mem and not s:
        ts.missing_cap = True
        s = ""
    ts.eos_clear = s or ""

    s = caps.string("cl")
    if not s:
        ts.missing_cap = True
        s = "\n\n"
    ts.clear = s

    s = caps.string("cm")
    if not s:
        ts.move = ""
        ts.can_goto_line = False
    else:
        ts.move = s
        ts.can_goto_line = True

    ts.s_in, ts.s_out = _tmodes(caps, "so", "se", "", "")
    ts.u_in, ts.u_out = _tmodes(caps, "us", "ue", ts.s_in, ts.s_out)
    ts.b_in, ts.b_out = _tmodes(caps, "md", "me", ts.s_in, ts.s_out)
    ts.bl_in, ts.bl_out = _tmodes(caps, "mb", "me", ts.s_in, ts.s_out)

    ts.visual_bell = caps.string("vb") or ""

    if caps.flag("bs"):
        ts.backspace = "\b"
    else:
        ts.backspace = caps.string("bc") or "\b"

    t1 = caps.string("ho") or ""
    t2 = caps.goto(0, 0) if ts.move else ""
    if not t1 and not t2:
        ts.missing_cap = True
    ts.home = cheaper(t1, t2, "|\b^")

    t1 = caps.string("ll") or ""
    t2 = caps.goto(0, height - 1) if ts.move else ""
    if not t1 and not t2:
        ts.missing_cap = True
    ts.lower_left = cheaper(t1, t2, "\r")

    s = caps.string("cr")
    ts.return_ = s if s is not None else "\r"

    t1 = caps.string("al") or ""
    t2 = caps.string("sr") or ""
    if ts.above_mem:
        ts.addline = t1
    else:
        if not t1 and not t2:
            ts.missing_cap = True
        ts.addline = cheaper(t1, t2, "")
    if not ts.addline:
        # Any backward movement must repaint the screen.
        ts.no_back_scroll = True
    return ts


def screen_size(
    env: Mapping[str, str] | None = None,
    capabilities: Capabilities | None = None,
    fd: int | None = 2,
) -> tuple[int, int]:
    """Return the screen size as ``(width, height)``.

    The size of the terminal on ``fd`` wins; then the LINES and COLUMNS
    variables; then the capability database; then 80 by 24.
    """
    env = os.environ if env is None else env
    sys_width = sys_height = 0
    if fd is not None:
        try:
            size = os.get_terminal_size(fd)
        except (OSError, ValueError):
            pass
        else:
            sys_width = max(size.columns, 0)
            sys_height = max(size.lines, 0)

    height = 0
    if sys_height > 0:
        height = sys_height
    elif env.get("LINES") is not None:
        height = _atoi(env["LINES"])
    elif capabilities is not None and (n := capabilities.num("li")) > 0:
        height = n
    if height <= 0:
        height = DEF_SC_HEIGHT

    width = 0
    if sys_width > 0:
        width = sys_width
    elif env.get("COLUMNS") is not None:
        width = _atoi(env["COLUMNS"])
    elif capabilities is not None and (n := capabilities.num("co")) > 0:
        width = n
    if width <= 0:
        width = DEF_SC_WIDTH
    return width, height


def split_delays(text: str | None, affcnt: int) -> list[tuple[str, int]]:
    """Split a control string at its ``$<n>`` delay specifications.

    Returns ``(text, delay_ms)`` pairs: each piece of text is to be
    written and then followed by a pause.  A ``*`` after the number
    multiplies the delay by ``affcnt``.
    """
    parts: list[tuple[str, int]] = []
    while text:
        obrac = text.find("$<")
        if 0 <= obrac < MAX_DELAY_PREFIX:
            before = text[:obrac]
            rest = text[obrac + 2:]
            digits = _DELAY_DIGITS.match(rest).group()
            delay = int(digits) if digits else 0
            rest = rest[len(digits):]
            if rest.startswith("*"):
                delay *= affcnt
            parts.append((before, delay))
            close = rest.find(">")
            text = rest[close + 1:] if close >= 0 else None
            continue
        parts.append((text, 0))
        break
    return parts