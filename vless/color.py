"""Colour specifications and display attributes.

A colour string is either ``"x[y]"``, where x and y are single colour
letters, or ``"N[.M]"``, where N and M are decimal colour numbers.  Any
of them may be ``"-"`` to leave that colour unchanged.  A leading ``"+"``
is ignored.
"""

from __future__ import annotations

from enum import Enum, IntFlag

ESC = "\x1b"

CV_BLUE = 1
CV_GREEN = 2
CV_RED = 4
CV_BRIGHT = 8
CV_NOCHANGE = -999
CV_ERROR = -1000


class ColorType(Enum):
    """Kind of colour specification that was parsed."""

    NULL = 0  # nothing usable
    FOURBIT = 1  # values are OR-ed CV_* bits
    SIXBIT = 2  # values are colour numbers given by the user


class Attr(IntFlag):
    """Display attributes of a run of characters."""

    NORMAL = 0
    UNDERLINE = 1 << 0
    BOLD = 1 << 1
    BLINK = 1 << 2
    STANDOUT = 1 << 3
    ANSI = 1 << 4
    BINARY = 1 << 5
    HILITE = 1 << 6
    COLOR = 0xF << 8
    COLOR_ATTN = 1 << 8
    COLOR_BIN = 2 << 8
    COLOR_CTRL = 3 << 8
    COLOR_ERROR = 4 << 8
    COLOR_LINENUM = 5 << 8
    COLOR_MARK = 6 << 8
    COLOR_PROMPT = 7 << 8
    COLOR_RSCROLL = 8 << 8
    COLOR_SEARCH = 9 << 8


_COLOR4 = {
    "k": 0,
    "r": CV_RED,
    "g": CV_GREEN,
    "y": CV_RED | CV_GREEN,
    "b": CV_BLUE,
    "m": CV_RED | CV_BLUE,
    "c": CV_GREEN | CV_BLUE,
    "w": CV_RED | CV_GREEN | CV_BLUE,
}
_COLOR4.update({k.upper(): v | CV_BRIGHT for k, v in list(_COLOR4.items())})
_COLOR4["-"] = CV_NOCHANGE

_SGR_BASE = {
    0: 30,
    CV_RED: 31,
    CV_GREEN: 32,
    CV_RED | CV_GREEN: 33,
    CV_BLUE: 34,
    CV_RED | CV_BLUE: 35,
    CV_GREEN | CV_BLUE: 36,
    CV_RED | CV_GREEN | CV_BLUE: 37,
}
_SGR = dict(_SGR_BASE)
_SGR.update({color | CV_BRIGHT: code + 60 for color, code in _SGR_BASE.items()})


def _parse_color4(ch: str) -> int:
    return _COLOR4.get(ch, CV_ERROR)


def _parse_color6(text: str, pos: int) -> tuple[int, int]:
    """Parse a decimal colour at ``pos``; return (value, new position)."""
    if text.startswith("-", pos):
        return CV_NOCHANGE, pos + 1
    end = pos
    while end < len(text) and "0" <= text[end] <= "9":
        end += 1
    if end == pos:
        return CV_ERROR, pos
    return int(text[pos:end]), end


def parse_color(text: str | None) -> tuple[ColorType, int | None, int | None]:
    """Parse a colour string into ``(type, foreground, background)``.

    Unchanged colours are reported as CV_NOCHANGE.  When nothing usable
    is found the type is ColorType.NULL and both colours are None.
    """
    if not text:
        return ColorType.NULL, None, None
    if text.startswith("+"):
        text = text[1:]

    fg = _parse_color4(text[0]) if text else CV_ERROR
    bg = _parse_color4(text[1] if len(text) >= 2 else "-")
    if fg != CV_ERROR and bg != CV_ERROR:
        return ColorType.FOURBIT, fg, bg

    fg, pos = _parse_color6(text, 0)
    if fg != CV_ERROR and text.startswith(".", pos):
        bg, _ = _parse_color6(text, pos + 1)
    else:
        bg = CV_NOCHANGE
    if fg != CV_ERROR and bg != CV_ERROR:
        return ColorType.SIXBIT, fg, bg
    return ColorType.NULL, None, None


def sgr_color(color: int) -> int:
    """Return the SGR foreground code for a 4-bit colour.

    Values that are not 4-bit colours are returned unchanged.
    """
    return _SGR.get(color, color)


def color_escapes(text: str | None) -> str:
    """Return the escape sequences that select the colours in ``text``.

    ``"*"`` resets to normal.  An unusable specification yields ``""``.
    """
    if text == "*":
        return f"{ESC}[m"
    kind, fg, bg = parse_color(text)
    parts = []
    if kind is ColorType.FOURBIT:
        if fg >= 0:
            parts.append(f"{ESC}[{sgr_color(fg)}m")
        if bg >= 0:
            parts.append(f"{ESC}[{sgr_color(bg) + 10}m")
    elif kind is ColorType.SIXBIT:
        if fg >= 0:
            parts.append(f"{ESC}[38;5;{fg}m")
        if bg >= 0:
            parts.append(f"{ESC}[48;5;{bg}m")
    return "".join(parts)


def apply_at_specials(attr: int, binattr: int = Attr.STANDOUT) -> Attr:
    """Resolve the BINARY and HILITE pseudo-attributes into real ones."""
    attr = int(attr)
    if attr & Attr.BINARY:
        attr |= int(binattr)
    if attr & Attr.HILITE:
        attr |= Attr.STANDOUT
    attr &= ~(Attr.BINARY | Attr.HILITE)
    return Attr(attr)


def is_at_equiv(attr1: int, attr2: int, binattr: int = Attr.STANDOUT) -> bool:
    """Tell whether two attributes display the same way."""
    return apply_at_specials(attr1, binattr) == apply_at_specials(attr2, binattr)