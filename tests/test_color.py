import pytest

from vless.color import (
    CV_BLUE,
    CV_BRIGHT,
    CV_GREEN,
    CV_NOCHANGE,
    CV_RED,
    Attr,
    ColorType,
    apply_at_specials,
    color_escapes,
    is_at_equiv,
    parse_color,
    sgr_color,
)


def test_parse_four_bit_pair():
    assert parse_color("rb") == (ColorType.FOURBIT, CV_RED, CV_BLUE)


def test_parse_four_bit_bright_and_single():
    assert parse_color("G") == (ColorType.FOURBIT, CV_GREEN | CV_BRIGHT, CV_NOCHANGE)


def test_parse_leading_plus_ignored():
    assert parse_color("+yk") == parse_color("yk")


def test_parse_four_bit_nochange():
    assert parse_color("-w") == (ColorType.FOURBIT, CV_NOCHANGE, CV_RED | CV_GREEN | CV_BLUE)


def test_parse_six_bit():
    assert parse_color("123.45") == (ColorType.SIXBIT, 123, 45)


def test_parse_six_bit_fg_only():
    assert parse_color("200") == (ColorType.SIXBIT, 200, CV_NOCHANGE)


def test_parse_six_bit_nochange_fg():
    assert parse_color("-.17") == (ColorType.SIXBIT, CV_NOCHANGE, 17)


@pytest.mark.parametrize("text", ["", None, "zz", "12.x", "q"])
def test_parse_invalid(text):
    assert parse_color(text)[0] is ColorType.NULL


def test_sgr_colors_from_table():
    assert sgr_color(0) == 30
    assert sgr_color(CV_RED | CV_GREEN | CV_BLUE) == 37
    assert sgr_color(CV_BRIGHT) == 90
    assert sgr_color(CV_RED | CV_GREEN | CV_BLUE | CV_BRIGHT) == 97


def test_sgr_bright_is_offset_of_normal():
    for color in range(8):
        assert sgr_color(color | CV_BRIGHT) == sgr_color(color) + 60


def test_sgr_passthrough():
    assert sgr_color(200) == 200


def test_escapes_reset():
    assert color_escapes("*") == "\x1b[m"


def test_escapes_four_bit():
    assert color_escapes("kw") == "\x1b[30m\x1b[47m"


def test_escapes_six_bit():
    assert color_escapes("5.6") == "\x1b[38;5;5m\x1b[48;5;6m"


def test_escapes_nochange_skipped():
    assert color_escapes("-r") == f"\x1b[{sgr_color(CV_RED) + 10}m"


def test_escapes_invalid_empty():
    assert color_escapes("zz") == ""


def test_apply_hilite_becomes_standout():
    result = apply_at_specials(Attr.HILITE | Attr.BOLD)
    assert result == Attr.BOLD | Attr.STANDOUT


def test_apply_binary_uses_binattr():
    result = apply_at_specials(Attr.BINARY, Attr.UNDERLINE)
    assert result == Attr.UNDERLINE
    assert not result & (Attr.BINARY | Attr.HILITE)


def test_apply_plain_unchanged():
    assert apply_at_specials(Attr.BLINK | Attr.COLOR_SEARCH) == Attr.BLINK | Attr.COLOR_SEARCH


def test_is_at_equiv():
    assert is_at_equiv(Attr.HILITE, Attr.STANDOUT)
    assert is_at_equiv(Attr.BINARY, Attr.BOLD, Attr.BOLD)
    assert not is_at_equiv(Attr.BOLD, Attr.UNDERLINE)