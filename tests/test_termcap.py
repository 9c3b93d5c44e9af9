import os

import pytest

from vless.termcap import (
    Capabilities,
    TermStrings,
    cheaper,
    load_term_strings,
    screen_size,
    split_delays,
)

ESC = "\x1b"
CUP_TERMINFO = "\x1b[%i%p1%d;%p2%dH"
CUP_TERMCAP = "\x1b[%i%d;%dH"


def hardcopy_caps(**overrides):
    env = {"LESS_TERMCAP_hc": "1", "TERM": "dumb"}
    env.update({f"LESS_TERMCAP_{k}": v for k, v in overrides.items()})
    return Capabilities(env, False)


def test_debug_mode_names_every_string():
    caps = Capabilities({}, True)
    assert caps.string("kr") == "<kr>"
    assert caps.string("cl") == "<cl>"
    assert caps.num("li") == 0
    assert caps.flag("am") is True


def test_debug_taken_from_environment():
    caps = Capabilities({"LESS_TERMCAP_DEBUG": "1"})
    assert caps.debug is True
    assert caps.string("ce") == "<ce>"


def test_hardcopy_hides_database():
    caps = hardcopy_caps(co="132")
    assert caps.hardcopy is True
    assert caps.num("co") == 132
    assert caps.num("li") == -1
    assert caps.flag("am") is False
    assert caps.string("cl") is None


def test_flag_zero_is_false():
    caps = hardcopy_caps(am="0", xn="yes", da="")
    assert caps.flag("am") is False
    assert caps.flag("xn") is True
    assert caps.flag("da") is False


def test_goto_terminfo_home():
    caps = hardcopy_caps(cm=CUP_TERMINFO)
    assert caps.goto(0, 0) == "\x1b[1;1H"


def test_goto_termcap_and_terminfo_agree():
    a = hardcopy_caps(cm=CUP_TERMINFO)
    b = hardcopy_caps(cm=CUP_TERMCAP)
    for col, row in [(0, 0), (4, 9), (79, 23)]:
        assert a.goto(col, row) == b.goto(col, row)
    assert a.goto(4, 9) != a.goto(9, 4)


def test_goto_without_move_is_empty():
    assert hardcopy_caps().goto(3, 3) == ""


def test_split_delays_plain():
    assert split_delays("xyz", 1) == [("xyz", 0)]
    assert split_delays("", 1) == []
    assert split_delays(None, 1) == []


def test_split_delays_with_delay():
    assert split_delays("abc$<5>def", 1) == [("abc", 5), ("def", 0)]


def test_split_delays_proportional():
    one = split_delays("a$<3*>b", 1)
    four = split_delays("a$<3*>b", 4)
    assert one[0][0] == four[0][0] == "a"
    assert four[0][1] == 4 * one[0][1]
    assert split_delays("a$<3>b", 4)[0][1] == one[0][1]


def test_split_delays_unterminated():
    assert split_delays("ab$<5", 1) == [("ab", 5)]


def test_cheaper():
    assert cheaper("", "", "dflt") == "dflt"
    assert cheaper("", "abc", "dflt") == "abc"
    assert cheaper("abc", "", "dflt") == "abc"
    assert cheaper("ab", "abcd", "dflt") == "ab"
    assert cheaper("abcd", "ab", "dflt") == "ab"


def test_screen_size_from_environment():
    assert screen_size({"LINES": "40", "COLUMNS": "100"}, None, None) == (100, 40)


def test_screen_size_defaults():
    assert screen_size({}, hardcopy_caps(), None) == (80, 24)
    assert screen_size({"LINES": "0", "COLUMNS": "-3"}, None, None) == (80, 24)


def test_screen_size_from_capabilities():
    caps = hardcopy_caps(li="50", co="132")
    assert screen_size({}, caps, None) == (132, 50)
    assert screen_size({"LINES": "30"}, caps, None) == (132, 30)


def test_screen_size_non_terminal_fd():
    r, w = os.pipe()
    try:
        assert screen_size({"LINES": "33", "COLUMNS": "77"}, None, r) == (77, 33)
    finally:
        os.close(r)
        os.close(w)


def test_load_hardcopy_defaults():
    ts = load_term_strings(hardcopy_caps(), 24)
    assert isinstance(ts, TermStrings)
    assert ts.missing_cap is True
    assert ts.clear == "\n\n"
    assert ts.home == "|\b^"
    assert ts.lower_left == "\r"
    assert ts.return_ == "\r"
    assert ts.backspace == "\b"
    assert ts.s_mousecap == ESC + "[?1000h" + ESC + "[?1006h"
    assert ts.e_mousecap == ESC + "[?1006l" + ESC + "[?1000l"
    assert ts.can_goto_line is False
    assert ts.no_back_scroll is True
    assert ts.eol_clear == ""


def test_load_with_capabilities():
    caps = hardcopy_caps(
        cl="CL", ce="CE", cm=CUP_TERMINFO, so="SO", se="SE", us="US", me="ME", al="AL"
    )
    ts = load_term_strings(caps, 24)
    assert ts.clear == "CL"
    assert ts.eol_clear == "CE"
    assert ts.can_goto_line is True
    assert ts.s_in == "SO" and ts.s_out == "SE"
    assert ts.u_in == "US" and ts.u_out == "ME"
    assert ts.b_in == "SO" and ts.b_out == "SE"
    assert ts.home == caps.goto(0, 0)
    assert ts.lower_left == caps.goto(0, 23)
    assert ts.addline == "AL"
    assert ts.no_back_scroll is False
    assert ts.missing_cap is False


def test_load_prefers_cheaper_home():
    caps = hardcopy_caps(cm=CUP_TERMINFO, ho="H")
    assert load_term_strings(caps, 24).home == "H"


def test_magic_cookie_width_disables_hilite():
    ts = load_term_strings(hardcopy_caps(sg="1"), 24)
    assert ts.attr_width == 1
    assert ts.hilite_allowed is False
    plain = load_term_strings(hardcopy_caps(), 24)
    assert plain.attr_width == 0
    assert plain.hilite_allowed is True


@pytest.mark.parametrize("bs,bc,expected", [("1", "X", "\b"), ("0", "X", "X"), ("0", "", "\b")])
def test_backspace_choice(bs, bc, expected):
    ts = load_term_strings(hardcopy_caps(bs=bs, bc=bc), 24)
    assert ts.backspace == expected