import re

import pytest

from vless.regcomp import RegexpError, compile_regexp
from vless.regexec import MatchResult, Regexp, regexec


@pytest.mark.parametrize(
    "pattern, subject",
    [
        ("abc", "xxabcxx"),
        ("a.c", "zzaxczz"),
        ("a*b", "cccaaab"),
        ("ab+c", "xabbbbc"),
        ("colou?r", "the color red"),
        ("colou?r", "the colour red"),
        ("[a-c]+", "xyzbcabz"),
        ("[^0-9]+", "123abc456"),
        ("^foo", "foobar"),
        ("bar$", "bar foobar"),
        ("(ab|cd)e", "xxcdexx"),
        ("a|b|c", "zzzc"),
        ("x(yz)*w", "axyzyzw"),
        ("(a+)(b+)", "caabbbc"),
    ],
)
def test_whole_match_agrees_with_stdlib(pattern, subject):
    result = Regexp(pattern).search(subject)
    expected = re.search(pattern, subject)
    assert result is not None
    assert result.span(0) == expected.span(0)
    assert result.group(0) == expected.group(0)


@pytest.mark.parametrize(
    "pattern, subject",
    [("(a+)(b+)", "caabbbc"), ("(ab|cd)e", "xxcdexx"), ("x(yz)*w", "axyzyzw")],
)
def test_groups_agree_with_stdlib(pattern, subject):
    result = Regexp(pattern).search(subject)
    expected = re.search(pattern, subject)
    for group in range(1, expected.re.groups + 1):
        assert result.span(group) == expected.span(group)
        assert result.group(group) == expected.group(group)


def test_no_match_returns_none():
    assert Regexp("abc").search("abxabd") is None


def test_notbol_blocks_caret():
    rx = Regexp("^a")
    assert rx.search("abc", notbol=True) is None
    assert rx.search("abc").group() == "a"


def test_unused_alternative_group_is_none():
    result = Regexp("(a)|(b)").search("b")
    assert result.group(1) is None
    assert result.span(1) == (-1, -1)
    assert result.group(2) == "b"


def test_group_out_of_range():
    result = Regexp("a").search("a")
    with pytest.raises(IndexError):
        result.span(10)


def test_must_string_absent_rejects():
    rx = Regexp("a*bcd")
    assert rx.program.must == "bcd"
    assert rx.search("aaabc") is None
    assert rx.search("xaabcd").group() == "aabcd"


def test_empty_pattern_matches_at_start():
    result = Regexp("").search("hello")
    assert result.span() == (0, 0)
    assert result.group() == ""


def test_dollar_finds_line_end():
    subject = "ab a"
    result = Regexp("a$").search(subject)
    assert result.span() == (len(subject) - 1, len(subject))


def test_nul_ends_subject():
    assert Regexp("b").search("a\0b") is None


def test_regexec_matches_method():
    program = compile_regexp("o+")
    direct = regexec(program, "foood")
    assert direct == Regexp("o+").search("foood")
    assert direct.group() == "ooo"


def test_corrupted_program_raises():
    program = compile_regexp("a")
    program.code[0] = 0
    with pytest.raises(RegexpError):
        regexec(program, "a")


def test_invalid_pattern_raises():
    with pytest.raises(RegexpError):
        Regexp("a**")


def test_match_result_is_consistent():
    subject = "say hello world"
    result = Regexp("h[a-z]*").search(subject)
    assert isinstance(result, MatchResult)
    start, end = result.span()
    assert subject[start:end] == result.group()
    assert result.group() == "hello"