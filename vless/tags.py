"""Finding tags in ctags files or through an external cross-reference tool."""

from __future__ import annotations

import os
import re
import shlex
import subprocess
import sys
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, TextIO

DEFAULT_TAGS = "tags"

_WHITESP = (" ", "\t")
_NUMBER = re.compile(r"-?[0-9]+")
_LEADING_DIGITS = re.compile(r"[0-9]+")

_GLOBAL_FLAGS = {
    "GTAGS": "",
    "GRTAGS": "r",
    "GSYMS": "s",
    "GPATH": "P",
}


class TagType(Enum):
    """Where tag information comes from."""

    CTAGS = "tags"  # a ctags file, standard or extended format
    CTAGS_X = "-"  # ctags cross-reference format read from a stream
    GTAGS = "GTAGS"  # function definitions (global)
    GRTAGS = "GRTAGS"  # function references (global)
    GSYMS = "GSYMS"  # other symbols (global)
    GPATH = "GPATH"  # path names (global)


class TagError(Exception):
    """Raised when a tag cannot be found or located."""


@dataclass
class Tag:
    """One place where a tag is defined.

    A tag is located either by line number (``linenum`` non-zero) or by
    a literal ``pattern`` that the line must start with; ``endline``
    means the pattern must reach the end of the line.
    """

    file: str
    linenum: int = 0
    pattern: str | None = None
    endline: bool = False


class TagList:
    """The tags found by the last lookup, with a current position."""

    def __init__(self, tags: Iterable[Tag] = (), circular: bool = False) -> None:
        self._tags = list(tags)
        self.circular = circular
        self._index = 0 if self._tags else None

    def __len__(self) -> int:
        return len(self._tags)

    def __iter__(self) -> Iterator[Tag]:
        return iter(self._tags)

    def _step(self, delta: int) -> str | None:
        if self._index is None:
            return None
        index = self._index + delta
        if not 0 <= index < len(self._tags):
            if not self.circular:
                return None
            index = 0 if delta > 0 else len(self._tags) - 1
        self._index = index
        return self._tags[index].file

    def next(self, n: int = 1) -> str | None:
        """Move forward ``n`` tags; return the file of the last move, or None."""
        result = None
        for _ in range(n):
            result = self._step(+1)
        return result

    def prev(self, n: int = 1) -> str | None:
        """Move back ``n`` tags; return the file of the last move, or None."""
        result = None
        for _ in range(n):
            result = self._step(-1)
        return result

    def current(self) -> Tag | None:
        """Return the current tag, or None if there are no tags."""
        if self._index is None:
            return None
        return self._tags[self._index]

    def total(self) -> int:
        """Return the number of tags."""
        return len(self._tags)

    def seq(self) -> int:
        """Return the 1-based position of the current tag, or 0."""
        return 0 if self._index is None else self._index + 1


def tag_type(tags_name: str) -> TagType:
    """Decide how to look tags up, given the configured tags name."""
    for kind in (TagType.GTAGS, TagType.GRTAGS, TagType.GSYMS, TagType.GPATH):
        if tags_name == kind.value:
            return kind
    if tags_name == "-":
        return TagType.CTAGS_X
    try:
        with open(tags_name, "rb"):
            return TagType.CTAGS
    except OSError:
        return TagType.GTAGS


def _skipsp(text: str, i: int) -> int:
    while i < len(text) and text[i] in _WHITESP:
        i += 1
    return i


def parse_ctags_line(line: str, tag: str) -> Tag | None:
    """Parse one line of a ctags file, returning a Tag if it is for ``tag``."""
    if line.endswith("\n"):
        line = line[:-1]
    if line.startswith("!"):
        return None  # Header of the extended format.
    n = len(tag)
    if not line.startswith(tag) or len(line) <= n or line[n] not in _WHITESP:
        return None

    p = _skipsp(line, n)
    if p >= len(line):
        return None  # File name is missing.
    end = p
    while end < len(line) and line[end] not in _WHITESP:
        end += 1
    file = line[p:end]
    if end >= len(line):
        return None  # Location is missing.
    p = _skipsp(line, end + 1)
    if p >= len(line):
        return None

    number = _NUMBER.match(line, p)
    if number:
        return Tag(file=file, linenum=int(number.group()))

    # A pattern between delimiters: drop a leading "^", a trailing "$"
    # and every backslash.
    delim = line[p]
    p += 1
    if p < len(line) and line[p] == "^":
        p += 1
    chars = []
    while p < len(line) and line[p] != delim:
        if line[p] == "\\":
            p += 1
            if p >= len(line):
                break
        chars.append(line[p])
        p += 1
    pattern = "".join(chars)
    endline = pattern.endswith("$")
    if endline:
        pattern = pattern[:-1]
    return Tag(file=file, linenum=0, pattern=pattern, endline=endline)


def parse_xref_entry(line: str) -> tuple[str, str, int] | None:
    """Parse a ``ctags -x`` line into ``(tag, file, line number)``.

    Both the standard layout (tag, line, file, text) and the extended one
    with a tag type after the name are accepted.  Returns None when the
    line does not fit.
    """
    length = len(line)

    def skip_word(i: int) -> int:
        while i < length and not line[i].isspace():
            i += 1
        return i

    def skip_space(i: int) -> int:
        while i < length and line[i].isspace():
            i += 1
        return i

    p = skip_word(0)
    name = line[:p]
    if p >= length:
        return None
    p = skip_space(p + 1)
    if p >= length:
        return None
    if not line[p].isdigit() or not line[p].isascii():
        p = skip_space(skip_word(p))  # Skip the tag type.
    if p >= length or not ("0" <= line[p] <= "9"):
        return None
    start = p
    p = skip_word(p)
    number = line[start:p]
    if p >= length:
        return None
    p = skip_space(p + 1)
    if p >= length:
        return None
    start = p
    p = skip_word(p)
    file = line[start:p]
    if p >= length:
        return None

    digits = _LEADING_DIGITS.match(number)
    linenum = int(digits.group()) if digits else 0
    if name and number and file and linenum > 0:
        return name, file, linenum
    return None


def find_ctags(path: str, tag: str) -> TagList:
    """Collect every entry for ``tag`` in the ctags file at ``path``."""
    try:
        handle = open(path, encoding="utf-8", errors="surrogateescape", newline="")
    except OSError:
        raise TagError("No tags file") from None
    with handle:
        found = [t for t in (parse_ctags_line(line, tag) for line in handle) if t]
    if not found:
        raise TagError("No such tag in tags file")
    return TagList(found)


def _read_xref(stream: TextIO) -> list[Tag]:
    found = []
    for line in stream:
        if line.endswith("\n"):
            line = line[:-1]
        entry = parse_xref_entry(line)
        if entry is None:
            break
        _, file, linenum = entry
        found.append(Tag(file=file, linenum=linenum))
    return found


def find_gtags(
    tag: str | None,
    tag_type: TagType,
    command: str | None = None,
    stream: TextIO | None = None,
) -> TagList:
    """Collect the locations of ``tag`` from a cross-reference listing.

    For :attr:`TagType.CTAGS_X` the listing is read from ``stream``
    (standard input by default).  Otherwise ``command`` (by default the
    LESSGLOBALTAGS environment variable) is run as ``command -x<flag> tag``
    and its output is read.
    """
    if tag_type is not TagType.CTAGS_X and tag is None:
        raise TagError("No tags file")

    if tag_type is TagType.CTAGS_X:
        found = _read_xref(stream if stream is not None else sys.stdin)
    else:
        if command is None:
            command = os.environ.get("LESSGLOBALTAGS", "")
        if not command:
            raise TagError("No tags file")
        flag = _GLOBAL_FLAGS.get(tag_type.value)
        if flag is None:
            raise TagError("unknown tag type")
        line = f"{command} -x{flag} {shlex.quote(tag)}"
        with subprocess.Popen(
            line,
            shell=True,
            stdout=subprocess.PIPE,
            text=True,
            errors="surrogateescape",
        ) as proc:
            found = _read_xref(proc.stdout)
        if proc.returncode != 0:
            raise TagError("No tags file")

    if not found:
        raise TagError("No such tag in tags file")
    return TagList(found)


def tag_matches_line(tag: Tag, line: str) -> bool:
    """Tell whether ``line`` is the one ``tag``'s pattern describes.

    The pattern is compared as a prefix, since tags files may truncate
    long patterns.  With ``endline`` set, nothing but a carriage return
    may follow it.
    """
    if tag.pattern is None:
        return False
    if not line.startswith(tag.pattern):
        return False
    if not tag.endline:
        return True
    rest = line[len(tag.pattern):]
    return rest == "" or rest.startswith("\r")


def find_tag_line(tag: Tag, lines: Iterable[str]) -> int:
    """Return the 1-based line number where ``tag`` is found in ``lines``.

    A tag that already has a line number needs no search.  A pattern tag
    has its line number filled in when found; TagError is raised when no
    line matches.
    """
    if tag.linenum != 0:
        return tag.linenum
    for number, line in enumerate(lines, start=1):
        if line.endswith("\n"):
            line = line[:-1]
        if tag_matches_line(tag, line):
            tag.linenum = number
            return number
    raise TagError("Tag not found")