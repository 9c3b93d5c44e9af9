"""Matching of compiled V8-style regular expression programs."""

from __future__ import annotations

from dataclasses import dataclass

from vless.regcomp import MAGIC, NSUBEXP, Op, Program, RegexpError, compile_regexp


@dataclass(frozen=True)
class MatchResult:
    """The outcome of a successful match.

    ``starts`` and ``ends`` hold, for each group, the index where it
    begins and ends in ``string``, or None when the group took no part.
    Group 0 is the whole match.
    """

    string: str
    starts: tuple[int | None, ...]
    ends: tuple[int | None, ...]

    def span(self, group: int = 0) -> tuple[int, int]:
        """Return ``(start, end)`` of a group, or ``(-1, -1)`` if unset."""
        if not 0 <= group < len(self.starts):
            raise IndexError(f"no such group: {group}")
        start, end = self.starts[group], self.ends[group]
        if start is None or end is None:
            return (-1, -1)
        return (start, end)

    def group(self, group: int = 0) -> str | None:
        """Return the text a group matched, or None if it did not take part."""
        start, end = self.span(group)
        if start < 0:
            return None
        return self.string[start:end]


class _Matcher:
    def __init__(self, program: Program, string: str, bol: int | None) -> None:
        self.program = program
        self.code = program.code
        self.string = string
        self.length = len(string)
        self.bol = bol
        self.pos = 0
        self.starts: list[int | None] = [None] * NSUBEXP
        self.ends: list[int | None] = [None] * NSUBEXP

    def attempt(self, at: int) -> MatchResult | None:
        self.pos = at
        self.starts = [None] * NSUBEXP
        self.ends = [None] * NSUBEXP
        if not self._match(1):
            return None
        self.starts[0] = at
        self.ends[0] = self.pos
        return MatchResult(self.string, tuple(self.starts), tuple(self.ends))

    def _match(self, scan: int | None) -> bool:
        program = self.program
        code = self.code
        string = self.string
        while scan is not None:
            nxt = program.next_node(scan)
            op = code[scan]

            if op == Op.BOL:
                if self.pos != self.bol:
                    return False
            elif op == Op.EOL:
                if self.pos < self.length:
                    return False
            elif op == Op.ANY:
                if self.pos >= self.length:
                    return False
                self.pos += 1
            elif op == Op.EXACTLY:
                literal = program.operand(scan)
                if not string.startswith(literal, self.pos):
                    return False
                self.pos += len(literal)
            elif op == Op.ANYOF:
                if self.pos >= self.length or string[self.pos] not in program.operand(scan):
                    return False
                self.pos += 1
            elif op == Op.ANYBUT:
                if self.pos >= self.length or string[self.pos] in program.operand(scan):
                    return False
                self.pos += 1
            elif op in (Op.NOTHING, Op.BACK):
                pass
            elif Op.OPEN < op < Op.OPEN + NSUBEXP:
                no = op - Op.OPEN
                save = self.pos
                if not self._match(nxt):
                    return False
                # A later pass through the same parentheses wins.
                if self.starts[no] is None:
                    self.starts[no] = save
                return True
            elif Op.CLOSE < op < Op.CLOSE + NSUBEXP:
                no = op - Op.CLOSE
                save = self.pos
                if not self._match(nxt):
                    return False
                if self.ends[no] is None:
                    self.ends[no] = save
                return True
            elif op == Op.BRANCH:
                if nxt is None or code[nxt] != Op.BRANCH:
                    nxt = scan + 2  # No choice: step into the operand.
                else:
                    branch: int | None = scan
                    while branch is not None and code[branch] == Op.BRANCH:
                        save = self.pos
                        if self._match(branch + 2):
                            return True
                        self.pos = save
                        branch = program.next_node(branch)
                    return False
            elif op in (Op.STAR, Op.PLUS):
                nextch = ""
                if nxt is not None and code[nxt] == Op.EXACTLY:
                    nextch = program.operand(nxt)[:1]
                minimum = 0 if op == Op.STAR else 1
                save = self.pos
                count = self._repeat(scan + 2)
                while count >= minimum:
                    if not nextch or (
                        self.pos < self.length and string[self.pos] == nextch
                    ):
                        if self._match(nxt):
                            return True
                    count -= 1
                    self.pos = save + count
                return False
            elif op == Op.END:
                return True
            else:
                raise RegexpError("memory corruption")
            scan = nxt
        raise RegexpError("corrupted pointers")

    def _repeat(self, node: int) -> int:
        op = self.code[node]
        string = self.string
        start = self.pos
        scan = start
        if op == Op.ANY:
            scan = self.length
        elif op == Op.EXACTLY:
            ch = self.program.operand(node)[:1]
            while scan < self.length and string[scan] == ch:
                scan += 1
        elif op == Op.ANYOF:
            chars = self.program.operand(node)
            while scan < self.length and string[scan] in chars:
                scan += 1
        elif op == Op.ANYBUT:
            chars = self.program.operand(node)
            while scan < self.length and string[scan] not in chars:
                scan += 1
        else:
            raise RegexpError("internal foulup")
        self.pos = scan
        return scan - start


def regexec(program: Program, string: str, notbol: bool = False) -> MatchResult | None:
    """Search ``string`` for the first match of ``program``.

    With ``notbol`` set, the start of ``string`` is not taken to be the
    start of a line, so ``^`` cannot match there.  Returns None when
    nothing matches.
    """
    if program is None or string is None:
        raise RegexpError("NULL parameter")
    if not program.code or program.code[0] != MAGIC:
        raise RegexpError("corrupted program")

    # A NUL ends the subject, as it would end a C string.
    string = string.split("\0", 1)[0]

    if program.must is not None and program.must not in string:
        return None

    matcher = _Matcher(program, string, None if notbol else 0)

    if program.anchored:
        return matcher.attempt(0)

    if program.start:
        at = string.find(program.start)
        while at >= 0:
            result = matcher.attempt(at)
            if result is not None:
                return result
            at = string.find(program.start, at + 1)
        return None

    for at in range(len(string) + 1):
        result = matcher.attempt(at)
        if result is not None:
            return result
    return None


class Regexp:
    """A compiled pattern ready for searching."""

    def __init__(self, pattern: str) -> None:
        self.pattern = pattern
        self.program = compile_regexp(pattern)

    def search(self, string: str, notbol: bool = False) -> MatchResult | None:
        """Return the first match in ``string``, or None."""
        return regexec(self.program, string, notbol)

    def __repr__(self) -> str:
        return f"Regexp({self.pattern!r})"