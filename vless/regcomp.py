"""Compiler for the classic V8-style regular expression syntax.

A pattern is compiled into a linear program of nodes.  Each node is an
opcode followed by a relative "next" offset; nodes that carry a literal
operand are followed by its characters and a terminating zero.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

NSUBEXP = 10
MAGIC = 0o234
MAX_SIZE = 32767

_META = "^$.[()|?+*\\"
_MULT = ("*", "+", "?")

# Flags passed up and down the recursive descent.
_WORST = 0
_HASWIDTH = 0o1  # Known never to match the empty string.
_SIMPLE = 0o2  # Simple enough to be a STAR/PLUS operand.
_SPSTART = 0o4  # Starts with * or +.


class RegexpError(ValueError):
    """Raised when a pattern cannot be compiled or a program is corrupt."""


class Op(IntEnum):
    """Opcodes of a compiled program."""

    END = 0
    BOL = 1
    EOL = 2
    ANY = 3
    ANYOF = 4
    ANYBUT = 5
    BRANCH = 6
    BACK = 7
    EXACTLY = 8
    NOTHING = 9
    STAR = 10
    PLUS = 11
    OPEN = 20
    CLOSE = 30


_LITERAL_OPS = (Op.ANYOF, Op.ANYBUT, Op.EXACTLY)


def _prop(op: int) -> str:
    if Op.OPEN < op < Op.OPEN + NSUBEXP:
        return f":OPEN{op - Op.OPEN}"
    if Op.CLOSE < op < Op.CLOSE + NSUBEXP:
        return f":CLOSE{op - Op.CLOSE}"
    try:
        return ":" + Op(op).name
    except ValueError:
        raise RegexpError("corrupted opcode") from None


@dataclass
class Program:
    """A compiled regular expression.

    ``code[0]`` holds the magic number; the first node starts at 1.
    ``start`` is the character every match must begin with (or ``""``),
    ``anchored`` tells whether the match may only begin at line start, and
    ``must`` is a literal every match must contain (or ``None``).
    """

    pattern: str
    code: list[int]
    start: str = ""
    anchored: bool = False
    must: str | None = None
    nparens: int = 1

    def opcode(self, pos: int) -> int:
        """Return the opcode of the node at ``pos``."""
        return self.code[pos]

    def operand(self, pos: int) -> str:
        """Return the literal operand of the node at ``pos``."""
        chars = []
        i = pos + 2
        while self.code[i] != 0:
            chars.append(chr(self.code[i]))
            i += 1
        return "".join(chars)

    def next_node(self, pos: int) -> int | None:
        """Return the position of the node following ``pos``, or None."""
        offset = self.code[pos + 1]
        if offset == 0:
            return None
        if self.code[pos] == Op.BACK:
            return pos - offset
        return pos + offset

    def dump(self) -> str:
        """Return a readable listing of the program and its hints."""
        lines = []
        s = 1
        op = None
        while op != Op.END:
            op = self.code[s]
            nxt = self.next_node(s)
            line = f"{s:2d}{_prop(op)}" + ("(0)" if nxt is None else f"({nxt})")
            if op in _LITERAL_OPS:
                literal = self.operand(s)
                line += literal
                s += 2 + len(literal) + 1
            else:
                s += 2
            lines.append(line)
        header = ""
        if self.start:
            header += f"start `{self.start}' "
        if self.anchored:
            header += "anchored "
        if self.must is not None:
            header += f'must have "{self.must}"'
        return "\n".join(lines) + "\n" + header + "\n"


class _Compiler:
    def __init__(self, pattern: str) -> None:
        self.pattern = pattern
        self.pos = 0
        self.npar = 1
        self.code: list[int] = [MAGIC]

    # -- input scanning --------------------------------------------------

    def _peek(self) -> str:
        if self.pos < len(self.pattern):
            return self.pattern[self.pos]
        return ""

    def _take(self) -> str:
        c = self._peek()
        self.pos += 1
        return c

    # -- code emission ---------------------------------------------------

    def _node(self, op: int) -> int:
        where = len(self.code)
        self.code.extend((op, 0))
        return where

    def _emit(self, ch: str) -> None:
        self.code.append(ord(ch))

    def _insert(self, op: int, opnd: int) -> None:
        self.code[opnd:opnd] = [op, 0]

    def _next(self, pos: int) -> int | None:
        offset = self.code[pos + 1]
        if offset == 0:
            return None
        return pos - offset if self.code[pos] == Op.BACK else pos + offset

    def _tail(self, p: int, val: int) -> None:
        scan = p
        while (nxt := self._next(scan)) is not None:
            scan = nxt
        if self.code[scan] == Op.BACK:
            self.code[scan + 1] = scan - val
        else:
            self.code[scan + 1] = val - scan

    def _optail(self, p: int | None, val: int) -> None:
        if p is None or self.code[p] != Op.BRANCH:
            return
        self._tail(p + 2, val)

    # -- grammar -----------------------------------------------------------

    def reg(self, paren: bool) -> tuple[int, int]:
        flags = _HASWIDTH
        parno = 0
        ret: int | None = None
        if paren:
            if self.npar >= NSUBEXP:
                raise RegexpError("too many ()")
            parno = self.npar
            self.npar += 1
            ret = self._node(Op.OPEN + parno)

        br, bflags = self.branch()
        if ret is not None:
            self._tail(ret, br)
        else:
            ret = br
        if not bflags & _HASWIDTH:
            flags &= ~_HASWIDTH
        flags |= bflags & _SPSTART
        while self._peek() == "|":
            self.pos += 1
            br, bflags = self.branch()
            self._tail(ret, br)
            if not bflags & _HASWIDTH:
                flags &= ~_HASWIDTH
            flags |= bflags & _SPSTART

        ender = self._node(Op.CLOSE + parno if paren else Op.END)
        self._tail(ret, ender)

        node: int | None = ret
        while node is not None:
            self._optail(node, ender)
            node = self._next(node)

        if paren:
            if self._take() != ")":
                raise RegexpError("unmatched ()")
        elif self._peek() != "":
            if self._peek() == ")":
                raise RegexpError("unmatched ()")
            raise RegexpError("junk on end")
        return ret, flags

    def branch(self) -> tuple[int, int]:
        flags = _WORST
        ret = self._node(Op.BRANCH)
        chain: int | None = None
        while self._peek() not in ("", "|", ")"):
            latest, pflags = self.piece()
            flags |= pflags & _HASWIDTH
            if chain is None:
                flags |= pflags & _SPSTART
            else:
                self._tail(chain, latest)
            chain = latest
        if chain is None:
            self._node(Op.NOTHING)
        return ret, flags

    def piece(self) -> tuple[int, int]:
        ret, aflags = self.atom()
        op = self._peek()
        if op not in _MULT:
            return ret, aflags

        if not aflags & _HASWIDTH and op != "?":
            raise RegexpError("*+ operand could be empty")
        flags = (_WORST | _SPSTART) if op != "+" else (_WORST | _HASWIDTH)

        if op == "*" and aflags & _SIMPLE:
            self._insert(Op.STAR, ret)
        elif op == "*":
            # x* becomes (x&|), where & means "self".
            self._insert(Op.BRANCH, ret)
            self._optail(ret, self._node(Op.BACK))
            self._optail(ret, ret)
            self._tail(ret, self._node(Op.BRANCH))
            self._tail(ret, self._node(Op.NOTHING))
        elif op == "+" and aflags & _SIMPLE:
            self._insert(Op.PLUS, ret)
        elif op == "+":
            # x+ becomes x(&|), where & means "self".
            nxt = self._node(Op.BRANCH)
            self._tail(ret, nxt)
            self._tail(self._node(Op.BACK), ret)
            self._tail(nxt, self._node(Op.BRANCH))
            self._tail(ret, self._node(Op.NOTHING))
        else:
            # x? becomes (x|).
            self._insert(Op.BRANCH, ret)
            self._tail(ret, self._node(Op.BRANCH))
            nxt = self._node(Op.NOTHING)
            self._tail(ret, nxt)
            self._optail(ret, nxt)
        self.pos += 1
        if self._peek() in _MULT:
            raise RegexpError("nested *?+")
        return ret, flags

    def atom(self) -> tuple[int, int]:
        flags = _WORST
        c = self._take()
        if c == "^":
            ret = self._node(Op.BOL)
        elif c == "$":
            ret = self._node(Op.EOL)
        elif c == ".":
            ret = self._node(Op.ANY)
            flags |= _HASWIDTH | _SIMPLE
        elif c == "[":
            ret = self._bracket()
            flags |= _HASWIDTH | _SIMPLE
        elif c == "(":
            ret, rflags = self.reg(True)
            flags |= rflags & (_HASWIDTH | _SPSTART)
        elif c in ("", "|", ")"):
            raise RegexpError("internal urp")
        elif c in _MULT:
            raise RegexpError("?+* follows nothing")
        elif c == "\\":
            if self._peek() == "":
                raise RegexpError("trailing \\")
            ret = self._node(Op.EXACTLY)
            self._emit(self._take())
            self.code.append(0)
            flags |= _HASWIDTH | _SIMPLE
        else:
            self.pos -= 1
            length = self._literal_run()
            if length <= 0:
                raise RegexpError("internal disaster")
            end = self.pos + length
            ender = self.pattern[end] if end < len(self.pattern) else ""
            if length > 1 and ender in _MULT:
                length -= 1  # Leave the last char as the operand of ?+*.
            flags |= _HASWIDTH
            if length == 1:
                flags |= _SIMPLE
            ret = self._node(Op.EXACTLY)
            for _ in range(length):
                self._emit(self._take())
            self.code.append(0)
        return ret, flags

    def _literal_run(self) -> int:
        count = 0
        for ch in self.pattern[self.pos:]:
            if ch in _META:
                break
            count += 1
        return count

    def _bracket(self) -> int:
        if self._peek() == "^":
            ret = self._node(Op.ANYBUT)
            self.pos += 1
        else:
            ret = self._node(Op.ANYOF)
        if self._peek() in ("]", "-"):
            self._emit(self._take())
        while self._peek() not in ("", "]"):
            if self._peek() == "-":
                self.pos += 1
                if self._peek() in ("]", ""):
                    self._emit("-")
                else:
                    first = ord(self.pattern[self.pos - 2]) + 1
                    last = ord(self.pattern[self.pos])
                    if first > last + 1:
                        raise RegexpError("invalid [] range")
                    self.code.extend(range(first, last + 1))
                    self.pos += 1
            else:
                self._emit(self._take())
        self.code.append(0)
        if self._peek() != "]":
            raise RegexpError("unmatched []")
        self.pos += 1
        return ret


def compile_regexp(pattern: str | None) -> Program:
    """Compile ``pattern`` into a :class:`Program`."""
    if pattern is None:
        raise RegexpError("NULL argument")
    # A NUL ends the pattern, as it would end a C string.
    pattern = pattern.split("\0", 1)[0]

    compiler = _Compiler(pattern)
    _, flags = compiler.reg(False)
    if len(compiler.code) >= MAX_SIZE:
        raise RegexpError("regexp too big")

    program = Program(pattern=pattern, code=compiler.code, nparens=compiler.npar)
    scan = 1  # First BRANCH.
    nxt = program.next_node(scan)
    if nxt is not None and program.code[nxt] == Op.END:
        # Only one top-level choice.
        scan = scan + 2
        if program.code[scan] == Op.EXACTLY:
            program.start = program.operand(scan)[:1]
        elif program.code[scan] == Op.BOL:
            program.anchored = True

        if flags & _SPSTART:
            longest: str | None = None
            length = 0
            node: int | None = scan
            while node is not None:
                if program.code[node] == Op.EXACTLY:
                    literal = program.operand(node)
                    if len(literal) >= length:
                        longest = literal
                        length = len(literal)
                node = program.next_node(node)
            program.must = longest
    return program