# vless

Building blocks for a terminal pager, in plain Python with no third-party
dependencies (terminal capabilities come from the standard `curses` and
`termios` modules where the platform has them).

## What is inside

- `vless.regcomp`: compiles patterns in the classic V8 syntax
  (`^ $ . [] () | * + ?`, up to nine groups) into a `Program`.
  `compile_regexp(pattern)` raises `RegexpError` for bad patterns;
  `Program.dump()` returns a readable listing of the compiled nodes.
- `vless.regexec`: a backtracking matcher for those programs.
  `Regexp(pattern).search(text, notbol)` (or `regexec(program, text, notbol)`)
  returns a `MatchResult` with `span(group)` and `group(group)`, or `None`.
  With `notbol` true, `^` cannot match at the start of the text.
- `vless.tags`: tag lookup.
  - `tag_type(name)` decides between a ctags file, a `ctags -x` stream (`"-"`)
    and the `GTAGS` / `GRTAGS` / `GSYMS` / `GPATH` kinds.
  - `find_ctags(path, tag)` reads a ctags `tags` file, standard or extended.
  - `find_gtags(tag, tag_type, command, stream)` reads cross-reference
    output, either from a stream or by running `command -x<flag> tag`
    (the command defaults to the `LESSGLOBALTAGS` environment variable).
  - Results come back as a `TagList`, stepped through with `next(n)` and
    `prev(n)`, with `current()`, `total()` and `seq()`.
  - `find_tag_line(tag, lines)` locates a pattern tag in a file's lines.
  - Failures raise `TagError`.
- `vless.color`: `parse_color` understands colour specifiers such as `"Rb"`
  or `"208.16"`; `color_escapes` turns them into SGR escape sequences;
  `Attr`, `apply_at_specials` and `is_at_equiv` handle display attributes.
- `vless.termcap`: `Capabilities` looks up terminal capabilities by termcap
  name, with `LESS_TERMCAP_<name>` environment overrides and a debug mode
  (`LESS_TERMCAP_DEBUG`). `load_term_strings` builds the `TermStrings`
  used for screen control, `screen_size` finds the screen size, and
  `split_delays` handles `$<n>` padding delays.
- `vless.terminal`: `Terminal` writes cursor motion, clearing, attributes,
  bells and mouse-mode strings to an output stream, reports the strings
  special keys send (`special_key_str`), and switches the keyboard in and
  out of raw mode (`raw_mode`, using `tty_fd`).
- `vless.ttyin`: `KeyboardInput`, a context manager that reads single
  keystrokes from the controlling terminal with `getchr()`.

## Examples

```python
from vless.regexec import Regexp

m = Regexp("a(b+)c").search("xxabbbcyy", False)
print(m.span(0), m.group(1))   # (2, 7) bbb
```

```python
from vless.color import color_escapes

print(repr(color_escapes("Rb")))   # '\x1b[91m\x1b[44m'
```

```python
import sys
from vless.terminal import Terminal

term = Terminal(sys.stdout)
term.at_enter(8)       # standout
sys.stdout.write("highlighted")
term.at_exit()
```

## What it does not do

There is no pager here: no command to run, no file viewing, no command loop
and no search over a file. The package also installs no signal handlers;
interrupts, job-control stops and window-size changes are left to the
program that uses it.

## Tests

```
pip install -e .[test]
pytest
```