"""Terminal pager building blocks: V8-style regexps, tags lookup, colour and terminal control, keyboard input."""

__version__ = "0.1.0"