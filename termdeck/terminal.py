"""
Terminal glue for termdeck: raw key input, size, screen control.

Key names produced by :func:`read_keys`:
    single printable characters, "space", "enter", "backspace", "tab",
    "up", "down", "left", "right", "home", "end", "ctrl-c", "ctrl-l",
    "escape", "eof"

Author: termdeck contributors | 2026-10-19
"""

from __future__ import annotations

import contextlib
import os
import select
import shutil
import sys
from typing import Callable, Dict, Iterator, Optional, TextIO, Tuple

CLEAR_SCREEN = "\033[H\033[2J"
ALT_SCREEN_ON = "\033[?1049h"
ALT_SCREEN_OFF = "\033[?1049l"
HIDE_CURSOR = "\033[?25l"
SHOW_CURSOR = "\033[?25h"

# Seconds to wait after ESC for the rest of an escape sequence
ESCAPE_DELAY = 0.05

# CSI / SS3 final sequences (after ESC) -> key name
_ESCAPES: Dict[str, str] = {
    "[A": "up",
    "[B": "down",
    "[C": "right",
    "[D": "left",
    "[H": "home",
    "[F": "end",
    "[1~": "home",
    "[4~": "end",
    "[7~": "home",
    "[8~": "end",
    "OA": "up",
    "OB": "down",
    "OC": "right",
    "OD": "left",
    "OH": "home",
    "OF": "end",
}

_CONTROL: Dict[str, str] = {
    " ": "space",
    "\r": "enter",
    "\n": "enter",
    "\x7f": "backspace",
    "\x08": "backspace",
    "\t": "tab",
    "\x03": "ctrl-c",
    "\x0c": "ctrl-l",
    "\x04": "eof",
}


def terminal_size(fallback: Tuple[int, int] = (80, 24)) -> Tuple[int, int]:
    """(columns, lines) of the controlling terminal."""
    size = shutil.get_terminal_size(fallback)
    return size.columns, size.lines


def decode_keys(
    read: Callable[[], str],
    ready: Optional[Callable[[], bool]] = None,
) -> Iterator[str]:
    """
    Turn a character source into key names.

    *read* returns one character per call and "" at end of input. *ready*,
    if given, is asked after an ESC whether more input follows; when it
    says no, the ESC is reported as a bare "escape" without blocking.
    """
    pending: Optional[str] = None
    while True:
        if pending is not None:
            ch, pending = pending, None
        else:
            ch = read()
        if ch == "":
            yield "eof"
            return
        if ch != "\x1b":
            yield _CONTROL.get(ch, ch)
            continue
        if ready is not None and not ready():
            yield "escape"
            continue

        seq = read()
        if seq not in ("[", "O"):
            # bare Escape; the character after it is a key of its own
            yield "escape"
            pending = seq
            continue
        while True:
            nxt = read()
            if nxt == "":
                break
            seq += nxt
            # CSI sequences end with a letter or "~"; SS3 after one letter
            if seq in _ESCAPES or nxt.isalpha() or nxt == "~":
                break
        yield _ESCAPES.get(seq, "escape")


@contextlib.contextmanager
def raw_mode(stream: TextIO = sys.stdin):
    """Put a TTY into cbreak mode for the duration of the block."""
    import termios
    import tty

    fd = stream.fileno()
    saved = termios.tcgetattr(fd)
    try:
        tty.setcbreak(fd)
        # Ctrl-C arrives as a key, not as SIGINT
        attrs = termios.tcgetattr(fd)
        attrs[3] &= ~termios.ISIG
        termios.tcsetattr(fd, termios.TCSADRAIN, attrs)
        yield
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, saved)


def read_keys(stream: TextIO = sys.stdin) -> Iterator[str]:
    """Key names read one character at a time from *stream* (raw mode expected)."""
    fd = stream.fileno()

    def _read() -> str:
        data = os.read(fd, 1)
        return data.decode("utf-8", errors="replace") if data else ""

    def _ready() -> bool:
        readable, _, _ = select.select([fd], [], [], ESCAPE_DELAY)
        return bool(readable)

    return decode_keys(_read, _ready)


@contextlib.contextmanager
def presentation_screen(out: TextIO = sys.stdout, enabled: Optional[bool] = None):
    """Switch to the alternate screen and hide the cursor while presenting."""
    if enabled is None:
        enabled = out.isatty()
    if enabled:
        out.write(ALT_SCREEN_ON + HIDE_CURSOR)
        out.flush()
    try:
        yield
    finally:
        if enabled:
            out.write(SHOW_CURSOR + ALT_SCREEN_OFF)
            out.flush()
