"""
Deck parser for termdeck.

Line-by-line state machine turning raw deck text into a :class:`Deck`.

States:
    NORMAL    prose, titles, delimiters and opening fences
    IN_FENCE  verbatim code lines until the closing fence

A delimiter line closes the current slide in either state; reaching it
(or end of input) inside a fence is a ParseError. Color directives are
resolved per line and never carry over to the next line.

Author: termdeck contributors | 2026-10-19
"""

from __future__ import annotations

import logging
from enum import Enum, auto
from pathlib import Path
from typing import List, Optional, Union

from termdeck.markup import (
    COLOR_CODES,
    DIRECTIVE_MARKER,
    TITLE_MARKER,
    is_delimiter,
    is_fence_close,
    is_title,
    match_fence_open,
)
from termdeck.models import (
    CodeBlock,
    Color,
    Deck,
    PlainText,
    Segment,
    Slide,
    StyledRun,
    StyledText,
)

logger = logging.getLogger(__name__)


class ParseError(ValueError):
    """A malformed deck. ``line`` is 1-based."""

    def __init__(self, line: int, reason: str, code: Optional[str] = None):
        self.line = line
        self.reason = reason
        self.code = code
        super().__init__(f"line {line}: {reason}")


# ---------------------------------------------------------------------------
# Color directives
# ---------------------------------------------------------------------------

def resolve_directives(text: str, line_num: int) -> StyledText:
    """
    Split *text* into colored runs.

    ``\\x`` switches the color for the rest of the line, ``\\\\`` is a
    literal backslash. Unknown codes raise ParseError.
    """
    runs: List[StyledRun] = []
    buf: List[str] = []
    color = Color.DEFAULT

    def _flush():
        if not buf:
            return
        chunk = "".join(buf)
        buf.clear()
        if runs and runs[-1].color == color:
            runs[-1] = StyledRun(runs[-1].text + chunk, color)
        else:
            runs.append(StyledRun(chunk, color))

    i = 0
    while i < len(text):
        ch = text[i]
        if ch != DIRECTIVE_MARKER:
            buf.append(ch)
            i += 1
            continue
        if i + 1 >= len(text):
            raise ParseError(line_num, "incomplete color directive at end of line")
        code = text[i + 1]
        if code == DIRECTIVE_MARKER:
            buf.append(code)
        else:
            new_color = COLOR_CODES.get(code)
            if new_color is None:
                raise ParseError(line_num, f"unknown color code {code!r}", code=code)
            _flush()
            color = new_color
        i += 2
    _flush()
    return StyledText(tuple(runs))


# ---------------------------------------------------------------------------
# Deck parser
# ---------------------------------------------------------------------------

class _State(Enum):
    NORMAL = auto()
    IN_FENCE = auto()


def _split_lines(text: str) -> List[str]:
    # str.splitlines() would also break on form feeds and other separators
    # that belong verbatim inside code blocks.
    lines = text.split("\n")
    if text == "" or text.endswith("\n"):
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def parse_deck(text: str, source: Optional[str] = None) -> Deck:
    """
    Parse the full text of a deck.

    Args:
        text: Raw deck text.
        source: Optional origin (file path) recorded on the Deck.

    Returns:
        The parsed Deck (always at least one slide).

    Raises:
        ParseError: unterminated fence or unknown color code.
    """
    slides: List[Slide] = []
    title: Optional[StyledText] = None
    segments: List[Segment] = []

    state = _State.NORMAL
    fence_acc: List[str] = []
    fence_lang = ""
    fence_eval = False
    fence_line = 0

    def _close_slide():
        nonlocal title, segments
        slides.append(Slide(index=len(slides), title=title, segments=tuple(segments)))
        title = None
        segments = []

    def _unterminated(at: str) -> ParseError:
        return ParseError(fence_line, f"unterminated code fence ({at})")

    for line_num, line in enumerate(_split_lines(text), start=1):
        if is_delimiter(line):
            if state == _State.IN_FENCE:
                raise _unterminated(f"slide ends at line {line_num}")
            _close_slide()
            continue

        # ---- STATE: IN_FENCE ----
        if state == _State.IN_FENCE:
            if is_fence_close(line):
                segments.append(CodeBlock(
                    language=fence_lang,
                    lines=tuple(fence_acc),
                    evaluable=fence_eval,
                    line=fence_line,
                ))
                fence_acc = []
                state = _State.NORMAL
            else:
                fence_acc.append(line)
            continue

        # ---- STATE: NORMAL ----
        fence = match_fence_open(line)
        if fence is not None:
            fence_lang, fence_eval = fence
            fence_line = line_num
            state = _State.IN_FENCE
            continue

        if is_title(line) and title is None:
            title = resolve_directives(line[len(TITLE_MARKER):].strip(), line_num)
            continue

        segments.append(PlainText(resolve_directives(line, line_num), line_num))

    if state == _State.IN_FENCE:
        raise _unterminated("end of input")
    _close_slide()

    deck = Deck(slides=tuple(slides), source=source)
    logger.debug(f"Parsed {len(deck)} slide(s) from {source or '<text>'}")
    return deck


def load_deck(path: Union[str, Path]) -> Deck:
    """
    Read and parse a UTF-8 deck file.

    Raises:
        FileNotFoundError: *path* does not exist.
        ParseError: the file is not valid UTF-8 or the deck is malformed.
    """
    path = Path(path)
    raw = path.read_bytes()
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        line = raw.count(b"\n", 0, e.start) + 1
        raise ParseError(line, f"invalid UTF-8 byte at offset {e.start}") from e
    return parse_deck(text, source=str(path))
