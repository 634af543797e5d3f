"""
Presentation session and event loop for termdeck.

A PresentationSession bundles everything that changes while presenting:
the navigator cursor, the evaluation-mode toggle and the results of code
blocks run so far. Nothing is kept at module level, so several sessions
(or test harnesses) can live in one process.

The loop is single-threaded: one key is read, handled to completion
(including any evaluation, bounded by the bridge timeout) and drawn before
the next key is read. Keys typed during an evaluation wait in the terminal
buffer and are honoured afterwards, in order.

Author: termdeck contributors | 2026-10-19
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, TextIO

from termdeck.models import Deck, EvaluationResult, Slide
from termdeck.navigator import Navigator
from termdeck.renderer import Renderer, ResultKey
from termdeck.terminal import CLEAR_SCREEN

logger = logging.getLogger(__name__)


class Command(str, Enum):
    """Presenter commands."""
    NEXT = "next"
    PREVIOUS = "previous"
    FIRST = "first"
    LAST = "last"
    GOTO = "goto"               # argument: 1-based slide number
    TOGGLE_EVAL = "toggle_eval"
    RERUN = "rerun"             # re-evaluate the current slide's blocks
    REDRAW = "redraw"
    QUIT = "quit"


KEY_BINDINGS: Dict[str, Command] = {
    "right": Command.NEXT,
    "down": Command.NEXT,
    "space": Command.NEXT,
    "enter": Command.NEXT,
    "l": Command.NEXT,
    "j": Command.NEXT,
    "n": Command.NEXT,
    "left": Command.PREVIOUS,
    "up": Command.PREVIOUS,
    "backspace": Command.PREVIOUS,
    "h": Command.PREVIOUS,
    "k": Command.PREVIOUS,
    "p": Command.PREVIOUS,
    "g": Command.FIRST,
    "home": Command.FIRST,
    "G": Command.LAST,
    "end": Command.LAST,
    "e": Command.TOGGLE_EVAL,
    "r": Command.RERUN,
    "ctrl-l": Command.REDRAW,
    "q": Command.QUIT,
    "ctrl-c": Command.QUIT,
    "eof": Command.QUIT,
}


class PresentationSession:
    """
    State of one running presentation.

    Example:
        session = PresentationSession(deck, Renderer())
        session.dispatch(Command.NEXT)
        print("\\n".join(session.render(width=80)))
    """

    def __init__(
        self,
        deck: Deck,
        renderer: Renderer,
        start: int = 0,
        evaluate: bool = False,
        bindings: Optional[Dict[str, Command]] = None,
    ):
        self.deck = deck
        self.navigator = Navigator(deck, start)
        self.renderer = renderer
        self.evaluate = evaluate
        self.bindings = bindings if bindings is not None else dict(KEY_BINDINGS)
        self.results: Dict[ResultKey, EvaluationResult] = {}
        self.running = True
        self._digits = ""
        self._force_eval = False

    # ------------------------ Commands ------------------------

    @property
    def current(self) -> Slide:
        return self.navigator.current()

    def dispatch(self, command: Command, arg: Optional[int] = None) -> bool:
        """
        Apply *command*.

        Returns:
            True if the screen needs to be redrawn
        """
        before = self.navigator.index
        if command == Command.NEXT:
            self.navigator.next()
        elif command == Command.PREVIOUS:
            self.navigator.previous()
        elif command == Command.FIRST:
            self.navigator.first()
        elif command == Command.LAST:
            self.navigator.last()
        elif command == Command.GOTO:
            self.navigator.goto((arg if arg is not None else 1) - 1)
        elif command == Command.TOGGLE_EVAL:
            self.evaluate = not self.evaluate
            logger.info(f"Evaluation mode {'on' if self.evaluate else 'off'}")
            return True
        elif command == Command.RERUN:
            self.discard_results(self.navigator.index)
            self._force_eval = True
            return True
        elif command == Command.REDRAW:
            return True
        elif command == Command.QUIT:
            self.running = False
            return False
        return self.navigator.index != before

    def handle_key(self, key: str) -> bool:
        """
        Translate a key into a command.

        Digits accumulate into a slide number that ``enter`` jumps to; any
        other key drops the pending number. Unbound keys are ignored.
        """
        if key.isdigit() and len(key) == 1:
            self._digits += key
            return False
        if key == "enter" and self._digits:
            number, self._digits = int(self._digits), ""
            return self.dispatch(Command.GOTO, number)
        self._digits = ""

        command = self.bindings.get(key)
        if command is None:
            logger.debug(f"Unbound key: {key!r}")
            return False
        return self.dispatch(command)

    def discard_results(self, slide_index: int) -> None:
        """Forget the evaluation results of one slide."""
        for key in [k for k in self.results if k[0] == slide_index]:
            del self.results[key]

    # ------------------------ Rendering ------------------------

    def render(self, width: int, height: Optional[int] = None) -> List[str]:
        """
        Lines for the current slide, status footer included.

        With *height* set the frame is exactly that many rows: short slides
        are padded and tall ones lose their bottom rows.

        Evaluable blocks without a result are evaluated first when the
        evaluation mode is on (or a rerun was requested).
        """
        evaluate = self.evaluate or self._force_eval
        self._force_eval = False
        rendered = self.renderer.render(
            self.current, width, evaluate=evaluate, results=self.results,
        )
        lines = list(rendered.lines)
        show_status = self.renderer.options.show_status
        if height is not None:
            body_rows = max(0, height - 1) if show_status else max(0, height)
            if len(lines) > body_rows:
                logger.debug(f"Slide {self.navigator.index + 1} clipped to {body_rows} rows")
            lines = lines[:body_rows]
        if show_status:
            if height is not None and len(lines) < height - 1:
                lines.extend([""] * (height - 1 - len(lines)))
            lines.append(self.renderer.status_line(
                self.navigator.index, len(self.deck), rendered.width, self.evaluate,
            ))
        return lines


# ---------------------------------------------------------------------------
# Event loop
# ---------------------------------------------------------------------------

def draw(session: PresentationSession, out: TextIO, width: int,
         height: Optional[int] = None, clear: str = CLEAR_SCREEN) -> None:
    out.write(clear + "\n".join(session.render(width, height)))
    out.flush()


def run_loop(
    session: PresentationSession,
    keys: Iterable[str],
    out: TextIO,
    size: Callable[[], tuple],
    clear: str = CLEAR_SCREEN,
) -> int:
    """
    Drive *session* from a stream of key names until QUIT or keys run out.

    Args:
        session: The presentation session
        keys: Key names (see ``termdeck.terminal.read_keys``)
        out: Output stream
        size: Callable returning (columns, lines), re-read on every draw
        clear: Sequence written before each frame

    Returns:
        Number of keys processed
    """
    columns, lines = size()
    draw(session, out, columns, lines, clear)
    processed = 0
    for key in keys:
        processed += 1
        redraw = session.handle_key(key)
        if not session.running:
            break
        if redraw:
            columns, lines = size()
            draw(session, out, columns, lines, clear)
    return processed
