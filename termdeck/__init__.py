"""
termdeck — plain-text slide decks in the terminal

Reads a deck file, splits it into slides on ``---`` lines, resolves inline
color directives and fenced code blocks, and presents the slides one at a
time. Code blocks marked runnable can be sent to a live interpreter
session and their output shown under the block.

Pipeline:
    parser     raw text -> Deck (ParseError on malformed input)
    navigator  cursor over the Deck (clamped, never raises)
    renderer   Slide + width -> terminal lines
    evaluator  code block -> EvaluationResult through an evaluator channel
    session    presentation state and the key-driven event loop

Author: termdeck contributors | 2026-10-19
"""

from .version import __version__
from .models import (
    CodeBlock,
    Color,
    Deck,
    EvaluationResult,
    PlainText,
    Slide,
    StyledRun,
    StyledText,
)
from .parser import ParseError, load_deck, parse_deck
from .navigator import Navigator
from .renderer import RenderOptions, RenderedSlide, Renderer
from .evaluator import (
    ChannelResponse,
    EvaluatorBridge,
    EvaluatorChannel,
    EvaluatorChannelError,
    HttpChannel,
    ReplChannel,
)
from .session import Command, PresentationSession, run_loop

__all__ = [
    "__version__",
    "CodeBlock",
    "Color",
    "Deck",
    "EvaluationResult",
    "PlainText",
    "Slide",
    "StyledRun",
    "StyledText",
    "ParseError",
    "load_deck",
    "parse_deck",
    "Navigator",
    "RenderOptions",
    "RenderedSlide",
    "Renderer",
    "ChannelResponse",
    "EvaluatorBridge",
    "EvaluatorChannel",
    "EvaluatorChannelError",
    "HttpChannel",
    "ReplChannel",
    "Command",
    "PresentationSession",
    "run_loop",
]
