"""
Deck model for termdeck.

Immutable dataclasses describing a parsed deck: slides, their segments
(styled prose lines and fenced code blocks) and the ephemeral results of
evaluating a code block.

Author: termdeck contributors | 2026-10-19
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Color(str, Enum):
    """Colors selectable by an inline directive (value = directive letter)."""
    BLACK = "k"
    RED = "r"
    GREEN = "g"
    YELLOW = "y"
    BLUE = "b"
    MAGENTA = "m"
    CYAN = "c"
    WHITE = "w"
    DEFAULT = "d"       # terminal default foreground


# ---------------------------------------------------------------------------
# Styled text
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StyledRun:
    """A stretch of text drawn in a single color."""
    text: str
    color: Color = Color.DEFAULT

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text, "color": self.color.name.lower()}


@dataclass(frozen=True)
class StyledText:
    """A line of text split into colored runs."""
    runs: Tuple[StyledRun, ...] = ()

    @property
    def plain(self) -> str:
        """Text with all color information dropped."""
        return "".join(run.text for run in self.runs)

    def __len__(self) -> int:
        return sum(len(run.text) for run in self.runs)

    def to_dict(self) -> Dict[str, Any]:
        return {"plain": self.plain, "runs": [r.to_dict() for r in self.runs]}


# ---------------------------------------------------------------------------
# Segments
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PlainText:
    """One line of prose. An empty line keeps the vertical spacing of the source."""
    text: StyledText
    line: int = 0                       # 1-based source line

    @property
    def is_blank(self) -> bool:
        return len(self.text) == 0

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": "text", "line": self.line, "text": self.text.plain}


@dataclass(frozen=True)
class CodeBlock:
    """
    A fenced code block.

    ``lines`` holds the exact source lines between the fences, whitespace
    included. ``line`` is the 1-based line of the opening fence.
    """
    language: str
    lines: Tuple[str, ...]
    evaluable: bool = False
    line: int = 0

    @property
    def source(self) -> str:
        """The block's text as submitted to an evaluator."""
        return "\n".join(self.lines)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": "code",
            "line": self.line,
            "language": self.language,
            "evaluable": self.evaluable,
            "line_count": len(self.lines),
        }


Segment = Union[PlainText, CodeBlock]


# ---------------------------------------------------------------------------
# Slides and decks
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Slide:
    """A single displayable slide."""
    index: int                          # 0-based position in the deck
    title: Optional[StyledText] = None
    segments: Tuple[Segment, ...] = ()

    def code_blocks(self) -> List[Tuple[int, CodeBlock]]:
        """(segment position, block) pairs in slide order."""
        return [
            (pos, seg) for pos, seg in enumerate(self.segments)
            if isinstance(seg, CodeBlock)
        ]

    def evaluable_blocks(self) -> List[Tuple[int, CodeBlock]]:
        return [(pos, blk) for pos, blk in self.code_blocks() if blk.evaluable]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "title": self.title.plain if self.title is not None else None,
            "segments": [seg.to_dict() for seg in self.segments],
        }


@dataclass(frozen=True)
class Deck:
    """Ordered, non-empty collection of slides parsed from one source."""
    slides: Tuple[Slide, ...]
    source: Optional[str] = None        # path of the deck file, if any

    def __post_init__(self):
        if not self.slides:
            raise ValueError("A deck must contain at least one slide")

    def __len__(self) -> int:
        return len(self.slides)

    def __getitem__(self, index: int) -> Slide:
        return self.slides[index]

    def __iter__(self) -> Iterator[Slide]:
        return iter(self.slides)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "slide_count": len(self.slides),
            "slides": [s.to_dict() for s in self.slides],
        }


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EvaluationResult:
    """Outcome of submitting one code block to the evaluator."""
    success: bool
    output: str = ""
    error: Optional[str] = None
    timed_out: bool = False
    duration: float = 0.0

    @classmethod
    def ok(cls, output: str, duration: float = 0.0) -> EvaluationResult:
        return cls(success=True, output=output, duration=duration)

    @classmethod
    def failed(
        cls,
        error: str,
        timed_out: bool = False,
        duration: float = 0.0,
    ) -> EvaluationResult:
        return cls(success=False, error=error, timed_out=timed_out, duration=duration)

    @property
    def text(self) -> str:
        """What the presenter sees beneath the code block."""
        if self.success:
            return self.output
        return self.error or "evaluation failed"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "output": self.output,
            "error": self.error,
            "timed_out": self.timed_out,
            "duration": round(self.duration, 3),
        }
