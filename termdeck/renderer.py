"""
Terminal renderer for termdeck slides.

Turns a Slide into the exact list of output lines for a given terminal
width: centered title, word-wrapped prose whose colors survive the wrap,
framed code blocks that are never reflowed, and evaluation results under
the blocks that were run.

Rendering reads results from a cache supplied by the caller. The bridge is
only invoked for evaluable blocks that have no cached result, so drawing
the same slide twice never re-runs code.

Author: termdeck contributors | 2026-10-19
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, MutableMapping, Optional, Tuple

from termdeck.models import (
    CodeBlock,
    Color,
    EvaluationResult,
    PlainText,
    Slide,
    StyledRun,
    StyledText,
)

logger = logging.getLogger(__name__)

MIN_WIDTH = 20

# (slide index, segment position) -> result
ResultKey = Tuple[int, int]
ResultCache = MutableMapping[ResultKey, EvaluationResult]

# ---------------------------------------------------------------------------
# ANSI helpers
# ---------------------------------------------------------------------------

ANSI_COLORS: Dict[Color, Optional[str]] = {
    Color.BLACK: "30",
    Color.RED: "31",
    Color.GREEN: "32",
    Color.YELLOW: "33",
    Color.BLUE: "34",
    Color.MAGENTA: "35",
    Color.CYAN: "36",
    Color.WHITE: "37",
    Color.DEFAULT: None,
}

RESET = "\033[0m"
BOLD = "1"
DIM = "2"

# A rendered cell: one character and its color.
_Cell = Tuple[str, Color]


@dataclass
class RenderOptions:
    """Presentation knobs, normally filled from the ``render`` config section."""
    color: bool = True
    min_width: int = MIN_WIDTH
    code_margin: int = 4
    show_status: bool = True


@dataclass
class RenderedSlide:
    """Output of one render pass."""
    lines: List[str]
    width: int
    evaluated: List[ResultKey] = field(default_factory=list)   # keys evaluated during this pass

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


class Renderer:
    """
    Render slides for a character terminal.

    Example:
        renderer = Renderer(RenderOptions(color=False))
        for line in renderer.render(deck[0], width=80).lines:
            print(line)
    """

    def __init__(self, options: Optional[RenderOptions] = None, bridge=None):
        self.options = options or RenderOptions()
        self.bridge = bridge

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def effective_width(self, width: int) -> int:
        """Terminal width with the degenerate-width fallback applied."""
        if width < self.options.min_width:
            logger.debug(f"Width {width} below minimum, using {self.options.min_width}")
            return self.options.min_width
        return width

    def pending_evaluations(
        self,
        slide: Slide,
        results: Optional[ResultCache] = None,
    ) -> List[Tuple[ResultKey, CodeBlock]]:
        """Evaluable blocks of *slide* that have no cached result yet."""
        results = results if results is not None else {}
        return [
            ((slide.index, pos), block)
            for pos, block in slide.evaluable_blocks()
            if (slide.index, pos) not in results
        ]

    def render(
        self,
        slide: Slide,
        width: int,
        evaluate: bool = False,
        results: Optional[ResultCache] = None,
    ) -> RenderedSlide:
        """
        Render *slide* for a terminal *width* columns wide.

        When *evaluate* is set, pending evaluable blocks are first sent
        through the bridge and their results stored into *results*.
        """
        width = self.effective_width(width)
        results = results if results is not None else {}
        evaluated: List[ResultKey] = []

        if evaluate:
            for key, block in self.pending_evaluations(slide, results):
                results[key] = self._evaluate(block)
                evaluated.append(key)

        lines: List[str] = []
        if slide.title is not None:
            lines.extend(self._render_title(slide.title, width))
            lines.append("")

        for pos, segment in enumerate(slide.segments):
            if isinstance(segment, CodeBlock):
                lines.extend(self._render_code(segment, width))
                result = results.get((slide.index, pos))
                if result is not None:
                    lines.extend(self._render_result(result, width))
            else:
                lines.extend(self._render_text(segment, width))

        return RenderedSlide(lines=lines, width=width, evaluated=evaluated)

    def status_line(self, index: int, total: int, width: int, evaluate: bool = False) -> str:
        """Right-aligned ``[n/N]`` footer."""
        width = self.effective_width(width)
        label = f"[{index + 1}/{total}]"
        if evaluate:
            label = f"eval {label}"
        return self._style(label.rjust(width), DIM)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _evaluate(self, block: CodeBlock) -> EvaluationResult:
        if self.bridge is None:
            return EvaluationResult.failed("no evaluator configured")
        return self.bridge.evaluate(block)

    def _style(self, text: str, *codes: Optional[str]) -> str:
        active = [c for c in codes if c]
        if not self.options.color or not active or not text:
            return text
        return f"\033[{';'.join(active)}m{text}{RESET}"

    def _encode(self, cells: List[_Cell], *extra: str) -> str:
        """Turn cells back into a string, one escape per color change."""
        if not cells:
            return ""
        out: List[str] = []
        chunk: List[str] = [cells[0][0]]
        color = cells[0][1]
        for ch, c in cells[1:]:
            if c != color:
                out.append(self._style("".join(chunk), *extra, ANSI_COLORS[color]))
                chunk, color = [], c
            chunk.append(ch)
        out.append(self._style("".join(chunk), *extra, ANSI_COLORS[color]))
        return "".join(out)

    def _render_title(self, title: StyledText, width: int) -> List[str]:
        rows = _wrap_cells(_to_cells(title), width)
        rendered = []
        for row in rows:
            pad = (width - len(row)) // 2
            rendered.append(" " * pad + self._encode(row, BOLD))
        return rendered

    def _render_text(self, segment: PlainText, width: int) -> List[str]:
        if segment.is_blank:
            return [""]
        return [self._encode(row) for row in _wrap_cells(_to_cells(segment.text), width)]

    def _render_code(self, block: CodeBlock, width: int) -> List[str]:
        margin = " " * min(self.options.code_margin, width // 4)
        gutter = "│ "
        room = max(1, width - len(margin) - len(gutter))

        header = block.language or "code"
        if block.evaluable:
            header += " [eval]"
        lines = [margin + self._style(f"┌ {header}", DIM)]
        for raw in block.lines:
            text = raw.expandtabs(4)
            if len(text) > room:
                text = text[:room - 1] + "…"
            lines.append(margin + self._style(gutter, DIM) + text)
        lines.append(margin + self._style("└", DIM))
        return lines

    def _render_result(self, result: EvaluationResult, width: int) -> List[str]:
        margin = " " * min(self.options.code_margin, width // 4)
        if result.success:
            body = result.output.rstrip("\n")
            lines = [margin + self._style("⇒", ANSI_COLORS[Color.GREEN])]
            if body:
                lines.extend(margin + "  " + row for row in body.split("\n"))
            return lines

        label = "✗ evaluation timed out" if result.timed_out else "✗ evaluation failed"
        lines = [margin + self._style(label, ANSI_COLORS[Color.RED])]
        for row in (result.error or "").rstrip("\n").split("\n"):
            if row:
                lines.append(margin + "  " + self._style(row, ANSI_COLORS[Color.RED]))
        return lines


# ---------------------------------------------------------------------------
# Wrapping (module-level, testable independently)
# ---------------------------------------------------------------------------

def _to_cells(text: StyledText) -> List[_Cell]:
    return [(ch, run.color) for run in text.runs for ch in run.text]


def _wrap_cells(cells: List[_Cell], width: int) -> List[List[_Cell]]:
    """
    Greedy word wrap over colored cells.

    A row that already fits is returned unchanged. Otherwise words are
    packed with single spaces, the leading indentation is kept on the first
    row and over-long words are split hard at *width*.
    """
    if len(cells) <= width:
        return [cells]

    indent = 0
    while indent < len(cells) and cells[indent][0] == " ":
        indent += 1

    words: List[List[_Cell]] = []
    current: List[_Cell] = []
    for cell in cells[indent:]:
        if cell[0] == " ":
            if current:
                words.append(current)
                current = []
        else:
            current.append(cell)
    if current:
        words.append(current)

    rows: List[List[_Cell]] = []
    row: List[_Cell] = list(cells[:indent]) if indent < width else []
    row_has_word = False

    for word in words:
        sep = 1 if row_has_word else 0
        if len(row) + sep + len(word) <= width:
            if sep:
                row.append((" ", word[0][1]))
            row.extend(word)
            row_has_word = True
            continue
        if row_has_word:
            rows.append(row)
        row, row_has_word = [], False
        while len(word) > width:
            rows.append(word[:width])
            word = word[width:]
        if word:
            row, row_has_word = list(word), True
    if row:
        rows.append(row)
    return rows or [[]]


def wrap_styled(text: StyledText, width: int) -> List[StyledText]:
    """Wrap *text* to *width*, returning one StyledText per row."""
    wrapped = []
    for row in _wrap_cells(_to_cells(text), max(1, width)):
        runs: List[StyledRun] = []
        for ch, color in row:
            if runs and runs[-1].color == color:
                runs[-1] = StyledRun(runs[-1].text + ch, color)
            else:
                runs.append(StyledRun(ch, color))
        wrapped.append(StyledText(tuple(runs)))
    return wrapped
