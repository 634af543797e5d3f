"""
Markup tokens recognised in termdeck deck files.

Compiled regex constants and small pure predicates used by the parser.
No dependencies beyond stdlib.

Author: termdeck contributors | 2026-10-19
"""

from __future__ import annotations

import re
from typing import Dict, Optional, Tuple

from termdeck.models import Color

# ---------------------------------------------------------------------------
# Literal tokens
# ---------------------------------------------------------------------------

SLIDE_DELIMITER = "---"
TITLE_MARKER = "|"
FENCE = "```"
EVAL_SUFFIX = "!"
DIRECTIVE_MARKER = "\\"

COLOR_CODES: Dict[str, Color] = {c.value: c for c in Color}

# ---------------------------------------------------------------------------
# Compiled regex constants
# ---------------------------------------------------------------------------

# Opening fence: ``` followed by an info string without whitespace or backticks.
FENCE_OPEN_RE = re.compile(r"^```([^\s`]*?)(!?)\s*$")
FENCE_CLOSE_RE = re.compile(r"^```\s*$")


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------

def is_delimiter(line: str) -> bool:
    """True for a line that is exactly the slide delimiter."""
    return line == SLIDE_DELIMITER


def is_title(line: str) -> bool:
    return line.startswith(TITLE_MARKER)


def match_fence_open(line: str) -> Optional[Tuple[str, bool]]:
    """
    Match an opening fence.

    Returns (language, evaluable) or None if *line* does not open a block.
    """
    m = FENCE_OPEN_RE.match(line)
    if m is None:
        return None
    return m.group(1), m.group(2) == EVAL_SUFFIX


def is_fence_close(line: str) -> bool:
    return FENCE_CLOSE_RE.match(line) is not None
