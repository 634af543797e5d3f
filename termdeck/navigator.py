"""
Slide navigation for termdeck.

The Navigator owns the only mutable state of a loaded deck: the cursor.
Every operation clamps into range instead of raising, so a stray key
press never interrupts a live presentation.

Author: termdeck contributors | 2026-10-19
"""

from __future__ import annotations

import logging

from termdeck.models import Deck, Slide

logger = logging.getLogger(__name__)


class Navigator:
    """
    Cursor over a Deck.

    Example:
        nav = Navigator(deck)
        nav.next()
        print(nav.current().title)
    """

    def __init__(self, deck: Deck, start: int = 0):
        self.deck = deck
        self._index = self._clamp(start)

    # ------------------------ Helpers ------------------------

    def _clamp(self, index: int) -> int:
        return max(0, min(index, len(self.deck) - 1))

    @property
    def index(self) -> int:
        return self._index

    @property
    def last_index(self) -> int:
        return len(self.deck) - 1

    def is_first(self) -> bool:
        return self._index == 0

    def is_last(self) -> bool:
        return self._index == self.last_index

    # ------------------------ Operations ------------------------

    def current(self) -> Slide:
        """Slide under the cursor (no mutation)."""
        return self.deck[self._index]

    def next(self) -> Slide:
        """Advance one slide; a no-op on the last slide."""
        return self.goto(self._index + 1)

    def previous(self) -> Slide:
        """Go back one slide; a no-op on the first slide."""
        return self.goto(self._index - 1)

    def first(self) -> Slide:
        return self.goto(0)

    def last(self) -> Slide:
        return self.goto(self.last_index)

    def goto(self, index: int) -> Slide:
        """Jump to *index*, clamped to the valid range."""
        target = self._clamp(index)
        if target != index:
            logger.debug(f"Clamped slide index {index} -> {target}")
        self._index = target
        return self.current()
