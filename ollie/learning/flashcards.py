"""
Flashcard review loop: flip, navigate, mark learned, restart.
"""

import asyncio
from typing import Callable, List, Optional, Sequence, Set, Union

from ollie.chat.models import Flashcard

EMPTY_DECK_TEXT = "No flashcards available"

# Seconds between hiding the back face and showing the next card
TRANSITION_DELAY = 0.15


class FlashcardReview:
    """Review state for one deck, scoped to a single message instance."""

    def __init__(
        self,
        cards: Optional[Sequence[Flashcard]] = None,
        on_complete: Optional[Callable[[], None]] = None,
        transition_delay: float = TRANSITION_DELAY
    ):
        self.cards: List[Flashcard] = list(cards or [])
        self.on_complete = on_complete
        self.transition_delay = transition_delay

        self.current_index = 0
        self.is_flipped = False
        self.learned: Set[Union[int, str]] = set()
        self._completion_fired = False
        # Bumped by restart() to drop moves still in their transition
        self._generation = 0

    @property
    def is_empty(self) -> bool:
        return not self.cards

    @property
    def size(self) -> int:
        return len(self.cards)

    @property
    def current_card(self) -> Optional[Flashcard]:
        if self.is_empty:
            return None
        return self.cards[self.current_index]

    @property
    def progress(self) -> float:
        """Fraction of the deck learned, in [0, 1]."""
        if self.is_empty:
            return 0.0
        return len(self.learned) / self.size

    @property
    def progress_percent(self) -> int:
        return round(self.progress * 100)

    @property
    def is_complete(self) -> bool:
        return not self.is_empty and len(self.learned) == self.size

    def is_learned(self, card_id: Union[int, str]) -> bool:
        return card_id in self.learned

    def flip(self):
        if self.is_empty:
            return
        self.is_flipped = not self.is_flipped

    async def next(self):
        await self._move(1)

    async def prev(self):
        await self._move(-1)

    async def _move(self, step: int):
        if self.is_empty:
            return
        # Unflip before the index changes so the answer never shows on the next card
        self.is_flipped = False
        target = (self.current_index + step) % self.size
        generation = self._generation
        if self.transition_delay > 0:
            await asyncio.sleep(self.transition_delay)
        # A restart during the transition wins
        if generation == self._generation:
            self.current_index = target

    async def mark_learned(self):
        """Mark the current card learned; completes the deck or moves on."""
        card = self.current_card
        if card is None:
            return

        self.learned.add(card.id)

        if self.is_complete:
            if not self._completion_fired:
                self._completion_fired = True
                if self.on_complete:
                    self.on_complete()
            return

        await self.next()

    async def mark_not_learned(self):
        await self.next()

    def restart(self):
        self._generation += 1
        self.learned.clear()
        self.current_index = 0
        self.is_flipped = False
        self._completion_fired = False

    def status_line(self) -> str:
        if self.is_empty:
            return EMPTY_DECK_TEXT
        return f"Card {self.current_index + 1} of {self.size} - {self.progress_percent}% learned"
