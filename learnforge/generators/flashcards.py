"""
Flashcard generator. Sets are normalized to the requested size: surplus cards
are dropped, a short set is padded with placeholder cards.
"""

from __future__ import annotations

from functools import partial

import structlog

from learnforge import fallbacks
from learnforge.generators.base import ContentGenerator
from learnforge.models import Complexity, ContentKind, FlashcardSet
from learnforge.prompts.templates import FLASHCARDS_TEMPLATE
from learnforge.validation import parse_flashcards

logger = structlog.get_logger()

DEFAULT_NUM_CARDS = 5


class FlashcardGenerator(ContentGenerator):
    kind = ContentKind.FLASHCARDS
    shape = "array"

    async def generate(self, topic: str, num_cards: int = DEFAULT_NUM_CARDS) -> FlashcardSet:
        if not topic or not topic.strip():
            raise ValueError("Invalid topic provided")
        num_cards = max(1, num_cards)

        model = self.catalog.select_model("flashcards", "educational", Complexity.MEDIUM, interactive=True)
        prompt = FLASHCARDS_TEMPLATE.format(topic=topic, num_cards=num_cards)
        parse = partial(parse_flashcards, topic=topic, num_cards=num_cards)

        try:
            cards = await self._with_retry(lambda: self._structured(prompt, model, parse))
        except Exception as e:
            return self._fallback(fallbacks.flashcards(topic, num_cards), e, topic=topic)
        logger.info("flashcards_generated", topic=topic, cards=len(cards.cards))
        return cards
