"""
Learning nudge generator: short motivational tips from a learner's progress.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Optional

import structlog

from learnforge import fallbacks
from learnforge.generators.base import ContentGenerator
from learnforge.models import Assessment, Complexity, ContentKind, LearnerProfile, NudgeSet, PathProgress
from learnforge.prompts.templates import NUDGES_TEMPLATE
from learnforge.validation import parse_nudges

logger = structlog.get_logger()


class NudgeGenerator(ContentGenerator):
    kind = ContentKind.NUDGES
    shape = "array"

    def build_prompt(self, assessments: Sequence[Assessment], path: Optional[PathProgress]) -> str:
        summary = "; ".join(f"Score: {a.score:g}, Accuracy: {a.accuracy:g}%" for a in assessments)
        return NUDGES_TEMPLATE.format(
            career_name=(path.career_name if path else "") or "Learning journey",
            progress=f"{path.progress:g}" if path else "0",
            assessments=summary or "No recent assessments",
            completed_modules=len(path.completed_modules) if path else 0,
        )

    async def generate(
        self,
        user: Optional[LearnerProfile],
        assessments: Sequence[Assessment] = (),
        path: Optional[PathProgress] = None,
    ) -> NudgeSet:
        """Three nudges for the learner; an empty set when there is no learner."""
        if user is None:
            return NudgeSet()

        model = self.catalog.select_model("nudges", "educational", Complexity.LOW, interactive=True)
        prompt = self.build_prompt(assessments, path)

        try:
            nudges = await self._with_retry(lambda: self._structured(prompt, model, parse_nudges))
        except Exception as e:
            return self._fallback(fallbacks.nudges(), e, user=user.name)
        logger.info("nudges_generated", user=user.name, count=len(nudges.nudges))
        return nudges
