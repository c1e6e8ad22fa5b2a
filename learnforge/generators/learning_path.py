"""
Learning path generator.

Two flavours share one entry point:
  - topic:  exactly five "Module N: Title" strings
  - career: a list of module outlines (title, description, estimatedTime, content)
"""

from __future__ import annotations

from functools import partial
from typing import Union

import structlog

from learnforge import fallbacks
from learnforge.generators.base import ContentGenerator
from learnforge.models import CareerLearningPath, Complexity, ContentKind, PathType, TopicLearningPath
from learnforge.prompts.templates import CAREER_PATH_OUTLINE_TEMPLATE, TOPIC_PATH_TEMPLATE
from learnforge.topics import is_code_related_topic
from learnforge.validation import parse_career_learning_path, parse_topic_path

logger = structlog.get_logger()

LearningPath = Union[TopicLearningPath, CareerLearningPath]


class LearningPathGenerator(ContentGenerator):
    kind = ContentKind.LEARNING_PATH
    shape = "array"

    async def generate(
        self,
        goal: str,
        path_type: PathType | str = PathType.TOPIC,
        detailed: bool = False,
    ) -> LearningPath:
        if not goal or not goal.strip():
            raise ValueError("Invalid goal/topic provided")
        path_type = PathType(path_type)
        career = path_type == PathType.CAREER

        model = self.catalog.select_model(
            "learning-path",
            "technical" if is_code_related_topic(goal) else "educational",
            Complexity.HIGH if career else Complexity.MEDIUM,
        )
        if career:
            prompt = CAREER_PATH_OUTLINE_TEMPLATE.format(goal=goal)
            parse = partial(parse_career_learning_path, goal=goal)
        else:
            prompt = TOPIC_PATH_TEMPLATE.format(goal=goal)
            parse = partial(parse_topic_path, goal=goal)

        try:
            path = await self._with_retry(lambda: self._structured(prompt, model, parse))
        except Exception as e:
            fallback = fallbacks.career_learning_path(goal) if career else fallbacks.topic_path(goal)
            return self._fallback(fallback, e, goal=goal, path_type=path_type.value)
        logger.info("learning_path_generated", goal=goal, path_type=path_type.value, modules=len(path.modules))
        return path
