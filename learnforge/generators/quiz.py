"""
Quiz generator: multiple-choice questions, optionally grounded on module text.
"""

from __future__ import annotations

from functools import partial

import structlog

from learnforge import fallbacks
from learnforge.generators.base import ContentGenerator
from learnforge.models import Complexity, ContentKind, QuizSet
from learnforge.prompts.templates import QUIZ_CONTENT_BLOCK, QUIZ_TEMPLATE
from learnforge.topics import clean_quiz_topic, has_usable_content, is_code_related_topic
from learnforge.validation import parse_quiz

logger = structlog.get_logger()

MAX_MODULE_CONTENT_CHARS = 5000
# More questions than this over real module content is treated as a high-complexity task
COMPLEX_QUIZ_QUESTIONS = 5


class QuizGenerator(ContentGenerator):
    kind = ContentKind.QUIZ
    shape = "object"

    def build_prompt(self, topic: str, num_questions: int, module_content: str = "") -> str:
        has_content = has_usable_content(module_content)
        return QUIZ_TEMPLATE.format(
            topic=topic,
            num_questions=num_questions,
            content_block=QUIZ_CONTENT_BLOCK.format(module_content=module_content[:MAX_MODULE_CONTENT_CHARS])
            if has_content
            else "",
            grounding="based on the provided content." if has_content else "a typical course on this subject.",
            short_topic=" ".join(topic.split()[:3]),
        )

    async def generate(self, topic: str, num_questions: int = 5, module_content: str = "") -> QuizSet:
        """
        Generate a quiz. "Module 2: Closures" style topics are cleaned for the
        prompt; the returned set keeps the caller's topic for display.
        """
        num_questions = max(1, num_questions)
        clean_topic = clean_quiz_topic(topic, module_content)
        has_content = has_usable_content(module_content)
        complexity = Complexity.HIGH if has_content and num_questions > COMPLEX_QUIZ_QUESTIONS else Complexity.MEDIUM

        model = self.catalog.select_model(
            "quiz-generation",
            "technical" if is_code_related_topic(clean_topic) else "educational",
            complexity,
        )
        prompt = self.build_prompt(clean_topic, num_questions, module_content)
        parse = partial(parse_quiz, topic=topic, num_questions=num_questions)

        try:
            quiz = await self._with_retry(lambda: self._structured(prompt, model, parse))
        except Exception as e:
            return self._fallback(fallbacks.quiz(topic, num_questions), e, topic=topic)
        logger.info("quiz_generated", topic=clean_topic, questions=len(quiz.questions))
        return quiz
