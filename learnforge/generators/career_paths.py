"""
Personalized career path generator.

Always asks the most capable model for exactly four paths. The whole retried
generation runs under an overall deadline. Fallback choice follows where it
failed:
  - model answered but the answer was unusable -> quiz-analysis or profile-based paths
  - nothing came back (all models failed, deadline) -> simple goal-only paths
"""

from __future__ import annotations

import asyncio
import json
import random
from typing import Optional

import structlog

from learnforge import fallbacks
from learnforge.config import RetryConfig
from learnforge.errors import UnrecoverableResponseError, ValidationError
from learnforge.generators.base import ContentGenerator, Sleep
from learnforge.llm_client import CompletionClient
from learnforge.models import CareerPathSet, ContentKind, LearnerProfile
from learnforge.prompts.templates import CAREER_PATHS_TEMPLATE, QUIZ_ANALYSIS_BLOCK
from learnforge.topics import analyze_quiz_answers
from learnforge.validation import parse_career_paths

logger = structlog.get_logger()

DEFAULT_DEADLINE_SECONDS = 45.0


class CareerPathGenerator(ContentGenerator):
    kind = ContentKind.CAREER_PATHS
    shape = "array"

    def __init__(
        self,
        llm_client: CompletionClient,
        retry_config: Optional[RetryConfig] = None,
        sleep: Optional[Sleep] = None,
        rng: Optional[random.Random] = None,
        deadline_seconds: float = DEFAULT_DEADLINE_SECONDS,
    ) -> None:
        super().__init__(llm_client, retry_config, sleep, rng)
        self.deadline_seconds = deadline_seconds

    def build_prompt(self, profile: LearnerProfile, analysis: Optional[dict[str, int]]) -> str:
        return CAREER_PATHS_TEMPLATE.format(
            name=profile.name or "Anonymous",
            age=profile.age if profile.age is not None else "Unknown",
            career_goal=profile.career_goal or "Improve technical skills",
            skills=json.dumps(profile.skills),
            interests=json.dumps(profile.interests),
            quiz_analysis=QUIZ_ANALYSIS_BLOCK.format(**analysis) if analysis else "No quiz data provided",
        )

    async def generate(self, profile: LearnerProfile) -> CareerPathSet:
        analysis = analyze_quiz_answers(profile.quiz_answers)
        prompt = self.build_prompt(profile, analysis)
        model = self.catalog.most_capable

        def parse(value):
            return parse_career_paths(value, career_goal=profile.career_goal)

        try:
            paths = await asyncio.wait_for(
                self._with_retry(lambda: self._structured(prompt, model, parse)),
                timeout=self.deadline_seconds,
            )
        except (UnrecoverableResponseError, ValidationError) as e:
            return self._fallback(fallbacks.career_paths(profile, analysis), e, user=profile.name)
        except asyncio.TimeoutError as e:
            logger.warning("career_paths_deadline_exceeded", deadline_seconds=self.deadline_seconds)
            return self._fallback(fallbacks.simple_career_paths(profile), e, user=profile.name)
        except Exception as e:
            return self._fallback(fallbacks.simple_career_paths(profile), e, user=profile.name)
        logger.info("career_paths_generated", user=profile.name, paths=len(paths.paths))
        return paths
