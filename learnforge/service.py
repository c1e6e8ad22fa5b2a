"""
LearningContentService: composition root.

Builds settings -> catalog -> rate governor -> transport -> completion client
-> generators once, and exposes one async method per content kind. The rate
governor is owned here and shared by every generator of this service.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Optional, Protocol

import structlog

from learnforge.catalog import ModelCatalog
from learnforge.config import Settings, get_settings
from learnforge.generators.base import Sleep
from learnforge.generators.career_paths import CareerPathGenerator
from learnforge.generators.chat import CareerSummaryWriter, ChatResponder
from learnforge.generators.elaboration import ElaborationGenerator
from learnforge.generators.flashcards import FlashcardGenerator
from learnforge.generators.learning_path import LearningPath, LearningPathGenerator
from learnforge.generators.module_content import ModuleContentGenerator
from learnforge.generators.nudges import NudgeGenerator
from learnforge.generators.quiz import QuizGenerator
from learnforge.llm_client import (
    ChatCompletionTransport,
    CompletionClient,
    CompletionTransport,
    can_use_advanced_models,
)
from learnforge.models import (
    Assessment,
    CareerPathSet,
    FlashcardSet,
    LearnerProfile,
    ModuleContent,
    NudgeSet,
    PathProgress,
    PathType,
    QuizSet,
    TopicElaboration,
)
from learnforge.tools.rate_limiter import RateGovernor

logger = structlog.get_logger()


class ContentStore(Protocol):
    """Persistence seam for generated content. Generators never call it; callers may."""

    async def save(self, record: Mapping[str, Any]) -> str: ...

    async def query(self, filter: Mapping[str, Any]) -> list[dict[str, Any]]: ...


class LearningContentService:
    """One instance per process (or per test); owns the shared rate governor."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[CompletionTransport] = None,
        catalog: Optional[ModelCatalog] = None,
        governor: Optional[RateGovernor] = None,
        sleep: Optional[Sleep] = None,
    ) -> None:
        self.settings = settings or get_settings()
        s = self.settings
        self.catalog = catalog or ModelCatalog.from_config(s.model_catalog)
        self.governor = governor or RateGovernor(
            limit=s.rate_limit.max_requests,
            window_seconds=s.rate_limit.window_seconds,
            throttle_ratio=s.rate_limit.throttle_ratio,
            sleep=sleep,
        )
        self.llm = CompletionClient(
            transport=transport or ChatCompletionTransport(s.llm),
            catalog=self.catalog,
            governor=self.governor,
            fail_fast_on_auth=s.llm.fail_fast_on_auth,
        )

        self.module_content = ModuleContentGenerator(self.llm, s.retry, sleep=sleep)
        self.flashcards = FlashcardGenerator(self.llm, s.retry, sleep=sleep)
        self.quiz = QuizGenerator(self.llm, s.retry, sleep=sleep)
        self.nudges = NudgeGenerator(self.llm, s.retry, sleep=sleep)
        self.learning_path = LearningPathGenerator(self.llm, s.retry, sleep=sleep)
        self.career_paths = CareerPathGenerator(
            self.llm,
            s.retry,
            sleep=sleep,
            deadline_seconds=s.generation.career_path_deadline_seconds,
        )
        self.elaboration = ElaborationGenerator(self.llm, s.retry, sleep=sleep)
        self.chat = ChatResponder(self.llm)
        self.career_summary = CareerSummaryWriter(self.llm)
        logger.info("learning_content_service_ready", models=len(self.catalog))

    # --- Content kinds with a deterministic fallback (never raise on upstream failure) ---

    async def generate_module_content(self, module_name: str, detailed: bool = False) -> ModuleContent:
        return await self.module_content.generate(module_name, detailed)

    async def generate_flashcards(self, topic: str, num_cards: Optional[int] = None) -> FlashcardSet:
        return await self.flashcards.generate(topic, num_cards or self.settings.generation.default_flashcards)

    async def generate_quiz(self, topic: str, num_questions: int = 5, module_content: str = "") -> QuizSet:
        return await self.quiz.generate(topic, num_questions, module_content)

    async def generate_nudges(
        self,
        user: Optional[LearnerProfile],
        assessments: Sequence[Assessment] = (),
        path: Optional[PathProgress] = None,
    ) -> NudgeSet:
        return await self.nudges.generate(user, assessments, path)

    async def generate_learning_path(
        self,
        goal: str,
        path_type: PathType | str = PathType.TOPIC,
        detailed: bool = False,
    ) -> LearningPath:
        return await self.learning_path.generate(goal, path_type, detailed)

    async def generate_career_paths(self, profile: LearnerProfile) -> CareerPathSet:
        return await self.career_paths.generate(profile)

    async def generate_topic_elaboration(self, topic: str, module_name: str = "") -> TopicElaboration:
        return await self.elaboration.generate(topic, module_name)

    # --- Free text (raise GenerationError) ---

    async def generate_chat_response(self, message: str, context: Mapping[str, str]) -> str:
        return await self.chat.respond(message, context)

    async def generate_career_summary(
        self,
        user: LearnerProfile,
        career_path: PathProgress,
        assessments: Sequence[Assessment] = (),
    ) -> str:
        return await self.career_summary.write(user, career_path, assessments)

    # --- Diagnostics ---

    async def check_model_fallback(self) -> dict[str, object]:
        return await self.llm.check_model_fallback()

    async def can_use_advanced_models(self) -> bool:
        return await can_use_advanced_models(
            self.settings.llm,
            latency_threshold_ms=self.settings.generation.advanced_model_latency_ms,
        )
