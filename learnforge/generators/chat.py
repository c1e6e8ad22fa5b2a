"""
Free-text generators without a deterministic fallback.

ChatResponder answers a tutoring question; CareerSummaryWriter writes a
narrative progress report. Both return plain text and surface failure to the
caller as GenerationError.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

import structlog

from learnforge.errors import AllModelsFailedError, GenerationError
from learnforge.llm_client import CompletionClient
from learnforge.models import Assessment, Complexity, LearnerProfile, PathProgress
from learnforge.prompts.templates import (
    CAREER_SUMMARY_TEMPLATE,
    CHAT_FOCUS_KEY,
    CHAT_LEVEL_KEY,
    CHAT_TEMPLATE,
    CHAT_TOPIC_KEY,
)

logger = structlog.get_logger()


class ChatResponder:
    """Context-aware tutoring chat on the fastest suitable model."""

    def __init__(self, llm_client: CompletionClient) -> None:
        self.llm = llm_client

    async def respond(self, message: str, context: Mapping[str, str]) -> str:
        prompt = CHAT_TEMPLATE.format(
            topic=context.get(CHAT_TOPIC_KEY) or "General",
            level=context.get(CHAT_LEVEL_KEY) or "Intermediate",
            focus=context.get(CHAT_FOCUS_KEY) or "General understanding",
            message=message,
        )
        model = self.llm.catalog.select_model("chat", "general", Complexity.MEDIUM, interactive=True)
        try:
            return await self.llm.complete_with_fallback(prompt, model)
        except AllModelsFailedError as e:
            logger.error("chat_generation_error", error=str(e))
            raise GenerationError("Failed to generate response") from e


class CareerSummaryWriter:
    """Long-form coaching report; always uses the most capable model."""

    def __init__(self, llm_client: CompletionClient) -> None:
        self.llm = llm_client

    def build_prompt(self, user: LearnerProfile, career_path: PathProgress, assessments: Sequence[Assessment]) -> str:
        return CAREER_SUMMARY_TEMPLATE.format(
            name=user.name,
            career_name=career_path.career_name,
            interests=", ".join(user.interests) or "Not specified",
            skills=", ".join(user.skills) or "Not specified",
            total_modules=len(career_path.modules),
            completed_modules=len(career_path.completed_modules),
            progress=f"{career_path.progress:g}",
            recommended_skills=", ".join(career_path.recommended_skills) or "None listed",
            assessments="\n".join(f"- {a.module_name}: Scored {a.score:g}/10. {a.feedback}" for a in assessments)
            or "No assessments yet",
        )

    async def write(
        self,
        user: LearnerProfile,
        career_path: PathProgress,
        assessments: Sequence[Assessment] = (),
    ) -> str:
        prompt = self.build_prompt(user, career_path, assessments)
        try:
            return await self.llm.complete_with_fallback(prompt, self.llm.catalog.most_capable)
        except AllModelsFailedError as e:
            logger.error("career_summary_generation_error", user=user.name, error=str(e))
            raise GenerationError("Failed to generate career summary") from e
