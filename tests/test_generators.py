"""Content generators: model choice, normalization, outer retry, deterministic fallbacks."""

from __future__ import annotations

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from structlog.testing import capture_logs

from learnforge.catalog import ModelCatalog
from learnforge.config import RetryConfig
from learnforge.errors import GenerationError
from learnforge.generators.career_paths import CareerPathGenerator
from learnforge.generators.chat import CareerSummaryWriter, ChatResponder
from learnforge.generators.elaboration import ElaborationGenerator
from learnforge.generators.flashcards import FlashcardGenerator
from learnforge.generators.learning_path import LearningPathGenerator
from learnforge.generators.module_content import ModuleContentGenerator
from learnforge.generators.nudges import NudgeGenerator
from learnforge.generators.quiz import QuizGenerator
from learnforge.llm_client import CompletionClient
from learnforge.models import (
    Assessment,
    CareerLearningPath,
    ContentKind,
    LearnerProfile,
    PathProgress,
    PathType,
    TopicLearningPath,
)
from learnforge.prompts.templates import CHAT_TOPIC_KEY
from learnforge.tools.rate_limiter import RateGovernor
from learnforge.validation import validate
from tests.conftest import ScriptedTransport, unavailable

LONG = "Washes are thin layers of pigment spread evenly across damp paper to build up tone gradually."

MODULE_JSON = json.dumps(
    {
        "title": "Watercolor Painting",
        "type": "general",
        "sections": [{"title": "Washes", "content": LONG, "keyPoints": ["Work wet on wet"]}],
    }
)

QUESTION = {
    "question": "What does a closure capture?",
    "answers": ["Variables from its scope", "Nothing", "Only globals", "The DOM"],
    "correctAnswer": ["Variables from its scope"],
    "explanation": "Closures keep references to their lexical environment.",
    "point": 10,
    "questionType": "single",
}

PROFILE = LearnerProfile(
    name="Sam",
    careerGoal="Data Science",
    skills=["python"],
    interests=["statistics"],
    quizAnswers={"q1": "A", "q2": "A", "q3": "B"},
)


def _career_path(name: str) -> dict:
    return {
        "pathName": name,
        "description": "desc",
        "difficulty": "beginner",
        "estimatedTimeToComplete": "3 months",
        "relevanceScore": 90,
        "modules": [{"title": "M1", "description": "d", "estimatedHours": 8, "keySkills": ["s"]}],
    }


@pytest.fixture
def all_down(transport: ScriptedTransport) -> ScriptedTransport:
    transport.default = unavailable("any")
    return transport


class TestModuleContent:
    @pytest.mark.asyncio
    async def test_generated_on_light_model(self, client: CompletionClient, transport: ScriptedTransport) -> None:
        transport.script("model-b", MODULE_JSON)
        content = await ModuleContentGenerator(client).generate("Watercolor Painting")
        assert content.is_fallback is False
        assert content.sections[0].title == "Washes"
        assert transport.models_called == ["model-b"]

    @pytest.mark.asyncio
    async def test_technical_topic_uses_most_capable(
        self, client: CompletionClient, transport: ScriptedTransport
    ) -> None:
        transport.script("model-a", MODULE_JSON)
        await ModuleContentGenerator(client).generate("Introduction to React")
        assert transport.models_called == ["model-a"]
        assert "javascript" in transport.calls[0][0]

    @pytest.mark.asyncio
    async def test_outer_retry_then_fallback(
        self, client: CompletionClient, all_down: ScriptedTransport, retry_config: RetryConfig, no_sleep: AsyncMock
    ) -> None:
        gen = ModuleContentGenerator(client, retry_config, sleep=no_sleep)
        with capture_logs() as logs:
            content = await gen.generate("Watercolor Painting", detailed=True)
        assert content.is_fallback is True
        assert len(content.sections) == 4
        assert validate(ContentKind.MODULE_CONTENT, content)
        # Two full sweeps over three models
        assert len(all_down.calls) == 6
        assert no_sleep.await_count == 1
        served = [e for e in logs if e["event"] == "fallback_content_served"]
        assert served[0]["kind"] == "module_content"
        assert served[0]["reason"] == "AllModelsFailedError"

    @pytest.mark.asyncio
    async def test_invalid_content_falls_back(
        self, client: CompletionClient, transport: ScriptedTransport, retry_config: RetryConfig, no_sleep: AsyncMock
    ) -> None:
        transport.always("model-b", json.dumps({"title": "x", "sections": [{"title": "a", "content": "short"}]}))
        with capture_logs() as logs:
            content = await ModuleContentGenerator(client, retry_config, sleep=no_sleep).generate("Watercolor Painting")
        assert content.is_fallback is True
        assert len([e for e in logs if e["event"] == "content_validation_failed"]) == 2

    @pytest.mark.asyncio
    async def test_retry_recovers_on_second_attempt(
        self, client: CompletionClient, transport: ScriptedTransport, retry_config: RetryConfig, no_sleep: AsyncMock
    ) -> None:
        transport.script("model-b", "[]", MODULE_JSON)
        content = await ModuleContentGenerator(client, retry_config, sleep=no_sleep).generate("Watercolor Painting")
        assert content.is_fallback is False
        assert transport.models_called == ["model-b", "model-b"]

    @pytest.mark.asyncio
    async def test_blank_name_rejected(self, client: CompletionClient) -> None:
        with pytest.raises(ValueError):
            await ModuleContentGenerator(client).generate("   ")


class TestFlashcards:
    @pytest.mark.asyncio
    async def test_short_set_padded(self, client: CompletionClient, transport: ScriptedTransport) -> None:
        cards = [{"id": i, "frontHTML": f"Q{i}", "backHTML": f"A{i}"} for i in (1, 2, 3)]
        transport.script("model-c", "Here you go:\n```json\n" + json.dumps(cards) + "\n```")
        result = await FlashcardGenerator(client).generate("Git", 5)
        assert result.is_fallback is False
        assert [c.front_html for c in result.cards] == ["Q1", "Q2", "Q3", "Question about Git 4?", "Question about Git 5?"]
        assert transport.models_called == ["model-c"]

    @pytest.mark.asyncio
    async def test_wrong_shape_served_fallback_without_retry(
        self, client: CompletionClient, transport: ScriptedTransport
    ) -> None:
        transport.always("model-c", '{"message": "I prefer not to"}')
        result = await FlashcardGenerator(client).generate("Git", 3)
        assert result.is_fallback is True
        assert len(result.cards) == 3
        assert len(transport.calls) == 1


class TestQuiz:
    @pytest.mark.asyncio
    async def test_module_prefix_cleaned_for_prompt(self, client: CompletionClient, transport: ScriptedTransport) -> None:
        transport.script("model-b", json.dumps({"topic": "Closures", "questions": [QUESTION]}))
        quiz = await QuizGenerator(client).generate("Module 1: Closures", 1)
        assert quiz.topic == "Module 1: Closures"
        assert quiz.is_fallback is False
        assert 'Create a quiz about "Closures"' in transport.calls[0][0]

    @pytest.mark.asyncio
    async def test_all_models_down_never_raises(self, client: CompletionClient, all_down: ScriptedTransport) -> None:
        quiz = await QuizGenerator(client).generate("Closures", 5)
        assert quiz.is_fallback is True
        assert len(quiz.questions) == 5
        assert validate(ContentKind.QUIZ, quiz)
        assert len(all_down.calls) == 3

    @pytest.mark.asyncio
    async def test_long_quiz_over_content_uses_most_capable(
        self, client: CompletionClient, transport: ScriptedTransport
    ) -> None:
        content = "Closures capture variables from the enclosing scope and keep them alive. " * 2
        transport.script("model-a", json.dumps({"questions": [QUESTION] * 8}))
        quiz = await QuizGenerator(client).generate("Closures", 8, module_content=content)
        assert transport.models_called == ["model-a"]
        assert len(quiz.questions) == 8


class TestNudges:
    @pytest.mark.asyncio
    async def test_no_user_no_call(self, client: CompletionClient, transport: ScriptedTransport) -> None:
        result = await NudgeGenerator(client).generate(None)
        assert result.nudges == []
        assert transport.calls == []

    @pytest.mark.asyncio
    async def test_generated(self, client: CompletionClient, transport: ScriptedTransport) -> None:
        transport.script("model-c", json.dumps([{"type": "tip", "text": "Revise closures", "icon": "bulb"}]))
        result = await NudgeGenerator(client).generate(
            PROFILE,
            [Assessment(score=7, accuracy=70)],
            PathProgress(careerName="Data Science", progress=40),
        )
        assert result.to_wire() == [{"type": "tip", "text": "Revise closures", "icon": "bulb"}]
        assert "Score: 7, Accuracy: 70%" in transport.calls[0][0]

    @pytest.mark.asyncio
    async def test_failure_serves_canned_nudges(self, client: CompletionClient, all_down: ScriptedTransport) -> None:
        result = await NudgeGenerator(client).generate(PROFILE)
        assert result.is_fallback is True
        assert len(result.nudges) == 3


class TestLearningPath:
    @pytest.mark.asyncio
    async def test_wrong_length_retried(
        self, client: CompletionClient, transport: ScriptedTransport, retry_config: RetryConfig, no_sleep: AsyncMock
    ) -> None:
        modules = [f"Module {i}: Step {i}" for i in range(1, 6)]
        transport.script("model-b", json.dumps(modules[:4]), json.dumps(modules))
        path = await LearningPathGenerator(client, retry_config, sleep=no_sleep).generate("Watercolor Painting")
        assert isinstance(path, TopicLearningPath)
        assert path.modules == modules
        no_sleep.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_career_outline(self, client: CompletionClient, transport: ScriptedTransport) -> None:
        transport.script("model-a", json.dumps([{"title": "Intro", "description": "d", "content": "c"}]))
        path = await LearningPathGenerator(client).generate("Data Analyst", PathType.CAREER)
        assert isinstance(path, CareerLearningPath)
        assert path.modules[0].estimated_time == "1-2 hours"

    @pytest.mark.asyncio
    async def test_fallback_per_path_type(
        self, client: CompletionClient, all_down: ScriptedTransport, retry_config: RetryConfig, no_sleep: AsyncMock
    ) -> None:
        gen = LearningPathGenerator(client, retry_config, sleep=no_sleep)
        topic = await gen.generate("Rust", "topic")
        career = await gen.generate("Rust", "career")
        assert topic.is_fallback and isinstance(topic, TopicLearningPath)
        assert career.is_fallback and isinstance(career, CareerLearningPath)
        assert validate(ContentKind.LEARNING_PATH, topic)
        assert validate(ContentKind.CAREER_LEARNING_PATH, career)


class _SlowTransport:
    async def complete(self, prompt: str, model: str) -> str:
        await asyncio.sleep(1.0)
        return "[]"


class TestCareerPaths:
    @pytest.mark.asyncio
    async def test_generated_on_most_capable(self, client: CompletionClient, transport: ScriptedTransport) -> None:
        transport.script("model-a", json.dumps([_career_path(f"P{i}") for i in range(4)]))
        result = await CareerPathGenerator(client).generate(PROFILE)
        assert result.is_fallback is False
        assert [p.path_name for p in result.paths] == ["P0", "P1", "P2", "P3"]
        assert transport.models_called == ["model-a"]
        assert "Technical Interest: 67%" in transport.calls[0][0]

    @pytest.mark.asyncio
    async def test_unusable_answer_gets_quiz_themed_paths(
        self, client: CompletionClient, transport: ScriptedTransport, retry_config: RetryConfig, no_sleep: AsyncMock
    ) -> None:
        transport.always("model-a", "[]")
        result = await CareerPathGenerator(client, retry_config, sleep=no_sleep).generate(PROFILE)
        assert result.is_fallback is True
        assert result.paths[0].path_name == "Data Science through Technical Development"

    @pytest.mark.asyncio
    async def test_no_answer_gets_simple_paths(
        self, client: CompletionClient, all_down: ScriptedTransport, retry_config: RetryConfig, no_sleep: AsyncMock
    ) -> None:
        result = await CareerPathGenerator(client, retry_config, sleep=no_sleep).generate(PROFILE)
        assert result.paths[0].path_name == "Getting Started with Data Science"
        assert validate(ContentKind.CAREER_PATHS, result)

    @pytest.mark.asyncio
    async def test_deadline(self, small_catalog: ModelCatalog, governor: RateGovernor, no_sleep: AsyncMock) -> None:
        client = CompletionClient(_SlowTransport(), small_catalog, governor)
        gen = CareerPathGenerator(client, sleep=no_sleep, deadline_seconds=0.05)
        with capture_logs() as logs:
            result = await gen.generate(PROFILE)
        assert result.paths[0].path_name == "Getting Started with Data Science"
        assert any(e["event"] == "career_paths_deadline_exceeded" for e in logs)


class TestElaboration:
    def test_model_sequence_fastest_first(self, client: CompletionClient) -> None:
        assert ElaborationGenerator(client).model_sequence() == ["model-c", "model-a", "model-b"]

    @pytest.mark.asyncio
    async def test_moves_to_next_model_on_bad_output(
        self, client: CompletionClient, transport: ScriptedTransport
    ) -> None:
        transport.script("model-c", "[1, 2]")
        transport.script("model-a", json.dumps({"title": "Closures", "sections": [{"title": "Scope", "content": "c"}]}))
        result = await ElaborationGenerator(client).generate("Closures", module_name="JavaScript Functions")
        assert result.is_fallback is False
        assert result.model_used == "model-a"
        assert transport.models_called == ["model-c", "model-a"]
        assert '"JavaScript Functions: Closures"' in transport.calls[0][0]

    @pytest.mark.asyncio
    async def test_every_model_failing_serves_fallback(
        self, client: CompletionClient, transport: ScriptedTransport
    ) -> None:
        transport.default = "[1, 2]"
        result = await ElaborationGenerator(client).generate("Closures")
        assert result.is_fallback is True
        assert result.model_used == "Fallback Content"
        assert transport.models_called == ["model-c", "model-a", "model-b"]


class TestFreeText:
    @pytest.mark.asyncio
    async def test_chat_on_fastest_model(self, client: CompletionClient, transport: ScriptedTransport) -> None:
        transport.script("model-c", "Closures capture scope.")
        reply = await ChatResponder(client).respond("What is a closure?", {CHAT_TOPIC_KEY: "JavaScript"})
        assert reply == "Closures capture scope."
        assert "Topic: JavaScript" in transport.calls[0][0]

    @pytest.mark.asyncio
    async def test_chat_failure_raises(self, client: CompletionClient, all_down: ScriptedTransport) -> None:
        with pytest.raises(GenerationError, match="Failed to generate response"):
            await ChatResponder(client).respond("hi", {})

    @pytest.mark.asyncio
    async def test_career_summary(self, client: CompletionClient, transport: ScriptedTransport) -> None:
        transport.script("model-a", "You are doing great, Sam.")
        path = PathProgress(careerName="Data Science", modules=["a", "b"], completedModules=["a"], progress=50)
        summary = await CareerSummaryWriter(client).write(PROFILE, path, [Assessment(moduleName="a", score=8)])
        assert summary == "You are doing great, Sam."
        assert "- a: Scored 8/10." in transport.calls[0][0]

    @pytest.mark.asyncio
    async def test_career_summary_failure_raises(self, client: CompletionClient, all_down: ScriptedTransport) -> None:
        with pytest.raises(GenerationError, match="career summary"):
            await CareerSummaryWriter(client).write(PROFILE, PathProgress())
