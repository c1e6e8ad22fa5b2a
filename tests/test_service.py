"""LearningContentService wiring: one governor, one client, every content kind reachable."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock

import pytest

from learnforge.config import Settings
from learnforge.llm_client import ChatCompletionTransport
from learnforge.models import CareerLearningPath, LearnerProfile
from learnforge.service import LearningContentService
from learnforge.tools.rate_limiter import RateGovernor
from tests.conftest import ScriptedTransport, make_catalog, unavailable


@pytest.fixture
def service(transport: ScriptedTransport, governor: RateGovernor, no_sleep: AsyncMock) -> LearningContentService:
    return LearningContentService(
        settings=Settings(),
        transport=transport,
        catalog=make_catalog(),
        governor=governor,
        sleep=no_sleep,
    )


def test_default_wiring_uses_chat_transport() -> None:
    service = LearningContentService(settings=Settings())
    assert isinstance(service.llm.transport, ChatCompletionTransport)
    assert len(service.catalog) == 7
    assert service.governor.snapshot().limit == 25
    assert service.career_paths.deadline_seconds == 45.0


def test_generators_share_one_client(service: LearningContentService) -> None:
    assert service.quiz.llm is service.flashcards.llm is service.llm
    assert service.llm.governor is service.governor


@pytest.mark.asyncio
async def test_flashcard_count_defaults_from_settings(
    service: LearningContentService, transport: ScriptedTransport
) -> None:
    transport.script("model-c", json.dumps([{"id": 1, "frontHTML": "Q", "backHTML": "A"}]))
    cards = await service.generate_flashcards("Git")
    assert len(cards.cards) == 5


@pytest.mark.asyncio
async def test_every_attempt_counted_on_shared_governor(
    service: LearningContentService, transport: ScriptedTransport, governor: RateGovernor
) -> None:
    transport.script("model-b", unavailable("model-b"))
    await service.generate_quiz("Closures", 2)
    await service.generate_nudges(LearnerProfile(name="Sam"))
    assert governor.snapshot().count == len(transport.calls) == 3


@pytest.mark.asyncio
async def test_nudges_without_user(service: LearningContentService, transport: ScriptedTransport) -> None:
    assert (await service.generate_nudges(None)).to_wire() == []
    assert transport.calls == []


@pytest.mark.asyncio
async def test_learning_path_type_from_string(service: LearningContentService, transport: ScriptedTransport) -> None:
    transport.script("model-a", json.dumps([{"title": "Intro"}]))
    path = await service.generate_learning_path("Data Analyst", "career")
    assert isinstance(path, CareerLearningPath)


@pytest.mark.asyncio
async def test_check_model_fallback(service: LearningContentService, transport: ScriptedTransport) -> None:
    transport.script("invalid-model-name", unavailable("invalid-model-name", 404))
    assert (await service.check_model_fallback())["success"] is True


@pytest.mark.asyncio
async def test_can_use_advanced_models_passes_threshold(
    service: LearningContentService, monkeypatch: pytest.MonkeyPatch
) -> None:
    probe = AsyncMock(return_value=True)
    monkeypatch.setattr("learnforge.service.can_use_advanced_models", probe)
    assert await service.can_use_advanced_models() is True
    probe.assert_awaited_once_with(service.settings.llm, latency_threshold_ms=300.0)
