"""Shared pytest fixtures for learnforge tests. No network: the transport is scripted."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Union
from unittest.mock import AsyncMock

import pytest

from learnforge.catalog import ModelCatalog
from learnforge.config import RetryConfig
from learnforge.errors import UpstreamError
from learnforge.llm_client import CompletionClient
from learnforge.models import Capability, ModelDescriptor, Speed
from learnforge.tools.rate_limiter import RateGovernor

Reply = Union[str, BaseException]


class FakeClock:
    """Monotonic clock under test control."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ScriptedTransport:
    """
    CompletionTransport double. Each model has a queue of replies (text or an
    exception to raise); when a queue runs dry the model's default applies.
    """

    def __init__(self, default: Reply = "{}") -> None:
        self.default = default
        self.scripts: dict[str, list[Reply]] = {}
        self.defaults: dict[str, Reply] = {}
        self.calls: list[tuple[str, str]] = []

    def script(self, model: str, *replies: Reply) -> "ScriptedTransport":
        self.scripts.setdefault(model, []).extend(replies)
        return self

    def always(self, model: str, reply: Reply) -> "ScriptedTransport":
        self.defaults[model] = reply
        return self

    @property
    def models_called(self) -> list[str]:
        return [m for _, m in self.calls]

    async def complete(self, prompt: str, model: str) -> str:
        self.calls.append((prompt, model))
        queue = self.scripts.get(model)
        reply = queue.pop(0) if queue else self.defaults.get(model, self.default)
        if isinstance(reply, BaseException):
            raise reply
        return reply


def unavailable(model: str, status: int = 503) -> UpstreamError:
    return UpstreamError(model=model, message="Service Unavailable", status=status)


def make_catalog(ids: Iterable[str] = ("model-a", "model-b", "model-c")) -> ModelCatalog:
    ids = list(ids)
    models = [
        ModelDescriptor(id=i, context_window=8192, capability=Capability.MEDIUM, speed=Speed.FAST) for i in ids
    ]
    roles = {"fastest": ids[-1], "most_capable": ids[0], "light_general": ids[1 % len(ids)]}
    return ModelCatalog(models=models, roles=roles, elaboration_chain=ids[:2])


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def no_sleep() -> AsyncMock:
    return AsyncMock(return_value=None)


@pytest.fixture
def governor(clock: FakeClock, no_sleep: AsyncMock) -> RateGovernor:
    return RateGovernor(limit=25, window_seconds=60.0, throttle_ratio=0.9, clock=clock, sleep=no_sleep)


@pytest.fixture
def small_catalog() -> ModelCatalog:
    return make_catalog()


@pytest.fixture
def transport() -> ScriptedTransport:
    return ScriptedTransport()


@pytest.fixture
def client(transport: ScriptedTransport, small_catalog: ModelCatalog, governor: RateGovernor) -> CompletionClient:
    return CompletionClient(transport=transport, catalog=small_catalog, governor=governor)


@pytest.fixture
def retry_config() -> RetryConfig:
    """Defaults except two attempts total, so outer retry stays cheap to exercise."""
    return RetryConfig(LLM_MAX_RETRIES=1)
