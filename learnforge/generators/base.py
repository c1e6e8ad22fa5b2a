"""
Shared plumbing for content generators.

A generation is: fallback sweep -> recovery -> validation. Kinds with outer
retry enabled re-drive that whole sequence with backoff; whatever still fails
is replaced by the kind's deterministic fallback at the call site.
"""

from __future__ import annotations

import random
from collections.abc import Awaitable, Callable
from typing import Any, Optional, TypeVar

import structlog

from learnforge.config import RetryConfig
from learnforge.errors import ValidationError
from learnforge.llm_client import CompletionClient
from learnforge.models import ContentKind
from learnforge.observability import metrics as obs_metrics
from learnforge.recovery import Shape, require_structured
from learnforge.tools.backoff import retryable

logger = structlog.get_logger()
T = TypeVar("T")
C = TypeVar("C")

Sleep = Callable[[float], Awaitable[None]]


class ContentGenerator:
    """Base for generators that return validated content or a fallback."""

    kind: ContentKind
    shape: Shape = "object"

    def __init__(
        self,
        llm_client: CompletionClient,
        retry_config: Optional[RetryConfig] = None,
        sleep: Optional[Sleep] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.llm = llm_client
        self.retry = retry_config or RetryConfig()
        self._sleep = sleep
        self._rng = rng

    @property
    def catalog(self):
        return self.llm.catalog

    async def _structured(self, prompt: str, model: str, parse: Callable[[Any], T]) -> T:
        """One pass: sweep, recover, validate. Raises AllModelsFailed/Unrecoverable/ValidationError."""
        text = await self.llm.complete_with_fallback(prompt, model)
        value = require_structured(text, self.shape)
        try:
            return parse(value)
        except ValidationError as e:
            logger.warning("content_validation_failed", kind=e.kind, reason=e.reason, model=model)
            raise

    async def _with_retry(self, produce: Callable[[], Awaitable[T]]) -> T:
        if not self.retry.outer_retry_enabled(self.kind.value):
            return await produce()
        return await retryable(
            produce,
            self.retry.max_attempts,
            base=self.retry.base_delay_seconds,
            max_delay=self.retry.max_delay_seconds,
            sleep=self._sleep,
            rng=self._rng,
            label=self.kind.value,
        )

    def _fallback(self, content: C, error: BaseException, **context: Any) -> C:
        logger.warning(
            "fallback_content_served",
            kind=self.kind.value,
            reason=type(error).__name__,
            error=str(error)[:200],
            **context,
        )
        obs_metrics.record_fallback_content(self.kind.value, type(error).__name__)
        return content
