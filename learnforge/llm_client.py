"""
Completion client with multi-model fallback.

Turns one logical "complete this prompt" request into a sweep over the model
catalog: throttle if the shared rate window is nearly full, try the preferred
model, then every other catalog model in catalog order, one attempt each and
with no delay in between. Only when the whole chain fails does the caller see
an error, and then always AllModelsFailedError.

Design decisions:
  - The upstream is an OpenAI-compatible chat completions endpoint reached
    through LangChain's ChatOpenAI; SDK-level retries are disabled so this
    module is the only place that decides what happens after a failure
  - Every non-2xx status and every timeout is treated the same way (next model)
  - Each attempt is counted by the rate governor and logged as `llm_attempt`
  - Repeating a whole sweep is the outer retry wrapper's job, not this one's
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Optional, Protocol

import httpx
import structlog
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage
from langchain_openai import ChatOpenAI

from learnforge.catalog import ModelCatalog
from learnforge.config import LLMConfig
from learnforge.errors import AllModelsFailedError, UpstreamError
from learnforge.models import CompletionRequest
from learnforge.observability import metrics as obs_metrics
from learnforge.prompts.templates import FALLBACK_CHECK_PROMPT
from learnforge.tools.rate_limiter import RateGovernor

logger = structlog.get_logger()

# Statuses the upstream is known to return under load; all other non-2xx fall back the same way
RATE_LIMIT_STATUS_CODES = frozenset({429, 500, 502, 503, 504})

# Deliberately unknown model id used by the fallback self-test
INVALID_MODEL_ID = "invalid-model-name"


def _status_from(exc: BaseException) -> Optional[int]:
    """Best-effort HTTP status extraction from SDK / httpx exceptions."""
    for candidate in (exc, getattr(exc, "response", None)):
        status = getattr(candidate, "status_code", None)
        if isinstance(status, int):
            return status
    status = getattr(exc, "status", None)
    return status if isinstance(status, int) else None


def _is_timeout(exc: BaseException) -> bool:
    return isinstance(exc, TimeoutError) or "timeout" in type(exc).__name__.lower()


def to_upstream_error(model: str, exc: BaseException) -> UpstreamError:
    if isinstance(exc, UpstreamError):
        return exc
    message = "request timed out" if _is_timeout(exc) else str(exc) or type(exc).__name__
    return UpstreamError(model=model, message=message, status=_status_from(exc))


class CompletionTransport(Protocol):
    """Single upstream call: one prompt, one model, text back or an exception."""

    async def complete(self, prompt: str, model: str) -> str: ...


class ChatCompletionTransport:
    """ChatOpenAI-backed transport; one chat model instance per model id, created on first use."""

    def __init__(self, config: LLMConfig) -> None:
        self._config = config
        self._models: dict[str, BaseChatModel] = {}
        key = config.api_key.strip()
        logger.info(
            "llm_transport_initialized",
            base_url=config.api_base,
            timeout_seconds=config.timeout_seconds,
            key_suffix=f"...{key[-4:]}" if key else None,
        )

    def _model(self, model: str) -> BaseChatModel:
        if model not in self._models:
            self._models[model] = ChatOpenAI(
                model=model,
                api_key=self._config.api_key or "missing-api-key",
                base_url=self._config.api_base.rstrip("/"),
                temperature=self._config.temperature,
                max_tokens=self._config.max_tokens,
                top_p=self._config.top_p,
                timeout=self._config.timeout_seconds,
                max_retries=0,
            )
        return self._models[model]

    async def complete(self, prompt: str, model: str) -> str:
        try:
            response = await self._model(model).ainvoke([HumanMessage(content=prompt)])
        except Exception as e:
            raise to_upstream_error(model, e) from e
        content = response.content if hasattr(response, "content") else str(response)
        return content if isinstance(content, str) else str(content)


class CompletionClient:
    """
    Fallback-sweep orchestrator over a model catalog.

    - complete_with_fallback never raises anything but AllModelsFailedError.
    - The rate governor is shared with every other client of the same root.
    """

    def __init__(
        self,
        transport: CompletionTransport,
        catalog: ModelCatalog,
        governor: RateGovernor,
        fail_fast_on_auth: bool = False,
    ) -> None:
        self.transport = transport
        self.catalog = catalog
        self.governor = governor
        self.fail_fast_on_auth = fail_fast_on_auth

    async def complete_with_fallback(self, prompt: str, preferred_model: Optional[str] = None) -> str:
        """
        Complete `prompt`, starting with `preferred_model` (default: most capable).

        Raises:
            AllModelsFailedError: every model in the chain failed; carries the last error.
        """
        preferred = preferred_model or self.catalog.most_capable
        chain = self.catalog.fallback_chain(preferred)
        request = CompletionRequest(prompt=prompt, preferred_model=preferred, fallback_queue=chain)

        await self.governor.throttle()

        attempted: list[str] = []
        last_error: Optional[UpstreamError] = None
        model = request.next_model()
        while model is not None:
            if attempted:
                logger.warning(
                    "llm_fallback_triggered",
                    primary_model=attempted[-1],
                    fallback_model=model,
                    status=last_error.status if last_error else None,
                    attempt=request.attempt,
                )
                obs_metrics.record_llm_fallback(primary=attempted[-1], fallback=model)
            attempted.append(model)
            try:
                return await self._attempt(prompt, model)
            except UpstreamError as e:
                last_error = e
                if self.fail_fast_on_auth and e.is_auth_error:
                    logger.error("llm_auth_failed", model=model, status=e.status)
                    break
            model = request.next_model()

        logger.error(
            "llm_all_models_failed",
            attempted=len(attempted),
            preferred_model=preferred,
            error=last_error.message[:200] if last_error else "Unknown error",
        )
        obs_metrics.record_sweep_exhausted()
        raise AllModelsFailedError(last_error, attempted)

    async def _attempt(self, prompt: str, model: str) -> str:
        """One upstream call; counted, timed and logged whatever the outcome."""
        self.governor.record_attempt()
        try:
            async with obs_metrics.track_llm_call(model=model):
                try:
                    text = await self.transport.complete(prompt, model)
                except Exception as e:
                    raise to_upstream_error(model, e) from e
        except UpstreamError as e:
            logger.warning(
                "llm_attempt",
                timestamp=datetime.now(timezone.utc).isoformat(),
                model=model,
                success=False,
                error=e.as_log_info(),
                transient=e.status in RATE_LIMIT_STATUS_CODES or e.status is None,
            )
            raise
        logger.info(
            "llm_attempt",
            timestamp=datetime.now(timezone.utc).isoformat(),
            model=model,
            success=True,
            error=None,
        )
        return text

    async def check_model_fallback(self) -> dict[str, object]:
        """Self-test: an unknown preferred model must still be answered by the rest of the chain."""
        try:
            result = await self.complete_with_fallback(FALLBACK_CHECK_PROMPT, INVALID_MODEL_ID)
        except AllModelsFailedError as e:
            logger.error("fallback_check_failed", error=str(e))
            return {"success": False, "message": str(e)}
        logger.info("fallback_check_passed", preview=result[:50])
        return {"success": True, "message": "Fallback mechanism working correctly"}


async def can_use_advanced_models(
    config: LLMConfig,
    latency_threshold_ms: float = 300.0,
    client: Optional[httpx.AsyncClient] = None,
) -> bool:
    """HEAD the models endpoint; True only on a 2xx answered within the latency threshold."""
    url = f"{config.api_base.rstrip('/')}/models"
    headers = {"Authorization": f"Bearer {config.api_key}"}
    owns_client = client is None
    http = client or httpx.AsyncClient(timeout=config.timeout_seconds)
    try:
        start = time.perf_counter()
        response = await http.head(url, headers=headers)
        latency_ms = (time.perf_counter() - start) * 1000
    except httpx.HTTPError as e:
        logger.warning("connectivity_probe_failed", url=url, error=str(e))
        return False
    finally:
        if owns_client:
            await http.aclose()
    ok = response.is_success and latency_ms < latency_threshold_ms
    logger.info(
        "connectivity_probe",
        status=response.status_code,
        latency_ms=round(latency_ms, 1),
        advanced_models=ok,
    )
    return ok
