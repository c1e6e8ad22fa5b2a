"""
Prometheus metrics for the completion layer.

All metrics are no-op when observability.metrics_enabled is False.
Exposes track_llm_call, record_llm_fallback, record_throttle,
record_recovery_stage, record_fallback_content, start_server.
"""

from __future__ import annotations

import contextlib
import threading
import time
from typing import Any

from prometheus_client import (
    Counter,
    Histogram,
    start_http_server as prometheus_start_http_server,
)


def _enabled() -> bool:
    from learnforge.config import get_settings

    return bool(get_settings().observability.metrics_enabled)


# Lazy registry: only create metrics when enabled and first used
_metrics_created = False


def _ensure_metrics() -> bool:
    global _metrics_created
    if _metrics_created or not _enabled():
        return _metrics_created
    _create_metrics()
    _metrics_created = True
    return True


def _create_metrics() -> None:
    """Create all Prometheus metrics (called once when enabled)."""
    _llm_duration = Histogram(
        "llm_call_duration_seconds",
        "Upstream completion call latency",
        ["model", "outcome"],
        buckets=[0.25, 0.5, 1, 2, 5, 10, 30],
    )
    _llm_errors = Counter(
        "llm_call_errors_total",
        "Upstream completion call failures",
        ["model", "status"],
    )
    _llm_fallback = Counter(
        "llm_call_fallback_total",
        "Fallback to the next model in the chain",
        ["primary_model", "fallback_model"],
    )
    _llm_sweep_exhausted = Counter(
        "llm_sweep_exhausted_total",
        "Logical requests where every model failed",
        [],
    )
    _throttle_wait = Histogram(
        "rate_limit_throttle_seconds",
        "Time spent sleeping in the rate governor",
        [],
        buckets=[1, 5, 15, 30, 60],
    )
    _recovery_stage = Counter(
        "recovery_stage_total",
        "Recovery pipeline outcome by terminating stage",
        ["stage", "shape"],
    )
    _fallback_content = Counter(
        "fallback_content_served_total",
        "Deterministic fallback content served instead of generated content",
        ["kind", "reason"],
    )

    _registry = {
        "llm_duration": _llm_duration,
        "llm_errors": _llm_errors,
        "llm_fallback": _llm_fallback,
        "llm_sweep_exhausted": _llm_sweep_exhausted,
        "throttle_wait": _throttle_wait,
        "recovery_stage": _recovery_stage,
        "fallback_content": _fallback_content,
    }
    setattr(_MetricsCollector, "_registry", _registry)


class _MetricsCollector:
    """Collector that delegates to Prometheus when enabled, no-op otherwise."""

    _registry: dict[str, Any] = {}

    def _get(self, name: str) -> Any:
        _ensure_metrics()
        return self._registry.get(name)

    # --- LLM ---
    @contextlib.asynccontextmanager
    async def track_llm_call(self, model: str = ""):
        m = self._get("llm_duration")
        start = time.perf_counter()
        outcome = "success"
        try:
            yield
        except Exception as e:
            outcome = "error"
            err = self._get("llm_errors")
            if err:
                err.labels(
                    model=model or "unknown",
                    status=str(getattr(e, "status", None) or type(e).__name__),
                ).inc()
            raise
        finally:
            if m:
                m.labels(model=model or "unknown", outcome=outcome).observe(time.perf_counter() - start)

    def record_llm_fallback(self, primary: str, fallback: str) -> None:
        c = self._get("llm_fallback")
        if c:
            c.labels(primary_model=primary or "unknown", fallback_model=fallback or "unknown").inc()

    def record_sweep_exhausted(self) -> None:
        c = self._get("llm_sweep_exhausted")
        if c:
            c.inc()

    # --- Rate governor ---
    def record_throttle(self, wait_seconds: float) -> None:
        h = self._get("throttle_wait")
        if h and wait_seconds >= 0:
            h.observe(wait_seconds)

    # --- Recovery / content ---
    def record_recovery_stage(self, stage: str, shape: str) -> None:
        c = self._get("recovery_stage")
        if c:
            c.labels(stage=(stage or "unknown")[:32], shape=shape or "unknown").inc()

    def record_fallback_content(self, kind: str, reason: str = "") -> None:
        c = self._get("fallback_content")
        if c:
            c.labels(kind=kind or "unknown", reason=(reason or "unknown")[:48]).inc()

    def start_server(self, port: int = 8000) -> None:
        if not _enabled():
            return
        _ensure_metrics()

        def run() -> None:
            prometheus_start_http_server(port, addr="0.0.0.0")

        t = threading.Thread(target=run, daemon=True)
        t.start()


metrics = _MetricsCollector()
