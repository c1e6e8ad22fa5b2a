"""
structlog configuration for the CLI and scripts.

Library modules only call structlog.get_logger(); configure_logging() decides
how events are rendered: level filter from settings, ISO timestamps, and a
Rich console renderer that highlights fallbacks and throttling.
"""

from __future__ import annotations

import logging

import structlog
from rich.console import Console
from rich.theme import Theme

_CUSTOM_THEME = Theme({
    "log.info":        "dim white",
    "log.warning":     "bold #f59e0b",
    "log.error":       "bold #dc2626",
    "log.debug":       "dim #64748b",
    "primary":         "#ea580c",
    "fallback.banner": "bold yellow on #ea580c",
})

console = Console(theme=_CUSTOM_THEME, highlight=False, stderr=True)


class _RichStructlogRenderer:
    """structlog processor that renders log lines via Rich."""

    _SKIP_KEYS = frozenset({"event", "level", "timestamp", "_record"})
    _ACCENT_KEYS = frozenset({"model", "fallback_model", "kind", "attempt", "wait_seconds", "stage"})

    def __call__(self, logger_: object, method: str, event_dict: dict) -> str:  # noqa: ARG002
        event = event_dict.get("event", "")
        level = event_dict.get("level", "info").lower()

        # ── Model fallback highlight ─────────────────────────────────────────
        if event == "llm_fallback_triggered":
            primary_m = event_dict.get("primary_model", "?")
            fallback_m = event_dict.get("fallback_model", "?")
            status = event_dict.get("status") or "error"
            console.print(
                f"  [bold #f59e0b]╔══ MODEL FALLBACK ══╗[/bold #f59e0b]  "
                f"[#64748b]{primary_m}[/#64748b] [bold #ea580c]→[/bold #ea580c] "
                f"[bold #0ea5e9]{fallback_m}[/bold #0ea5e9]  [bold #dc2626][{status}][/bold #dc2626]"
            )
            raise structlog.DropEvent()

        # ── Deterministic content served ─────────────────────────────────────
        if event == "fallback_content_served":
            console.print(
                f"  [fallback.banner] FALLBACK CONTENT [/fallback.banner]  "
                f"[#94a3b8]kind[/#94a3b8]=[#ea580c]{event_dict.get('kind', '?')}[/#ea580c]  "
                f"[#64748b]reason[/#64748b]=[#94a3b8]{event_dict.get('reason', '?')}[/#94a3b8]"
            )
            raise structlog.DropEvent()

        kv_parts = []
        for k, v in event_dict.items():
            if k in self._SKIP_KEYS:
                continue
            vs = str(v)
            if len(vs) > 120:
                vs = vs[:117] + "…"
            if k in self._ACCENT_KEYS:
                kv_parts.append(f"[#94a3b8]{k}[/#94a3b8]=[#ea580c]{vs}[/#ea580c]")
            else:
                kv_parts.append(f"[#64748b]{k}[/#64748b]=[#94a3b8]{vs}[/#94a3b8]")
        kv_str = "  ".join(kv_parts)

        if level == "warning":
            prefix = "[bold #f59e0b]⚠[/bold #f59e0b]"
            ev_fmt = f"[bold #f59e0b]{event}[/bold #f59e0b]"
        elif level in ("error", "critical"):
            prefix = "[bold #dc2626]✗[/bold #dc2626]"
            ev_fmt = f"[bold #dc2626]{event}[/bold #dc2626]"
        elif level == "debug":
            prefix = "[#64748b]·[/#64748b]"
            ev_fmt = f"[#64748b]{event}[/#64748b]"
        else:
            prefix = "[#ea580c]▪[/#ea580c]"
            ev_fmt = f"[bold #e2e8f0]{event}[/bold #e2e8f0]"

        console.print(f"  {prefix} {ev_fmt}  {kv_str}")
        raise structlog.DropEvent()


def configure_logging(level: str = "INFO", rich_console: bool = True) -> None:
    """Configure structlog process-wide. Plain key=value lines when rich_console is False."""
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO
    renderer = _RichStructlogRenderer() if rich_console else structlog.dev.ConsoleRenderer(colors=False)
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )
