"""
Error taxonomy for the completion layer.

UpstreamError never leaves the orchestrator: it drives the fallback sweep.
AllModelsFailedError, UnrecoverableResponseError and ValidationError are the
kinds a content generator reacts to (outer retry, then deterministic fallback).
GenerationError is what callers of kinds without a fallback (chat, summaries)
get to see.
"""

from __future__ import annotations

from typing import Optional, Sequence


class LearnForgeError(Exception):
    """Base for all learnforge errors."""

    pass


class CatalogConfigError(LearnForgeError):
    """Model catalog is inconsistent (unknown role target, duplicate id, empty table)."""

    pass


class UpstreamError(LearnForgeError):
    """One model's network/HTTP failure, timeout included."""

    def __init__(self, model: str, message: str, status: Optional[int] = None) -> None:
        self.model = model
        self.status = status
        self.message = message
        super().__init__(f"Completion call failed with model {model}: {message}")

    @property
    def is_auth_error(self) -> bool:
        return self.status in (401, 403)

    def as_log_info(self) -> dict[str, object]:
        return {"message": self.message[:200], "status": self.status}


class AllModelsFailedError(LearnForgeError):
    """Every model in the fallback chain failed for one logical request."""

    def __init__(self, last_error: Optional[BaseException], attempted: Sequence[str] = ()) -> None:
        self.last_error = last_error
        self.attempted = list(attempted)
        detail = str(last_error) if last_error is not None else "Unknown error"
        super().__init__(f"All models failed after trying {len(self.attempted)} models: {detail}")


class UnrecoverableResponseError(LearnForgeError):
    """Model output could not be turned into structured data by any recovery stage."""

    def __init__(self, preview: str = "") -> None:
        self.preview = preview[:200]
        super().__init__("Response could not be recovered as structured data")


class ValidationError(LearnForgeError):
    """Parsed data does not satisfy the minimum shape of its content kind."""

    def __init__(self, kind: str, reason: str) -> None:
        self.kind = kind
        self.reason = reason
        super().__init__(f"Invalid {kind} structure: {reason}")


class GenerationError(LearnForgeError):
    """Raised to callers of content kinds that have no deterministic fallback."""

    pass
