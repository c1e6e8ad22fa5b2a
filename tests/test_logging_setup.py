"""structlog configuration and the Rich renderer."""

from __future__ import annotations

import pytest
import structlog

from learnforge.logging_setup import _RichStructlogRenderer, configure_logging


@pytest.fixture
def restore_structlog():
    yield
    structlog.reset_defaults()


def test_renderer_always_drops_after_printing() -> None:
    renderer = _RichStructlogRenderer()
    for event in ("llm_fallback_triggered", "fallback_content_served", "llm_attempt"):
        with pytest.raises(structlog.DropEvent):
            renderer(None, "warning", {"event": event, "level": "warning", "model": "m"})


def test_configure_logging_filters_below_level(restore_structlog) -> None:
    configure_logging("WARNING", rich_console=False)
    logger = structlog.get_logger()
    assert logger.bind().debug("hidden") is None
    assert not structlog.get_config()["cache_logger_on_first_use"]


def test_unknown_level_defaults_to_info(restore_structlog) -> None:
    configure_logging("chatty", rich_console=False)
    assert structlog.get_config()["wrapper_class"] is structlog.make_filtering_bound_logger(20)
