"""
learnforge: Main Entry Point.

Usage:
    python -m learnforge.main generate module "Introduction to React" --detailed
    python -m learnforge.main generate flashcards "Python decorators" --count 8
    python -m learnforge.main generate quiz "Module 2: SQL Joins" --questions 5
    python -m learnforge.main generate path "Data Engineering" --type career
    python -m learnforge.main generate elaborate "Closures" --module "JavaScript Functions"
    python -m learnforge.main generate chat "What is a closure?" --topic JavaScript
    python -m learnforge.main check-fallback
    python -m learnforge.main probe
"""

from __future__ import annotations

# Load .env before any other imports so the SDK clients see the right keys
import learnforge.config  # noqa: F401, E402

import argparse
import asyncio
import json
import time
from pathlib import Path
from typing import Any

import structlog
from rich.panel import Panel

from learnforge.config import get_settings
from learnforge.errors import GenerationError
from learnforge.logging_setup import configure_logging, console
from learnforge.observability import metrics as obs_metrics
from learnforge.prompts.templates import CHAT_FOCUS_KEY, CHAT_LEVEL_KEY, CHAT_TOPIC_KEY
from learnforge.service import LearningContentService

logger = structlog.get_logger()


def _print_content(title: str, payload: Any, is_fallback: bool, elapsed: float) -> None:
    border = "#f59e0b" if is_fallback else "#ea580c"
    subtitle = f"{elapsed:.1f}s" + ("  ·  fallback content" if is_fallback else "")
    console.print(
        Panel(
            json.dumps(payload, indent=2, ensure_ascii=False),
            title=f"[{border}]{title}[/{border}]",
            subtitle=subtitle,
            border_style=border,
        )
    )


async def run_generate(args: argparse.Namespace) -> int:
    service = LearningContentService()
    start = time.monotonic()

    if args.kind == "chat":
        context = {CHAT_TOPIC_KEY: args.topic, CHAT_LEVEL_KEY: args.level, CHAT_FOCUS_KEY: args.focus}
        try:
            answer = await service.generate_chat_response(args.text, context)
        except GenerationError as e:
            console.print(f"[bold #dc2626]✗ {e}[/bold #dc2626]")
            return 1
        console.print(Panel(answer, title="[#ea580c]Chat[/#ea580c]", border_style="#ea580c"))
        return 0

    if args.kind == "module":
        content = await service.generate_module_content(args.text, detailed=args.detailed)
    elif args.kind == "flashcards":
        content = await service.generate_flashcards(args.text, args.count)
    elif args.kind == "quiz":
        module_text = Path(args.content_file).read_text(encoding="utf-8") if args.content_file else ""
        content = await service.generate_quiz(args.text, args.questions, module_text)
    elif args.kind == "path":
        content = await service.generate_learning_path(args.text, args.type, detailed=args.detailed)
    else:
        content = await service.generate_topic_elaboration(args.text, args.module or "")

    _print_content(f"{args.kind}: {args.text}", content.to_wire(), content.is_fallback, time.monotonic() - start)
    return 0


async def run_check_fallback() -> int:
    result = await LearningContentService().check_model_fallback()
    style = "#22c55e" if result["success"] else "#dc2626"
    console.print(f"[bold {style}]{result['message']}[/bold {style}]")
    return 0 if result["success"] else 1


async def run_probe() -> int:
    ok = await LearningContentService().can_use_advanced_models()
    console.print(
        "[bold #22c55e]✓ advanced models reachable[/bold #22c55e]"
        if ok
        else "[bold #f59e0b]⚠ advanced models unavailable or slow[/bold #f59e0b]"
    )
    return 0 if ok else 1


def main() -> None:
    parser = argparse.ArgumentParser(description="learnforge content generation")
    sub = parser.add_subparsers(dest="command")

    gen = sub.add_parser("generate", help="Generate one piece of learning content")
    kinds = gen.add_subparsers(dest="kind", required=True)

    mod = kinds.add_parser("module", help="Module content")
    mod.add_argument("text", metavar="MODULE_NAME")
    mod.add_argument("--detailed", action="store_true", help="Advanced level, four sections")

    fc = kinds.add_parser("flashcards", help="Flashcard set")
    fc.add_argument("text", metavar="TOPIC")
    fc.add_argument("--count", type=int, default=None, help="Number of cards (default from settings)")

    qz = kinds.add_parser("quiz", help="Multiple-choice quiz")
    qz.add_argument("text", metavar="TOPIC")
    qz.add_argument("--questions", type=int, default=5)
    qz.add_argument("--content-file", default=None, help="Module text to ground the questions on")

    lp = kinds.add_parser("path", help="Learning path")
    lp.add_argument("text", metavar="GOAL")
    lp.add_argument("--type", choices=["topic", "career"], default="topic")
    lp.add_argument("--detailed", action="store_true")

    el = kinds.add_parser("elaborate", help="Topic elaboration")
    el.add_argument("text", metavar="TOPIC")
    el.add_argument("--module", default=None, help="Module the topic belongs to")

    ch = kinds.add_parser("chat", help="Tutoring chat answer")
    ch.add_argument("text", metavar="MESSAGE")
    ch.add_argument("--topic", default="General")
    ch.add_argument("--level", default="Intermediate")
    ch.add_argument("--focus", default="General understanding")

    sub.add_parser("check-fallback", help="Verify an unknown model falls through to a working one")
    sub.add_parser("probe", help="Check upstream connectivity and latency")

    args = parser.parse_args()
    settings = get_settings()
    configure_logging(settings.observability.log_level)
    obs_metrics.start_server(settings.observability.metrics_port)

    if args.command == "generate":
        code = asyncio.run(run_generate(args))
    elif args.command == "check-fallback":
        code = asyncio.run(run_check_fallback())
    elif args.command == "probe":
        code = asyncio.run(run_probe())
    else:
        parser.print_help()
        code = 0
    raise SystemExit(code)


if __name__ == "__main__":
    main()
