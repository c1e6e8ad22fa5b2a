"""
Topic heuristics used to steer prompts and model selection.

Pure keyword matching; no model calls.
"""

from __future__ import annotations

import re
from typing import Mapping, Optional

TECH_KEYWORDS: Mapping[str, tuple[str, ...]] = {
    "programming": ("javascript", "python", "java", "coding", "programming", "typescript"),
    "web": ("html", "css", "react", "angular", "vue", "frontend", "backend", "fullstack"),
    "database": ("sql", "database", "mongodb", "postgres"),
    "software": ("api", "development", "software", "git", "devops", "algorithms"),
    "tech": ("computer science", "data structures", "networking", "cloud"),
}

# First language whose keywords appear in the topic wins; order matters ("javascript" before "java")
LANGUAGE_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("javascript", ("javascript", "js", "node", "react", "vue", "angular")),
    ("python", ("python", "django", "flask")),
    ("java", ("java", "spring")),
    ("html", ("html", "markup")),
    ("css", ("css", "styling", "scss")),
    ("sql", ("sql", "database", "mysql", "postgresql")),
    ("typescript", ("typescript", "ts")),
)

DEFAULT_LANGUAGE = "javascript"

# Quiz answer letter -> interest area
INTEREST_AREAS: Mapping[str, str] = {
    "A": "technical",
    "B": "creative",
    "C": "business",
    "D": "performance",
    "E": "service",
}

_MODULE_ONLY_RE = re.compile(r"Module\s+\d+", re.IGNORECASE)


def is_code_related_topic(topic: str) -> bool:
    lowered = (topic or "").lower()
    return any(k in lowered for keywords in TECH_KEYWORDS.values() for k in keywords)


def appropriate_language(topic: str) -> str:
    """Language to request for code examples about `topic`."""
    lowered = (topic or "").lower()
    for language, keywords in LANGUAGE_KEYWORDS:
        if any(k in lowered for k in keywords):
            return language
    return DEFAULT_LANGUAGE


def clean_quiz_topic(topic: str, module_content: str = "") -> str:
    """
    Strip "Module N:" style prefixes from a quiz topic.

    "Module 1: Introduction to React" -> "Introduction to React". A bare
    "Module 3" borrows the title from the first line of the module content
    when that line has one.
    """
    if ":" in topic:
        return topic.split(":", 1)[1].strip() or topic
    if _MODULE_ONLY_RE.search(topic) and has_usable_content(module_content):
        first_line = module_content.split("\n", 1)[0]
        if ":" in first_line:
            return first_line.split(":", 1)[1].strip() or topic
    return topic


def has_usable_content(module_content: str) -> bool:
    return bool(module_content) and len(module_content.strip()) > 50


def analyze_quiz_answers(quiz_answers: Mapping[str, str]) -> Optional[dict[str, int]]:
    """Percentage of answers per interest area, or None when there are no answers."""
    if not quiz_answers:
        return None
    counts = {area: 0 for area in INTEREST_AREAS.values()}
    for answer in quiz_answers.values():
        area = INTEREST_AREAS.get(str(answer).strip().upper())
        if area:
            counts[area] += 1
    total = len(quiz_answers)
    return {area: round(n / total * 100) for area, n in counts.items()}
