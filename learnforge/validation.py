"""
Content validators and normalizers.

Each kind has two entry points:
  - validate_<kind>(value) -> bool: does a recovered JSON value (wire form)
    satisfy the minimum shape of the kind? Pure, never raises.
  - parse_<kind>(value, ...) -> ValidatedContent: normalize (defaults,
    padding, clamping, sanitizing) and build the pydantic model; raises
    ValidationError when the value cannot be salvaged.

validate() dispatches on ContentKind and is what the fallback generator's
output is checked against.
"""

from __future__ import annotations

import re
from typing import Any, Callable, Mapping, Optional

import structlog
from pydantic import ValidationError as PydanticValidationError

from learnforge.errors import ValidationError
from learnforge.models import (
    CareerLearningPath,
    CareerPath,
    CareerPathSet,
    CodeExample,
    ContentKind,
    Difficulty,
    Flashcard,
    FlashcardSet,
    ModuleContent,
    ModuleSection,
    Nudge,
    NudgeSet,
    NudgeType,
    QuizQuestion,
    QuizSet,
    TopicElaboration,
    TopicLearningPath,
)

logger = structlog.get_logger()

MIN_SECTION_CONTENT_LENGTH = 50
QUIZ_ANSWER_COUNT = 4
TOPIC_PATH_LENGTH = 5
CAREER_PATH_COUNT = 4
MAX_PATH_MODULES = 5
QUESTION_TYPES = frozenset({"single", "multiple"})
NUDGE_TYPES = frozenset(t.value for t in NudgeType)
DIFFICULTIES = frozenset(d.value for d in Difficulty)


def _non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value if v is not None and str(v).strip()]


def _build(kind: ContentKind, factory: Callable[[], Any]) -> Any:
    try:
        return factory()
    except PydanticValidationError as e:
        raise ValidationError(kind.value, str(e).splitlines()[0]) from e


# ═══════════════════════════════════════════════════════════
# Text clean-up
# ═══════════════════════════════════════════════════════════

_FENCE_RE = re.compile(r"```[\w-]*\n?")


def sanitize_content(text: str) -> str:
    """Drop markdown fences/backticks and turn literal \\n sequences into newlines."""
    text = _FENCE_RE.sub("", text)
    text = text.replace("`", "")
    text = text.replace("\\n", "\n").replace("\\\\", "\\")
    return text.strip()


def clean_code_example(example: Any) -> Optional[CodeExample]:
    if not isinstance(example, Mapping):
        return None
    code = _FENCE_RE.sub("", str(example.get("code") or "")).replace("```", "").strip()
    return CodeExample(
        language=str(example.get("language") or "javascript"),
        code=code,
        explanation=str(example.get("explanation") or ""),
    )


# ═══════════════════════════════════════════════════════════
# Module content
# ═══════════════════════════════════════════════════════════


def validate_module_content(value: Any) -> bool:
    if not isinstance(value, Mapping) or not _non_empty_str(value.get("title")):
        return False
    sections = value.get("sections")
    if not isinstance(sections, list) or not sections:
        return False
    return all(
        isinstance(s, Mapping)
        and _non_empty_str(s.get("title"))
        and isinstance(s.get("content"), str)
        and len(s["content"]) > MIN_SECTION_CONTENT_LENGTH
        for s in sections
    )


def parse_module_content(value: Any) -> ModuleContent:
    """Sanitize sections first; the length floor applies to the cleaned text."""
    if not validate_module_content(value):
        raise ValidationError(ContentKind.MODULE_CONTENT.value, "missing title or sections with substantive content")
    sections = [
        ModuleSection(
            title=s["title"],
            content=sanitize_content(s["content"]),
            key_points=_str_list(s.get("keyPoints")),
            code_example=clean_code_example(s.get("codeExample")),
        )
        for s in value["sections"]
    ]
    if any(len(s.content) <= MIN_SECTION_CONTENT_LENGTH for s in sections):
        raise ValidationError(ContentKind.MODULE_CONTENT.value, "section content too short after sanitizing")
    return _build(
        ContentKind.MODULE_CONTENT,
        lambda: ModuleContent(title=value["title"], type=str(value.get("type") or "general"), sections=sections),
    )


# ═══════════════════════════════════════════════════════════
# Flashcards
# ═══════════════════════════════════════════════════════════


def _valid_card(c: Any) -> bool:
    return isinstance(c, Mapping) and _non_empty_str(c.get("frontHTML")) and _non_empty_str(c.get("backHTML"))


def validate_flashcards(value: Any) -> bool:
    return isinstance(value, list) and bool(value) and all(_valid_card(c) for c in value)


def placeholder_flashcard(topic: str, position: int) -> Flashcard:
    return Flashcard(
        id=position,
        front_html=f"Question about {topic} {position}?",
        back_html=f"Answer about {topic} {position}.",
    )


def parse_flashcards(value: Any, topic: str, num_cards: int) -> FlashcardSet:
    """Keep the well-formed cards among the first `num_cards`; pad a short set with placeholders."""
    if not isinstance(value, list):
        raise ValidationError(ContentKind.FLASHCARDS.value, "expected an array of cards")
    kept = [c for c in value[:num_cards] if _valid_card(c)]
    if not kept:
        raise ValidationError(ContentKind.FLASHCARDS.value, "no well-formed cards")
    if len(kept) < len(value[:num_cards]):
        logger.warning("flashcards_dropped", topic=topic, dropped=len(value[:num_cards]) - len(kept))
    cards = [
        Flashcard(
            id=c["id"] if isinstance(c.get("id"), int) else position,
            front_html=c["frontHTML"],
            back_html=c["backHTML"],
        )
        for position, c in enumerate(kept, start=1)
    ]
    while len(cards) < num_cards:
        cards.append(placeholder_flashcard(topic, len(cards) + 1))
    return FlashcardSet(topic=topic, cards=cards)


# ═══════════════════════════════════════════════════════════
# Quiz
# ═══════════════════════════════════════════════════════════


def _valid_question(q: Any) -> bool:
    return (
        isinstance(q, Mapping)
        and _non_empty_str(q.get("question"))
        and isinstance(q.get("answers"), list)
        and len(q["answers"]) == QUIZ_ANSWER_COUNT
        and all(isinstance(a, str) for a in q["answers"])
        and isinstance(q.get("correctAnswer"), list)
        and bool(q["correctAnswer"])
        and all(a in q["answers"] for a in q["correctAnswer"])
        and _non_empty_str(q.get("explanation"))
        and q.get("questionType") in QUESTION_TYPES
    )


def validate_quiz(value: Any) -> bool:
    if not isinstance(value, Mapping):
        return False
    questions = value.get("questions")
    return isinstance(questions, list) and bool(questions) and all(_valid_question(q) for q in questions)


def _normalize_question(q: Any) -> Any:
    if not isinstance(q, Mapping):
        return q
    q = dict(q)
    if isinstance(q.get("correctAnswer"), str):
        q["correctAnswer"] = [q["correctAnswer"]]
    if q.get("questionType") not in QUESTION_TYPES and isinstance(q.get("correctAnswer"), list):
        q["questionType"] = "multiple" if len(q["correctAnswer"]) > 1 else "single"
    if not isinstance(q.get("point"), int):
        q["point"] = 10
    return q


def parse_quiz(value: Any, topic: str, num_questions: Optional[int] = None) -> QuizSet:
    """Normalize answer/type fields, drop malformed questions; at least one must survive."""
    questions = value.get("questions") if isinstance(value, Mapping) else None
    if not isinstance(questions, list):
        raise ValidationError(ContentKind.QUIZ.value, "missing questions array")
    normalized = [_normalize_question(q) for q in questions]
    valid = [q for q in normalized if _valid_question(q)]
    if len(valid) < len(normalized):
        logger.warning("quiz_questions_dropped", topic=topic, dropped=len(normalized) - len(valid))
    if not valid:
        raise ValidationError(ContentKind.QUIZ.value, "no well-formed questions")
    if num_questions:
        valid = valid[:num_questions]
    return _build(
        ContentKind.QUIZ,
        lambda: QuizSet(topic=topic, questions=[QuizQuestion.model_validate(q) for q in valid]),
    )


# ═══════════════════════════════════════════════════════════
# Nudges
# ═══════════════════════════════════════════════════════════


def _valid_nudge(n: Any) -> bool:
    return isinstance(n, Mapping) and n.get("type") in NUDGE_TYPES and _non_empty_str(n.get("text"))


def validate_nudges(value: Any) -> bool:
    return isinstance(value, list) and bool(value) and all(_valid_nudge(n) for n in value)


def parse_nudges(value: Any) -> NudgeSet:
    if not isinstance(value, list):
        raise ValidationError(ContentKind.NUDGES.value, "expected an array of nudges")
    nudges = [
        Nudge(
            type=NudgeType(n["type"]),
            text=n["text"].strip(),
            action_text=n.get("actionText") or None,
            icon=str(n.get("icon") or "bulb"),
        )
        for n in value
        if _valid_nudge(n)
    ]
    if not nudges:
        raise ValidationError(ContentKind.NUDGES.value, "no nudge with a known type and text")
    return NudgeSet(nudges=nudges)


# ═══════════════════════════════════════════════════════════
# Learning paths
# ═══════════════════════════════════════════════════════════


def validate_topic_path(value: Any) -> bool:
    return isinstance(value, list) and len(value) == TOPIC_PATH_LENGTH and all(_non_empty_str(m) for m in value)


def parse_topic_path(value: Any, goal: str) -> TopicLearningPath:
    if not validate_topic_path(value):
        raise ValidationError(ContentKind.LEARNING_PATH.value, f"expected exactly {TOPIC_PATH_LENGTH} module titles")
    return TopicLearningPath(goal=goal, modules=[m.strip() for m in value])


def validate_career_learning_path(value: Any) -> bool:
    return isinstance(value, list) and bool(value) and all(isinstance(m, Mapping) for m in value)


def parse_career_learning_path(value: Any, goal: str) -> CareerLearningPath:
    if not validate_career_learning_path(value):
        raise ValidationError(ContentKind.CAREER_LEARNING_PATH.value, "expected a non-empty array of modules")
    modules = [
        {
            "title": m.get("title") or f"Learning {goal}",
            "description": m.get("description") or f"Learn about {goal}",
            "estimatedTime": m.get("estimatedTime") or "1-2 hours",
            "content": m.get("content") or f"This module will teach you about {goal}",
        }
        for m in value
    ]
    return _build(
        ContentKind.CAREER_LEARNING_PATH,
        lambda: CareerLearningPath.model_validate({"goal": goal, "modules": modules}),
    )


# ═══════════════════════════════════════════════════════════
# Personalized career paths
# ═══════════════════════════════════════════════════════════


def default_path_modules(path_name: str, count: int = MAX_PATH_MODULES) -> list[dict[str, Any]]:
    """basic -> intermediate... -> advanced module outline for a path."""
    modules = []
    for index in range(count):
        level = "basic" if index == 0 else "advanced" if index == count - 1 else "intermediate"
        modules.append(
            {
                "title": f"Module {index + 1}: {level.capitalize()} {path_name}",
                "description": f"Learn {level} concepts and skills related to {path_name}",
                "estimatedHours": 8 + index,
                "keySkills": [f"{level} understanding", f"{level} application", f"{level} skills"],
            }
        )
    return modules


def _clamp_relevance(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 85
    return int(max(0, min(100, value)))


def _normalize_path(path: Mapping[str, Any], career_goal: str) -> dict[str, Any]:
    name = path.get("pathName") or "Career Path"
    raw_modules = path.get("modules")
    outlines = [m for m in raw_modules if isinstance(m, Mapping)] if isinstance(raw_modules, list) else []
    if outlines:
        modules = []
        for idx, m in enumerate(outlines[:MAX_PATH_MODULES]):
            hours = m.get("estimatedHours")
            modules.append(
                {
                    "title": m.get("title") or f"Module {idx + 1}",
                    "description": m.get("description") or "Learn important skills in this area",
                    "estimatedHours": hours if isinstance(hours, int) and not isinstance(hours, bool) else 8,
                    "keySkills": _str_list(m.get("keySkills")),
                }
            )
    else:
        modules = default_path_modules(name)
    return {
        "pathName": name,
        "description": path.get("description") or f"A learning path toward {career_goal}",
        "difficulty": path.get("difficulty") if path.get("difficulty") in DIFFICULTIES else "intermediate",
        "estimatedTimeToComplete": path.get("estimatedTimeToComplete") or "3 months",
        "relevanceScore": _clamp_relevance(path.get("relevanceScore")),
        "modules": modules,
    }


def validate_career_paths(value: Any) -> bool:
    if not isinstance(value, list) or len(value) != CAREER_PATH_COUNT:
        return False
    for p in value:
        if not isinstance(p, Mapping) or not _non_empty_str(p.get("pathName")):
            return False
        modules = p.get("modules")
        if not isinstance(modules, list) or not 1 <= len(modules) <= MAX_PATH_MODULES:
            return False
        if p.get("difficulty") not in DIFFICULTIES:
            return False
        score = p.get("relevanceScore")
        if not isinstance(score, int) or not 0 <= score <= 100:
            return False
    return True


def parse_career_paths(value: Any, career_goal: str = "") -> CareerPathSet:
    """Normalize to exactly four paths; a short list is topped up with variants of the first path."""
    if not isinstance(value, list):
        raise ValidationError(ContentKind.CAREER_PATHS.value, "expected an array of career paths")
    paths = [p for p in value if isinstance(p, Mapping)][:CAREER_PATH_COUNT]
    if not paths:
        raise ValidationError(ContentKind.CAREER_PATHS.value, "no career paths in response")
    while len(paths) < CAREER_PATH_COUNT:
        base = dict(paths[0])
        base["pathName"] = f"Alternative {base.get('pathName') or 'Career Path'}"
        base["relevanceScore"] = max(1, _clamp_relevance(base.get("relevanceScore") or 80) - 10)
        paths.append(base)
    normalized = [_normalize_path(p, career_goal) for p in paths]
    return _build(
        ContentKind.CAREER_PATHS,
        lambda: CareerPathSet(paths=[CareerPath.model_validate(p) for p in normalized]),
    )


# ═══════════════════════════════════════════════════════════
# Topic elaboration
# ═══════════════════════════════════════════════════════════


def validate_elaboration(value: Any) -> bool:
    if not isinstance(value, Mapping):
        return False
    sections = value.get("sections")
    return (
        isinstance(sections, list)
        and bool(sections)
        and all(isinstance(s, Mapping) and _non_empty_str(s.get("title")) for s in sections)
    )


def parse_elaboration(value: Any, topic: str, model_used: str) -> TopicElaboration:
    if not validate_elaboration(value):
        raise ValidationError(ContentKind.ELABORATION.value, "missing sections")
    sections = [
        {
            "title": s["title"],
            "content": sanitize_content(str(s.get("content") or "")),
            "keyPoints": _str_list(s.get("keyPoints")),
            "codeExample": clean_code_example(s.get("codeExample")),
        }
        for s in value["sections"]
    ]
    return _build(
        ContentKind.ELABORATION,
        lambda: TopicElaboration.model_validate(
            {
                "title": value.get("title") or topic,
                "sections": sections,
                "modelUsed": value.get("modelUsed") or model_used,
            }
        ),
    )


# ═══════════════════════════════════════════════════════════
# Dispatch
# ═══════════════════════════════════════════════════════════

VALIDATORS: Mapping[ContentKind, Callable[[Any], bool]] = {
    ContentKind.MODULE_CONTENT: validate_module_content,
    ContentKind.FLASHCARDS: validate_flashcards,
    ContentKind.QUIZ: validate_quiz,
    ContentKind.NUDGES: validate_nudges,
    ContentKind.LEARNING_PATH: validate_topic_path,
    ContentKind.CAREER_LEARNING_PATH: validate_career_learning_path,
    ContentKind.CAREER_PATHS: validate_career_paths,
    ContentKind.ELABORATION: validate_elaboration,
}


def validate(kind: ContentKind | str, value: Any) -> bool:
    """Minimum-shape check for `kind`; accepts wire-form values or content models."""
    if hasattr(value, "to_wire"):
        value = value.to_wire()
    return VALIDATORS[ContentKind(kind)](value)
