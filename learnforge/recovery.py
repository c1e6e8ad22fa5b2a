"""
Response recovery pipeline: turns noisy model output into structured JSON.

Models wrap JSON in prose and markdown, leave trailing commas, use single
quotes and bare keys, or get cut off mid-array. The pipeline is an ordered
chain of pure text transforms, cheapest first, each returning a tagged
RecoveryResult:

  1. strip_fencing        markdown fences and stray backticks
  2. extract_span         first {...} / [...] span of the expected shape
  3. lenient_parse        strict json, then json_repair on a complete span (bare keys, quotes, commas)
  4. aggressive_repair    regex clean-up, then json_repair that may also close truncated output
  5. heuristic_extract    rebuild known shapes (flashcards, quiz questions) field by field

A stage runs only while no earlier stage produced Parsed. When every stage
fails the stripped text comes back as PartialText: recovery itself never
raises, non-conformance shows up as a validation failure downstream.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Callable, Literal, Optional, Sequence, Union

import structlog
from json_repair import repair_json

from learnforge.errors import UnrecoverableResponseError
from learnforge.observability import metrics as obs_metrics

logger = structlog.get_logger()

Shape = Literal["object", "array"]


@dataclass(frozen=True)
class Parsed:
    value: Any


@dataclass(frozen=True)
class PartialText:
    text: str


@dataclass(frozen=True)
class Failed:
    reason: str


RecoveryResult = Union[Parsed, PartialText, Failed]
TextTransform = Callable[[str, Shape], RecoveryResult]

_OPENERS: dict[str, str] = {"object": "{", "array": "["}
_CLOSERS: dict[str, str] = {"{": "}", "[": "]"}


def _matches_shape(value: Any, shape: Shape) -> bool:
    return isinstance(value, dict) if shape == "object" else isinstance(value, list)


def _coerce_shape(value: Any, shape: Shape) -> Any:
    """Unwrap {"cards": [...]}-style envelopes when an array was expected."""
    if shape == "array" and isinstance(value, dict):
        lists = [v for v in value.values() if isinstance(v, list)]
        if len(lists) == 1:
            return lists[0]
    return value


# ═══════════════════════════════════════════════════════════
# Stage 1: strip fencing
# ═══════════════════════════════════════════════════════════

_FENCE_RE = re.compile(r"```[\w-]*[ \t]*\n?")


def strip_fencing(text: str, shape: Shape) -> RecoveryResult:
    cleaned = _FENCE_RE.sub("", text).strip()
    cleaned = cleaned.strip("`").strip()
    return PartialText(cleaned)


# ═══════════════════════════════════════════════════════════
# Stage 2: extract span
# ═══════════════════════════════════════════════════════════


def _balanced_end(text: str, start: int) -> int:
    """Index one past the bracket closing text[start], or -1 if it never closes."""
    stack: list[str] = []
    in_string = False
    escape = False
    for i in range(start, len(text)):
        c = text[i]
        if escape:
            escape = False
            continue
        if in_string:
            if c == "\\":
                escape = True
            elif c == '"':
                in_string = False
            continue
        if c == '"':
            in_string = True
        elif c in _CLOSERS:
            stack.append(_CLOSERS[c])
        elif c in ("}", "]"):
            if not stack or stack[-1] != c:
                return -1
            stack.pop()
            if not stack:
                return i + 1
    return -1


def extract_span(text: str, shape: Shape) -> RecoveryResult:
    opener = _OPENERS[shape]
    closer = _CLOSERS[opener]
    start = text.find(opener)
    if start < 0:
        return PartialText(text)
    end = _balanced_end(text, start)
    if end > start:
        return PartialText(text[start:end])
    last = text.rfind(closer)
    if last > start:
        return PartialText(text[start : last + 1])
    # Truncated output: keep everything from the opener so repair can close it
    return PartialText(text[start:])


# ═══════════════════════════════════════════════════════════
# Stage 3: lenient parse
# ═══════════════════════════════════════════════════════════


def _starts_container(text: str, shape: Shape) -> bool:
    return text.startswith(_OPENERS[shape])


def _repair(text: str, shape: Shape) -> RecoveryResult:
    try:
        repaired = repair_json(text, return_objects=True)
    except Exception as e:
        return Failed(f"json_repair error: {e}")
    repaired = _coerce_shape(repaired, shape)
    # json_repair answers garbage with an empty container, which is not a recovery
    if _matches_shape(repaired, shape) and repaired:
        return Parsed(repaired)
    return Failed("repair produced no usable value")


def _strict(text: str, shape: Shape) -> Optional[Parsed]:
    try:
        value = json.loads(text)
    except json.JSONDecodeError:
        return None
    if isinstance(value, (dict, list)):
        return Parsed(_coerce_shape(value, shape))
    return None


def lenient_parse(text: str, shape: Shape) -> RecoveryResult:
    """Strict JSON, else token-level repair of a complete span (bare keys, quotes, commas)."""
    parsed = _strict(text, shape)
    if parsed is not None:
        return parsed
    # Structural damage (truncation, stray prose) is left to the later stages
    if not _starts_container(text, shape) or _balanced_end(text, 0) != len(text):
        return Failed("not a complete container")
    return _repair(text, shape)


# ═══════════════════════════════════════════════════════════
# Stage 4: aggressive repair
# ═══════════════════════════════════════════════════════════

_NEWLINES_RE = re.compile(r"\r\n|\r|\n|\t")
_CONTROL_RE = re.compile(r"[\u0000-\u001F\u007F-\u009F]")
_ESCAPED_NEWLINE_RE = re.compile(r"\\n")
_INVALID_ESCAPE_RE = re.compile(r'\\(?!["\\/bfnrtu])')
_TRAILING_COMMA_RE = re.compile(r",(\s*[}\]])")
_BARE_KEY_RE = re.compile(r"([{,]\s*)([A-Za-z_][A-Za-z0-9_]*)\s*:")
_SINGLE_QUOTED_RE = re.compile(r"([{\[,:]\s*)'((?:[^'\\]|\\.)*)'")


def aggressive_clean(text: str) -> str:
    """Regex clean-up for JSON that even the lenient parser rejects."""
    text = _NEWLINES_RE.sub(" ", text)
    text = _CONTROL_RE.sub("", text)
    text = _ESCAPED_NEWLINE_RE.sub(" ", text)
    text = _INVALID_ESCAPE_RE.sub(r"\\\\", text)
    text = _TRAILING_COMMA_RE.sub(r"\1", text)
    text = _BARE_KEY_RE.sub(r'\1"\2":', text)
    text = _SINGLE_QUOTED_RE.sub(lambda m: m.group(1) + '"' + m.group(2).replace('"', '\\"') + '"', text)
    return text.strip()


def aggressive_repair(text: str, shape: Shape) -> RecoveryResult:
    """Regex clean-up, then strict JSON, then repair that may also close truncated containers."""
    cleaned = aggressive_clean(text)
    parsed = _strict(cleaned, shape)
    if parsed is not None:
        return parsed
    if not _starts_container(cleaned, shape):
        return Failed("no container of the expected shape")
    result = _repair(cleaned, shape)
    if isinstance(result, Parsed):
        return result
    return Failed("aggressive repair did not produce valid JSON")


# ═══════════════════════════════════════════════════════════
# Stage 5: shape-specific heuristic extraction
# ═══════════════════════════════════════════════════════════


def _string_field(chunk: str, key: str) -> Optional[str]:
    m = re.search(r'["\']?%s["\']?\s*:\s*"((?:[^"\\]|\\.)*)"' % re.escape(key), chunk)
    if not m:
        m = re.search(r"[\"']?%s[\"']?\s*:\s*'((?:[^'\\]|\\.)*)'" % re.escape(key), chunk)
    if not m:
        return None
    raw = m.group(1)
    try:
        return json.loads(f'"{raw}"')
    except json.JSONDecodeError:
        return raw.replace('\\"', '"').replace("\\n", "\n")


def _string_list_field(chunk: str, key: str) -> Optional[list[str]]:
    m = re.search(r'["\']?%s["\']?\s*:\s*\[(.*?)(?:\]|$)' % re.escape(key), chunk, re.DOTALL)
    if not m:
        return None
    return [a or b for a, b in re.findall(r'"((?:[^"\\]|\\.)*)"|\'((?:[^\'\\]|\\.)*)\'', m.group(1))]


def _object_spans(text: str) -> list[tuple[int, int]]:
    """(start, end) of every object opener outside strings; truncated objects run to the end."""
    spans = []
    in_string = False
    escape = False
    for i, c in enumerate(text):
        if escape:
            escape = False
            continue
        if in_string:
            if c == "\\":
                escape = True
            elif c == '"':
                in_string = False
            continue
        if c == '"':
            in_string = True
        elif c == "{":
            end = _balanced_end(text, i)
            spans.append((i, end if end > i else len(text)))
    return spans


def _object_chunks(text: str, marker: str) -> list[str]:
    """Innermost objects mentioning `marker`; braces inside strings do not split an object."""
    spans = [(s, e) for s, e in _object_spans(text) if marker in text[s:e]]
    innermost = [(s, e) for s, e in spans if not any(s < s2 and e2 <= e for s2, e2 in spans)]
    return [text[s:e] for s, e in innermost]


def extract_flashcards(text: str) -> Optional[list[dict[str, Any]]]:
    cards = []
    for index, chunk in enumerate(_object_chunks(text, "HTML"), start=1):
        cards.append(
            {
                "id": index,
                "frontHTML": _string_field(chunk, "frontHTML") or f"Question {index}",
                "backHTML": _string_field(chunk, "backHTML") or f"Answer {index}",
            }
        )
    return cards or None


def extract_quiz_questions(text: str) -> Optional[dict[str, Any]]:
    questions = []
    for index, chunk in enumerate(_object_chunks(text, "question"), start=1):
        question = _string_field(chunk, "question")
        answers = _string_list_field(chunk, "answers") or []
        if question is None and not answers:
            continue
        answers = (answers + [f"Option {c}" for c in "ABCD"])[:4] if len(answers) < 4 else answers[:4]
        correct = [a for a in (_string_list_field(chunk, "correctAnswer") or []) if a in answers]
        questions.append(
            {
                "question": question or f"Question {index}",
                "answers": answers,
                "correctAnswer": correct or [answers[0]],
                "explanation": _string_field(chunk, "explanation") or f"Explanation for question {index}.",
                "point": 10,
                "questionType": "multiple" if len(correct) > 1 else "single",
            }
        )
    return {"questions": questions} if questions else None


# (required field markers, builder); first extractor whose markers all appear wins
HEURISTIC_EXTRACTORS: tuple[tuple[tuple[str, ...], Callable[[str], Any]], ...] = (
    (("frontHTML", "backHTML"), extract_flashcards),
    (('"question"', '"answers"'), extract_quiz_questions),
)


def heuristic_extract(text: str, shape: Shape) -> RecoveryResult:
    for markers, build in HEURISTIC_EXTRACTORS:
        if all(m in text for m in markers):
            value = build(text)
            if value:
                return Parsed(value)
    return Failed("no heuristic extractor matched")


# ═══════════════════════════════════════════════════════════
# Pipeline
# ═══════════════════════════════════════════════════════════

DEFAULT_STAGES: tuple[tuple[str, TextTransform], ...] = (
    ("strip_fencing", strip_fencing),
    ("extract_span", extract_span),
    ("lenient_parse", lenient_parse),
    ("aggressive_repair", aggressive_repair),
    ("heuristic_extract", heuristic_extract),
)


class ResponseRecoveryPipeline:
    """Ordered chain of TextTransform stages with early exit on the first Parsed."""

    def __init__(self, stages: Sequence[tuple[str, TextTransform]] = DEFAULT_STAGES) -> None:
        self.stages = tuple(stages)

    def run(self, raw_text: str, expected_shape: Shape = "object") -> RecoveryResult:
        text = raw_text or ""
        stripped: Optional[str] = None
        for name, stage in self.stages:
            result = stage(text, expected_shape)
            if isinstance(result, Parsed):
                logger.debug("recovery_stage_succeeded", stage=name, shape=expected_shape)
                obs_metrics.record_recovery_stage(name, expected_shape)
                return result
            if isinstance(result, PartialText):
                text = result.text
                if stripped is None:
                    stripped = text
        logger.warning("recovery_failed", shape=expected_shape, preview=(raw_text or "")[:200])
        obs_metrics.record_recovery_stage("unrecovered", expected_shape)
        return PartialText(stripped if stripped is not None else text.strip())


_pipeline = ResponseRecoveryPipeline()


def recover_result(raw_text: str, expected_shape: Shape = "object") -> RecoveryResult:
    return _pipeline.run(raw_text, expected_shape)


def recover(raw_text: str, expected_shape: Shape = "object") -> Any:
    """Parsed JSON value, or the stripped text when nothing could be recovered. Never raises."""
    result = recover_result(raw_text, expected_shape)
    if isinstance(result, Parsed):
        return result.value
    if isinstance(result, PartialText):
        return result.text
    return raw_text


def require_structured(raw_text: str, expected_shape: Shape = "object") -> Any:
    """Like recover(), but unrecoverable text raises UnrecoverableResponseError."""
    result = recover_result(raw_text, expected_shape)
    if isinstance(result, Parsed):
        return result.value
    raise UnrecoverableResponseError(preview=raw_text or "")
