"""
Core data models for learnforge.

Two groups live here:
  - Completion plumbing: model descriptors, per-call request records,
    the rate window snapshot.
  - Validated content: the canonical shapes generators hand back to callers.
    An instance always satisfies the minimum-shape contract of its kind; the
    JSON field names the prompts ask the model for (frontHTML, correctAnswer,
    estimatedTime, ...) are kept as aliases so model_dump(by_alias=True)
    round-trips to the wire format consumers already store.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# ═══════════════════════════════════════════════════════════
# Enums
# ═══════════════════════════════════════════════════════════


class Capability(str, Enum):
    """Relative output quality of a model."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Speed(str, Enum):
    """Relative latency class of a model."""

    SLOW = "slow"
    MEDIUM = "medium"
    FAST = "fast"
    VERY_FAST = "very-fast"


class Complexity(str, Enum):
    """Task complexity used by the model selector."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class PathType(str, Enum):
    """Learning path flavours: a list of module titles or a list of module outlines."""

    TOPIC = "topic"
    CAREER = "career"


class NudgeType(str, Enum):
    TIP = "tip"
    RECOMMENDATION = "recommendation"
    CHALLENGE = "challenge"


class Difficulty(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class ContentKind(str, Enum):
    """Generated content kinds; values double as RetryConfig toggle names."""

    MODULE_CONTENT = "module_content"
    FLASHCARDS = "flashcards"
    QUIZ = "quiz"
    NUDGES = "nudges"
    LEARNING_PATH = "learning_path"
    CAREER_LEARNING_PATH = "career_learning_path"
    CAREER_PATHS = "career_paths"
    ELABORATION = "elaboration"


# ═══════════════════════════════════════════════════════════
# Completion plumbing
# ═══════════════════════════════════════════════════════════


class ModelDescriptor(BaseModel):
    """Static capability metadata for one upstream model."""

    model_config = ConfigDict(frozen=True)

    id: str
    context_window: int
    capability: Capability
    speed: Speed
    use_cases: frozenset[str] = Field(default_factory=frozenset)


class CompletionRequest(BaseModel):
    """One logical completion call; lives only for the duration of the sweep."""

    prompt: str
    preferred_model: str
    attempt: int = 0
    fallback_queue: list[str] = Field(default_factory=list)

    def next_model(self) -> Optional[str]:
        """Pop the next model to try, or None when the chain is exhausted."""
        if not self.fallback_queue:
            return None
        self.attempt += 1
        return self.fallback_queue.pop(0)


class RateWindow(BaseModel):
    """Snapshot of the rate governor's counting window."""

    window_start: float
    count: int = 0
    limit: int
    window_duration: float


# ═══════════════════════════════════════════════════════════
# Validated content
# ═══════════════════════════════════════════════════════════


class _Content(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # True when the value was synthesized offline instead of generated
    is_fallback: bool = Field(default=False, exclude=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class CodeExample(BaseModel):
    language: str = "javascript"
    code: str = ""
    explanation: str = ""


class ModuleSection(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str
    content: str
    key_points: list[str] = Field(default_factory=list, alias="keyPoints")
    code_example: Optional[CodeExample] = Field(default=None, alias="codeExample")


class ModuleContent(_Content):
    title: str
    type: str = "general"
    sections: list[ModuleSection]


class Flashcard(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    front_html: str = Field(alias="frontHTML")
    back_html: str = Field(alias="backHTML")


class FlashcardSet(_Content):
    topic: str
    cards: list[Flashcard]

    def to_wire(self) -> list[dict[str, Any]]:  # type: ignore[override]
        return [c.model_dump(by_alias=True) for c in self.cards]


class QuizQuestion(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question: str
    answers: list[str]
    correct_answer: list[str] = Field(alias="correctAnswer")
    explanation: str
    point: int = 10
    question_type: str = Field(default="single", alias="questionType")


class QuizSet(_Content):
    topic: str
    questions: list[QuizQuestion]


class Nudge(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: NudgeType
    text: str
    action_text: Optional[str] = Field(default=None, alias="actionText")
    icon: str = "bulb"


class NudgeSet(_Content):
    nudges: list[Nudge] = Field(default_factory=list)

    def to_wire(self) -> list[dict[str, Any]]:  # type: ignore[override]
        return [n.model_dump(by_alias=True, mode="json", exclude_none=True) for n in self.nudges]


class TopicLearningPath(_Content):
    goal: str
    modules: list[str]

    def to_wire(self) -> list[str]:  # type: ignore[override]
        return list(self.modules)


class CareerModule(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str
    description: str
    estimated_time: str = Field(default="1-2 hours", alias="estimatedTime")
    content: str


class CareerLearningPath(_Content):
    goal: str
    modules: list[CareerModule]

    def to_wire(self) -> list[dict[str, Any]]:  # type: ignore[override]
        return [m.model_dump(by_alias=True) for m in self.modules]


class PathModule(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str
    description: str
    estimated_hours: int = Field(default=8, alias="estimatedHours")
    key_skills: list[str] = Field(default_factory=list, alias="keySkills")


class CareerPath(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    path_name: str = Field(alias="pathName")
    description: str
    difficulty: Difficulty = Difficulty.INTERMEDIATE
    estimated_time_to_complete: str = Field(default="3 months", alias="estimatedTimeToComplete")
    relevance_score: int = Field(default=85, alias="relevanceScore")
    modules: list[PathModule]


class CareerPathSet(_Content):
    paths: list[CareerPath]

    def to_wire(self) -> list[dict[str, Any]]:  # type: ignore[override]
        return [p.model_dump(by_alias=True, mode="json") for p in self.paths]


class ElaborationSection(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str
    content: str
    key_points: list[str] = Field(default_factory=list, alias="keyPoints")
    code_example: Optional[CodeExample] = Field(default=None, alias="codeExample")


class TopicElaboration(_Content):
    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    title: str
    sections: list[ElaborationSection]
    model_used: str = Field(default="", alias="modelUsed")
    error: Optional[str] = None


# ═══════════════════════════════════════════════════════════
# Caller inputs
# ═══════════════════════════════════════════════════════════


class LearnerProfile(BaseModel):
    """What the personalized generators know about a learner."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = "Anonymous"
    age: Optional[int] = None
    career_goal: str = Field(default="", alias="careerGoal")
    skills: list[str] = Field(default_factory=list)
    interests: list[str] = Field(default_factory=list)
    quiz_answers: dict[str, str] = Field(default_factory=dict, alias="quizAnswers")


class Assessment(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    module_name: str = Field(default="", alias="moduleName")
    score: float = 0
    accuracy: float = 0
    feedback: str = ""


class PathProgress(BaseModel):
    """Learner progress along one enrolled career path."""

    model_config = ConfigDict(populate_by_name=True)

    career_name: str = Field(default="", alias="careerName")
    progress: float = 0
    modules: list[str] = Field(default_factory=list)
    completed_modules: list[str] = Field(default_factory=list, alias="completedModules")
    recommended_skills: list[str] = Field(default_factory=list, alias="recommendedSkills")
