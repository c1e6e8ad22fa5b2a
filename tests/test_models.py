"""
Unit tests for core data models.

Verifies the completion plumbing (request queue, descriptors) and that the
validated content models round-trip to the camelCase wire format.
"""

import pytest
from pydantic import ValidationError

from learnforge.models import (
    Capability,
    CareerLearningPath,
    CareerModule,
    CompletionRequest,
    Flashcard,
    FlashcardSet,
    LearnerProfile,
    ModelDescriptor,
    ModuleContent,
    ModuleSection,
    Nudge,
    NudgeSet,
    NudgeType,
    QuizQuestion,
    QuizSet,
    Speed,
)


@pytest.fixture
def request_record() -> CompletionRequest:
    return CompletionRequest(prompt="hi", preferred_model="a", fallback_queue=["a", "b"])


class TestCompletionRequest:
    def test_next_model_pops_in_order(self, request_record: CompletionRequest) -> None:
        assert request_record.next_model() == "a"
        assert request_record.next_model() == "b"
        assert request_record.next_model() is None

    def test_attempt_counts_models_handed_out(self, request_record: CompletionRequest) -> None:
        request_record.next_model()
        request_record.next_model()
        request_record.next_model()
        assert request_record.attempt == 2


class TestModelDescriptor:
    def test_frozen(self) -> None:
        m = ModelDescriptor(id="x", context_window=8192, capability=Capability.HIGH, speed=Speed.FAST)
        with pytest.raises(ValidationError):
            m.id = "y"

    def test_speed_values(self) -> None:
        assert Speed("very-fast") is Speed.VERY_FAST


class TestWireFormat:
    def test_flashcards_list_of_aliased_cards(self) -> None:
        cards = FlashcardSet(topic="Git", cards=[Flashcard(id=1, front_html="Q", back_html="A")], is_fallback=True)
        assert cards.to_wire() == [{"id": 1, "frontHTML": "Q", "backHTML": "A"}]

    def test_quiz_aliases_and_no_fallback_flag(self) -> None:
        quiz = QuizSet(
            topic="Git",
            questions=[
                QuizQuestion(question="Q?", answers=["a", "b", "c", "d"], correct_answer=["a"], explanation="e")
            ],
            is_fallback=True,
        )
        wire = quiz.to_wire()
        assert "is_fallback" not in wire
        assert wire["questions"][0]["correctAnswer"] == ["a"]
        assert wire["questions"][0]["questionType"] == "single"
        assert wire["questions"][0]["point"] == 10

    def test_module_content_section_aliases(self) -> None:
        content = ModuleContent.model_validate(
            {"title": "T", "sections": [{"title": "S", "content": "c", "keyPoints": ["k"]}]}
        )
        assert content.sections[0].key_points == ["k"]
        assert content.to_wire()["sections"][0]["keyPoints"] == ["k"]

    def test_nudges_omit_missing_action(self) -> None:
        nudges = NudgeSet(nudges=[Nudge(type=NudgeType.CHALLENGE, text="Go")])
        assert nudges.to_wire() == [{"type": "challenge", "text": "Go", "icon": "bulb"}]

    def test_career_learning_path_modules(self) -> None:
        path = CareerLearningPath(goal="g", modules=[CareerModule(title="t", description="d", content="c")])
        assert path.to_wire() == [{"title": "t", "description": "d", "estimatedTime": "1-2 hours", "content": "c"}]

    def test_section_accepts_field_names(self) -> None:
        section = ModuleSection(title="S", content="c", key_points=["k"])
        assert section.key_points == ["k"]


def test_learner_profile_from_camel_case() -> None:
    profile = LearnerProfile.model_validate({"careerGoal": "SRE", "quizAnswers": {"q1": "A"}})
    assert profile.career_goal == "SRE"
    assert profile.quiz_answers == {"q1": "A"}
    assert profile.name == "Anonymous"
