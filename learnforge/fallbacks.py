"""
Deterministic offline fallback content.

Every builder is pure and template-based, keyed off the request parameters,
and its output passes validation.validate() for its kind. Generators serve
these when the fallback sweep, recovery, or validation (after outer retries,
where enabled) could not produce real content.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from learnforge.models import (
    CareerLearningPath,
    CareerModule,
    CareerPath,
    CareerPathSet,
    CodeExample,
    ElaborationSection,
    Flashcard,
    FlashcardSet,
    LearnerProfile,
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
from learnforge.topics import appropriate_language, is_code_related_topic
from learnforge.validation import default_path_modules

FALLBACK_MODEL_LABEL = "Fallback Content"

# ═══════════════════════════════════════════════════════════
# Module content
# ═══════════════════════════════════════════════════════════

_MODULE_SECTION_TEMPLATES: tuple[tuple[str, str], ...] = (
    (
        "Introduction to {topic}",
        "{topic} builds on a small set of fundamental ideas. This section introduces the core vocabulary "
        "and the problems {topic} is meant to solve, so that later sections have a shared starting point.",
    ),
    (
        "Core Concepts of {topic}",
        "The central principles of {topic} have stayed stable for years. Understanding how they fit together "
        "makes it easier to reason about new situations instead of memorizing isolated facts.",
    ),
    (
        "Applying {topic} in Practice",
        "Working through concrete examples is the fastest way to make {topic} stick. Start with small, "
        "well-understood cases and increase the difficulty as each step becomes comfortable.",
    ),
    (
        "Going Further with {topic}",
        "Once the fundamentals are in place, deeper study of {topic} pays off. Revisit earlier material with "
        "fresh questions and look for the trade-offs behind each technique you have learned.",
    ),
)


def module_content(module_name: str, detailed: bool = False) -> ModuleContent:
    technical = is_code_related_topic(module_name)
    count = 4 if detailed else 3
    sections = []
    for title, body in _MODULE_SECTION_TEMPLATES[:count]:
        example = None
        if technical:
            language = appropriate_language(module_name)
            example = CodeExample(
                language=language,
                code=f"// {module_name}: minimal example\nfunction example() {{\n  return true;\n}}",
                explanation=f"A placeholder {language} snippet; regenerate this module for a real example.",
            )
        sections.append(
            ModuleSection(
                title=title.format(topic=module_name),
                content=body.format(topic=module_name),
                key_points=[f"Key idea {i} of {module_name}" for i in range(1, 4)],
                code_example=example,
            )
        )
    return ModuleContent(
        title=module_name,
        type="technical" if technical else "general",
        sections=sections,
        is_fallback=True,
    )


# ═══════════════════════════════════════════════════════════
# Flashcards / quiz / nudges
# ═══════════════════════════════════════════════════════════


def flashcards(topic: str, num_cards: int) -> FlashcardSet:
    cards = [
        Flashcard(
            id=i,
            front_html=f"Basic to advanced {topic} question {i}?",
            back_html=f"Detailed answer explaining {topic} at difficulty level {i}.",
        )
        for i in range(1, max(1, num_cards) + 1)
    ]
    return FlashcardSet(topic=topic, cards=cards, is_fallback=True)


def quiz(topic: str, num_questions: int) -> QuizSet:
    questions = [
        QuizQuestion(
            question=f"Question {i} about {topic}?",
            answers=["Option A", "Option B", "Option C", "Option D"],
            correct_answer=["Option A"],
            explanation=f"This is the correct answer for question {i} about {topic}.",
            point=10,
            question_type="single",
        )
        for i in range(1, max(1, num_questions) + 1)
    ]
    return QuizSet(topic=topic, questions=questions, is_fallback=True)


def nudges() -> NudgeSet:
    return NudgeSet(
        nudges=[
            Nudge(type=NudgeType.TIP, text="Keep learning consistently to maintain your progress!", icon="bulb"),
            Nudge(
                type=NudgeType.RECOMMENDATION,
                text="Review previous modules to reinforce your knowledge.",
                icon="bulb",
            ),
            Nudge(
                type=NudgeType.CHALLENGE,
                text="Try completing a quiz with 100% accuracy as your next goal.",
                icon="rocket",
            ),
        ],
        is_fallback=True,
    )


# ═══════════════════════════════════════════════════════════
# Learning paths
# ═══════════════════════════════════════════════════════════


def topic_path(goal: str) -> TopicLearningPath:
    return TopicLearningPath(
        goal=goal,
        modules=[
            f"Module 1: Introduction to {goal}",
            f"Module 2: Core Concepts of {goal}",
            f"Module 3: Intermediate {goal} Techniques",
            f"Module 4: Advanced {goal} Applications",
            f"Module 5: Real-world {goal} Projects",
        ],
        is_fallback=True,
    )


def career_learning_path(goal: str) -> CareerLearningPath:
    outline = (
        (f"Introduction to {goal}", f"Learn the fundamentals of {goal}", "1-2 hours",
         f"This module introduces the basic concepts of {goal}."),
        (f"{goal} Fundamentals", f"Understand the core principles of {goal}", "2-3 hours",
         f"Build a solid foundation in {goal} by mastering the essential concepts."),
        (f"Practical {goal}", "Apply your knowledge through practical exercises", "3-4 hours",
         "Practice makes perfect. In this module, you'll apply your theoretical knowledge."),
        (f"Advanced {goal}", "Dive deeper into advanced concepts", "3-4 hours",
         "Take your skills to the next level with advanced techniques and methodologies."),
        (f"{goal} in the Real World", "Learn how to apply your skills in real-world scenarios", "2-3 hours",
         "Discover how professionals use these skills in industry settings."),
    )
    return CareerLearningPath(
        goal=goal,
        modules=[
            CareerModule(title=t, description=d, estimated_time=e, content=c) for t, d, e, c in outline
        ],
        is_fallback=True,
    )


# ═══════════════════════════════════════════════════════════
# Personalized career paths
# ═══════════════════════════════════════════════════════════

PATH_THEMES: Mapping[str, Mapping[str, Any]] = {
    "technical": {
        "name": "Technical Development",
        "description": "Building technical skills through hands-on projects",
        "modules": (
            "Module 1: Core Technical Foundations",
            "Module 2: Programming Fundamentals",
            "Module 3: Building Your First Project",
            "Module 4: Advanced Technical Skills",
            "Module 5: Technical Portfolio Development",
        ),
    },
    "creative": {
        "name": "Creative Expression",
        "description": "Combining creativity with technical skills",
        "modules": (
            "Module 1: Creative Thinking Principles",
            "Module 2: Design and Expression Fundamentals",
            "Module 3: Creative Tools Mastery",
            "Module 4: Building a Creative Portfolio",
            "Module 5: Launching Your Creative Project",
        ),
    },
    "business": {
        "name": "Business and Entrepreneurship",
        "description": "Developing business acumen and leadership skills",
        "modules": (
            "Module 1: Business Fundamentals",
            "Module 2: Market Analysis and Strategy",
            "Module 3: Financial Planning and Management",
            "Module 4: Leadership and Team Building",
            "Module 5: Business Plan Development",
        ),
    },
    "performance": {
        "name": "Performance and Presentation",
        "description": "Mastering presentation and performance skills",
        "modules": (
            "Module 1: Communication Fundamentals",
            "Module 2: Presentation Skills Development",
            "Module 3: Audience Engagement Techniques",
            "Module 4: Performance Optimization",
            "Module 5: Capstone Performance Project",
        ),
    },
    "service": {
        "name": "Community Impact and Service",
        "description": "Making a positive impact through service and leadership",
        "modules": (
            "Module 1: Understanding Community Needs",
            "Module 2: Service Leadership Principles",
            "Module 3: Project Planning for Impact",
            "Module 4: Building Sustainable Solutions",
            "Module 5: Measuring and Scaling Impact",
        ),
    },
}

_PROJECT_MODULES: tuple[tuple[str, str, int, tuple[str, str]], ...] = (
    ("Module 1: Project Planning and Requirements", "Learn how to plan and scope your projects effectively", 8,
     ("Planning", "Requirements analysis")),
    ("Module 2: Design and Architecture", "Develop the architecture for your projects", 12,
     ("Design thinking", "Architecture")),
    ("Module 3: Implementation and Development", "Build your projects using best practices", 15,
     ("Development", "Testing")),
    ("Module 4: Testing and Quality Assurance", "Ensure your projects meet quality standards", 10,
     ("Quality assurance", "Testing methodologies")),
    ("Module 5: Deployment and Presentation", "Launch your projects and present your work", 8,
     ("Deployment", "Presentation")),
)


def _path(name: str, description: str, difficulty: str, duration: str, relevance: int,
          modules: list[dict[str, Any]]) -> CareerPath:
    return CareerPath.model_validate(
        {
            "pathName": name,
            "description": description,
            "difficulty": difficulty,
            "estimatedTimeToComplete": duration,
            "relevanceScore": relevance,
            "modules": modules,
        }
    )


def career_paths_from_quiz(profile: LearnerProfile, analysis: Mapping[str, int]) -> CareerPathSet:
    """Four paths themed on the learner's two strongest quiz interest areas."""
    goal = profile.career_goal or "tech career"
    interests = profile.interests or ["programming", "technology"]
    skills = profile.skills or ["basic coding"]
    top, second = [area for area, _ in sorted(analysis.items(), key=lambda kv: kv[1], reverse=True)[:2]]
    first_theme, second_theme = PATH_THEMES[top], PATH_THEMES[second]

    def themed_modules(area: str, theme: Mapping[str, Any], phrase: str, hours: int) -> list[dict[str, Any]]:
        return [
            {
                "title": title,
                "description": phrase.format(step=i, area=area, goal=goal),
                "estimatedHours": hours,
                "keySkills": [*skills[:2], f"{area} skills"],
            }
            for i, title in enumerate(theme["modules"], start=1)
        ]

    specialization = f"{interests[0]} Specialization"
    return CareerPathSet(
        paths=[
            _path(
                f"{goal} through {first_theme['name']}",
                f"Achieve your goal in {goal} by focusing on {first_theme['description']}",
                "beginner", "3 months", 90,
                themed_modules(top, first_theme, "Step {step} in mastering {area} skills related to {goal}", 8),
            ),
            _path(
                f"{second.capitalize()} Approach to {goal}",
                f"A {second}-focused pathway to achieving your {goal}",
                "intermediate", "4 months", 85,
                themed_modules(second, second_theme, "Step {step} in developing {area} expertise for your {goal}", 10),
            ),
            _path(
                specialization,
                f"Deepen your knowledge in {interests[0]} to excel in {goal}",
                "intermediate", "3 months", 80,
                default_path_modules(specialization),
            ),
            _path(
                f"Practical {goal} Projects",
                f"Hands-on project work to build real-world experience in {goal}",
                "advanced", "4 months", 75,
                [
                    {"title": t, "description": d, "estimatedHours": h, "keySkills": list(k)}
                    for t, d, h, k in _PROJECT_MODULES
                ],
            ),
        ],
        is_fallback=True,
    )


def default_career_paths(profile: LearnerProfile) -> CareerPathSet:
    """Profile-driven paths for learners without quiz answers."""
    goal = profile.career_goal or "tech career"
    interest = (profile.interests or ["Tech"])[0]
    skill = (profile.skills or ["Coding"])[0]
    return CareerPathSet(
        paths=[
            _path(f"{goal} Fundamentals",
                  f"Master the core concepts needed for a successful career in {goal}",
                  "beginner", "3 months", 90, default_path_modules(f"{goal} Fundamentals")),
            _path(f"Advanced {interest} Specialization",
                  f"Deepen your knowledge in {interest} to stand out in your career",
                  "intermediate", "4 months", 85, default_path_modules(f"{interest} Specialization")),
            _path(f"{skill} Mastery",
                  f"Build upon your existing {skill} skills to reach expert level",
                  "advanced", "5 months", 80, default_path_modules(f"{skill} Mastery")),
            _path(f"Practical {goal} Projects",
                  f"Apply your knowledge through hands-on projects relevant to {goal}",
                  "intermediate", "3 months", 88, default_path_modules(f"{goal} Projects")),
        ],
        is_fallback=True,
    )


def simple_career_paths(profile: Optional[LearnerProfile] = None) -> CareerPathSet:
    """Last-resort paths that depend on nothing but the career goal."""
    goal = (profile.career_goal if profile else "") or "Career Development"
    starter = [
        ("Module 1: Understanding the Basics", "Learn core concepts and terminology", 6,
         ["Fundamentals", "Terminology"]),
        ("Module 2: Essential Skills Development", "Build the must-have skills for this field", 8,
         ["Core skills", "Practical basics"]),
        ("Module 3: Your First Project", "Apply what you've learned in a simple project", 10,
         ["Project work", "Application"]),
        ("Module 4: Problem-Solving Techniques", "Learn to overcome common challenges", 8,
         ["Problem solving", "Troubleshooting"]),
        ("Module 5: Next Steps and Growth", "Plan your continued learning journey", 6,
         ["Career planning", "Continuous learning"]),
    ]

    def series(label: str, description: str, base_hours: int, skills: list[str]) -> list[dict[str, Any]]:
        return [
            {
                "title": f"Module {i + 1}: {label} {i + 1}",
                "description": description,
                "estimatedHours": base_hours + i,
                "keySkills": skills,
            }
            for i in range(5)
        ]

    return CareerPathSet(
        paths=[
            _path(f"Getting Started with {goal}", f"Fundamental path to begin your journey in {goal}",
                  "beginner", "2 months", 95,
                  [{"title": t, "description": d, "estimatedHours": h, "keySkills": k} for t, d, h, k in starter]),
            _path(f"Intermediate {goal}", f"Build on your existing knowledge to advance in {goal}",
                  "intermediate", "3 months", 85,
                  series("Intermediate Topic", "Deepen your understanding of important concepts", 8,
                         ["Advanced understanding", "Implementation skills"])),
            _path(f"{goal} Specialization", f"Focus on specialized areas within {goal}",
                  "advanced", "4 months", 80,
                  series("Specialization Area", "Master specialized techniques and approaches", 10,
                         ["Specialization", "Expert techniques"])),
            _path(f"Practical {goal} Applications", "Apply your knowledge in real-world scenarios",
                  "intermediate", "3 months", 75,
                  series("Real-world Application", "Learn how to apply concepts in practical situations", 9,
                         ["Practical application", "Real-world skills"])),
        ],
        is_fallback=True,
    )


def career_paths(profile: LearnerProfile, analysis: Optional[Mapping[str, int]]) -> CareerPathSet:
    if analysis:
        return career_paths_from_quiz(profile, analysis)
    return default_career_paths(profile)


# ═══════════════════════════════════════════════════════════
# Topic elaboration
# ═══════════════════════════════════════════════════════════


def elaboration(topic: str) -> TopicElaboration:
    return TopicElaboration(
        title=topic,
        model_used=FALLBACK_MODEL_LABEL,
        error="We couldn't generate the elaboration. Please try again.",
        sections=[
            ElaborationSection(
                title="Unable to Elaborate",
                content=(
                    f'We\'re having trouble generating detailed content for "{topic}". '
                    "This might be due to temporary issues with our AI service."
                ),
                key_points=[
                    "Try again in a few moments",
                    "Try a more specific topic",
                    "Explore other sections of the module",
                ],
            )
        ],
        is_fallback=True,
    )
