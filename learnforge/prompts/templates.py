"""
Prompt templates for every content generator.

Engineering principles:
  1. One job per prompt: each template asks for exactly one content kind
  2. Show the output shape: every structured prompt carries a literal JSON example
  3. Constrain to facts: educational content must stay verifiable
  4. Raw JSON only: no prose, no markdown fences (the recovery pipeline still copes when ignored)

Templates are single user messages rendered with str.format; literal JSON
braces are doubled.
"""

# ═══════════════════════════════════════════════════════════
# MODULE CONTENT
# ═══════════════════════════════════════════════════════════

MODULE_CONTENT_TEMPLATE = """Generate factual educational content about: "{module_name}"

<constraints>
- ONLY include FACTUAL content that you are CERTAIN about
- If you don't know something, provide general, established information instead of specifics
- Do NOT include any subjective opinions or unverified information
- Focus only on core concepts that are well-established in this field
- AVOID mentioning specific products, companies, or people unless absolutely central to the topic
- DO NOT reference ANY current events, trends, or statistics
- DO NOT reference your capabilities or limitations
</constraints>

CONTENT TYPE: {content_type_label}
LEVEL: {level}

<structure>
- Begin with fundamental concepts that have remained stable for years
- Use factual, precise language without speculation
- Focus on explaining core principles and concepts
- Include practical examples that illustrate key points
- For code examples, use standard syntax and common patterns
{code_rule}
</structure>

Return a JSON object with this EXACT structure:
{{
  "title": "Clear title for {module_name}",
  "type": "{content_type}",
  "sections": [
    {{
      "title": "Core Concept Name",
      "content": "Factual explanation with concrete examples",
      "keyPoints": ["Key point 1", "Key point 2", "Key point 3"],
      "codeExample": {code_example}
    }}
  ]
}}

Create {section_count} focused sections that cover essential aspects of the topic.
Keep all content factual and verifiable.

ONLY RETURN VALID JSON WITHOUT ANY EXPLANATION OR INTRODUCTION."""

MODULE_CODE_EXAMPLE_SHAPE = """{{
        "language": "{language}",
        "code": "// Standard, executable code example\\nfunction example() {{\\n  // implementation\\n}}",
        "explanation": "Explanation of how the code works"
      }}"""


# ═══════════════════════════════════════════════════════════
# FLASHCARDS
# ═══════════════════════════════════════════════════════════

FLASHCARDS_TEMPLATE = """Generate {num_cards} educational flashcards on "{topic}" with increasing difficulty.

<requirements>
- The front side (question) must be short and clear.
- The back side (answer) must be detailed (3-4 sentences) and informative.
- Difficulty increases from Flashcard 1 to {num_cards}: start with basic concepts,
  progress to intermediate details, end with advanced questions requiring deeper understanding.
</requirements>

Format the response strictly as a JSON array:

[
  {{ "id": 1, "frontHTML": "Basic question?", "backHTML": "Detailed easy explanation." }},
  {{ "id": 2, "frontHTML": "Intermediate question?", "backHTML": "Detailed intermediate explanation." }},
  {{ "id": {num_cards}, "frontHTML": "Advanced question?", "backHTML": "Detailed advanced explanation." }}
]"""


# ═══════════════════════════════════════════════════════════
# QUIZ
# ═══════════════════════════════════════════════════════════

QUIZ_TEMPLATE = """Create a quiz about "{topic}" with exactly {num_questions} questions.
{content_block}
Each question should be directly relevant to the topic "{topic}" and {grounding}

Each question should have:
- A clear and challenging question
- 4 answer options (A, B, C, D)
- The correct answer(s)
- A brief explanation of why the answer is correct
- A point value (10 points by default)
- A question type (either "single" for single-choice or "multiple" for multiple-choice)

Return the quiz in this exact JSON format:
{{
  "topic": "{topic}",
  "questions": [
    {{
      "question": "Question text goes here?",
      "answers": ["Answer A", "Answer B", "Answer C", "Answer D"],
      "correctAnswer": ["Answer A"],
      "explanation": "Explanation of correct answer",
      "point": 10,
      "questionType": "single"
    }}
  ]
}}

For multiple-choice questions where more than one answer is correct, use
"correctAnswer": ["Answer A", "Answer C"] and set questionType to "multiple".

Make sure all JSON is valid and the question count matches exactly {num_questions}.
If you cannot generate content on this specific topic, focus on generating questions about {short_topic}."""

QUIZ_CONTENT_BLOCK = """Use the following content to create relevant questions:
<module_content>
{module_content}
</module_content>
"""


# ═══════════════════════════════════════════════════════════
# NUDGES
# ═══════════════════════════════════════════════════════════

NUDGES_TEMPLATE = """Generate 3 personalized learning nudges for a student with the following profile:

<profile>
Career Path: {career_name}
Progress: {progress}%
Recent Assessments: {assessments}
Completed Modules: {completed_modules}
</profile>

Return exactly 3 nudges as a JSON array with this structure:
[
  {{
    "type": "tip" | "recommendation" | "challenge",
    "text": "The motivational/insightful message",
    "actionText": "Optional call to action button text",
    "icon": "bulb" | "rocket"
  }}
]

Make nudges specific to their progress and performance.
Keep texts concise (max 150 characters).
One nudge should be a "challenge" type."""


# ═══════════════════════════════════════════════════════════
# LEARNING PATHS
# ═══════════════════════════════════════════════════════════

TOPIC_PATH_TEMPLATE = """Generate a comprehensive learning path for: "{goal}"

<requirements>
- Create exactly 5 progressive modules
- Each module should build upon previous knowledge
- Focus on practical, hands-on learning
- Include both theoretical and practical aspects
</requirements>

Return ONLY a JSON array with exactly 5 strings in this format:
["Module 1: [Clear Title]", "Module 2: [Clear Title]", "Module 3: [Clear Title]", "Module 4: [Clear Title]", "Module 5: [Clear Title]"]"""

CAREER_PATH_OUTLINE_TEMPLATE = """Create a structured learning path for someone who wants to learn about "{goal}".
Design a series of modules (between 5-7) that progressively build knowledge from basics to advanced concepts.

Return the result as a JSON array with this structure:
[
  {{
    "title": "Module title",
    "description": "Brief description of what will be covered in this module",
    "estimatedTime": "Estimated time to complete (e.g., '2-3 hours')",
    "content": "Detailed content overview with key points to learn"
  }}
]

Make sure the content is comprehensive, accurate, and follows a logical progression from fundamentals to more complex topics."""


# ═══════════════════════════════════════════════════════════
# PERSONALIZED CAREER PATHS
# ═══════════════════════════════════════════════════════════

CAREER_PATHS_TEMPLATE = """Create 4 highly personalized career/learning paths for a user with the following profile:

<profile>
Name: {name}
Age: {age}
Career Goal: "{career_goal}"
Current Skills: {skills}
Interests: {interests}
</profile>

<quiz_analysis>
{quiz_analysis}
</quiz_analysis>

For each career path:
1. Give it a specific, personalized name that aligns with their career goal, interests, and quiz results
2. Create exactly 5 focused modules for each path
3. Make each module build logically on the previous ones
4. Tailor the content to leverage their existing skills and knowledge
5. Each career path should have a clear end goal that helps them progress toward their stated career objective

Return EXACTLY 4 career paths in this JSON format:
[
  {{
    "pathName": "Personalized path name based on their profile",
    "description": "A brief description of this career path and how it helps them achieve their goal",
    "difficulty": "beginner|intermediate|advanced",
    "estimatedTimeToComplete": "X months",
    "relevanceScore": 95,
    "modules": [
      {{
        "title": "Module 1: Module Title",
        "description": "Brief description of what this module covers",
        "estimatedHours": 8,
        "keySkills": ["skill1", "skill2"]
      }}
    ]
  }}
]

relevanceScore is how relevant the path is to their profile (0-100); vary estimatedHours with topic complexity.
Make sure the career paths are varied but all relevant to their profile.
STRICTLY use 5 modules per path for consistency. Be concise and practical in the module descriptions."""

QUIZ_ANALYSIS_BLOCK = """Career Interest Areas:
Technical Interest: {technical}%
Creative Interest: {creative}%
Business Interest: {business}%
Performance Interest: {performance}%
Service Interest: {service}%"""


# ═══════════════════════════════════════════════════════════
# TOPIC ELABORATION
# ═══════════════════════════════════════════════════════════

ELABORATION_TEMPLATE = """Provide a detailed, educational elaboration on the topic: "{full_topic}"

<requirements>
- Be factual, precise, and educational
- Keep the tone academic but engaging
- Focus on clarifying complex concepts
- Include practical examples{code_samples}
- Highlight key insights that aren't obvious
</requirements>
{extra_rules}
Return your response in this exact JSON format:
{{
  "title": "Concise title for this elaboration",
  "sections": [
    {{
      "title": "Section Heading",
      "content": "Detailed explanation with examples and clarifications",
      "keyPoints": ["Key insight 1", "Key insight 2", "Key insight 3"],
      "codeExample": {code_example}
    }}
  ],
  "modelUsed": "{model}"
}}"""

ELABORATION_CODE_EXAMPLE_SHAPE = """{{
        "language": "appropriate language",
        "code": "// Code sample\\nfunction example() {{\\n  // Implementation\\n}}",
        "explanation": "How this code works"
      }}"""


# ═══════════════════════════════════════════════════════════
# CHAT
# ═══════════════════════════════════════════════════════════

CHAT_TEMPLATE = """Context:
Topic: {topic}
Level: {level}
Focus: {focus}

Be concise and helpful. Answer the following: {message}"""

CHAT_TOPIC_KEY = "What topic would you like to discuss today?"
CHAT_LEVEL_KEY = "What's your current knowledge level in this topic? (Beginner/Intermediate/Advanced)"
CHAT_FOCUS_KEY = "What specific aspects would you like to focus on?"


# ═══════════════════════════════════════════════════════════
# CAREER SUMMARY
# ═══════════════════════════════════════════════════════════

CAREER_SUMMARY_TEMPLATE = """You are SkillCompass, an AI career coach and motivational mentor for students on their learning journey.

Generate a detailed, emotionally supportive, and strategic career summary report for the following user based on their
current learning progress, completed modules, quiz feedback, career goal, and interests.

<instructions>
Write the output as a personalized narrative, not a list. Your tone should be friendly, supportive, and motivating,
like a personal coach who believes in the student and wants them to grow.

The report must include:
1. A warm and uplifting introduction using the user's name
2. A recap of their progress so far: modules completed, percentage progress
3. A reflection on their performance: quiz scores and strengths you've noticed
4. Clear guidance on areas to improve or skills to focus on next
5. A vision of their future if they keep working at this pace, and their next big goal
6. Your evaluation of job/internship readiness and the roles that suit them now
7. Recommended next steps or strategies to speed up progress
8. A strong motivational message affirming that they're on the right track
9. End with 3 short, practical nudges for immediate action
</instructions>

<user_profile>
Name: {name}
Career Goal: {career_name}
Interests: {interests}
Skills: {skills}
</user_profile>

<learning_journey>
Total Modules: {total_modules}
Completed Modules: {completed_modules}
Overall Progress: {progress}%
Recommended Skills: {recommended_skills}
</learning_journey>

<quiz_assessments>
{assessments}
</quiz_assessments>

Generate the report as if you're speaking directly to the user.
Avoid bullet points in the final report. Make it natural, inspiring, and rich in value."""


# ═══════════════════════════════════════════════════════════
# SELF-TEST
# ═══════════════════════════════════════════════════════════

FALLBACK_CHECK_PROMPT = "Generate a simple greeting"
