"""Prompt construction for transcript-grounded and topic-grounded quizzes."""

import re

from lecture_pipeline.config import QuizConfig

from .models import VideoContext

SECTION_MARKER = "\n\n[...continuing...]\n\n"

_JSON_FORMAT = """[
  {{
    "question": "{question_hint}",
    "options": [
      "Correct answer",
      "Plausible but incorrect option",
      "Another plausible distractor",
      "Third plausible distractor"
    ],
    "correct": 0,
    "explanation": "{explanation_hint}",
    "difficulty": "easy",
    "points": {points}
  }}
]"""


def preprocess_transcript(transcript: str, config: QuizConfig) -> str:
    """
    Collapses whitespace and samples long transcripts.

    Transcripts longer than `config.truncate_threshold` keep their head, a
    slice from the center, and their tail, joined by `SECTION_MARKER`, so the
    introduction, core, and conclusion all reach the model.
    """
    text = re.sub(r"\s+", " ", transcript).strip()
    if len(text) <= config.truncate_threshold:
        return text

    center = len(text) // 2
    middle_start = max(config.head_chars, center - config.middle_chars // 2)
    middle_end = min(len(text) - config.tail_chars, middle_start + config.middle_chars)

    sections = [
        text[: config.head_chars],
        text[middle_start:middle_end],
        text[-config.tail_chars :],
    ]
    return SECTION_MARKER.join(sections)


def build_transcript_prompt(
    video: VideoContext, transcript: str, config: QuizConfig
) -> str:
    """Builds the prompt for a quiz grounded in the lecture transcript."""
    processed = preprocess_transcript(transcript, config)
    json_format = _JSON_FORMAT.format(
        question_hint="According to the lecture, what is [specific concept mentioned]?",
        explanation_hint="The transcript states: '[brief quote]', which is why this is correct.",
        points=config.default_points,
    )
    return f"""You are an expert educational content creator. Create a quiz based EXCLUSIVELY on the lecture transcript provided.

VIDEO DETAILS:
- Title: "{video.title}"
- Description: "{video.description}"
- Category: {video.category}
- Level: {video.level}

TRANSCRIPT CONTENT:
{processed}

QUIZ REQUIREMENTS:
{_requirements(config)}
5. Base every question directly on content from the transcript
6. Each explanation must reference what the transcript says

Only use information explicitly mentioned in the transcript.

Return ONLY valid JSON in this format:
{json_format}

Generate the quiz now:"""


def build_topic_prompt(video: VideoContext, config: QuizConfig) -> str:
    """Builds the prompt for a quiz grounded only in video metadata."""
    json_format = _JSON_FORMAT.format(
        question_hint="What is the primary purpose of [topic concept]?",
        explanation_hint="Detailed explanation of the correct answer",
        points=config.default_points,
    )
    return f"""You are an expert educational content creator. Create a quiz for this educational video.

VIDEO DETAILS:
- Title: "{video.title}"
- Description: "{video.description}"
- Author Context: "{video.ai_prompt}"
- Category: {video.category}
- Level: {video.level}

QUIZ REQUIREMENTS:
{_requirements(config)}
5. Focus on practical application and understanding of the topic

Return ONLY valid JSON in this format:
{json_format}

Generate the quiz now:"""


def _requirements(config: QuizConfig) -> str:
    return "\n".join(
        [
            f"1. Generate exactly {config.question_count} multiple-choice questions",
            (
                f"2. Difficulty distribution: {config.easy_count} easy, "
                f"{config.medium_count} medium, {config.hard_count} hard questions"
            ),
            "3. Each question has exactly 4 options",
            "4. Make distractors plausible but clearly wrong",
        ]
    )
