"""Handler exports."""

from lecture_pipeline.handlers.quiz_generator import QuizGenerator
from lecture_pipeline.handlers.transcript_generator import TranscriptGenerator

__all__ = ["QuizGenerator", "TranscriptGenerator"]
