"""Repository exports."""

from lecture_pipeline.repositories.video_repository import VideoRepository

__all__ = ["VideoRepository"]
