import pytest

from lecture_pipeline.db_models import Video
from lecture_pipeline.domain import QuizQuestion, Segment, TranscriptResult
from lecture_pipeline.exceptions import VideoNotFoundError


def _question(position: int) -> QuizQuestion:
    return QuizQuestion(
        question=f"What does step {position} of merge sort do?",
        options=("Splits", "Merges", "Swaps", "Hashes"),
        correct=position % 4,
        explanation="Covered in the lecture.",
        difficulty="easy",
        position=position,
    )


def test_get_video_context_includes_course_metadata(repository, video_id):
    video = repository.get_video_context(video_id)

    assert video.title == "Sorting Algorithms"
    assert video.category == "Computer Science"
    assert video.level == "BEGINNER"
    assert video.ai_prompt == "Focus on time complexity."
    assert video.transcript is None
    assert video.has_completed_transcript is False


def test_get_video_context_unknown_video(repository):
    with pytest.raises(VideoNotFoundError):
        repository.get_video_context("missing")


def test_get_video_context_includes_completed_transcript(repository, completed_transcript):
    video = repository.get_video_context(completed_transcript)

    assert video.has_completed_transcript is True
    assert video.transcript.segments[0] == Segment(
        start=0.0, end=4.0, text="Merge sort splits the list.", confidence=0.92
    )


def test_upsert_transcript_overwrites_existing(repository, completed_transcript):
    repository.upsert_transcript(
        completed_transcript,
        TranscriptResult(text="Quicksort picks a pivot.", language="en", confidence=0.8, provider="deepgram"),
    )

    transcript = repository.get_transcript(completed_transcript)
    assert transcript.content == "Quicksort picks a pivot."
    assert transcript.provider == "deepgram"
    assert transcript.segments == ()


def test_replace_questions_removes_previous_set(repository, video_id):
    assert repository.replace_questions(video_id, [_question(i) for i in range(1, 9)], "topic") == 0

    deleted = repository.replace_questions(video_id, [_question(i) for i in range(1, 6)], "transcript")

    assert deleted == 8
    stored = repository.list_questions(video_id)
    assert [q.position for q in stored] == [1, 2, 3, 4, 5]


def test_replace_with_empty_set_clears_quiz(repository, video_id):
    repository.replace_questions(video_id, [_question(1), _question(2)], "topic")

    assert repository.replace_questions(video_id, [], "topic") == 2
    assert repository.list_questions(video_id) == []


def test_list_videos_missing_transcripts(repository, session_factory, completed_transcript):
    with session_factory() as db_session:
        db_session.add(Video(id="video-2", title="Heaps", media_ref="https://cdn.example.com/heaps.mp4"))
        db_session.add(Video(id="video-3", title="No media yet"))
        db_session.commit()

    assert repository.list_videos_missing_transcripts() == [
        ("video-2", "https://cdn.example.com/heaps.mp4")
    ]


def test_list_videos_without_questions(repository, session_factory, video_id):
    with session_factory() as db_session:
        db_session.add(Video(id="video-2", title="Heaps"))
        db_session.commit()
    repository.replace_questions(video_id, [_question(1)], "topic")

    assert repository.list_videos_without_questions() == ["video-2"]
