import asyncio

import pytest
from fakes import FakeGenerator, RecordingSleep

from lecture_pipeline.config import JobQueueConfig
from lecture_pipeline.jobs import TranscriptQueue

CONFIG = JobQueueConfig(max_attempts=3, base_backoff_seconds=5.0, inter_job_delay_seconds=2.0)


def _queue(generator, sleep=None):
    return TranscriptQueue(generator, CONFIG, sleep=sleep or RecordingSleep())


@pytest.mark.asyncio
async def test_higher_priority_job_runs_first():
    generator = FakeGenerator()
    queue = _queue(generator)

    queue.enqueue("v1", "media/v1.mp4", priority=0)
    queue.enqueue("v2", "media/v2.mp4", priority=5)
    await queue.join()

    assert generator.calls == ["v2", "v1"]


@pytest.mark.asyncio
async def test_jobs_run_in_priority_order_with_fifo_ties():
    generator = FakeGenerator()
    queue = _queue(generator)

    for video_id, priority in [("a", 1), ("b", 3), ("c", 1), ("d", 0), ("e", 3)]:
        queue.enqueue(video_id, f"media/{video_id}.mp4", priority)
    await queue.join()

    assert generator.calls == ["b", "e", "a", "c", "d"]


@pytest.mark.asyncio
async def test_transient_failures_retry_until_success():
    generator = FakeGenerator(failures={"v1": 2})
    sleep = RecordingSleep()
    queue = _queue(generator, sleep)
    completed = []

    async def on_complete(job):
        completed.append(job)

    queue.add_completion_listener(on_complete)
    queue.enqueue("v1", "media/v1.mp4")
    await queue.join()

    assert generator.calls == ["v1", "v1", "v1"]
    assert len(completed) == 1
    assert completed[0].status == "completed"
    assert completed[0].attempts == 3
    assert completed[0].error is None
    assert queue.status().completed == 1
    assert queue.status().total == 0


@pytest.mark.asyncio
async def test_always_failing_job_is_attempted_max_times_then_failed():
    generator = FakeGenerator(always_fail={"v1"})
    queue = _queue(generator)

    queue.enqueue("v1", "media/v1.mp4")
    await queue.join()

    assert generator.calls == ["v1"] * 3
    [job] = queue.jobs()
    assert job.status == "failed"
    assert job.attempts == 3
    assert "cannot transcribe v1" in job.error

    status = queue.status()
    assert status.total == 0
    assert status.failed == 1
    assert status.running is False


@pytest.mark.asyncio
async def test_failed_job_is_not_retried_without_new_enqueue():
    generator = FakeGenerator(always_fail={"v1"})
    queue = _queue(generator)

    queue.enqueue("v1", "media/v1.mp4")
    await queue.join()
    queue.enqueue("v2", "media/v2.mp4")
    await queue.join()

    assert generator.calls == ["v1", "v1", "v1", "v2"]


@pytest.mark.asyncio
async def test_backoff_grows_exponentially_between_attempts():
    generator = FakeGenerator(always_fail={"v1"})
    sleep = RecordingSleep()
    queue = _queue(generator, sleep)

    queue.enqueue("v1", "media/v1.mp4")
    await queue.join()

    # No wait after the final attempt
    assert sleep.delays == [10.0, 20.0]
    assert sleep.delays[0] < sleep.delays[1]


@pytest.mark.asyncio
async def test_inter_job_delay_after_each_success():
    generator = FakeGenerator()
    sleep = RecordingSleep()
    queue = _queue(generator, sleep)

    queue.enqueue("v1", "media/v1.mp4")
    queue.enqueue("v2", "media/v2.mp4")
    await queue.join()

    assert sleep.delays == [2.0, 2.0]


@pytest.mark.asyncio
async def test_worker_survives_failures_and_processes_later_jobs():
    generator = FakeGenerator(always_fail={"bad"})
    queue = _queue(generator)

    queue.enqueue("bad", "media/bad.mp4", priority=1)
    queue.enqueue("good", "media/good.mp4")
    await queue.join()

    assert generator.calls[-1] == "good"
    assert queue.status().completed == 1
    assert queue.status().failed == 1


@pytest.mark.asyncio
async def test_status_reports_job_in_flight():
    release = asyncio.Event()
    started = asyncio.Event()

    class BlockingGenerator:
        async def generate(self, media_ref, video_id):
            started.set()
            await release.wait()

    queue = _queue(BlockingGenerator())
    queue.enqueue("v1", "media/v1.mp4")
    queue.enqueue("v2", "media/v2.mp4")
    await started.wait()

    status = queue.status()
    assert status.processing == 1
    assert status.pending == 1
    assert status.total == 2
    assert status.running is True
    assert status.current_video_id == "v1"

    release.set()
    await queue.join()
    assert queue.status().current_video_id is None


@pytest.mark.asyncio
async def test_stopping_mid_job_returns_it_to_pending():
    started = asyncio.Event()
    calls = []

    class BlockOnceGenerator:
        async def generate(self, media_ref, video_id):
            calls.append(video_id)
            if len(calls) == 1:
                started.set()
                await asyncio.Event().wait()

    queue = _queue(BlockOnceGenerator())
    queue.enqueue("v1", "media/v1.mp4")
    await started.wait()

    await queue.stop()

    status = queue.status()
    assert status.processing == 0
    assert status.pending == 1
    assert status.running is False
    assert status.current_video_id is None
    [job] = queue.jobs()
    assert (job.video_id, job.status, job.attempts) == ("v1", "pending", 0)

    queue.enqueue("v2", "media/v2.mp4")
    await queue.join()

    assert calls == ["v1", "v1", "v2"]
    assert queue.status().completed == 2
    assert queue.status().total == 0


@pytest.mark.asyncio
async def test_clear_failed_purges_history():
    queue = _queue(FakeGenerator(always_fail={"v1", "v2"}))

    queue.enqueue("v1", "media/v1.mp4")
    queue.enqueue("v2", "media/v2.mp4")
    await queue.join()

    assert queue.clear_failed() == 2
    assert queue.jobs() == []
    assert queue.status().failed == 0


@pytest.mark.asyncio
async def test_retry_failed_requeues_with_fresh_attempts():
    generator = FakeGenerator(always_fail={"v1"})
    queue = _queue(generator)

    completed = []

    async def record(job):
        completed.append(job)

    queue.add_completion_listener(record)

    queue.enqueue("v1", "media/v1.mp4", priority=4, generate_quiz=False)
    await queue.join()
    generator.always_fail.clear()

    assert queue.retry_failed() == 1
    await queue.join()

    assert generator.calls == ["v1"] * 4
    [job] = completed
    assert (job.attempts, job.priority, job.generate_quiz) == (1, 4, False)
    assert queue.status().failed == 0
    assert queue.status().completed == 1


@pytest.mark.asyncio
async def test_listener_errors_do_not_stop_the_worker():
    generator = FakeGenerator()
    queue = _queue(generator)

    async def broken_listener(job):
        raise RuntimeError("listener exploded")

    queue.add_completion_listener(broken_listener)
    queue.enqueue("v1", "media/v1.mp4")
    queue.enqueue("v2", "media/v2.mp4")
    await queue.join()

    assert generator.calls == ["v1", "v2"]
    assert queue.status().completed == 2


@pytest.mark.asyncio
async def test_clear_all_drops_pending_jobs():
    release = asyncio.Event()
    started = asyncio.Event()
    calls = []

    class BlockingGenerator:
        async def generate(self, media_ref, video_id):
            calls.append(video_id)
            started.set()
            await release.wait()

    queue = _queue(BlockingGenerator())
    queue.enqueue("v1", "media/v1.mp4")
    queue.enqueue("v2", "media/v2.mp4")
    await started.wait()

    assert queue.clear_all() == 1
    release.set()
    await queue.join()

    assert calls == ["v1"]


def test_enqueue_requires_running_loop():
    queue = _queue(FakeGenerator())

    with pytest.raises(RuntimeError):
        queue.enqueue("v1", "media/v1.mp4")
