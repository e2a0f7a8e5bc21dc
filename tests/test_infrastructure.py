import json
from types import SimpleNamespace
from unittest.mock import MagicMock

import assemblyai as aai
import httpx
import pytest
from fakes import RecordingSleep

from lecture_pipeline.config import RabbitMQConfig
from lecture_pipeline.exceptions import LLMServiceError, MediaStoreError, ProviderError
from lecture_pipeline.infrastructure import (
    AssemblyAITranscriber,
    DeepgramTranscriber,
    GeminiLLMService,
    MinioMediaStore,
    OpenAIWhisperTranscriber,
    RabbitMQBroker,
    UrlRenditionMediaStore,
)


@pytest.mark.asyncio
async def test_url_store_derives_audio_rendition_on_rendition_host():
    store = UrlRenditionMediaStore()

    locator = await store.audio_locator(
        "https://res.cloudinary.com/demo/video/upload/v1/lectures/sorting.mp4"
    )

    assert locator == "https://res.cloudinary.com/demo/video/upload/v1/lectures/sorting.mp3"


@pytest.mark.asyncio
async def test_url_store_keeps_other_hosts_unchanged():
    store = UrlRenditionMediaStore()

    assert await store.audio_locator("https://cdn.example.com/a.mp4") == "https://cdn.example.com/a.mp4"


@pytest.mark.asyncio
@pytest.mark.parametrize("media_ref", ["", "lectures/sorting.mp4", "ftp://host/a.mp4"])
async def test_url_store_rejects_non_http_refs(media_ref):
    with pytest.raises(MediaStoreError):
        await UrlRenditionMediaStore().audio_locator(media_ref)


@pytest.mark.asyncio
async def test_minio_store_prefers_audio_rendition():
    client = MagicMock()
    client.presigned_get_object.return_value = "https://minio/signed"
    store = MinioMediaStore(client, "lectures")

    locator = await store.audio_locator("course-1/video/sorting.mp4")

    assert locator == "https://minio/signed"
    client.stat_object.assert_called_once_with("lectures", "course-1/audio/sorting.mp3")
    assert client.presigned_get_object.call_args.args[:2] == (
        "lectures",
        "course-1/audio/sorting.mp3",
    )


@pytest.mark.asyncio
async def test_minio_store_wraps_client_errors():
    client = MagicMock()
    client.stat_object.side_effect = ConnectionError("minio unreachable")

    with pytest.raises(MediaStoreError):
        await MinioMediaStore(client, "lectures").audio_locator("course-1/video/sorting.mp4")


def _deepgram_client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_deepgram_maps_words():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(
            200,
            json={
                "results": {
                    "channels": [
                        {
                            "alternatives": [
                                {
                                    "transcript": "hello class",
                                    "confidence": 0.97,
                                    "words": [
                                        {"word": "hello", "punctuated_word": "Hello", "start": 0.1, "end": 0.4, "confidence": 0.99},
                                        {"word": "class", "punctuated_word": "class.", "start": 0.5, "end": 0.9, "confidence": 0.95},
                                    ],
                                }
                            ]
                        }
                    ]
                }
            },
        )

    async with _deepgram_client(handler) as http_client:
        transcriber = DeepgramTranscriber(http_client, "dg-key")
        raw = await transcriber.transcribe("https://cdn.example.com/a.mp3")

    assert requests[0].headers["Authorization"] == "Token dg-key"
    assert json.loads(requests[0].content) == {"url": "https://cdn.example.com/a.mp3"}
    assert raw.provider == "deepgram"
    assert [w.word for w in raw.words] == ["Hello", "class."]
    assert raw.confidence == 0.97
    assert raw.language == "en"


@pytest.mark.asyncio
async def test_deepgram_error_status_raises_provider_error():
    async with _deepgram_client(lambda request: httpx.Response(402, text="quota")) as http_client:
        with pytest.raises(ProviderError, match="402"):
            await DeepgramTranscriber(http_client, "dg-key").transcribe("https://cdn.example.com/a.mp3")


class _FakeTranscriptions:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.kwargs = None

    async def create(self, **kwargs):
        self.kwargs = kwargs
        if self.error:
            raise self.error
        return self.response


def _openai(transcriptions, audio=b"ID3audio"):
    client = SimpleNamespace(audio=SimpleNamespace(transcriptions=transcriptions))
    http_client = httpx.AsyncClient(
        transport=httpx.MockTransport(lambda request: httpx.Response(200, content=audio))
    )
    return client, http_client


@pytest.mark.asyncio
async def test_openai_uploads_audio_and_maps_segments():
    transcriptions = _FakeTranscriptions(
        response={
            "text": "Hello class.",
            "language": "english",
            "segments": [{"start": 0.0, "end": 1.2, "text": "Hello class.", "avg_logprob": -0.2}],
        }
    )
    client, http_client = _openai(transcriptions)

    async with http_client:
        raw = await OpenAIWhisperTranscriber(client, http_client).transcribe(
            "https://res.cloudinary.com/demo/video/upload/sorting.mp3"
        )

    assert transcriptions.kwargs["file"] == ("sorting.mp3", b"ID3audio")
    assert transcriptions.kwargs["response_format"] == "verbose_json"
    assert raw.language == "en"
    assert raw.confidence_kind == "log_probability"
    assert raw.segments[0].confidence == -0.2


@pytest.mark.asyncio
async def test_openai_rejects_oversized_audio():
    transcriptions = _FakeTranscriptions(response={})
    client, http_client = _openai(transcriptions, audio=b"x" * 2048)

    async with http_client:
        transcriber = OpenAIWhisperTranscriber(client, http_client, max_audio_bytes=1024)
        with pytest.raises(ProviderError, match="too large"):
            await transcriber.transcribe("https://cdn.example.com/a.mp3")

    assert transcriptions.kwargs is None


@pytest.mark.asyncio
async def test_openai_api_error_raises_provider_error():
    client, http_client = _openai(_FakeTranscriptions(error=RuntimeError("401 invalid key")))

    async with http_client:
        with pytest.raises(ProviderError, match="invalid key"):
            await OpenAIWhisperTranscriber(client, http_client).transcribe("https://cdn.example.com/a.mp3")


def _assemblyai_transcript(status, **fields):
    defaults = {
        "id": "tr-1",
        "status": status,
        "text": "Hello class. Today we sort.",
        "error": None,
        "confidence": 0.91,
        "utterances": [
            SimpleNamespace(start=0, end=1500, text="Hello class.", confidence=0.9),
            SimpleNamespace(start=1500, end=3200, text="Today we sort.", confidence=0.92),
        ],
        "words": [],
        "json_response": {"language_code": "en_us"},
    }
    defaults.update(fields)
    return SimpleNamespace(**defaults)


@pytest.mark.asyncio
async def test_assemblyai_polls_until_completed():
    statuses = iter(
        [
            _assemblyai_transcript(aai.TranscriptStatus.queued),
            _assemblyai_transcript(aai.TranscriptStatus.processing),
            _assemblyai_transcript(aai.TranscriptStatus.completed),
        ]
    )
    submitter = MagicMock()
    submitter.submit.return_value = SimpleNamespace(id="tr-1")
    sleep = RecordingSleep()

    transcriber = AssemblyAITranscriber(
        submitter, poll_interval_seconds=5.0, fetch=lambda transcript_id: next(statuses), sleep=sleep
    )
    raw = await transcriber.transcribe("https://cdn.example.com/a.mp3")

    submitter.submit.assert_called_once_with("https://cdn.example.com/a.mp3")
    assert sleep.delays == [5.0, 5.0, 5.0]
    assert raw.time_unit == "milliseconds"
    assert raw.language == "en_us"
    assert [s.end for s in raw.segments] == [1500, 3200]


@pytest.mark.asyncio
async def test_assemblyai_error_status_raises_provider_error():
    submitter = MagicMock()
    submitter.submit.return_value = SimpleNamespace(id="tr-1")
    failed = _assemblyai_transcript(aai.TranscriptStatus.error, error="audio too short")

    transcriber = AssemblyAITranscriber(submitter, fetch=lambda transcript_id: failed, sleep=RecordingSleep())

    with pytest.raises(ProviderError, match="audio too short"):
        await transcriber.transcribe("https://cdn.example.com/a.mp3")


class _FakeModels:
    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error
        self.kwargs = None

    async def generate_content(self, **kwargs):
        self.kwargs = kwargs
        if self.error:
            raise self.error
        return SimpleNamespace(text=self.text)


def _gemini(models):
    return SimpleNamespace(aio=SimpleNamespace(models=models))


@pytest.mark.asyncio
async def test_gemini_returns_response_text():
    models = _FakeModels(text="[]")
    service = GeminiLLMService(_gemini(models), "gemini-2.5-flash-lite", temperature=0.7)

    assert await service.complete("Generate the quiz now:") == "[]"
    assert models.kwargs["model"] == "gemini-2.5-flash-lite"
    assert models.kwargs["config"]["temperature"] == 0.7


@pytest.mark.asyncio
@pytest.mark.parametrize("models", [_FakeModels(text=""), _FakeModels(error=RuntimeError("quota"))])
async def test_gemini_failures_raise_llm_service_error(models):
    with pytest.raises(LLMServiceError):
        await GeminiLLMService(_gemini(models), "gemini-2.5-flash-lite").complete("prompt")


def test_rabbitmq_setup_binds_both_event_routing_keys():
    config = RabbitMQConfig(host="localhost", user="guest", password="guest")
    channel = MagicMock()
    broker = RabbitMQBroker(MagicMock(), channel, config)

    broker.setup()

    bound = [call.kwargs["routing_key"] for call in channel.queue_bind.call_args_list]
    assert bound == [
        "lecture.pipeline.failed",
        "video.upload.completed",
        "transcript.generation.completed",
    ]
    event_queue = channel.queue_declare.call_args_list[-1].kwargs
    assert event_queue["queue"] == "lecture_pipeline_events"
    assert event_queue["arguments"]["x-dead-letter-exchange"] == "dead_letter_exchange"


def test_rabbitmq_consume_passes_routing_key_to_callback():
    config = RabbitMQConfig(host="localhost", user="guest", password="guest")
    channel = MagicMock()
    broker = RabbitMQBroker(MagicMock(), channel, config)
    received = []

    broker.consume(lambda *args: received.append(args))
    deliver = channel.basic_consume.call_args.kwargs["on_message_callback"]
    deliver(
        channel,
        SimpleNamespace(routing_key="video.upload.completed", delivery_tag=7),
        SimpleNamespace(headers=None),
        b"{}",
    )

    channel.basic_qos.assert_called_once_with(prefetch_count=1)
    channel.start_consuming.assert_called_once()
    assert received == [("video.upload.completed", b"{}", 7, None)]


def test_rabbitmq_reject_without_requeue_dead_letters():
    channel = MagicMock()
    broker = RabbitMQBroker(
        MagicMock(), channel, RabbitMQConfig(host="h", user="u", password="p")
    )

    broker.reject(3, requeue=False)

    channel.basic_nack.assert_called_once_with(delivery_tag=3, requeue=False)
