"""Consumer that bridges broker events to the pipeline hooks."""

import asyncio
import threading
from collections.abc import Callable, Coroutine
from typing import Any

from pydantic import ValidationError

from lecture_pipeline.config import RabbitMQConfig
from lecture_pipeline.domain import TranscriptCompletedEvent, VideoUploadedEvent
from lecture_pipeline.hooks import PipelineHooks
from lecture_pipeline.infrastructure.interfaces import MessageBroker
from lecture_pipeline.logging import setup_logging

logger = setup_logging(__name__)


class EventConsumer:
    """
    Consumes upload and transcript-completed events on a background thread.

    The broker is created on the consuming thread. Each valid event is run on
    the pipeline's event loop and acknowledged once the hook returns;
    malformed bodies and unknown routing keys are rejected without requeue.
    """

    def __init__(
        self,
        broker_factory: Callable[[], MessageBroker],
        hooks: PipelineHooks,
        loop: asyncio.AbstractEventLoop,
        config: RabbitMQConfig,
    ):
        self._broker_factory = broker_factory
        self._hooks = hooks
        self._loop = loop
        self._config = config
        self._broker: MessageBroker | None = None
        self._thread: threading.Thread | None = None

    def run(self) -> None:
        """Connects, declares the queue topology, and consumes. Blocks."""
        self._broker = self._broker_factory()
        self._broker.setup()
        logger.info("Event consumer initialized, starting message consumption")
        self._broker.consume(self._on_message)

    def start(self) -> threading.Thread:
        """Runs the consumer on a daemon thread."""
        self._thread = threading.Thread(
            target=self._run_logged, name="event-consumer", daemon=True
        )
        self._thread.start()
        return self._thread

    def stop(self) -> None:
        if self._broker is not None:
            self._broker.stop()

    def _run_logged(self) -> None:
        try:
            self.run()
        except Exception:
            logger.exception("Event consumer stopped unexpectedly")

    def _on_message(
        self,
        routing_key: str,
        body: bytes,
        delivery_tag: int,
        headers: dict[str, Any] | None,
    ) -> None:
        """Callback for each received message."""
        delivery_count = headers.get("x-delivery-count", 1) if headers else 1

        logger.info(
            "Message received",
            extra={
                "routing_key": routing_key,
                "attempt": delivery_count,
                "max_attempts": self._config.queue_config.max_delivery_count,
            },
        )

        try:
            coro = self._to_hook_call(routing_key, body)
        except ValidationError as e:
            logger.exception("Invalid message format", extra={"error": str(e)})
            self._broker.reject(delivery_tag, requeue=False)
            return

        if coro is None:
            logger.warning("Unknown routing key", extra={"routing_key": routing_key})
            self._broker.reject(delivery_tag, requeue=False)
            return

        try:
            asyncio.run_coroutine_threadsafe(coro, self._loop).result()
            self._broker.acknowledge(delivery_tag)
            logger.info("Message processed successfully", extra={"routing_key": routing_key})
        except Exception:
            logger.exception(
                "Message processing failed", extra={"routing_key": routing_key}
            )
            self._broker.reject(delivery_tag)

    def _to_hook_call(
        self, routing_key: str, body: bytes
    ) -> Coroutine[Any, Any, None] | None:
        queue_config = self._config.queue_config

        if routing_key == queue_config.upload_routing_key:
            uploaded = VideoUploadedEvent.model_validate_json(body)
            return self._hooks.on_video_uploaded(
                uploaded.video_id,
                generate_transcript=uploaded.generate_transcript,
                generate_quiz=uploaded.generate_quiz,
                priority=uploaded.priority,
            )

        if routing_key == queue_config.transcript_routing_key:
            completed = TranscriptCompletedEvent.model_validate_json(body)
            return self._hooks.on_transcript_completed(completed.video_id)

        return None
