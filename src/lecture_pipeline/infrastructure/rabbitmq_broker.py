"""RabbitMQ consumer for upload and transcript events."""

from collections.abc import Callable
from typing import Any

import pika
from pika.adapters.blocking_connection import BlockingChannel

from lecture_pipeline.config import QueueConfig, RabbitMQConfig
from lecture_pipeline.logging import setup_logging

from .interfaces import MessageBroker

logger = setup_logging(__name__)


class RabbitMQBroker(MessageBroker):
    """
    Blocking pika consumer bound to the pipeline's event queue.

    The connection and channel belong to the thread that created them; only
    `stop()` may be called from elsewhere.
    """

    def __init__(
        self,
        connection: pika.BlockingConnection,
        channel: BlockingChannel,
        config: RabbitMQConfig,
    ):
        self._connection = connection
        self._channel = channel
        self._config = config

    @property
    def _queue(self) -> QueueConfig:
        return self._config.queue_config

    @classmethod
    def connect(cls, config: RabbitMQConfig) -> "RabbitMQBroker":
        """Opens a blocking connection and channel for `config`."""
        parameters = pika.ConnectionParameters(
            host=config.host,
            credentials=pika.PlainCredentials(config.user, config.password),
            heartbeat=0,
        )
        connection = pika.BlockingConnection(parameters)
        logger.info("Connected to RabbitMQ", extra={"host": config.host})
        return cls(connection, connection.channel(), config)

    def acknowledge(self, delivery_tag: int) -> None:
        self._channel.basic_ack(delivery_tag=delivery_tag)

    def reject(self, delivery_tag: int, requeue: bool = True) -> None:
        """Nacks a delivery. Without requeue the message is dead-lettered."""
        self._channel.basic_nack(delivery_tag=delivery_tag, requeue=requeue)

    def consume(
        self, callback: Callable[[str, bytes, int, dict[str, Any] | None], None]
    ) -> None:
        """
        Delivers queued events to `callback` until `stop()` is called. Blocks.

        Args:
            callback: Called with (routing_key, body, delivery_tag, headers).
        """

        def deliver(_channel, method, properties, body):
            headers = properties.headers if properties else None
            callback(method.routing_key, body, method.delivery_tag, headers)

        self._channel.basic_qos(prefetch_count=self._queue.prefetch_count)
        self._channel.basic_consume(queue=self._queue.name, on_message_callback=deliver)
        logger.info(
            "Waiting for pipeline events",
            extra={"queue": self._queue.name, "prefetch": self._queue.prefetch_count},
        )
        self._channel.start_consuming()

    def stop(self) -> None:
        """Stops consuming; safe to call from another thread."""
        self._connection.add_callback_threadsafe(self._channel.stop_consuming)

    def setup(self) -> None:
        """Declares the dead letter route, the event exchange, and the event queue."""
        self._declare_dead_letter_route()
        self._channel.exchange_declare(
            exchange=self._config.exchange_name,
            exchange_type="topic",
            durable=True,
        )
        self._declare_event_queue()
        logger.info(
            "Event queue declared",
            extra={
                "queue": self._queue.name,
                "exchange": self._config.exchange_name,
                "routing_keys": list(self._queue.routing_keys),
            },
        )

    def _declare_dead_letter_route(self) -> None:
        queue = self._queue
        self._channel.exchange_declare(
            exchange=queue.dlq_exchange_name, exchange_type="direct", durable=True
        )
        self._channel.queue_declare(queue=queue.dlq_name, durable=True)
        self._channel.queue_bind(
            queue=queue.dlq_name,
            exchange=queue.dlq_exchange_name,
            routing_key=queue.dlq_routing_key,
        )

    def _declare_event_queue(self) -> None:
        queue = self._queue
        # Deliveries past the limit, and nacks without requeue, land in the DLQ.
        self._channel.queue_declare(
            queue=queue.name,
            durable=True,
            arguments={
                "x-queue-type": queue.queue_type,
                "x-delivery-limit": queue.max_delivery_count,
                "x-dead-letter-exchange": queue.dlq_exchange_name,
                "x-dead-letter-routing-key": queue.dlq_routing_key,
            },
        )
        for routing_key in queue.routing_keys:
            self._channel.queue_bind(
                queue=queue.name,
                exchange=self._config.exchange_name,
                routing_key=routing_key,
            )
