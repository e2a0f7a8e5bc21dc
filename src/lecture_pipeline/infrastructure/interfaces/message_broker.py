"""Abstract interface for message broker operations."""

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any


class MessageBroker(ABC):
    """Abstract base class for consuming pipeline events."""

    @abstractmethod
    def acknowledge(self, delivery_tag: int) -> None:
        """
        Acknowledges successful processing of a message.

        Args:
            delivery_tag: The message delivery tag.
        """

    @abstractmethod
    def reject(self, delivery_tag: int, requeue: bool = True) -> None:
        """
        Rejects a message, triggering redelivery or dead-lettering.

        Args:
            delivery_tag: The message delivery tag.
            requeue: Whether the broker should redeliver the message.
        """

    @abstractmethod
    def consume(
        self, callback: Callable[[str, bytes, int, dict[str, Any] | None], None]
    ) -> None:
        """
        Starts consuming messages from the configured queue.

        Args:
            callback: Called with (routing_key, body, delivery_tag, headers).
        """

    @abstractmethod
    def stop(self) -> None:
        """Stops consuming and closes the connection."""

    @abstractmethod
    def setup(self) -> None:
        """Sets up exchanges, queues, and bindings for the pipeline."""
