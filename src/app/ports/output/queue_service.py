from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping


class IQueueService(ABC):
    """Messaging port carrying device position reports."""

    @abstractmethod
    def publish_report(self, message: Mapping[str, Any]) -> str:
        """Publish a report message and return its provider message id."""

    @abstractmethod
    def consume_reports(
        self, *, max_messages: int = 1, wait_time_s: int = 10
    ) -> list[Mapping[str, Any]]:
        """Consume up to N messages and return decoded message bodies."""
