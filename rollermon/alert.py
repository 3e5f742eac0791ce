"""Alerts raised by the roller monitor and the notification messages built from them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class PublishInput:
    """A message to publish to a notification topic."""

    message: str
    topic_arn: Optional[str] = None
    subject: Optional[str] = None
    target_arn: Optional[str] = None
    phone_number: Optional[str] = None
    message_structure: Optional[str] = None
    message_group_id: Optional[str] = None
    message_deduplication_id: Optional[str] = None
    message_attributes: Optional[dict] = None


@dataclass
class MonitorAlert:
    """An alert about a commitment that was not rolled up in time."""

    error_message: str
    topic_arn: Optional[str] = None

    def into_message(self) -> PublishInput:
        """Build the notification message carrying this alert."""
        return PublishInput(message=self.error_message, topic_arn=self.topic_arn)