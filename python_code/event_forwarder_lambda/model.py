"""
Data models for the SQS event forwarder.

This module defines the data structures passed between the classifier, the
normalizer, the sender and the batch processor. Dataclasses and TypedDicts keep
the contracts explicit and statically checked by mypy.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, TypedDict, Union


class SQSEventRecord(TypedDict, total=False):
    """
    Represents the structure of a single SQS message record from a Lambda event.

    Only the keys read by this application are listed.
    """

    messageId: str
    body: str
    attributes: Dict[str, str]
    messageAttributes: Dict[str, Dict[str, Any]]
    eventSourceARN: str


@dataclass(frozen=True)
class InboundMessage:
    """
    A single queue message as received, independent of the Lambda event shape.

    Attributes:
        message_id: Identifier of the message, unique within a batch.
        body: The raw message body.
        attributes: SQS delivery attributes (ApproximateReceiveCount, SentTimestamp, ...).
        message_attributes: Custom message attributes, reduced to their string values.
        queue_arn: ARN of the queue the batch was delivered from.
    """

    message_id: str
    body: str
    attributes: Mapping[str, str] = field(default_factory=dict)
    message_attributes: Mapping[str, str] = field(default_factory=dict)
    queue_arn: str = ""


@dataclass(frozen=True)
class RawMessage:
    """A body that is opaque content; `parsed` holds it when it was still a JSON object."""

    text: str
    parsed: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class PreFormedMessage:
    """A body that already encodes a monitoring event."""

    document: Dict[str, Any]


ClassifiedMessage = Union[RawMessage, PreFormedMessage]


@dataclass
class MonitoringEvent:
    """
    The canonical event shape accepted by the events ingest API.

    All times are epoch milliseconds. `entity_selector` is omitted from the
    wire format when it is empty, leaving the platform to apply its default.
    """

    event_type: str
    title: str
    start_time: int
    end_time: int
    timeout: int
    properties: Dict[str, Any] = field(default_factory=dict)
    entity_selector: Optional[str] = None

    def to_wire(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "endTime": self.end_time,
            "eventType": self.event_type,
            "properties": self.properties,
            "startTime": self.start_time,
            "timeout": self.timeout,
            "title": self.title,
        }
        if self.entity_selector:
            payload["entitySelector"] = self.entity_selector
        return payload


@dataclass
class BatchOutcome:
    """
    The result of processing one batch.

    Only failures are listed; any message absent from `failed_message_ids`
    was delivered and can be acknowledged. The list keeps arrival order and
    never contains the same identifier twice.
    """

    failed_message_ids: List[str] = field(default_factory=list)

    def mark_failed(self, message_id: str) -> None:
        if message_id not in self.failed_message_ids:
            self.failed_message_ids.append(message_id)

    def to_response(self) -> Dict[str, List[Dict[str, str]]]:
        """Renders the partial batch response understood by the SQS event source mapping."""
        return {
            "batchItemFailures": [
                {"itemIdentifier": message_id} for message_id in self.failed_message_ids
            ]
        }
