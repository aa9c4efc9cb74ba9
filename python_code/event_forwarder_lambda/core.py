"""
Core business logic for the SQS event forwarder.

These functions are "pure" and testable: they make no AWS or HTTP calls and
hold no global state. Configuration, the current time and the Powertools
logger are passed in by the caller, so each step can be unit-tested in
isolation.
"""

import json
from typing import Any, Dict, Optional

from aws_lambda_powertools import Logger

from .config import Config
from .exceptions import NormalizationError
from .model import (
    ClassifiedMessage,
    InboundMessage,
    MonitoringEvent,
    PreFormedMessage,
    RawMessage,
    SQSEventRecord,
)

EVENT_KEYS = frozenset(
    {"endTime", "entitySelector", "eventType", "properties", "startTime", "timeout", "title"}
)
PREFORMED_MIN_SCORE = 3
TRUNCATION_MARKER = "…"
ORIGINAL_QUEUE_PROPERTY = "originalQueue"


def to_inbound_message(record: SQSEventRecord) -> InboundMessage:
    """Converts a raw SQS record from the Lambda event into an InboundMessage."""
    message_attributes = {
        key: value["stringValue"]
        for key, value in (record.get("messageAttributes") or {}).items()
        if isinstance(value, dict) and value.get("stringValue") is not None
    }
    return InboundMessage(
        message_id=record.get("messageId") or "",
        body=record.get("body") or "",
        attributes=dict(record.get("attributes") or {}),
        message_attributes=message_attributes,
        queue_arn=record.get("eventSourceARN") or "",
    )


def _reject_constant(token: str) -> Any:
    raise ValueError(f"Invalid JSON constant: {token}")


def _loads(body: str) -> Any:
    """Strict JSON parsing; NaN and Infinity are not JSON."""
    return json.loads(body, parse_constant=_reject_constant)


def _parse_object(body: str) -> Optional[Dict[str, Any]]:
    try:
        parsed = _loads(body)
    except (ValueError, TypeError):
        return None
    return parsed if isinstance(parsed, dict) else None


def looks_like_event(document: Dict[str, Any]) -> bool:
    """
    Decides whether a JSON object is already a monitoring event.

    It is when it carries both `eventType` and `title`, or when at least three
    of the canonical event keys are present.
    """
    if "eventType" in document and "title" in document:
        return True
    score = sum(1 for key in EVENT_KEYS if key in document)
    return score >= PREFORMED_MIN_SCORE


def classify(body: str) -> ClassifiedMessage:
    parsed = _parse_object(body)
    if parsed is not None and looks_like_event(parsed):
        return PreFormedMessage(document=parsed)
    return RawMessage(text=body, parsed=parsed)


def compact(body: str) -> str:
    """
    Renders a body for use as a title.

    A JSON string is unwrapped, any other JSON value is re-serialized without
    whitespace, and anything that is not JSON is returned verbatim.
    """
    try:
        value = _loads(body)
    except (ValueError, TypeError):
        return body
    if isinstance(value, str):
        return value
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def truncate(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[:max_length] + TRUNCATION_MARKER


def prefix_title_if_dlq(title: str, is_dlq: bool, prefix: str) -> str:
    """Prefixes a title with the DLQ marker. Idempotent."""
    if not is_dlq or title.startswith(prefix):
        return title
    return f"{prefix} {title}".strip()


def resolve_original_queue_hint(
    message: InboundMessage, parsed: Optional[Dict[str, Any]], property_name: str
) -> Optional[str]:
    """
    Finds the queue a redelivered message originally came from.

    A non-empty string property in the body wins over a message attribute of
    the same name.
    """
    if parsed is not None:
        value = parsed.get(property_name)
        if isinstance(value, str) and value:
            return value
    value = message.message_attributes.get(property_name)
    if isinstance(value, str) and value:
        return value
    return None


def base_enrichment(message: InboundMessage) -> Dict[str, Any]:
    """Delivery metadata describing the current delivery attempt."""
    attributes = message.attributes
    return {
        "sqsMessageId": message.message_id,
        "queueArn": message.queue_arn,
        "approximateReceiveCount": attributes.get("ApproximateReceiveCount", ""),
        "sentTimestamp": attributes.get("SentTimestamp", ""),
        "firstReceiveTimestamp": attributes.get("ApproximateFirstReceiveTimestamp", ""),
    }


def _as_int(document: Dict[str, Any], key: str) -> int:
    value = document.get(key)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise NormalizationError(f"'{key}' must be an integer, got {type(value).__name__}")
    if isinstance(value, float) and not value.is_integer():
        raise NormalizationError(f"'{key}' must be an integer, got {value!r}")
    return int(value)


def _as_str(document: Dict[str, Any], key: str) -> str:
    value = document.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise NormalizationError(f"'{key}' must be a string, got {type(value).__name__}")
    return value


def to_monitoring_event(document: Dict[str, Any]) -> MonitoringEvent:
    """
    Re-encodes a JSON object into the canonical event shape.

    Keys outside the canonical set are dropped. Missing or null fields take
    their zero value.

    Raises:
        NormalizationError: If a canonical field has the wrong type.
    """
    properties = document.get("properties")
    if properties is None:
        properties = {}
    if not isinstance(properties, dict):
        raise NormalizationError("'properties' must be an object")
    return MonitoringEvent(
        event_type=_as_str(document, "eventType"),
        title=_as_str(document, "title"),
        start_time=_as_int(document, "startTime"),
        end_time=_as_int(document, "endTime"),
        timeout=_as_int(document, "timeout"),
        properties=properties,
        entity_selector=_as_str(document, "entitySelector") or None,
    )


def enrich_preformed(
    document: Dict[str, Any],
    message: InboundMessage,
    hint: Optional[str],
    is_dlq: bool,
    now_ms: int,
    config: Config,
) -> MonitoringEvent:
    """
    Completes an event the producer already built.

    Existing properties are kept; only the delivery metadata keys and
    `originalQueue` are overwritten. Time fields, timeout and entity selector
    are filled in only when absent. `document` is updated in place.
    """
    properties = document.get("properties")
    if not isinstance(properties, dict):
        properties = {}
        document["properties"] = properties
    properties.update(base_enrichment(message))
    if hint:
        properties[ORIGINAL_QUEUE_PROPERTY] = hint

    document.setdefault("startTime", now_ms)
    document.setdefault("endTime", now_ms)
    document.setdefault("timeout", config.timeout_ms)
    if "entitySelector" not in document and config.entity_selector:
        document["entitySelector"] = config.entity_selector

    title = document.get("title")
    if isinstance(title, str):
        document["title"] = prefix_title_if_dlq(title, is_dlq, config.dlq_prefix)

    return to_monitoring_event(document)


def synthesize_raw(
    raw: RawMessage,
    message: InboundMessage,
    hint: Optional[str],
    is_dlq: bool,
    now_ms: int,
    config: Config,
) -> MonitoringEvent:
    """Builds a new event around an opaque body."""
    title = truncate(compact(raw.text), config.title_max)
    properties = base_enrichment(message)
    if hint:
        properties[ORIGINAL_QUEUE_PROPERTY] = hint
    return MonitoringEvent(
        event_type=config.event_type,
        title=prefix_title_if_dlq(title, is_dlq, config.dlq_prefix),
        start_time=now_ms,
        end_time=now_ms,
        timeout=config.timeout_ms,
        properties=properties,
        entity_selector=config.entity_selector if config.raw_entity_selector else None,
    )


def build_event(
    message: InboundMessage, queue_is_dlq: bool, now_ms: int, config: Config
) -> MonitoringEvent:
    """
    Turns one inbound message into the event to deliver.

    A record counts as DLQ-associated when its queue is a DLQ or when it
    carries an original-queue hint.

    Raises:
        NormalizationError: If a pre-formed event cannot be re-encoded.
    """
    classified = classify(message.body)
    parsed = classified.document if isinstance(classified, PreFormedMessage) else classified.parsed
    hint = resolve_original_queue_hint(message, parsed, config.original_queue_property)
    is_dlq = queue_is_dlq or hint is not None

    if isinstance(classified, PreFormedMessage):
        event = enrich_preformed(classified.document, message, hint, is_dlq, now_ms, config)
    else:
        event = synthesize_raw(classified, message, hint, is_dlq, now_ms, config)

    # Pre-formed titles and the DLQ prefix are bounded too.
    event.title = truncate(event.title, config.title_max)
    return event


def emit_metrics(logger: Logger, environment: str, status: str, payload: Dict[str, Any]) -> None:
    """Emits a structured batch summary that log-based metric filters can count."""
    logger.info(
        f"Batch {status}",
        extra={"metric": True, "environment": environment, "status": status, **payload},
    )
