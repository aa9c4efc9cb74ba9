"""Shared fixtures for the event forwarder tests."""

from dataclasses import dataclass
from typing import Dict, Optional

import pytest
from aws_lambda_powertools import Logger

from event_forwarder_lambda.config import Config
from event_forwarder_lambda.model import InboundMessage

QUEUE_ARN = "arn:aws:sqs:us-east-1:123456789012:orders"
DLQ_ARN = "arn:aws:sqs:us-east-1:123456789012:orders-dlq"


@pytest.fixture
def aws_credentials(monkeypatch):
    """Mocked AWS credentials so that moto never reaches a real account."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    monkeypatch.setenv("AWS_REGION", "us-east-1")
    monkeypatch.setenv("USE_MOTO", "1")


@pytest.fixture
def config() -> Config:
    return Config(
        base_url="https://abc123.live.example.com/",
        api_token="secret-token",
        entity_selector="type(SERVICE)",
        event_type="AVAILABILITY_EVENT",
        timeout_ms=15,
        title_max=20,
        original_queue_property="originalQueueArn",
        dlq_prefix="[DQL]",
    )


@pytest.fixture
def logger() -> Logger:
    return Logger(service="sqs-event-forwarder-test")


def make_message(
    message_id: str = "msg-1",
    body: str = "hello",
    message_attributes: Optional[Dict[str, str]] = None,
    queue_arn: str = QUEUE_ARN,
) -> InboundMessage:
    return InboundMessage(
        message_id=message_id,
        body=body,
        attributes={
            "ApproximateReceiveCount": "2",
            "SentTimestamp": "1700000000000",
            "ApproximateFirstReceiveTimestamp": "1700000000500",
        },
        message_attributes=message_attributes or {},
        queue_arn=queue_arn,
    )


@dataclass
class FakeLambdaContext:
    function_name: str = "sqs-event-forwarder"
    memory_limit_in_mb: int = 128
    invoked_function_arn: str = "arn:aws:lambda:us-east-1:123456789012:function:sqs-event-forwarder"
    aws_request_id: str = "req-123"
    remaining_ms: int = 60_000

    def get_remaining_time_in_millis(self) -> int:
        return self.remaining_ms
