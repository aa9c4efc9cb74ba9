"""
A factory module for creating the SQS and HTTP clients.

This is the seam where the handler receives either real clients or mocked ones
during testing. With `moto` active, the boto3 calls below are intercepted and
return mocked clients; the HTTP client can be replaced by passing a transport.
"""

import logging
import os
from typing import Optional

import boto3
import botocore.config
import httpx
from mypy_boto3_sqs import SQSClient

logger = logging.getLogger(__name__)

# Queue metadata lookups happen at most once per queue per execution
# environment, so a short adaptive retry budget is enough.
BOTO_CONFIG_RETRYABLE = botocore.config.Config(
    retries={"max_attempts": 3, "mode": "adaptive"},
    connect_timeout=2,
    read_timeout=5,
)


def get_sqs_client() -> SQSClient:
    """
    Returns an SQS client used for dead-letter queue lookups.

    The AWS region is explicitly read from the environment to ensure consistent
    and predictable behavior.
    """
    aws_region = os.environ.get("AWS_REGION")
    if not aws_region:
        logger.warning("AWS_REGION not set, boto3 will attempt to resolve it.")

    if os.environ.get("USE_MOTO"):
        logger.info("MOTO ENABLED: Returning mocked SQS client.")

    sqs_client: SQSClient = boto3.client(
        "sqs", region_name=aws_region, config=BOTO_CONFIG_RETRYABLE
    )
    return sqs_client


def get_http_client(
    timeout_seconds: float, transport: Optional[httpx.BaseTransport] = None
) -> httpx.Client:
    """Returns a synchronous HTTP client with a fixed request timeout."""
    return httpx.Client(timeout=httpx.Timeout(timeout_seconds), transport=transport)
