"""
Dead-letter queue detection.

A queue is a DLQ when at least one other queue names it as the target of its
redrive policy. The lookup costs two SQS API calls, so results are memoized for
the lifetime of the execution environment.
"""

import threading
from typing import Dict, Optional, Tuple

from aws_lambda_powertools import Logger
from botocore.exceptions import BotoCoreError, ClientError
from mypy_boto3_sqs.client import SQSClient


class DLQStatusCache:
    """Thread-safe queue ARN -> is-DLQ memo. No eviction; few distinct queues are ever seen."""

    def __init__(self) -> None:
        self._values: Dict[str, bool] = {}
        self._lock = threading.Lock()

    def get(self, queue_arn: str) -> Optional[bool]:
        with self._lock:
            return self._values.get(queue_arn)

    def set(self, queue_arn: str, is_dlq: bool) -> None:
        with self._lock:
            self._values[queue_arn] = is_dlq

    def __len__(self) -> int:
        with self._lock:
            return len(self._values)


def parse_queue_arn(queue_arn: str) -> Tuple[str, str, str]:
    """
    Splits `arn:aws:sqs:REGION:ACCOUNT:NAME` into (region, account, name).

    Raises:
        ValueError: If the ARN does not have the expected shape.
    """
    parts = queue_arn.split(":")
    if len(parts) < 6 or parts[0] != "arn" or not parts[5]:
        raise ValueError(f"Not an SQS queue ARN: {queue_arn!r}")
    return parts[3], parts[4], parts[5]


class QueueInspector:
    """
    Resolves whether a queue is a dead-letter queue.

    Lookup failures fail open: the queue is treated as a regular queue and that
    answer is cached, so one invocation never repeats a failing lookup. An
    unclassified queue therefore never blocks event delivery.
    """

    def __init__(self, sqs_client: SQSClient, cache: DLQStatusCache, logger: Logger):
        self._sqs = sqs_client
        self._cache = cache
        self._logger = logger

    def is_dead_letter_queue(self, queue_arn: str) -> bool:
        if not queue_arn:
            return False

        cached = self._cache.get(queue_arn)
        if cached is not None:
            return cached

        try:
            _, account, name = parse_queue_arn(queue_arn)
            queue_url = self._sqs.get_queue_url(
                QueueName=name, QueueOwnerAWSAccountId=account
            )["QueueUrl"]
            response = self._sqs.list_dead_letter_source_queues(
                QueueUrl=queue_url, MaxResults=10
            )
            is_dlq = len(response.get("queueUrls", [])) > 0
        except (ClientError, BotoCoreError, ValueError, KeyError) as e:
            self._logger.warning(
                "Could not determine DLQ status; assuming regular queue.",
                extra={"queueArn": queue_arn, "error": str(e)},
            )
            is_dlq = False

        self._cache.set(queue_arn, is_dlq)
        self._logger.info(
            "Resolved DLQ status.", extra={"queueArn": queue_arn, "isDLQ": is_dlq}
        )
        return is_dlq
