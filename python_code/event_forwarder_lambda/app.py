"""
Main AWS Lambda handler for the SQS event forwarder.

This module is the entry point and wiring layer of the function. Its
responsibilities are:
  - Loading and validating configuration once per execution environment.
  - Creating and caching the SQS client, the HTTP client and the DLQ cache.
  - Converting the SQS trigger event into inbound messages.
  - Handing the batch to the processor and returning a partial batch response,
    so that SQS redelivers only the records that failed.
"""

from typing import Any, Dict, Optional

from aws_lambda_powertools import Logger
from aws_lambda_powertools.utilities.data_classes import SQSEvent
from aws_lambda_powertools.utilities.typing import LambdaContext

from . import clients, core
from .config import Config
from .dlq import DLQStatusCache, QueueInspector
from .processor import BatchProcessor
from .sender import EventSender

logger = Logger(service="sqs-event-forwarder")

# Reused across invocations of a warm execution environment.
PROCESSOR: Optional[BatchProcessor] = None
DLQ_CACHE = DLQStatusCache()


def get_processor() -> BatchProcessor:
    """
    Returns the batch processor, building it on first use.

    Raises:
        ConfigurationError: If the environment is misconfigured. No record is
            touched in that case and the whole batch is retried by SQS.
    """
    global PROCESSOR
    if PROCESSOR is not None:
        return PROCESSOR

    config = Config.from_env()
    logger.setLevel(config.log_level)
    logger.info(
        "Initializing event forwarder.",
        extra={"ingestUrl": config.ingest_url, "environment": config.environment},
    )

    inspector = QueueInspector(clients.get_sqs_client(), DLQ_CACHE, logger)
    sender = EventSender(
        clients.get_http_client(config.http_timeout_seconds),
        config.ingest_url,
        config.api_token,
        logger,
    )
    PROCESSOR = BatchProcessor(config, inspector, sender, logger)
    return PROCESSOR


@logger.inject_lambda_context
def handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    """
    Main Lambda entry point, triggered by a batch of SQS messages.

    Returns the `batchItemFailures` response; the event source mapping must
    have `ReportBatchItemFailures` enabled for it to take effect.
    """
    processor = get_processor()
    sqs_event = SQSEvent(event)
    messages = [core.to_inbound_message(record.raw_event) for record in sqs_event.records]
    if not messages:
        logger.info("No messages to process.")
        return {"batchItemFailures": []}

    logger.info(f"Received {len(messages)} messages to process.")
    outcome = processor.process(messages, context.get_remaining_time_in_millis)
    if outcome.failed_message_ids:
        logger.warning(
            "Some records failed and will be redelivered.",
            extra={"failedIds": outcome.failed_message_ids},
        )
    return outcome.to_response()
