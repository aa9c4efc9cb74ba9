"""
Batch orchestration for the SQS event forwarder.

The processor owns no global state: the configuration, the DLQ inspector, the
sender and the clock are all injected, so independent instances can run side
by side in tests.
"""

import time
from typing import Callable, Optional, Sequence

from aws_lambda_powertools import Logger

from . import core
from .config import Config
from .dlq import QueueInspector
from .model import BatchOutcome, InboundMessage
from .sender import EventSender


def now_millis() -> int:
    return int(time.time() * 1000)


class BatchProcessor:
    """Converts each message of a batch into an event and delivers it, record by record."""

    def __init__(
        self,
        config: Config,
        inspector: QueueInspector,
        sender: EventSender,
        logger: Logger,
        clock: Callable[[], int] = now_millis,
    ):
        self._config = config
        self._inspector = inspector
        self._sender = sender
        self._logger = logger
        self._clock = clock

    def process(
        self,
        messages: Sequence[InboundMessage],
        remaining_time_ms: Optional[Callable[[], int]] = None,
    ) -> BatchOutcome:
        """
        Processes a batch and returns the identifiers of the records that failed.

        DLQ status is resolved once, from the first record's queue; all records
        of an SQS batch normally share one source queue, but this is not
        checked. A failure in one record never stops the others. When
        `remaining_time_ms` reports less time than the configured margin, the
        records not yet attempted are reported as failed so they are redelivered,
        and each send is given only the time left before that margin.
        """
        outcome = BatchOutcome()
        if not messages:
            return outcome

        start_ms = self._clock()
        queue_is_dlq = self._inspector.is_dead_letter_queue(messages[0].queue_arn)

        for index, message in enumerate(messages):
            timeout = None
            if remaining_time_ms is not None:
                budget_ms = remaining_time_ms() - self._config.deadline_margin_ms
                if budget_ms <= 0:
                    skipped = [m.message_id for m in messages[index:]]
                    self._logger.warning(
                        "Deadline approaching; deferring remaining records.",
                        extra={"deferred": len(skipped)},
                    )
                    for message_id in skipped:
                        outcome.mark_failed(message_id)
                    break
                # A send must not outlive the invocation.
                timeout = min(self._config.http_timeout_seconds, budget_ms / 1000)

            try:
                self._process_record(message, queue_is_dlq, timeout)
            except Exception:
                self._logger.exception(
                    "Failed to forward record.", extra={"messageId": message.message_id}
                )
                outcome.mark_failed(message.message_id)

        failed = len(outcome.failed_message_ids)
        core.emit_metrics(
            self._logger,
            self._config.environment,
            "PartialFailure" if failed else "Success",
            {
                "received": len(messages),
                "failed": failed,
                "is_dlq": queue_is_dlq,
                "latency_ms": self._clock() - start_ms,
            },
        )
        return outcome

    def _process_record(
        self, message: InboundMessage, queue_is_dlq: bool, timeout: Optional[float]
    ) -> None:
        event = core.build_event(message, queue_is_dlq, self._clock(), self._config)
        self._sender.send(event, timeout=timeout)
        self._logger.info(
            "Forwarded record.", extra={"messageId": message.message_id, "title": event.title}
        )
