"""Delivery of monitoring events to the events ingest API."""

from typing import Any, Dict, Optional

import httpx
from aws_lambda_powertools import Logger

from .exceptions import SendError
from .model import MonitoringEvent


class EventSender:
    """
    POSTs events to the ingest endpoint, one request per event.

    Failures are reported as SendError and never retried here; redelivery is
    left to the queue.
    """

    def __init__(self, http_client: httpx.Client, ingest_url: str, api_token: str, logger: Logger):
        self._http = http_client
        self._ingest_url = ingest_url
        self._headers = {
            "Authorization": f"Api-Token {api_token}",
            "Content-Type": "application/json",
        }
        self._logger = logger

    def send(self, event: MonitoringEvent, timeout: Optional[float] = None) -> None:
        """
        `timeout` overrides the client's request timeout for this event only.

        Raises:
            SendError: On a non-2xx status or a transport failure.
        """
        payload = event.to_wire()
        self._logger.debug("Sending event to ingest API.", extra={"event": payload})
        options: Dict[str, Any] = {}
        if timeout is not None:
            options["timeout"] = timeout
        try:
            response = self._http.post(
                self._ingest_url, json=payload, headers=self._headers, **options
            )
        except httpx.HTTPError as e:
            raise SendError(f"Ingest request failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise SendError(
                f"Ingest rejected event: status={response.status_code} body={response.text[:200]}",
                status_code=response.status_code,
            )
