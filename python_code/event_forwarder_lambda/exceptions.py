"""Exceptions raised by the event forwarder."""

from typing import Optional


class ForwarderError(Exception):
    """Base class for all forwarder errors."""


class ConfigurationError(ForwarderError, ValueError):
    """Required configuration is missing or invalid. Fatal at start-up."""


class NormalizationError(ForwarderError):
    """A pre-formed event could not be re-encoded into the canonical event shape."""


class SendError(ForwarderError):
    """The ingest API rejected an event or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
