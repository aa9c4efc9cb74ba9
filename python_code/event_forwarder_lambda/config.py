"""
Configuration for the SQS event forwarder.

All options are read from environment variables exactly once, when the first
batch arrives, and validated together so that a misconfigured function fails
before it touches any message. An empty variable is treated as unset.
"""

import os
from dataclasses import dataclass
from typing import List, Mapping, Optional

from .exceptions import ConfigurationError

INGEST_PATH = "/api/v2/events/ingest"

_TRUE_VALUES = {"1", "true", "yes", "on"}


def get_env_var(
    environ: Mapping[str, str], name: str, default: Optional[str] = None
) -> str:
    """
    Gets an environment variable or raises a ConfigurationError for fast-failure.

    Args:
        environ: The mapping to read from, normally `os.environ`.
        name: The name of the environment variable.
        default: An optional default value. If not provided, the variable is required.

    Returns:
        The value of the environment variable.

    Raises:
        ConfigurationError: If the required environment variable is not set.
    """
    value = environ.get(name) or default
    if value is None:
        raise ConfigurationError(f"FATAL: Environment variable '{name}' is not set.")
    return value


@dataclass(frozen=True)
class Config:
    """Validated, immutable settings injected into the batch processor."""

    base_url: str
    api_token: str
    entity_selector: Optional[str] = None
    event_type: str = "AVAILABILITY_EVENT"
    timeout_ms: int = 0
    title_max: int = 500
    original_queue_property: str = "originalQueueArn"
    dlq_prefix: str = "[DQL]"
    raw_entity_selector: bool = False
    http_timeout_seconds: float = 10.0
    deadline_margin_ms: int = 1000
    environment: str = "dev"
    log_level: str = "INFO"

    @property
    def ingest_url(self) -> str:
        return self.base_url.rstrip("/") + INGEST_PATH

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Config":
        """
        Builds a Config from environment variables.

        Every problem is collected first so a single error lists all of them.

        Raises:
            ConfigurationError: If a required variable is missing or a value is invalid.
        """
        env = os.environ if environ is None else environ
        errors: List[str] = []

        def required(name: str) -> str:
            try:
                return get_env_var(env, name)
            except ConfigurationError as e:
                errors.append(str(e))
                return ""

        def integer(name: str, default: str, minimum: int) -> int:
            raw = get_env_var(env, name, default)
            try:
                value = int(raw)
            except ValueError:
                errors.append(f"FATAL: Environment variable '{name}' is not an integer: {raw!r}")
                return int(default)
            if value < minimum:
                errors.append(f"FATAL: Environment variable '{name}' must be >= {minimum}, got {value}")
            return value

        base_url = required("DT_URL")
        api_token = required("DT_TOKEN")
        timeout_ms = integer("DT_TIMEOUT_MS", "0", 0)
        title_max = integer("DT_TITLE_MAX", "500", 1)
        deadline_margin_ms = integer("DEADLINE_MARGIN_MS", "1000", 0)

        http_timeout_raw = get_env_var(env, "DT_HTTP_TIMEOUT_SECONDS", "10")
        try:
            http_timeout_seconds = float(http_timeout_raw)
        except ValueError:
            errors.append(
                f"FATAL: Environment variable 'DT_HTTP_TIMEOUT_SECONDS' is not a number: {http_timeout_raw!r}"
            )
            http_timeout_seconds = 10.0

        if base_url and not base_url.startswith(("http://", "https://")):
            errors.append(f"FATAL: DT_URL must be an http(s) URL, got {base_url!r}")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return cls(
            base_url=base_url,
            api_token=api_token,
            entity_selector=env.get("DT_ENTITY_SELECTOR") or None,
            event_type=get_env_var(env, "DT_EVENT_TYPE", "AVAILABILITY_EVENT"),
            timeout_ms=timeout_ms,
            title_max=title_max,
            original_queue_property=get_env_var(env, "DT_ORIGINAL_QUEUE_PROP", "originalQueueArn"),
            dlq_prefix=get_env_var(env, "DT_DLQ_PREFIX", "[DQL]"),
            raw_entity_selector=get_env_var(env, "DT_RAW_ENTITY_SELECTOR", "false").lower() in _TRUE_VALUES,
            http_timeout_seconds=http_timeout_seconds,
            deadline_margin_ms=deadline_margin_ms,
            environment=get_env_var(env, "ENVIRONMENT", "dev"),
            log_level=get_env_var(env, "LOG_LEVEL", "INFO").upper(),
        )
