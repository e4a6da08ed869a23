"""
Structured logging setup.

Bucket URIs in log events are rendered as their raw reference, so writing
a log line never resolves them through the backend registry.
"""

import logging

import structlog
from structlog.typing import EventDict, WrappedLogger

from bucketstore.storage.bucket_uri import BucketURI

# Vendor SDK loggers that are noisy below WARNING
SDK_LOGGERS = ("boto3", "botocore", "s3transfer", "urllib3", "minio", "qiniu", "httpx", "httpcore")


def render_bucket_uris(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Replace bucket URI values with their unresolved reference."""
    for key, value in event_dict.items():
        if isinstance(value, BucketURI):
            event_dict[key] = value.raw
    return event_dict


def configure_logging(
    level: str = "INFO",
    format_json: bool = True,
    include_timestamp: bool = True,
    sdk_level: str = "WARNING",
) -> None:
    """
    Configure structlog and the standard library loggers it writes to.

    Args:
        level: Level for bucketstore loggers (DEBUG, INFO, WARNING, ERROR)
        format_json: Render JSON lines instead of console output
        include_timestamp: Add an ISO timestamp to every event
        sdk_level: Lowest level emitted by the vendor SDK loggers
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        render_bucket_uris,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))
    processors.append(structlog.processors.JSONRenderer() if format_json else structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        context_class=dict,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", level=log_level)
    logging.getLogger("bucketstore").setLevel(log_level)

    quiet_level = max(log_level, getattr(logging, sdk_level.upper(), logging.WARNING))
    for name in SDK_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)


__all__ = ["SDK_LOGGERS", "configure_logging", "render_bucket_uris"]
