"""
Structured logging for the provisioner.

Provides a pre-configured logger that emits JSON-structured log records
with provisioning context (provider, region, instance, phase). It doubles
as the observability sink: progress narration and phase metrics are both
written through it.
"""

from __future__ import annotations

import json
import logging
import uuid
from typing import Any

_CONTEXT_KEYS = ("request_id", "provider", "region", "instance_id", "phase", "metric", "seconds")


class StructuredFormatter(logging.Formatter):
    """Emit log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        # Attach any extras injected via ProvisionLogger.log_operation
        for key in _CONTEXT_KEYS:
            val = getattr(record, key, None)
            if val is not None:
                log_entry[key] = val
        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = str(record.exc_info[1])
        return json.dumps(log_entry)


class ProvisionLogger:
    """Convenience wrapper around :mod:`logging` for provisioning runs."""

    def __init__(self, name: str = "provisioner.ui") -> None:
        self.logger = logging.getLogger(name)
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(StructuredFormatter())
            self.logger.addHandler(handler)
            self.logger.setLevel(logging.INFO)

    def log_operation(
        self,
        level: int,
        message: str,
        *,
        provider: str | None = None,
        region: str | None = None,
        instance_id: str | None = None,
        phase: str | None = None,
        request_id: str | None = None,
        exc_info: bool = False,
        **extra_fields: Any,
    ) -> None:
        """Emit a structured log record with provisioning context.

        Args:
            level: Logging level (e.g. logging.INFO).
            message: Human-readable message.
            provider: Cloud provider name.
            region: Region the instance lives in.
            instance_id: Provider-assigned instance ID, once known.
            phase: Provisioning phase (e.g. 'wait_ready').
            request_id: Optional correlation ID; auto-generated if omitted.
            exc_info: Whether to include exception info.
        """
        extra = {
            "provider": provider,
            "region": region,
            "instance_id": instance_id,
            "phase": phase,
            "request_id": request_id or uuid.uuid4().hex[:12],
            **extra_fields,
        }
        self.logger.log(level, message, extra=extra, exc_info=exc_info)

    def info(self, message: str, **kwargs: Any) -> None:
        self.log_operation(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self.log_operation(logging.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self.log_operation(logging.ERROR, message, **kwargs)

    def debug(self, message: str, **kwargs: Any) -> None:
        self.log_operation(logging.DEBUG, message, **kwargs)

    def metric(self, name: str, seconds: float, **kwargs: Any) -> None:
        """Record a phase duration."""
        self.log_operation(
            logging.INFO,
            f"{name}: {seconds:.2f}s",
            metric=name,
            seconds=round(seconds, 3),
            **kwargs,
        )


# Module-level singleton
pv_logger = ProvisionLogger()
