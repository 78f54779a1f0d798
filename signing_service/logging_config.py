"""
Logging configuration for the signing service.

Provides structured JSON logging for audit trails and debugging.
Only the HTTP layer logs; the signing core surfaces errors to its caller.
"""

import json
import logging
import sys
import time
import uuid
from contextvars import ContextVar
from typing import Optional

# Context variable for request ID tracking
request_id_var: ContextVar[str] = ContextVar('request_id', default='')


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Outputs logs in a consistent JSON format suitable for
    log aggregation systems.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": time.strftime('%Y-%m-%dT%H:%M:%SZ', time.gmtime(record.created)),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        request_id = request_id_var.get()
        if request_id:
            log_data["request_id"] = request_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, 'extra_fields'):
            log_data.update(record.extra_fields)

        return json.dumps(log_data, default=str)


class AuditLogger:
    """
    Specialized logger for signature device events.

    Never receives signatures, canonical data or key material; payloads
    are described by their length only.
    """

    def __init__(self, name: str = "signing_service.audit"):
        self._logger = logging.getLogger(name)

    def _log(self, level: int, event_type: str, **kwargs) -> None:
        extra = {
            "event_type": event_type,
            "request_id": request_id_var.get(),
            **kwargs
        }

        record = self._logger.makeRecord(
            self._logger.name,
            level,
            "",
            0,
            f"{event_type}: {kwargs.get('message', '')}",
            (),
            None
        )
        record.extra_fields = extra
        self._logger.handle(record)

    def device_created(self, device_id: str, algorithm: str, label: str) -> None:
        """Log creation of a signature device."""
        self._log(
            logging.INFO,
            "DEVICE_CREATED",
            device_id=device_id,
            algorithm=algorithm,
            label=label,
            message=f"Created {algorithm} signature device {device_id}"
        )

    def data_signed(self, device_id: str, counter: int, data_length: int) -> None:
        """Log a successful signature."""
        self._log(
            logging.INFO,
            "DATA_SIGNED",
            device_id=device_id,
            counter=counter,
            data_length=data_length,
            message=f"Device {device_id} signed data at counter {counter}"
        )

    def sign_failed(self, device_id: str, reason: str) -> None:
        """Log a signing failure."""
        self._log(
            logging.ERROR,
            "SIGN_FAILED",
            device_id=device_id,
            reason=reason,
            message=f"Signing failed for device {device_id}"
        )

    def device_not_found(self, device_id: str) -> None:
        self._log(
            logging.WARNING,
            "DEVICE_NOT_FOUND",
            device_id=device_id,
            message=f"Unknown signature device {device_id}"
        )

    def request_rejected(self, path: str, reason: str) -> None:
        """Log a request rejected as malformed or unsupported."""
        self._log(
            logging.WARNING,
            "REQUEST_REJECTED",
            path=path,
            reason=reason,
            message=f"Rejected request to {path}: {reason}"
        )


def configure_logging(
    level: str = "INFO",
    json_format: bool = True,
    log_file: Optional[str] = None
) -> None:
    """
    Configure logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON formatting (recommended for production)
        log_file: Optional file path for log output
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if json_format:
        formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


def set_request_id(request_id: Optional[str] = None) -> str:
    """
    Set the request ID for the current context.

    Args:
        request_id: Request ID to set, or None to generate one

    Returns:
        The request ID that was set
    """
    if request_id is None:
        request_id = str(uuid.uuid4())
    request_id_var.set(request_id)
    return request_id


# Global audit logger instance
audit_log = AuditLogger()
