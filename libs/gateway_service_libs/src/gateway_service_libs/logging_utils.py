"""
Structlog setup shared by the gateway service and its client SDK.

Every log line carries the service name, the deployment environment and,
while a request is in flight, the correlation context bound by the HTTP
middleware. Output is human-readable in development and JSON in production.
"""

from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

import structlog
from structlog.contextvars import bind_contextvars, clear_contextvars, merge_contextvars
from structlog.typing import Processor

DEFAULT_LOG_MAX_BYTES = 100 * 1024 * 1024
DEFAULT_LOG_BACKUP_COUNT = 10


def add_service_context(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Stamp ``service.name`` and ``deployment.environment`` onto each event.

    Both values come from the ``SERVICE_NAME`` and ``ENVIRONMENT`` variables,
    which ``configure_service_logging`` seeds when they are unset.
    """
    event_dict["service.name"] = os.getenv("SERVICE_NAME", "unknown")
    event_dict["deployment.environment"] = os.getenv("ENVIRONMENT", "development")
    return event_dict


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


def _wants_json(environment: str) -> bool:
    # LOG_FORMAT wins over the environment-based default
    log_format = os.getenv("LOG_FORMAT", "").lower()
    if log_format:
        return log_format == "json"
    return environment == "production"


def _processor_chain(use_json: bool) -> list[Processor]:
    shared: list[Processor] = [
        merge_contextvars,
        add_service_context,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.FILENAME,
                structlog.processors.CallsiteParameter.FUNC_NAME,
                structlog.processors.CallsiteParameter.LINENO,
            ],
        ),
    ]
    if use_json:
        return [*shared, structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return [*shared, structlog.dev.set_exc_info, structlog.dev.ConsoleRenderer(colors=True)]


def _file_handler(service_name: str, log_file_path: str | None) -> logging.Handler:
    log_file = Path(log_file_path or os.getenv("LOG_FILE_PATH", f"./logs/{service_name}.log"))
    log_file.parent.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(
        filename=str(log_file),
        maxBytes=int(os.getenv("LOG_MAX_BYTES", str(DEFAULT_LOG_MAX_BYTES))),
        backupCount=int(os.getenv("LOG_BACKUP_COUNT", str(DEFAULT_LOG_BACKUP_COUNT))),
        encoding="utf-8",
    )


def configure_service_logging(
    service_name: str,
    environment: str | None = None,
    log_level: str = "INFO",
    log_to_file: bool | None = None,
    log_file_path: str | None = None,
) -> None:
    """Route stdlib logging and structlog through one processor chain.

    Args:
        service_name: Reported as ``service.name``; also names the default log file
        environment: Deployment environment; ``ENVIRONMENT`` when omitted
        log_level: Root level name such as ``"INFO"``
        log_to_file: Add a rotating file handler; ``LOG_TO_FILE`` when omitted
        log_file_path: File for that handler; ``LOG_FILE_PATH`` or
            ``./logs/<service_name>.log`` when omitted

    ``LOG_FORMAT=json|console`` overrides the environment's default renderer;
    ``LOG_MAX_BYTES`` and ``LOG_BACKUP_COUNT`` tune file rotation.
    """
    environment = environment or os.getenv("ENVIRONMENT", "development")
    os.environ.setdefault("SERVICE_NAME", service_name)
    os.environ.setdefault("ENVIRONMENT", environment)

    if log_to_file is None:
        log_to_file = _env_flag("LOG_TO_FILE")

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_to_file:
        handlers.append(_file_handler(service_name, log_file_path))

    logging.basicConfig(
        format="%(message)s",
        handlers=handlers,
        level=getattr(logging, log_level.upper()),
        force=True,
    )

    structlog.configure(
        processors=_processor_chain(_wants_json(environment)),
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def create_service_logger(name: str | None = None) -> Any:
    """Return a structlog logger, bound to ``logger_name`` when ``name`` is given."""
    logger = structlog.get_logger()
    if name:
        logger = logger.bind(logger_name=name)
    return logger


def bind_request_context(correlation_id: str, **additional_context: Any) -> None:
    """Replace the contextvars of the current request with a fresh correlation context."""
    clear_contextvars()
    bind_contextvars(correlation_id=correlation_id, **additional_context)
