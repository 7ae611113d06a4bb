"""
Structured logging for the availability engine.

Development gets readable one-line records; staging and production get JSON
records tagged with the venue so that several venues can share one sink.
"""
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional, TextIO

from pythonjsonlogger import jsonlogger

from core.config import Settings, settings as default_settings


PLAIN_FORMAT = '%(asctime)s %(levelname)-8s [%(name)s] %(message)s'
JSON_FIELDS = '%(timestamp)s %(level)s %(name)s %(message)s'

# Chatty driver loggers kept at WARNING unless SQL echo is on
DRIVER_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "asyncpg", "aiosqlite")


class EngineJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter that stamps every record with the service and venue."""

    def __init__(self, *args: Any, service: str = "", environment: str = "", venue: str = "", **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.static_fields = {
            'service': service,
            'environment': environment,
            'venue': venue,
        }

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any]
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record['timestamp'] = datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat()
        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        log_record.update(self.static_fields)

        if record.exc_info and 'exc_info' not in log_record:
            log_record['exc_info'] = self.formatException(record.exc_info)


def build_formatter(settings: Settings) -> logging.Formatter:
    if settings.is_development:
        return logging.Formatter(fmt=PLAIN_FORMAT)
    return EngineJsonFormatter(
        fmt=JSON_FIELDS,
        service=settings.app_name,
        environment=settings.app_env,
        venue=settings.business_name,
    )


def setup_logging(settings: Optional[Settings] = None, stream: Optional[TextIO] = None) -> None:
    """
    Configure the root logger.

    Args:
        settings: Settings to read the level, environment and venue from
        stream: Output stream (stdout by default)
    """
    settings = settings or default_settings

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(build_formatter(settings))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(settings.log_level)

    driver_level = logging.INFO if settings.db_echo else logging.WARNING
    for name in DRIVER_LOGGERS:
        logging.getLogger(name).setLevel(driver_level)

    root_logger.debug(
        "Logging configured",
        extra={"environment": settings.app_env, "venue_timezone": settings.business_timezone},
    )


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class LogContext:
    """
    Attach the same fields to several log calls.

    Used as a context manager it also records any exception escaping the
    block, then lets it propagate.
    """

    def __init__(self, logger: Optional[logging.Logger] = None, **fields: Any):
        self.logger = logger or get_logger(__name__)
        self.fields = fields

    def bind(self, **fields: Any) -> 'LogContext':
        return LogContext(self.logger, **{**self.fields, **fields})

    def log(self, level: str, message: str, **fields: Any) -> None:
        self.logger.log(logging.getLevelName(level.upper()), message, extra={**self.fields, **fields})

    def __enter__(self) -> 'LogContext':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type is not None:
            self.logger.error(
                f"{exc_type.__name__} raised: {exc_val}",
                extra=self.fields,
                exc_info=(exc_type, exc_val, exc_tb),
            )
