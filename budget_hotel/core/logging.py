"""
Logging setup shared by the API, the services and the sweep scheduler.

Standard-library logging configured through dictConfig, plus a structlog
pipeline for security events. Request IDs are carried in a ContextVar and
stamped on every record.
"""

import logging
import logging.config
from typing import Any, Dict, Optional
from contextvars import ContextVar

import structlog

from budget_hotel.config.logging import build_logging_config
from budget_hotel.config.settings import Settings, get_settings

# Set by RequestIDMiddleware for the duration of a request
request_id: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
user_id: ContextVar[Optional[str]] = ContextVar('user_id', default=None)

SENSITIVE_KEYS = (
    'password', 'token', 'secret', 'key', 'credentials',
    'authorization', 'cookie', 'card', 'cvv', 'phone',
)


class RequestContextFilter(logging.Filter):
    """Stamp request and user ids on every record"""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, 'request_id'):
            record.request_id = request_id.get() or '-'
        uid = user_id.get()
        if uid and not hasattr(record, 'user_id'):
            record.user_id = uid
        return True


def sanitize_event_dict(event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Replace values of sensitive keys with a redaction marker, recursively."""
    for key in list(event_dict.keys()):
        if any(sensitive in key.lower() for sensitive in SENSITIVE_KEYS):
            event_dict[key] = '[REDACTED]'
        elif isinstance(event_dict[key], dict):
            sanitize_event_dict(event_dict[key])
    return event_dict


def _add_request_context(logger, method_name, event_dict):
    rid = request_id.get()
    if rid:
        event_dict['request_id'] = rid
    uid = user_id.get()
    if uid:
        event_dict.setdefault('user_id', uid)
    event_dict['service'] = 'budget-hotel'
    return event_dict


def _mark_security_event(logger, method_name, event_dict):
    event_dict['security_event'] = True
    return sanitize_event_dict(event_dict)


def configure_structlog(settings: Settings) -> None:
    """Route structlog events through the stdlib handlers built by dictConfig."""
    renderer = (
        structlog.processors.JSONRenderer()
        if settings.LOG_FORMAT == "json"
        else structlog.processors.KeyValueRenderer(key_order=['event'])
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            _add_request_context,
            _mark_security_event,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )


class LoggerAdapter(logging.LoggerAdapter):
    """
    Adapter that merges bound fields into ``extra`` on every call.

    ``bind`` returns a new adapter so a service can tag its records with a
    booking id without affecting other callers.
    """

    def __init__(self, logger: logging.Logger, fields: Optional[Dict[str, Any]] = None):
        super().__init__(logger, dict(fields or {}))

    def bind(self, **fields) -> 'LoggerAdapter':
        return LoggerAdapter(self.logger, {**self.extra, **fields})

    def process(self, msg, kwargs):
        kwargs['extra'] = {**self.extra, **(kwargs.get('extra') or {})}
        return msg, kwargs


def get_logger(name: Optional[str] = None) -> LoggerAdapter:
    return LoggerAdapter(logging.getLogger(name or 'budget_hotel'))


def get_security_logger(name: str = 'budget_hotel.security'):
    """Structlog logger for security events; sensitive fields are masked."""
    return structlog.get_logger(name)


def setup_logging(settings: Optional[Settings] = None) -> None:
    settings = settings or get_settings()
    logging.config.dictConfig(build_logging_config(settings))
    if settings.LOG_STRUCTURED:
        configure_structlog(settings)

    get_logger(__name__).info("Logging configured", extra={
        'log_level': settings.LOG_LEVEL,
        'log_format': settings.LOG_FORMAT,
        'structured_logging': settings.LOG_STRUCTURED,
    })


__all__ = [
    'get_logger',
    'get_security_logger',
    'setup_logging',
    'configure_structlog',
    'sanitize_event_dict',
    'LoggerAdapter',
    'RequestContextFilter',
    'request_id',
    'user_id',
]
