"""
Logging configuration for the budget hotel service.
Builds the dictConfig used at startup with console, JSON and rotating file handlers.
"""

import os
import logging
from datetime import datetime, timezone
from typing import Dict, Any

from pythonjsonlogger import jsonlogger

from budget_hotel.config.settings import Settings


class BookingJsonFormatter(jsonlogger.JsonFormatter):
    """One JSON object per record, keyed the same way as the structlog events."""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]):
        super().add_fields(log_record, record, message_dict)
        log_record.update(
            timestamp=datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            level=record.levelname,
            logger=record.name,
        )
        for attr in ('request_id', 'user_id'):
            value = getattr(record, attr, None)
            if value is not None:
                log_record[attr] = value
        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc, _ = record.exc_info
            log_record['exception'] = {
                'type': exc_type.__name__,
                'message': str(exc),
                'traceback': self.formatException(record.exc_info),
            }


def build_logging_config(settings: Settings) -> Dict[str, Any]:
    """
    Create the logging config dictionary for ``logging.config.dictConfig``.

    Args:
        settings: Application settings (log level, format and directory)

    Returns:
        A dictConfig-compatible dictionary
    """
    console_formatter = 'json' if settings.LOG_FORMAT == 'json' else (
        'colored' if settings.is_development() else 'standard'
    )

    handlers: Dict[str, Any] = {
        'console': {
            'level': settings.LOG_LEVEL,
            'class': 'logging.StreamHandler',
            'formatter': console_formatter,
            'filters': ['request_context'],
        },
    }

    if settings.LOG_DIR:
        os.makedirs(settings.LOG_DIR, exist_ok=True)
        handlers['file'] = {
            'level': 'INFO',
            'class': 'logging.handlers.RotatingFileHandler',
            'filename': os.path.join(settings.LOG_DIR, 'app.log'),
            'maxBytes': 10485760,  # 10MB
            'backupCount': 10,
            'formatter': 'standard',
            'encoding': 'utf8',
            'filters': ['request_context'],
        }
        handlers['json_file'] = {
            'level': 'INFO',
            'class': 'logging.handlers.RotatingFileHandler',
            'filename': os.path.join(settings.LOG_DIR, 'app.json.log'),
            'maxBytes': 10485760,  # 10MB
            'backupCount': 10,
            'formatter': 'json',
            'encoding': 'utf8',
            'filters': ['request_context'],
        }

    return {
        'version': 1,
        'disable_existing_loggers': False,
        'filters': {
            'request_context': {
                '()': 'budget_hotel.core.logging.RequestContextFilter',
            },
        },
        'formatters': {
            'standard': {
                'format': '%(asctime)s [%(levelname)s] %(name)s [%(request_id)s]: %(message)s'
            },
            'json': {
                '()': BookingJsonFormatter,
                'format': '%(timestamp)s %(level)s %(logger)s %(message)s'
            },
            'colored': {
                '()': 'colorlog.ColoredFormatter',
                'format': '%(log_color)s%(asctime)s [%(levelname)s] %(name)s [%(request_id)s]: %(message)s',
                'log_colors': {
                    'DEBUG': 'cyan',
                    'INFO': 'green',
                    'WARNING': 'yellow',
                    'ERROR': 'red',
                    'CRITICAL': 'red,bg_white',
                }
            }
        },
        'handlers': handlers,
        'loggers': {
            '': {
                'handlers': list(handlers),
                'level': settings.LOG_LEVEL,
                'propagate': True
            },
            'uvicorn.access': {
                'level': 'WARNING',
            },
            'sqlalchemy.engine': {
                'level': 'INFO' if settings.DATABASE_ECHO else 'WARNING',
            },
        }
    }
