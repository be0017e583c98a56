import logging
import logging.config
from typing import Optional
from uuid import uuid4

from fastapi import Request

from didvc.config import settings

"""
Configures and provides logging for the application.

This module sets up structured JSON logging by default (or text logging if configured),
integrates with Uvicorn loggers, and provides a middleware helper for adding a unique
request ID to each log entry associated with a request.
"""

def configure_logging():
    """Configures application-wide logging.

    Sets up logging format (JSON or text), level, and handlers based on `settings`.
    It configures handlers for the root logger, Uvicorn loggers (uvicorn, uvicorn.error,
    uvicorn.access), and the 'didvc' package logger.
    """
    log_format = settings.log_format.lower()
    if log_format not in ["json", "text"]:
        # The logging system is not configured yet, so this goes straight to stdout.
        print(f"WARNING: Invalid log_format '{settings.log_format}' in settings. Falling back to 'text'.")
        log_format = "text"

    level = settings.log_level.upper()

    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
                "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
                "rename_fields": {"levelname": "level", "asctime": "timestamp"},
            },
            "text": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": log_format,
                "level": level,
                "stream": "ext://sys.stdout"
            }
        },
        "loggers": {
            "uvicorn": {
                "handlers": ["console"],
                "level": level,
                "propagate": False,
            },
            "uvicorn.error": {
                "handlers": ["console"],
                "level": level,
                "propagate": False,
            },
            "uvicorn.access": {
                "handlers": ["console"],
                "level": level,
                "propagate": False,
            },
            # Every module logger (didvc.keys, didvc.did, ...) is a child of this one.
            "didvc": {
                "handlers": ["console"],
                "level": level,
                "propagate": False,
            }
        },
        "root": {
            "handlers": ["console"],
            "level": level,
        }
    }
    logging.config.dictConfig(logging_config)

def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a configured logger instance.

    Args:
        name: The name for the logger. Defaults to 'didvc'. Module names such as
            'didvc.keys' inherit the package logger's handlers.

    Returns:
        A configured `logging.Logger` instance.
    """
    return logging.getLogger(name or "didvc")

def request_id_middleware(request: Request) -> str:
    """Generates a unique request ID for an incoming request and logs the request line.

    Args:
        request: The incoming FastAPI `Request` object.

    Returns:
        str: The generated unique request ID (UUID4 string), to be echoed in the
        `X-Request-ID` response header.
    """
    request_id = str(uuid4())
    logger = get_logger()

    logger.info(
        f"Incoming request: {request.method} {request.url.path}",
        extra={
            "request_id": request_id,
            "path": str(request.url.path),
            "method": request.method,
            "client_host": request.client.host if request.client else "unknown",
        }
    )
    return request_id

configure_logging()
