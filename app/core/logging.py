import sys
from logging.config import dictConfig
from typing import Any

from app.core.config import settings

DEFAULT_FORMAT = "%(levelprefix)s %(asctime)s [%(name)s] %(message)s"


def build_logging_config(level: str) -> dict[str, Any]:
    """Uvicorn-compatible dictConfig. ``app.*`` modules log at *level* on stdout."""
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "()": "uvicorn.logging.DefaultFormatter",
                "fmt": DEFAULT_FORMAT,
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "access": {
                "()": "uvicorn.logging.AccessFormatter",
                "fmt": '%(levelprefix)s %(asctime)s %(client_addr)s "%(request_line)s" %(status_code)s',
            },
        },
        "handlers": {
            "stderr": {"class": "logging.StreamHandler", "formatter": "default", "stream": sys.stderr},
            "stdout": {"class": "logging.StreamHandler", "formatter": "default", "stream": sys.stdout},
            "access": {"class": "logging.StreamHandler", "formatter": "access", "stream": sys.stdout},
        },
        "loggers": {
            "root": {"handlers": ["stderr"], "level": "INFO"},
            "uvicorn.error": {"handlers": ["stderr"], "level": "INFO", "propagate": False},
            "uvicorn.access": {"handlers": ["access"], "level": "INFO", "propagate": False},
            # Driver and HTTP client chatter only when something is wrong
            "aiomysql": {"handlers": ["stderr"], "level": "WARNING", "propagate": False},
            "httpx": {"handlers": ["stderr"], "level": "WARNING", "propagate": False},
            "PIL": {"handlers": ["stderr"], "level": "WARNING", "propagate": False},
            "app": {"handlers": ["stdout"], "level": level.upper(), "propagate": False},
        },
    }


def setup_logging(level: str | None = None) -> None:
    """Configures application-wide logging using dictConfig."""
    dictConfig(build_logging_config(level or settings.log_level))
