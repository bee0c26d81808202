import logging.config
import structlog
from pythonjsonlogger import jsonlogger
import coloredlogs

from core.config import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

FIELD_STYLES = {
    "asctime": {"color": "green"},
    "levelname": {"bold": True, "color": "cyan"},
    "name": {"color": "magenta"},
}

LEVEL_STYLES = {
    "debug": {"color": "blue"},
    "info": {"color": "white"},
    "warning": {"color": "yellow"},
    "error": {"color": "red"},
    "critical": {"bold": True, "color": "red"},
}


def setup_logging():
    """Route stdlib and structlog output through one handler chosen by LOG_FORMAT."""
    settings = get_settings()
    handler = "json" if settings.LOG_FORMAT == "json" else "console"

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": jsonlogger.JsonFormatter,
                "fmt": LOG_FORMAT,
                "rename_fields": {"levelname": "level", "asctime": "time"},
            },
            "colored": {
                "()": coloredlogs.ColoredFormatter,
                "fmt": LOG_FORMAT,
                "field_styles": FIELD_STYLES,
                "level_styles": LEVEL_STYLES,
            },
        },
        "handlers": {
            handler: {
                "class": "logging.StreamHandler",
                "formatter": "json" if handler == "json" else "colored",
            },
        },
        "loggers": {
            "": {"handlers": [handler], "level": settings.LOG_LEVEL},
            "sqlalchemy.engine": {"level": "INFO" if settings.DATABASE_ECHO else "WARNING"},
            "uvicorn.access": {"level": "WARNING"},
        },
    })

    # key/value pairs of structlog events travel as `extra`, so the JSON
    # formatter emits them as separate fields
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.render_to_log_kwargs,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
