from __future__ import annotations

import logging
from typing import Any

import structlog

SERVICE_NAME = "splitstack"


def _add_service(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
    )
    # aiogram logs every polled update at INFO
    logging.getLogger("aiogram.event").setLevel(max(level, logging.WARNING))

    structlog.configure(
        processors=[
            _add_service,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


# statements are logged at debug; set LOG_LEVEL=DEBUG to see them
sql_logger = get_logger("splitstack.sql")
