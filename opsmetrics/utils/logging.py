"""
Structured logging for the analysis engine.

Every log line emitted while an envelope is being analyzed carries the
store id and business date of that envelope, so domain processor events can
be traced back to the report they came from without threading the values
through every call.
"""

import logging
import sys
from contextlib import contextmanager
from enum import Enum
from typing import Any, Iterator, Optional

import structlog
from structlog.types import EventDict, Processor

from opsmetrics.config import Settings, get_settings


def flatten_enums(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Render enum values (domains, grades, severities) as their plain value."""
    for key, value in event_dict.items():
        if isinstance(value, Enum):
            event_dict[key] = value.value
        elif isinstance(value, (list, tuple)) and any(isinstance(v, Enum) for v in value):
            event_dict[key] = [v.value if isinstance(v, Enum) else v for v in value]
    return event_dict


def build_renderer(settings: Settings) -> Processor:
    if settings.log_format == "json" and not settings.dev_mode:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=not settings.testing)


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Route structlog through stdlib logging at the configured level."""
    settings = settings or get_settings()

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            flatten_enums,
            build_renderer(settings),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


@contextmanager
def analysis_scope(store_id: str, business_date: str) -> Iterator[None]:
    """
    Bind the envelope identity to every log line inside the block.

    Values bound by an enclosing scope (a request id, say) are kept and
    restored on exit.
    """
    with structlog.contextvars.bound_contextvars(store_id=store_id, business_date=business_date):
        yield


def get_logger(name: str = __name__) -> structlog.BoundLogger:
    return structlog.get_logger(name)
