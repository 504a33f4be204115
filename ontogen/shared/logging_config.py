# ontogen/shared/logging_config.py
import logging
import sys

import structlog
from opentelemetry import trace

from ontogen.shared.config import settings


def add_trace_context(logger, method_name, event_dict):
    """Tags each event with the ids of the active span, if any.

    Statement log lines then line up with their `use_case.execute_statement` span.
    """
    context = trace.get_current_span().get_span_context()
    if context.is_valid:
        event_dict.setdefault("trace_id", trace.format_trace_id(context.trace_id))
        event_dict.setdefault("span_id", trace.format_span_id(context.span_id))
    return event_dict


def configure_logging(level: str = None, log_format: str = None, stream=None):
    """
    Configures structlog and the standard logging library to emit
    structured JSON logs (production) or readable console logs (development).

    The REPL passes `stream=sys.stderr` so log lines never interleave with
    the responses printed on stdout.
    """
    level = (level or settings.LOG_LEVEL).upper()
    log_format = log_format or settings.LOG_FORMAT
    stream = stream or sys.stdout

    processors = [
        structlog.contextvars.merge_contextvars,
        add_trace_context,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level)),
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=True,
    )

    # Uvicorn and FastAPI log through the standard library.
    logging.basicConfig(format="%(message)s", stream=stream, level=level)
