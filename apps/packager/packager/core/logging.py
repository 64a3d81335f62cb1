"""Structured logging via structlog.

Configures structlog once at application startup. All subsequent calls to
`structlog.get_logger()` (or `logging.getLogger()` via the stdlib bridge)
will use this configuration.

Renderer selection:
  debug=True  — `ConsoleRenderer` with colours for local development.
  debug=False — `JSONRenderer` for machine-parseable logs in production.

ContextVar injection:
  `packaging_id` is bound by the packaging service for the duration of a
  package() call. Stdlib records are rendered through
  `ProcessorFormatter`, so resource, acquisition and assembly log lines
  carry the ID without passing it around.
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar

import structlog

_packaging_id_var: ContextVar[str] = ContextVar("packaging_id", default="")

_HANDLER_NAME = "packager.structlog"


def get_packaging_id() -> str:
    """Return the current packaging ID, or empty string if not set."""
    return _packaging_id_var.get()


def set_packaging_id(value: str):
    """Bind a packaging ID; returns the token for `reset_packaging_id()`."""
    return _packaging_id_var.set(value)


def reset_packaging_id(token) -> None:
    _packaging_id_var.reset(token)


def _inject_context_vars(
    logger: logging.Logger,
    method: str,
    event_dict: dict,
) -> dict:
    """Structlog processor: inject packaging_id from its ContextVar."""
    packaging_id = get_packaging_id()
    if packaging_id:
        event_dict["packaging_id"] = packaging_id
    return event_dict


def configure_structlog(debug: bool = True) -> None:
    """Configure structlog for the application lifetime.

    Call once from `create_app()` before any routers are registered.
    Calling multiple times is safe: the stdlib handler is replaced, not stacked.
    """
    shared_processors: list = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        _inject_context_vars,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if debug:
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
        context_class=dict,
        logger_factory=structlog.WriteLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    # Bridge stdlib logging → structlog: records from the packaging modules
    # and httpx run through the same processors, packaging_id included.
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    for existing in list(root.handlers):
        if existing.get_name() == _HANDLER_NAME:
            root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if debug else logging.INFO)
