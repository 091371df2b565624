"""Structured logging via structlog.

Configures structlog once at entry-point startup. Library modules keep
using `logging.getLogger(__name__)`; the stdlib bridge below routes them to
the same stream.

Renderer selection:
  debug=True:  `ConsoleRenderer` with colours for local use.
  debug=False: `JSONRenderer` for machine-parseable logs.

Logs go to stderr so that the JSON report on stdout stays parseable.
"""

from __future__ import annotations

import logging
import sys

import structlog


def configure_structlog(debug: bool = False, level: str | None = None) -> None:
    """Configure structlog for the process lifetime.

    `level` overrides the threshold implied by `debug` (DEBUG when
    debugging, INFO otherwise). Calling multiple times is safe.
    """
    threshold = logging.getLevelName(level) if level else (logging.DEBUG if debug else logging.INFO)
    if not isinstance(threshold, int):
        threshold = logging.INFO

    shared_processors: list = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if debug:
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(threshold),
        context_class=dict,
        logger_factory=structlog.WriteLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )

    # Bridge stdlib logging so the detector modules share the threshold.
    logging.basicConfig(
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
        level=threshold,
    )
    # basicConfig is a no-op once handlers exist; keep the threshold current.
    logging.getLogger().setLevel(threshold)
