"""structlog configuration for imgroute.

Services log through structlog and bind ``op`` and ``kind`` into
contextvars for the duration of each call. Stores log through stdlib
``logging`` and pass the record key as ``extra``. Both paths meet in
one :class:`~structlog.stdlib.ProcessorFormatter` on stderr, so a
skipped-record warning raised inside ``list_origins`` carries the
operation, the entity kind and the offending ``pk`` in either mode:

- console (default): key-value lines, tracebacks pretty-printed
- JSON (``--log-json``): one object per line, tracebacks as dicts
"""

from __future__ import annotations

import logging
import sys

import structlog

# ``extra`` keys the stores attach to their stdlib records.
RECORD_FIELDS = ("pk", "entity_type")

NOISY_LOGGERS = ("sqlalchemy",)


def _exception_processors(log_json: bool) -> list[structlog.types.Processor]:
    if log_json:
        return [structlog.processors.dict_tracebacks]
    # ConsoleRenderer formats exc_info itself.
    return []


def configure_logging(
    *,
    verbose: bool = False,
    log_json: bool = False,
) -> None:
    """Install the stderr handler; safe to call more than once.

    Args:
        verbose: DEBUG for the ``imgroute`` loggers (entity create, update
            and delete events). Otherwise WARNING and above only.
        log_json: Render JSON lines instead of console lines.
    """
    shared: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        *_exception_processors(log_json),
    ]
    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer()
        if log_json
        else structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    )

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=[*shared, structlog.stdlib.ExtraAdder(allow=RECORD_FIELDS)],
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.WARNING)

    logging.getLogger("imgroute").setLevel(logging.DEBUG if verbose else logging.WARNING)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
