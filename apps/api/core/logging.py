"""Structured logging with structlog.

API code logs through structlog; the ingestion engine logs through the
standard library. Both end up on one stdout handler whose formatter runs
the structlog processor chain, so engine warnings (skipped archive entries,
dropped workbooks) render as the same JSON lines as API events and carry
the upload context bound with ``upload_log_context``.

Usage:
    import structlog
    logger = structlog.get_logger()
    with upload_log_context(user_id=user_id, filename=filename):
        logger.info("archive_ingested", valid_rows=12)
"""

import logging
import sys

import structlog

ENGINE_LOGGER = "packages.ingestion_engine"


def _level(log_level: str) -> int:
    return getattr(logging, log_level.upper(), logging.INFO)


def setup_logging(log_level: str = "INFO", json_output: bool = True) -> None:
    """Configure structlog and route standard-library records through it.

    Args:
        log_level: Python log level string (DEBUG, INFO, WARNING, ERROR).
        json_output: If True, use JSON renderer (production). If False,
                     use colorized console renderer (development).
    """
    shared: list = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if json_output:
        # Korean ledger text stays readable in the JSON output
        renderer = structlog.processors.JSONRenderer(ensure_ascii=False)
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=shared + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root = logging.getLogger()
    # Reconfiguring replaces the previous handler instead of stacking another
    for existing in [h for h in root.handlers if getattr(h, "_ledger_handler", False)]:
        root.removeHandler(existing)
    handler._ledger_handler = True
    root.addHandler(handler)
    root.setLevel(_level(log_level))
    logging.getLogger(ENGINE_LOGGER).setLevel(_level(log_level))


def upload_log_context(user_id: str, filename: str):
    """Bind the uploader and archive name to every log line in the block.

    Context variables are copied into ``asyncio.to_thread`` workers, so the
    engine's records emitted while parsing the upload carry them too.
    """
    return structlog.contextvars.bound_contextvars(user_id=user_id, filename=filename)
