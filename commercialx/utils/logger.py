"""
Logging configuration for CommercialX.

Provides a centralized logger that can be configured via environment variables.
Every record carries the listing draft it was logged for (``-`` outside a
draft request), so interleaved decodes of different drafts can be told apart.
"""
import logging
import os
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

# Get log level from environment variable (default: INFO)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

_draft_id: ContextVar[str] = ContextVar("commercialx_draft_id", default="-")


class DraftContextFilter(logging.Filter):
    """Stamp records with the draft bound by ``draft_context``."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.draft = _draft_id.get()
        return True


logger = logging.getLogger("commercialx")
logger.setLevel(LOG_LEVEL)

if not logger.handlers:
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(LOG_LEVEL)
    console_handler.addFilter(DraftContextFilter())

    formatter = logging.Formatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - [draft %(draft)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    console_handler.setFormatter(formatter)

    logger.addHandler(console_handler)

# Keep records out of the root logger so uvicorn does not print them twice
logger.propagate = False


@contextmanager
def draft_context(draft_id: Optional[str]) -> Iterator[None]:
    """Bind ``draft_id`` to every record logged inside the block."""
    token = _draft_id.set(draft_id or "-")
    try:
        yield
    finally:
        _draft_id.reset(token)


def current_draft() -> str:
    return _draft_id.get()


def get_logger(name: str = None) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Optional dotted suffix (e.g. "enrichment.reconciler")

    Returns:
        Logger under the 'commercialx' namespace
    """
    if name:
        return logging.getLogger(f"commercialx.{name}")
    return logger
