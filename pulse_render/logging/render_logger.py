"""
Logging setup for the pulse card renderer.

Component loggers live under the `pulse_render` namespace, write through
their own handler without propagating to the root logger, and tag each
record with the card being rendered on the current thread or task, so a
failure inside a batch of pulse cards can be traced back to its card.
"""

import logging
import os
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterator, Optional

LOG_FORMAT = '%(asctime)s - %(name)s%(card_label)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

LEVEL_COLORS = {
    'DEBUG': '\033[36m',     # Cyan
    'INFO': '\033[32m',      # Green
    'WARNING': '\033[33m',   # Yellow
    'ERROR': '\033[31m',     # Red
    'CRITICAL': '\033[35m',  # Magenta
}
RESET_COLOR = '\033[0m'

log_level_value = getattr(logging, os.getenv('LOG_LEVEL', 'INFO').upper(), logging.INFO)
use_colors = os.getenv('LOG_COLORS', 'true').lower() in ('true', '1', 'yes', 'on')

# Card currently being rendered on this thread / task
_current_card: ContextVar[Optional[str]] = ContextVar('pulse_render_current_card', default=None)


class CardFormatter(logging.Formatter):
    """Places the card label after the logger name; colors the level on a TTY."""

    def __init__(self, colors: bool = True):
        super().__init__(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
        self.colors = colors and sys.stderr.isatty()

    def format(self, record):
        card = getattr(record, 'card', '')
        record.card_label = f" {card}" if card else ""
        if not self.colors:
            return super().format(record)

        levelname = record.levelname
        record.levelname = f"{LEVEL_COLORS.get(levelname, '')}{levelname}{RESET_COLOR}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


class CardContextFilter(logging.Filter):
    """Add the card being rendered to log records as `card:{id}({name})`."""

    def filter(self, record):
        card = _current_card.get()
        record.card = f"card:{card}" if card else ""
        return True


card_filter = CardContextFilter()

# Loggers created through get_logger, so their level can be changed together
_component_loggers = {}


def get_logger(name: str) -> logging.Logger:
    """Component logger `pulse_render.{name}` with card tagging and colored output."""
    logger = logging.getLogger(f"pulse_render.{name}")
    if card_filter not in logger.filters:
        logger.addFilter(card_filter)
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(CardFormatter(colors=use_colors))
        logger.addHandler(handler)
        logger.propagate = False  # Records are written once, by our own handler
        logger.setLevel(log_level_value)
        _component_loggers[name] = logger
    return logger


def set_log_level(level) -> None:
    """Set the level of every component logger, e.g. DEBUG for a verbose script run."""
    for logger in _component_loggers.values():
        logger.setLevel(level)


def _card_label(card_id: Optional[Any], card_name: Optional[str]) -> Optional[str]:
    if card_id is None and not card_name:
        return None
    label = "?" if card_id is None else str(card_id)
    return f"{label}({card_name[:40]})" if card_name else label


@contextmanager
def card_context(card_id: Optional[Any] = None, card_name: Optional[str] = None) -> Iterator[None]:
    """Tag log records emitted inside the block with this card."""
    token = _current_card.set(_card_label(card_id, card_name))
    try:
        yield
    finally:
        _current_card.reset(token)


# Component-specific loggers
render_logger = get_logger('RENDER')
image_logger = get_logger('IMAGE')
snapshot_logger = get_logger('SNAPSHOT')
