from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from typing import Iterable

from rich.logging import RichHandler

_PLAIN_FMT = "%(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True)
class LogConfig:
    level: str = "INFO"
    no_color: bool = False


def setup_logging(cfg: LogConfig) -> None:
    """Log to stderr; stdout is reserved for `list` and `uri` output."""
    level = getattr(logging, cfg.level.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    for h in list(root.handlers):
        root.removeHandler(h)

    use_color = not (cfg.no_color or os.getenv("NO_COLOR") is not None) and sys.stderr.isatty()
    if use_color:
        handler: logging.Handler = RichHandler(
            rich_tracebacks=True, show_time=False, show_level=True, show_path=False, markup=False
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(_PLAIN_FMT))
    handler.setLevel(level)
    root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_warning_summary(logger: logging.Logger, warnings: Iterable[object]) -> int:
    """Log collected build warnings one per line, then a count. Returns the count."""
    n = 0
    for w in warnings:
        logger.warning("%s", w)
        n += 1
    if n:
        logger.warning("%d warning%s collected.", n, "" if n == 1 else "s")
    return n
