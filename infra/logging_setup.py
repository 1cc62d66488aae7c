from __future__ import annotations

import logging
import sys

from config import LoggingConfig

DEFAULT_FORMAT = "%(asctime)s %(levelname)-7s [%(threadName)s] %(name)s: %(message)s"


def configure_logging(cfg: LoggingConfig) -> None:
    level = logging.getLevelName(cfg.level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Config inválida: nível de logging desconhecido '{cfg.level}'.")

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(cfg.format or DEFAULT_FORMAT))

    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)
    root.addHandler(handler)
    root.setLevel(level)

    # httpx loga cada request em INFO
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
