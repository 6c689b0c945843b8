"""Logging setup driven by ObservabilityConfig.

Modules log through ``logging.getLogger(__name__)`` and pass context via
``extra={...}``. In structured mode a structlog ``ProcessorFormatter``
renders each stdlib record as one JSON object, lifting those extras to
top-level keys so log pipelines can index them.
"""

from __future__ import annotations

import logging
from typing import Optional

import structlog

from .config import ObservabilityConfig, get_config


def json_formatter() -> structlog.stdlib.ProcessorFormatter:
    """Formatter rendering stdlib records, ``extra`` fields included, as JSON."""
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.ExtraAdder(),
            structlog.processors.TimeStamper(fmt="iso", utc=True),
        ],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            structlog.processors.EventRenamer("message"),
            structlog.processors.JSONRenderer(default=str),
        ],
    )


def configure_logging(config: Optional[ObservabilityConfig] = None) -> None:
    """Install a root handler according to the observability settings.

    Args:
        config: Optional override; defaults to ``get_config().observability``.
    """
    config = config or get_config().observability

    handler = logging.StreamHandler()
    if config.structured:
        handler.setFormatter(json_formatter())
    else:
        handler.setFormatter(logging.Formatter(config.format))

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(config.level.upper())
