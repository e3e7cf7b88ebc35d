"""Centralized logging for the Growlitics KPI pipeline.

Library modules log parse and fetch failures instead of raising them, so
the pipeline can fall through to the next input source.

Usage:
    from growlitics.shared.logger import get_logger

    logger = get_logger(__name__)
    logger.warning("Failed to parse strategies parameter: %s", err)
"""

import logging
import sys

_configured = False


def setup_logging(level: str = "INFO") -> None:
    """Configure root logging for the CLI.

    Call once at startup. Subsequent calls are no-ops.
    """
    global _configured
    if _configured:
        return

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
        force=True,
    )
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Return a logger scoped to the module name."""
    return logging.getLogger(name)
