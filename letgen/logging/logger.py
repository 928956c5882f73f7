# letgen/logging/logger.py
"""
Logging for letgen.

Every module gets its logger the same way:
    from letgen.logging.logger import get_logger
    from letgen.logging.tags import CODEGEN

    logger = get_logger(__name__)
    logger.info(f"{CODEGEN} Diff computed: ...")

Messages carry a subsystem tag from letgen.logging.tags so batch output from
parallel workers can be filtered per stage.

Only the `letgen` CLI installs a handler (see configure_logging). When letgen
runs inside a bundler hook the host process owns logging, and letgen's
records simply propagate to whatever it has set up.
"""

import logging
import sys

PACKAGE_LOGGER = "letgen"
DEFAULT_FORMAT = "[%(levelname)s] %(name)s - %(message)s"


def configure_logging(
    level: int = logging.INFO,
    fmt: str = DEFAULT_FORMAT,
    stream=sys.stderr,
) -> logging.Logger:
    """
    Attach a stream handler to the letgen logger tree.

    Called by the CLI callback before any command runs. Generated code goes
    to disk and summaries go to stdout, so log records default to stderr.
    Calling it again only changes the level.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    if not logger.handlers:
        handler = logging.StreamHandler(stream)
        handler.setFormatter(logging.Formatter(fmt))
        logger.addHandler(handler)

    logger.setLevel(level)
    return logger


def get_logger(name: str) -> logging.Logger:
    """Logger for a letgen module; pass __name__."""
    return logging.getLogger(name)


__all__ = ["PACKAGE_LOGGER", "DEFAULT_FORMAT", "configure_logging", "get_logger"]
