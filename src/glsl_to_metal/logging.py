"""
Logging setup for the transpiler.

The CLI prints the generated Metal program on stdout, so diagnostics
(unsupported-construct warnings, stage traces at DEBUG) must go elsewhere:
stderr by default, or the file named by --log-file.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(log_level: str = "INFO", log_file: str | None = None):
    """
    Route transpiler diagnostics to stderr or to a log file.

    Each call installs exactly one handler on the root logger, so the CLI
    and tests can reconfigure freely without doubling messages.

    Args:
        log_level: Level name from --log-level; unknown names mean INFO
        log_file: Path from --log-file; None keeps diagnostics on stderr
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for existing in list(root_logger.handlers):
        root_logger.removeHandler(existing)

    handler = logging.FileHandler(log_file) if log_file else logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Module logger; pass __name__ so records carry the stage name."""
    return logging.getLogger(name)
