"""Logging setup for applications embedding vcf-table.

The library itself only creates module loggers under ``vcf_table``; it never
installs handlers. Applications call :func:`setup_logging` once.
"""

import logging
from pathlib import Path

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    verbose: bool = False,
    quiet: bool = False,
    level: str | None = None,
    log_file: Path | None = None,
) -> None:
    """Configure logging based on verbosity flags or an explicit level name."""
    if quiet:
        resolved = logging.WARNING
    elif verbose:
        resolved = logging.DEBUG
    elif level:
        resolved = logging.getLevelName(level.upper())
    else:
        resolved = logging.INFO

    logging.basicConfig(
        level=resolved,
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
    )
    logging.getLogger("vcf_table").setLevel(resolved)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logging.getLogger("vcf_table").addHandler(file_handler)
