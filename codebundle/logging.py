"""Logging utilities for codebundle commands.

Two channels share the ``codebundle`` hierarchy:

* diagnostics (``codebundle.<module>``) go to stderr, so a bundle piped from
  stdout is never interleaved with progress messages;
* outcome reports (``codebundle.report``: "Wrote ...", "No content found") go
  to stdout as bare lines and survive ``--quiet``.

Both are copied to the optional log file.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

_LOGGER_NAME = "codebundle"
_REPORT_NAME = f"{_LOGGER_NAME}.report"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the codebundle hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def get_report_logger() -> logging.Logger:
    """Return the logger for user-facing outcome lines."""
    return logging.getLogger(_REPORT_NAME)


def configure_logging(
    *, verbose: bool = False, quiet: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Configure the diagnostic and report channels; return the diagnostic logger.

    ``quiet`` keeps only warnings and errors on stderr; ``verbose`` wins when
    both are set. Reports are always written at INFO.
    """
    level = _resolve_level(verbose=verbose, quiet=quiet)
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False
    report = logging.getLogger(_REPORT_NAME)
    report.setLevel(logging.INFO)
    report.propagate = False

    # Reset handlers to avoid duplicate output when the CLI runs more than once.
    _reset_handlers(logger)
    _reset_handlers(report)

    diagnostics = logging.StreamHandler(sys.stderr)
    diagnostics.setLevel(level)
    diagnostics.setFormatter(logging.Formatter("[codebundle] %(levelname)s %(message)s"))
    logger.addHandler(diagnostics)

    outcomes = logging.StreamHandler(sys.stdout)
    outcomes.setFormatter(logging.Formatter("%(message)s"))
    report.addHandler(outcomes)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logger.addHandler(file_handler)
        report.addHandler(file_handler)

    return logger


def _reset_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def _resolve_level(*, verbose: bool, quiet: bool) -> int:
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.WARNING
    return logging.INFO


__all__ = ["configure_logging", "get_logger", "get_report_logger"]
