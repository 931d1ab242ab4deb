"""Logging configuration."""

import logging
from pathlib import Path
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: Union[str, int] = "WARNING", log_file: Optional[Path] = None) -> None:
    """Configure the root logger.

    Args:
        level: Level name (e.g. 'INFO') or number
        log_file: Also write to this file when given
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.WARNING)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT)

    # Replace handlers installed by an earlier call
    for handler in list(root_logger.handlers):
        if getattr(handler, "_time_ledger", False):
            root_logger.removeHandler(handler)
            handler.close()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    console_handler._time_ledger = True  # type: ignore[attr-defined]
    root_logger.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        file_handler._time_ledger = True  # type: ignore[attr-defined]
        root_logger.addHandler(file_handler)
