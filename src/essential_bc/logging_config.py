"""
Logging Configuration
Sets up the package logger, with output from one rank only in parallel runs.
"""
import logging
import sys
from typing import Optional

from essential_bc.la.comm import resolve_comm


class RankFilter(logging.Filter):
    """Drop records below ``min_level`` on every rank except ``root``."""

    def __init__(self, rank: int, root: int = 0, min_level: int = logging.WARNING):
        super().__init__()
        self.rank = rank
        self.root = root
        self.min_level = min_level

    def filter(self, record: logging.LogRecord) -> bool:
        if self.rank == self.root:
            return True
        return record.levelno >= self.min_level


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None, comm=None,
                  root: int = 0) -> logging.Logger:
    """
    Configures the logger for the 'essential_bc' namespace.

    Args:
        level: Logging level (e.g. logging.DEBUG, logging.INFO)
        log_file: Optional path to save logs to a file.
        comm: Communicator; non-root ranks only emit warnings and errors.
        root: Rank that emits everything.
    """
    comm = resolve_comm(comm)
    logger = logging.getLogger("essential_bc")
    logger.setLevel(level)

    # Check if handlers already exist to avoid duplicate logs on reconfiguration
    if logger.hasHandlers():
        for handler in logger.handlers:
            handler.close()
        logger.handlers.clear()

    rank_filter = RankFilter(comm.rank, root=root)

    # Format: Time - Rank - Module - Level - Message
    formatter = logging.Formatter(
        f'%(asctime)s - [{comm.rank}] %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(rank_filter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        file_handler.addFilter(rank_filter)
        logger.addHandler(file_handler)

    logger.debug("Logging initialized.")
    return logger
