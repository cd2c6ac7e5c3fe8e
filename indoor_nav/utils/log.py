"""Console logging setup shared by the scripts."""

from __future__ import annotations

import logging


class ConsoleFormatter(logging.Formatter):
    """Show INFO messages bare and everything else with timestamp and level."""

    def format(self, record: logging.LogRecord) -> str:
        if record.levelno == logging.INFO:
            return record.getMessage()
        return f"{self.formatTime(record, self.datefmt)} - {record.levelname} - {record.name} - {record.getMessage()}"


def setup_logging(verbose: bool = False) -> None:
    """Configure the root logger.

    Args:
        verbose: If True, show DEBUG and above with timestamps. Otherwise INFO
                 is printed without decoration.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        return
    handler = logging.StreamHandler()
    handler.setFormatter(ConsoleFormatter(datefmt="%Y-%m-%d %H:%M:%S"))
    root = logging.getLogger()
    root.setLevel(logging.INFO)
    root.addHandler(handler)
