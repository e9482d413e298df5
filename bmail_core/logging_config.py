"""
Logging setup for the BMail wallet tools.

Wallet events are logged by address only. Records never carry seeds,
passphrases or cipher text, so either format is safe to ship to a
shared log store.

Two output formats:
  - **human** – one line per event, coloured when stderr is a terminal
  - **json**  – newline-delimited JSON; wallet events also get an
    ``address`` field taken from ``extra={"address": ...}``

Usage:
    from bmail_core.logging_config import setup_logging
    setup_logging(level="DEBUG", fmt="json", log_file="bmail.log")
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

FORMATS = ("human", "json")
LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class _JSONFormatter(logging.Formatter):
    """One JSON object per record, for log files and aggregators."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        address = getattr(record, "address", None)
        if address is not None:
            log_obj["address"] = str(address)
        if record.exc_info and record.exc_info[1]:
            log_obj["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_obj, default=str)


class _HumanFormatter(logging.Formatter):
    """``HH:MM:SS [LEVEL  ] logger: message`` for the terminal."""

    COLOURS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[1;31m",
    }
    RESET = "\033[0m"

    def __init__(self, colour: bool = True):
        super().__init__()
        self.colour = colour

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        line = f"[{record.levelname:<7}]"
        if self.colour:
            line = f"{self.COLOURS.get(record.levelname, '')}{line}{self.RESET}"
        return f"{ts} {line} {record.name}: {record.getMessage()}"


def setup_logging(
    level: str = "INFO",
    fmt: str = "human",
    log_file: Optional[str] = None,
) -> None:
    """
    Configure the root logger for a wallet command.

    Parameters
    ----------
    level : str
        One of DEBUG, INFO, WARNING, ERROR, CRITICAL (any case).
    fmt : str
        ``"human"`` or ``"json"`` for the stderr handler.
    log_file : str, optional
        Also append records to this file, always as JSON. Parent
        directories are created.

    Raises ValueError for an unknown level or format, before any handler
    is touched.
    """
    if fmt not in FORMATS:
        raise ValueError(f"unknown log format {fmt!r}")
    if level.upper() not in LEVELS:
        raise ValueError(f"unknown log level {level!r}")

    root = logging.getLogger()
    root.setLevel(level.upper())
    root.handlers.clear()

    console = logging.StreamHandler(sys.stderr)
    if fmt == "json":
        console.setFormatter(_JSONFormatter())
    else:
        console.setFormatter(_HumanFormatter(colour=sys.stderr.isatty()))
    root.addHandler(console)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(path))
        fh.setFormatter(_JSONFormatter())
        root.addHandler(fh)
