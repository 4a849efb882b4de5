"""
QVote Logging System
====================

Every module logs through ``get_logger(__name__)``. A single LogManager wires
the root logger once: a ``rich`` console handler with a ledger theme (or a
plain stream handler when highlighting is off) and an optional rotating file.

Usage:
    >>> from qvote.logger import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("Proposal #1 created")
"""

import logging
import logging.handlers
import re
import sys
import threading
import time
from pathlib import Path
from typing import Optional, Union

from rich.console import Console
from rich.highlighter import RegexHighlighter
from rich.logging import RichHandler
from rich.theme import Theme

from .constants import (
    LOG_LEVEL,
    LOG_FORMAT,
    LOG_DATE_FORMAT,
    LOG_MAX_FILE_SIZE,
    LOG_BACKUP_COUNT,
    LOG_CONSOLE_HIGHLIGHTING,
    LOG_FILE_OUTPUT,
)


PROJECT_ROOT = Path(__file__).parent.parent
LOG_FILE_PATH = PROJECT_ROOT / "logs" / "qvote.log"

LEDGER_THEME = Theme(
    {
        "qvote.amount":          "bold cyan",
        "qvote.arrow":           "bold yellow",
        "qvote.burn":            "bold red",
        "qvote.direction":       "bold white",
        "qvote.level_critical":  "bold red reverse",
        "qvote.level_debug":     "bold dim",
        "qvote.level_error":     "bold red",
        "qvote.level_info":      "bold green",
        "qvote.level_warning":   "bold yellow",
        "qvote.logger_name":     "magenta",
        "qvote.proposal":        "bold blue",
        "qvote.tag":             "bold magenta",
        "qvote.timestamp":       "bold cyan",
    }
)


def _numeric_level(level: Union[str, int, None]) -> int:
    if isinstance(level, int):
        return level
    return getattr(logging, str(level or LOG_LEVEL).upper(), logging.INFO)


class LogManager:
    """
    Process-wide logging setup (singleton).

    ``configure`` runs once; later calls are no-ops. ``set_level`` can still
    change the threshold afterwards, handlers included.
    """

    _instance: Optional["LogManager"] = None
    _lock: threading.Lock = threading.Lock()

    def __new__(cls) -> "LogManager":
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._configured = False
        return cls._instance

    def configure(
        self,
        log_level: Optional[str] = None,
        log_file: Optional[Path] = None,
        console_output: bool = True,
        file_output: Optional[bool] = None,
    ) -> None:
        """
        Args:
            log_level:      DEBUG, INFO, ... (defaults to LOG_LEVEL from .env)
            log_file:       Rotating log file path (defaults to logs/qvote.log)
            console_output: Attach a console handler
            file_output:    Attach the file handler (defaults to LOG_FILE_OUTPUT)
        """
        with self._lock:
            if self._configured:
                return

            level = _numeric_level(log_level)
            root_logger = logging.getLogger()
            root_logger.setLevel(level)
            root_logger.handlers.clear()

            # timestamps are rendered in UTC
            formatter = TerminalSafeFormatter(fmt=str(LOG_FORMAT), datefmt=f"{LOG_DATE_FORMAT} UTC")
            formatter.converter = time.gmtime

            handlers = []
            if console_output:
                if LOG_CONSOLE_HIGHLIGHTING:
                    handlers.append(
                        RichHandler(
                            console=Console(theme=LEDGER_THEME, highlight=False),
                            highlighter=LedgerLogHighlighter(),
                            keywords=[],
                            rich_tracebacks=True,
                            omit_repeated_times=False,
                            show_path=False,
                            show_time=False,
                            show_level=False,
                            markup=False,
                        )
                    )
                else:
                    handlers.append(logging.StreamHandler(sys.stdout))

            if file_output is None:
                file_output = bool(LOG_FILE_OUTPUT)
            if file_output:
                path = log_file or LOG_FILE_PATH
                path.parent.mkdir(parents=True, exist_ok=True)
                handlers.append(
                    logging.handlers.RotatingFileHandler(
                        filename=str(path),
                        maxBytes=LOG_MAX_FILE_SIZE,
                        backupCount=LOG_BACKUP_COUNT,
                        encoding="utf-8",
                    )
                )

            for handler in handlers:
                handler.setLevel(level)
                handler.setFormatter(formatter)
                root_logger.addHandler(handler)

            self._configured = True

    def set_level(self, log_level: Union[str, int]) -> int:
        """Change the threshold of the root logger and of every root handler."""
        if not self._configured:
            self.configure()
        level = _numeric_level(log_level)
        root_logger = logging.getLogger()
        with self._lock:
            root_logger.setLevel(level)
            for handler in root_logger.handlers:
                handler.setLevel(level)
        return level

    def get_logger(self, name: str) -> logging.Logger:
        if not self._configured:
            self.configure()
        return logging.getLogger(name)

    @property
    def is_configured(self) -> bool:
        return self._configured


class TerminalSafeFormatter(logging.Formatter):
    """
    Strips ANSI escape sequences and control characters from log lines.

    Voter ids are caller supplied and reach log lines verbatim (CWE-117).
    """

    _ansi_escape_re = re.compile(
        r"\x1b\[[0-?]*[ -/]*[@-~]"
        r"|\x1b[@-Z\\-_]"
    )
    # tab and newline survive
    _control_chars_re = re.compile(r"[\x00-\x08\x0B-\x1F\x7F]")

    @classmethod
    def sanitize(cls, text: str) -> str:
        if not text:
            return text
        return cls._control_chars_re.sub("", cls._ansi_escape_re.sub("", text))

    def format(self, record: logging.LogRecord) -> str:
        return self.sanitize(super().format(record))


class LedgerLogHighlighter(RegexHighlighter):
    """
    Colors proposal references (``#3``), quantity fields (``amount=81``),
    burns, vote directions and the level / logger-name / timestamp fields.
    """

    base_style = "qvote."
    highlights = [
        r"(?P<arrow>(\-\->)|(<--)|(→))",
        r"(?P<level_critical>\bCRITICAL\b)",
        r"(?P<level_debug>\bDEBUG\b)",
        r"(?P<level_error>\bERROR\b)",
        r"(?P<level_info>\bINFO\b)",
        r"\-\s+\w+\s+-\s+(?P<logger_name>[\w.]+)(?=\s-\s)",
        r"(?P<level_warning>\bWARNING\b)",
        r"(?P<proposal>#\d+)",
        r"\b(?:amount|weight|balance|reserved|fee|credited|end_height)=(?P<amount>\d+)",
        r"\bburned=(?P<burn>\d+)",
        r"(?P<direction>\b(AYE|NAY|ABSTAIN)\b)",
        r"(?P<tag>\[.*?\])",
        r"(?P<timestamp>^(.*?)UTC)",
    ]


_manager = LogManager()


def get_logger(name: str) -> logging.Logger:
    """Logger for *name*, configuring the logging system on first use."""
    return _manager.get_logger(name)


def set_log_level(log_level: Union[str, int]) -> int:
    """Apply *log_level* to the root logger and its handlers."""
    return _manager.set_level(log_level)


_manager.configure()
