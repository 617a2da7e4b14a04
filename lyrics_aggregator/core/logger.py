"""
Logging configuration for lyrics-aggregator.

This module sets up the logging system with multiple outputs:
    - Console: colored, tqdm-compatible output
    - log_full.log: Complete log of all events (DEBUG and above)
    - log_errors.log: Only ERROR and CRITICAL level messages
    - ambiguous_matches.log: Near-tied candidates picked by the matcher
    - lookup_failures.log: Queries for which no provider returned lyrics

File outputs are only created when a log directory is given; the library
itself never configures logging, only the CLI (or an embedding application)
calls setup_logging().

Usage:
    from lyrics_aggregator.core.logger import setup_logging, get_logger

    setup_logging(log_dir)  # Call once at startup
    logger = get_logger(__name__)  # Get logger for each module

    logger.info("Converting document")
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import TextIO

from tqdm import tqdm


LOG_FULL_FILENAME = "log_full"
LOG_ERRORS_FILENAME = "log_errors"
AMBIGUOUS_MATCHES_FILENAME = "ambiguous_matches"
LOOKUP_FAILURES_FILENAME = "lookup_failures"

# Log format for file output (detailed with timestamp)
FILE_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class Colors:
    """ANSI color codes for terminal output."""
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    CYAN = "\033[36m"
    WHITE = "\033[37m"
    BOLD = "\033[1m"


class ColoredConsoleFormatter(logging.Formatter):
    """
    Formatter that colors the level name on console output.

    Colors:
        - DEBUG: Blue
        - INFO: Green
        - WARNING: Yellow
        - ERROR: Red
        - CRITICAL: Bold Red
    """

    LEVEL_COLORS = {
        logging.DEBUG: Colors.BLUE,
        logging.INFO: Colors.GREEN,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.BOLD + Colors.RED,
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, Colors.WHITE)
        return f"{color}{record.levelname}{Colors.RESET}: {record.getMessage()}"


class TqdmLoggingHandler(logging.Handler):
    """
    Logging handler that writes to the console without breaking tqdm progress bars.

    Batch conversions in the CLI show a tqdm progress bar; writing log lines
    through tqdm.write() keeps them above the bar instead of tearing it.

    Attributes:
        stream: The output stream (defaults to sys.stderr).
    """

    def __init__(self, stream: TextIO = sys.stderr) -> None:
        super().__init__()
        self.stream = stream

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            tqdm.write(msg, file=self.stream)
        except Exception:
            self.handleError(record)


class _ReportHandler(logging.Handler):
    """
    Base for handlers that write a plain-text report from tagged log records.

    A record is reported only when it carries the subclass's marker
    attribute (passed through the ``extra`` argument of a logging call).
    All other records are ignored.

    Attributes:
        report_path: Path to the report file.
        report_file: Open file handle, set by open().
    """

    marker: str = ""

    def __init__(self, report_path: Path) -> None:
        super().__init__()
        self.report_path = report_path
        self.report_file: TextIO | None = None

    def open(self) -> None:
        """
        Open the report file for writing.

        Called by setup_logging() after handler is created.
        File is opened in write mode (overwrites existing content).
        """
        self.report_file = open(self.report_path, "w", encoding="utf-8")

    def emit(self, record: logging.LogRecord) -> None:
        if not hasattr(record, self.marker):
            return

        if self.report_file is None:
            return

        try:
            self.acquire()
            try:
                self.report_file.write(self.render(record))
                self.report_file.flush()
            finally:
                self.release()
        except Exception:
            self.handleError(record)

    def render(self, record: logging.LogRecord) -> str:
        raise NotImplementedError

    def close(self) -> None:
        """
        Close the report file handle.

        Called automatically when logging is shut down.
        Safe to call multiple times.
        """
        if self.report_file is not None:
            try:
                self.report_file.close()
            except OSError:
                pass
            self.report_file = None
        super().close()


class AmbiguousMatchHandler(_ReportHandler):
    """
    Handler that captures ambiguous song matches for review.

    Records logged through log_ambiguous_match() are written in a
    human-readable block:

        Query: Artist Name - Song Title
        Selected: Artist Name - Song Title (Live) (score: 0.812)
        Alternatives:
          - Artist Name - Song Title (score: 0.795)
        Score gap below threshold. Verify if correct.

    Extra fields read from the record:
        - 'ambiguous_query': "artist - title" of the query
        - 'ambiguous_selected': "artist - title" of the selected candidate
        - 'ambiguous_score': Score of the selected candidate
        - 'ambiguous_alternatives': List of (label, score) tuples
    """

    marker = "ambiguous_query"

    def render(self, record: logging.LogRecord) -> str:
        query = getattr(record, "ambiguous_query", "Unknown")
        selected = getattr(record, "ambiguous_selected", "Unknown")
        score = getattr(record, "ambiguous_score", 0.0)
        alternatives = getattr(record, "ambiguous_alternatives", [])

        lines = [f"Query: {query}", f"Selected: {selected} (score: {score:.3f})"]
        if alternatives:
            lines.append("Alternatives:")
            for label, alt_score in alternatives:
                lines.append(f"  - {label} (score: {alt_score:.3f})")
        lines.append("Score gap below threshold. Verify if correct.")
        return "\n".join(lines) + "\n\n"


class LookupFailureHandler(_ReportHandler):
    """
    Handler that lists queries for which no provider returned lyrics.

    Output format, one block per query:

        Artist Name - Song Title
        Searched: apple, musixmatch, spotify

    Extra fields read from the record:
        - 'lookup_failed_title': Query title
        - 'lookup_failed_artist': Query artist
        - 'lookup_failed_sources': List of provider names that were searched
    """

    marker = "lookup_failed_title"

    def render(self, record: logging.LogRecord) -> str:
        title = getattr(record, "lookup_failed_title", "Unknown")
        artist = getattr(record, "lookup_failed_artist", "Unknown")
        sources = getattr(record, "lookup_failed_sources", [])
        return f"{artist} - {title}\nSearched: {', '.join(sources)}\n\n"


class ErrorOnlyFilter(logging.Filter):
    """Filter that only allows ERROR and CRITICAL level records."""

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= logging.ERROR


def setup_logging(log_dir: Path | None = None, level: int = logging.INFO) -> None:
    """
    Configure the logging system for the application.

    This function should be called ONCE at application startup, after
    the configuration is loaded but before any other operations.

    Args:
        log_dir: Directory where log files will be created, or None to
                 log to the console only.
        level: Console log level.

    Behavior:
        1. Configure root logger level to DEBUG and drop existing handlers
        2. Add a colored console handler (TqdmLoggingHandler) at `level`
        3. If log_dir is given:
           a. Create it if it doesn't exist
           b. Add full and error-only file handlers, timestamped per run
           c. Add the ambiguous-match and lookup-failure report handlers

    Thread Safety:
        This function is NOT thread-safe. Call it once from the main
        thread before starting any worker threads.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    console_handler = TqdmLoggingHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(ColoredConsoleFormatter())
    root_logger.addHandler(console_handler)

    if log_dir is None:
        return

    log_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")

    full_handler = logging.FileHandler(
        log_dir / f"{LOG_FULL_FILENAME}_{timestamp}.log", mode="w", encoding="utf-8"
    )
    full_handler.setLevel(logging.DEBUG)
    full_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT))
    root_logger.addHandler(full_handler)

    error_handler = logging.FileHandler(
        log_dir / f"{LOG_ERRORS_FILENAME}_{timestamp}.log", mode="w", encoding="utf-8"
    )
    error_handler.setLevel(logging.DEBUG)  # Filter handles the level restriction
    error_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT))
    error_handler.addFilter(ErrorOnlyFilter())
    root_logger.addHandler(error_handler)

    ambiguous_handler = AmbiguousMatchHandler(
        log_dir / f"{AMBIGUOUS_MATCHES_FILENAME}_{timestamp}.log"
    )
    ambiguous_handler.open()
    root_logger.addHandler(ambiguous_handler)

    failure_handler = LookupFailureHandler(
        log_dir / f"{LOOKUP_FAILURES_FILENAME}_{timestamp}.log"
    )
    failure_handler.open()
    root_logger.addHandler(failure_handler)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: The logger name, typically __name__ of the calling module.
              This creates a hierarchy like 'lyrics_aggregator.matching.scorer'.

    Returns:
        logging.Logger: A logger instance configured by setup_logging().
    """
    return logging.getLogger(name)


def log_ambiguous_match(
    logger: logging.Logger,
    query_label: str,
    selected_label: str,
    score: float,
    alternatives: list[tuple[str, float]],
) -> None:
    """
    Log a match whose best candidates are too close to tell apart.

    Logs a WARNING and attaches the extra fields that AmbiguousMatchHandler
    writes to ambiguous_matches.log.

    Args:
        logger: The logger to use for the message.
        query_label: "artist - title" of the query.
        selected_label: "artist - title" of the candidate that was picked.
        score: Score of the picked candidate.
        alternatives: (label, score) for each near-tied candidate.

    Example:
        log_ambiguous_match(
            logger,
            query_label="Artist - Song",
            selected_label="Artist - Song (Live)",
            score=0.81,
            alternatives=[("Artist - Song", 0.79)],
        )
    """
    logger.warning(
        f"Ambiguous match for: {query_label} (picking first, score: {score:.3f})",
        extra={
            "ambiguous_query": query_label,
            "ambiguous_selected": selected_label,
            "ambiguous_score": score,
            "ambiguous_alternatives": alternatives,
        }
    )


def log_lookup_failure(
    logger: logging.Logger,
    title: str,
    artist: str,
    sources: list[str],
) -> None:
    """
    Log a query for which no provider returned lyrics.

    Logs a WARNING and attaches the extra fields that LookupFailureHandler
    writes to lookup_failures.log.
    """
    logger.warning(
        f"Lyrics not found for: {artist} - {title}",
        extra={
            "lookup_failed_title": title,
            "lookup_failed_artist": artist,
            "lookup_failed_sources": list(sources),
        }
    )


def shutdown_logging() -> None:
    """
    Flush and close all handlers on the root logger and remove them.

    Typically called in a finally block at application exit.
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        try:
            handler.flush()
            handler.close()
        except (OSError, ValueError):
            pass
        root_logger.removeHandler(handler)
