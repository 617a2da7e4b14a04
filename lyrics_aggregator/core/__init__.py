"""
Core module for lyrics-aggregator.

This module provides the foundational components used throughout the package:
    - exceptions: Custom exception classes for error handling
    - config: Configuration loading and validation
    - logger: Logging system with console, file and report outputs

Usage:
    from lyrics_aggregator.core import (
        Config, load_config,
        setup_logging, get_logger,
        LyricsAggregatorError, ConfigError, ConversionError
    )
"""

from lyrics_aggregator.core.config import (
    DEFAULT_SOURCES,
    Config,
    LoggingConfig,
    LyricsConfig,
    MatchingConfig,
    load_config,
)
from lyrics_aggregator.core.exceptions import (
    ConfigError,
    ConversionError,
    LyricsAggregatorError,
    ProviderError,
)
from lyrics_aggregator.core.logger import (
    get_logger,
    log_ambiguous_match,
    log_lookup_failure,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    # Config
    "Config",
    "MatchingConfig",
    "LyricsConfig",
    "LoggingConfig",
    "DEFAULT_SOURCES",
    "load_config",
    # Exceptions
    "LyricsAggregatorError",
    "ConfigError",
    "ConversionError",
    "ProviderError",
    # Logger
    "setup_logging",
    "get_logger",
    "log_ambiguous_match",
    "log_lookup_failure",
    "shutdown_logging",
]
