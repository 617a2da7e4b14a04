"""
Configuration management for lyrics-aggregator.

This module handles loading, validating, and providing access to the
configuration stored in config.yaml.

The configuration file contains:
    - Matching thresholds (confidence, ambiguity gap and ceiling)
    - Default provider order and fan-out worker count
    - Default leading silence written to TTML output
    - Optional log directory and console log level

Every section and field is optional; missing values fall back to the
defaults documented on each dataclass.

Example config.yaml:
    matching:
      confidence_threshold: 0.70
      ambiguity_gap: 0.05
      ambiguity_ceiling: 0.9
      tie_epsilon: 0.001

    lyrics:
      sources: [apple, lyricsplus, musixmatch-word, musixmatch, spotify]
      max_workers: 5
      leading_silence: "0.020"

    logging:
      directory: "~/.cache/lyrics-aggregator/logs"
      level: INFO
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from lyrics_aggregator.core.exceptions import ConfigError


# Default configuration file name (looked up in the current working directory)
CONFIG_FILENAME = "config.yaml"

# Provider order used when the caller does not name any sources
DEFAULT_SOURCES = ("apple", "lyricsplus", "musixmatch-word", "musixmatch", "spotify")

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class MatchingConfig:
    """
    Song identity matching thresholds.

    Attributes:
        confidence_threshold: Minimum final score for a candidate to be accepted.
                              Below it, find_best_match() returns None.
        ambiguity_gap: When the best two scores are closer than this, and the
                       best is below ambiguity_ceiling, the match is flagged
                       ambiguous (the top candidate is still returned).
        ambiguity_ceiling: Scores at or above this are never ambiguous.
        tie_epsilon: Scores closer than this are tied and ordered by
                     duration score instead.
    """
    confidence_threshold: float = 0.70
    ambiguity_gap: float = 0.05
    ambiguity_ceiling: float = 0.9
    tie_epsilon: float = 0.001


@dataclass(frozen=True)
class LyricsConfig:
    """
    Lyrics lookup configuration.

    Attributes:
        sources: Provider names queried when the caller does not pass any.
        max_workers: Number of providers queried concurrently.
        leading_silence: Leading silence written to TTML when a document has none.
    """
    sources: tuple[str, ...] = DEFAULT_SOURCES
    max_workers: int = 5
    leading_silence: str = "0.020"


@dataclass(frozen=True)
class LoggingConfig:
    """
    Logging configuration.

    Attributes:
        directory: Directory for log files and reports, or None for console only.
        level: Console log level name.
    """
    directory: Path | None = None
    level: str = "INFO"

    @property
    def level_number(self) -> int:
        """Numeric logging level for the console handler."""
        return getattr(logging, self.level)


@dataclass(frozen=True)
class Config:
    """
    Complete application configuration.

    Created by load_config() and treated as immutable.

    Attributes:
        matching: Song identity matching thresholds.
        lyrics: Lookup and output defaults.
        logging: Log destinations.

    Example:
        config = load_config()
        matcher = SongMatcher(config.matching)
        print(f"Querying: {', '.join(config.lyrics.sources)}")
    """
    matching: MatchingConfig = field(default_factory=MatchingConfig)
    lyrics: LyricsConfig = field(default_factory=LyricsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(config_path: Path | None = None) -> Config:
    """
    Load and validate configuration from config.yaml.

    Args:
        config_path: Optional explicit path to config file.
                     If None, looks for config.yaml in current working directory
                     and falls back to defaults when it is absent.

    Returns:
        Config: A frozen dataclass containing all configuration values.

    Raises:
        ConfigError: If an explicit config file is not found, the file has
                     invalid YAML syntax, or it contains invalid values.

    Behavior:
        1. Locate config file (explicit path or CWD/config.yaml)
        2. Read and parse YAML content (an empty file means defaults)
        3. Validate structure (sections are mappings)
        4. Parse each section, applying defaults
        5. Create and return frozen Config object
    """
    if config_path is None:
        config_path = Path.cwd() / CONFIG_FILENAME
        if not config_path.exists():
            return Config()

    if not config_path.exists():
        raise ConfigError(
            f"Configuration file not found: {config_path}",
            details={"file_path": str(config_path)}
        )

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            content = f.read()
    except IOError as e:
        raise ConfigError(
            f"Failed to read configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    try:
        raw_config = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Invalid YAML syntax in configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    if raw_config is None:
        return Config()

    if not isinstance(raw_config, dict):
        raise ConfigError(
            "Configuration file must contain a YAML dictionary",
            details={"file_path": str(config_path)}
        )

    _validate_config(raw_config)

    return Config(
        matching=_parse_matching_config(raw_config.get("matching")),
        lyrics=_parse_lyrics_config(raw_config.get("lyrics")),
        logging=_parse_logging_config(raw_config.get("logging")),
    )


def _validate_config(raw_config: dict[str, Any]) -> None:
    """
    Check that every known section present in the file is a mapping.

    Raises:
        ConfigError: If a section has the wrong type.
    """
    for section in ("matching", "lyrics", "logging"):
        value = raw_config.get(section)
        if value is not None and not isinstance(value, dict):
            raise ConfigError(
                f"Section '{section}' must be a dictionary",
                details={"section": section}
            )


def _parse_unit_interval(section: dict[str, Any], name: str, default: float) -> float:
    """Read a float in [0, 1] from a section, or return the default."""
    value = section.get(name)
    if value is None:
        return default
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not 0 <= value <= 1:
        raise ConfigError(
            f"'matching.{name}' must be a number between 0 and 1",
            details={"field": f"matching.{name}", "value": value}
        )
    return float(value)


def _parse_matching_config(matching_section: dict[str, Any] | None) -> MatchingConfig:
    """
    Parse and validate the matching configuration section.

    Args:
        matching_section: The 'matching' section from config.yaml, or None.

    Returns:
        MatchingConfig with defaults applied.

    Raises:
        ConfigError: If a threshold is not a number in [0, 1].
    """
    defaults = MatchingConfig()
    if matching_section is None:
        return defaults

    return MatchingConfig(
        confidence_threshold=_parse_unit_interval(
            matching_section, "confidence_threshold", defaults.confidence_threshold
        ),
        ambiguity_gap=_parse_unit_interval(
            matching_section, "ambiguity_gap", defaults.ambiguity_gap
        ),
        ambiguity_ceiling=_parse_unit_interval(
            matching_section, "ambiguity_ceiling", defaults.ambiguity_ceiling
        ),
        tie_epsilon=_parse_unit_interval(
            matching_section, "tie_epsilon", defaults.tie_epsilon
        ),
    )


def _parse_lyrics_config(lyrics_section: dict[str, Any] | None) -> LyricsConfig:
    """
    Parse and validate the lyrics configuration section.

    Args:
        lyrics_section: The 'lyrics' section from config.yaml, or None.

    Returns:
        LyricsConfig with defaults applied.
                     Default sources: DEFAULT_SOURCES
                     Default max_workers: 5
                     Default leading_silence: "0.020"

    Raises:
        ConfigError: If sources is not a non-empty list of strings,
                     max_workers is not a positive integer, or
                     leading_silence is not a number or numeric string.
    """
    defaults = LyricsConfig()
    if lyrics_section is None:
        return defaults

    sources = defaults.sources
    raw_sources = lyrics_section.get("sources")
    if raw_sources is not None:
        if (
            not isinstance(raw_sources, list)
            or not raw_sources
            or not all(isinstance(s, str) and s.strip() for s in raw_sources)
        ):
            raise ConfigError(
                "'lyrics.sources' must be a non-empty list of provider names",
                details={"field": "lyrics.sources", "value": raw_sources}
            )
        sources = tuple(s.strip().lower() for s in raw_sources)

    max_workers = defaults.max_workers
    raw_workers = lyrics_section.get("max_workers")
    if raw_workers is not None:
        if isinstance(raw_workers, bool) or not isinstance(raw_workers, int) or raw_workers < 1:
            raise ConfigError(
                "'lyrics.max_workers' must be a positive integer",
                details={"field": "lyrics.max_workers", "value": raw_workers}
            )
        max_workers = raw_workers

    leading_silence = defaults.leading_silence
    raw_silence = lyrics_section.get("leading_silence")
    if raw_silence is not None:
        try:
            float(raw_silence)
        except (TypeError, ValueError):
            raise ConfigError(
                "'lyrics.leading_silence' must be a number of seconds",
                details={"field": "lyrics.leading_silence", "value": raw_silence}
            ) from None
        # YAML turns 0.020 into a float; keep the three-decimal form
        leading_silence = raw_silence if isinstance(raw_silence, str) else f"{raw_silence:.3f}"

    return LyricsConfig(
        sources=sources,
        max_workers=max_workers,
        leading_silence=leading_silence,
    )


def _parse_logging_config(logging_section: dict[str, Any] | None) -> LoggingConfig:
    """
    Parse and validate the logging configuration section.

    Expands ~ in the directory and converts it to an absolute Path.
    Does NOT create the directory (setup_logging() does that).

    Raises:
        ConfigError: If directory is not a string or level is unknown.
    """
    if logging_section is None:
        return LoggingConfig()

    directory = None
    raw_directory = logging_section.get("directory")
    if raw_directory is not None:
        if not isinstance(raw_directory, str) or not raw_directory.strip():
            raise ConfigError(
                "'logging.directory' must be a non-empty string or null",
                details={"field": "logging.directory"}
            )
        directory = Path(raw_directory.strip()).expanduser().resolve()

    level = LoggingConfig.level
    raw_level = logging_section.get("level")
    if raw_level is not None:
        if not isinstance(raw_level, str) or raw_level.upper() not in VALID_LOG_LEVELS:
            raise ConfigError(
                f"'logging.level' must be one of: {', '.join(VALID_LOG_LEVELS)}",
                details={"field": "logging.level", "value": raw_level}
            )
        level = raw_level.upper()

    return LoggingConfig(directory=directory, level=level)
