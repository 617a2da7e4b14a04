"""
Exception classes for lyrics-aggregator.

This module defines the custom exceptions used throughout the package.
Only configuration problems and programming errors escape the public API:
"no confident match" is a None return, ambiguity is a flagged result, and
conversion problems are reported as failure results by the converters.

Exception Hierarchy:
    LyricsAggregatorError (base)
        ConfigError - Configuration file issues
        ConversionError - Malformed provider payload or canonical document
        ProviderError - A provider adapter could not produce a result
"""


class LyricsAggregatorError(Exception):
    """
    Base exception for all lyrics-aggregator errors.

    All custom exceptions in this project inherit from this class,
    allowing callers to catch all package errors with a single
    except clause if desired.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context (e.g. source, field).

    Example:
        try:
            config = load_config(path)
        except LyricsAggregatorError as e:
            logger.error(f"Operation failed: {e.message}")
            if e.details:
                logger.debug(f"Details: {e.details}")
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        """
        Initialize the base exception.

        Args:
            message: Human-readable error description that will be shown to the user.
            details: Optional dictionary containing additional context about the error.
                     Common keys include:
                     - 'source': Provider name involved in the error
                     - 'field': Configuration or document field at fault
                     - 'original_error': The underlying exception if wrapping another error
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return the error message for display."""
        return self.message


class ConfigError(LyricsAggregatorError):
    """
    Raised when there's an issue with the configuration file.

    This is a CRITICAL error that should stop program execution.

    Common causes:
        - An explicitly given config file does not exist
        - config.yaml has invalid YAML syntax
        - A section is not a mapping
        - Invalid field values (e.g. a threshold outside [0, 1])

    Example:
        raise ConfigError(
            "'matching.confidence_threshold' must be a number between 0 and 1",
            details={'field': 'matching.confidence_threshold', 'value': 7}
        )
    """
    pass


class ConversionError(LyricsAggregatorError):
    """
    Raised when a lyrics payload cannot be converted to the canonical model.

    This is a NON-CRITICAL error. It is raised by the low-level parsing
    helpers and caught by every public converter, which turns it into a
    ConversionResult.failure() so callers can treat a broken payload as
    normal control flow.

    Common causes:
        - Malformed XML in a TTML document
        - A canonical document missing 'type', 'metadata' or 'lyrics'
        - A provider payload with no usable lyrics body

    Example:
        raise ConversionError(
            "Failed to parse TTML document",
            details={'original_error': str(e)}
        )
    """
    pass


class ProviderError(LyricsAggregatorError):
    """
    Raised by provider adapters when a lookup cannot be completed.

    The aggregator isolates providers from each other: a ProviderError (or
    any other exception) raised by one provider is logged and mapped to a
    missing result, never aborting the other lookups.

    Attributes:
        source: Name of the provider that failed.

    Example:
        raise ProviderError(
            "Search request failed",
            source="musixmatch",
            details={'status': 503}
        )
    """

    def __init__(self, message: str, source: str = "", details: dict | None = None) -> None:
        """
        Initialize the provider error.

        Args:
            message: Human-readable error description.
            source: Name of the provider that failed.
            details: Optional dictionary with additional context.
        """
        super().__init__(message, details)
        self.source = source
