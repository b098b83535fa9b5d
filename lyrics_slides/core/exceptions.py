"""
Exception classes for lyrics-slides.

This module defines all custom exceptions used throughout the application.
Each exception is designed to provide clear, actionable error messages
and to distinguish between different failure modes of the lookup chain.

Exception Hierarchy:
    LyricsSlidesError (base)
        ConfigurationError - Missing credentials or invalid provider settings
        UpstreamError - Search API or generative provider reported an error
        NetworkError - Page fetch failed, timed out or returned non-2xx
        StoreError - Song cache database issues
        LyricsNotFoundError - No usable lyrics anywhere in the chain

An extraction miss is not an exception: extractors return None and the
lookup continues with the remaining sources.
"""


class LyricsSlidesError(Exception):
    """
    Base exception for all lyrics-slides errors.

    All custom exceptions in this project inherit from this class,
    allowing callers to catch all lyrics-slides errors with a single
    except clause if desired.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context (e.g., title, URL).

    Example:
        try:
            results = await orchestrator.search_lyrics(title)
        except LyricsSlidesError as e:
            logger.error(f"Lookup failed: {e.message}")
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
                     - 'url': URL that caused the error
                     - 'title' / 'artist': the song being looked up
                     - 'original_error': The underlying exception if wrapping another error
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return the error message for display."""
        return self.message


class ConfigurationError(LyricsSlidesError):
    """
    Raised when required configuration is missing or invalid.

    This is a CRITICAL error: it is surfaced immediately and the failing
    source is not retried.

    Common causes:
        - Search api_key or engine_id not configured
        - Unknown generative provider name

    Example:
        raise ConfigurationError(
            "Search API credentials are not configured",
            details={'missing': ['api_key']}
        )
    """
    pass


class UpstreamError(LyricsSlidesError):
    """
    Raised when a remote service answers with an error.

    Fatal for the attempt that raised it; the orchestrator may still
    return cached results.

    Common causes:
        - Search API response carries an "error" payload (quota, bad key)
        - Search API returned something that is not JSON
        - Generative provider request failed
    """
    pass


class NetworkError(LyricsSlidesError):
    """
    Raised when a page or API request cannot be completed.

    Fetches are never retried with backoff; the orchestrator moves on
    to the next source instead.

    Attributes:
        status: HTTP status code when the server answered, None otherwise.
    """

    def __init__(
        self,
        message: str,
        details: dict | None = None,
        status: int | None = None
    ) -> None:
        super().__init__(message, details)
        self.status = status


class StoreError(LyricsSlidesError):
    """
    Raised when the song cache database fails.

    Common causes:
        - Database file cannot be created (missing parent directory)
        - Schema version mismatch
        - Update called with unknown fields
    """
    pass


class LyricsNotFoundError(LyricsSlidesError):
    """
    Raised when no source produced usable lyrics.

    This is the single user-facing failure of a lookup: lower level
    network and upstream errors are chained as its __cause__.
    """

    def __init__(self, title: str, artist: str | None = None, details: dict | None = None) -> None:
        label = f"{title} - {artist}" if artist else title
        merged = {'title': title, 'artist': artist}
        merged.update(details or {})
        super().__init__(f"Lyrics not found: {label}", merged)
        self.title = title
        self.artist = artist
