"""
Core module for lyrics-slides.

Provides the exception hierarchy shared by every component.

Usage:
    from lyrics_slides.core import (
        LyricsSlidesError, ConfigurationError, NetworkError, LyricsNotFoundError
    )
"""

from lyrics_slides.core.exceptions import (
    ConfigurationError,
    LyricsNotFoundError,
    LyricsSlidesError,
    NetworkError,
    StoreError,
    UpstreamError,
)

__all__ = [
    "LyricsSlidesError",
    "ConfigurationError",
    "UpstreamError",
    "NetworkError",
    "StoreError",
    "LyricsNotFoundError",
]
