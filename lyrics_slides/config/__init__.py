"""
Configuration management package for Lyrics-Slides

Settings are loaded from YAML files and environment variables (settings.py)
and exposed through a lazily created singleton. Components receive the
sections they need at construction time rather than reading the global
settings while a lookup is running.
"""

from .settings import (
    get_settings,
    reload_settings,
    Settings,
    SearchConfig,
    FetchConfig,
    GenerativeConfig,
    ExtractionConfig,
    CacheConfig,
    LoggingConfig,
    BatchConfig,
)

__all__ = [
    'get_settings',      # Factory function for singleton settings access
    'reload_settings',   # Function to reload settings from files
    'Settings',
    'SearchConfig',
    'FetchConfig',
    'GenerativeConfig',
    'ExtractionConfig',
    'CacheConfig',
    'LoggingConfig',
    'BatchConfig',
]
