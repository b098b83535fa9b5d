"""
Configuration management for Lyrics-Slides

This module handles loading, validation, and management of application settings
from multiple sources including YAML files and environment variables. It provides
a centralized configuration system that supports reloading and validation.

The configuration is organized into logical sections using dataclasses:
- Web search settings (credentials, engine id, preferred lyrics hosts)
- Page fetching options (timeout, browser headers, legacy encodings)
- Generative-text provider selection (provider, model, key)
- Content extraction thresholds
- Cache database location
- Logging and batch processing options

All sensitive data (API keys) can be loaded from environment variables
for security, while non-sensitive settings can be stored in YAML files.
"""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, field
from dotenv import load_dotenv

# Load environment variables from .env file if present
load_dotenv()


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)


@dataclass
class SearchConfig:
    """
    Web search configuration for locating lyrics pages

    Contains the custom search credentials and the ordered list of preferred
    lyrics hosts. Sensitive values (api_key) should be provided via
    environment variables for security.
    """
    api_key: str = ""
    engine_id: str = ""
    endpoint: str = "https://www.googleapis.com/customsearch/v1"
    query_suffix: str = "歌詞"
    preferred_domains: list = field(default_factory=lambda: [
        "mojim.com",
        "kkbox.com",
        "musixmatch.com",
        "genius.com",
        "azlyrics.com",
        "lyrics.com",
    ])
    max_results: int = 10


@dataclass
class FetchConfig:
    """
    Page fetching configuration

    The timeout is a hard ceiling for a single page request; fetches are
    never retried. Hosts listed in legacy_encoding_hosts are decoded with
    the mapped codec instead of UTF-8.
    """
    timeout: int = 15
    user_agent: str = DEFAULT_USER_AGENT
    accept_language: str = "zh-TW,zh;q=0.9,en;q=0.8"
    legacy_encoding_hosts: dict = field(default_factory=lambda: {"mojim.com": "big5"})


@dataclass
class GenerativeConfig:
    """
    Generative-text provider configuration

    provider is one of: none, openai, grok, anthropic. An empty model
    selects the provider default.
    """
    provider: str = "none"
    api_key: str = ""
    model: str = ""
    temperature: float = 0.3
    timeout: int = 60
    min_length: int = 20


@dataclass
class ExtractionConfig:
    """Thresholds used by the content extractors"""
    min_length: int = 10
    generic_scan_limit: int = 15
    generic_min_length: int = 100


@dataclass
class CacheConfig:
    """Location of the song cache database"""
    database_path: str = "~/.lyrics-slides/songs.db"


@dataclass
class LoggingConfig:
    """
    Logging configuration and output settings

    Controls application logging behavior including log levels, file output,
    rotation, and console formatting.
    """
    level: str = "INFO"
    file: str = ""
    max_size: str = "10MB"
    backup_count: int = 3
    console_output: bool = True
    colored_output: bool = True


@dataclass
class BatchConfig:
    """Concurrency limits for batch lookups"""
    concurrency: int = 3
    rate_limit: int = 2


VALID_PROVIDERS = ["none", "openai", "grok", "anthropic"]


class Settings:
    """
    Main settings class that manages all configuration

    This class serves as the central configuration manager, loading settings
    from multiple sources (YAML files, environment variables) and providing
    a unified interface for accessing configuration throughout the application.

    The class handles:
    - Loading configuration from YAML files
    - Overriding with environment variables
    - Validating configuration values
    - Saving configuration back to files
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize settings from config file or environment variables

        Args:
            config_path: Path to custom config file, if None uses default locations
        """
        self.config_path = config_path
        self.config_dir = Path.home() / ".lyrics-slides"

        # Initialize all configuration objects with default values
        self.search = SearchConfig()
        self.fetch = FetchConfig()
        self.generative = GenerativeConfig()
        self.extraction = ExtractionConfig()
        self.cache = CacheConfig()
        self.logging = LoggingConfig()
        self.batch = BatchConfig()

        # Load configuration from various sources in order of precedence
        self._load_config()
        self._load_environment_variables()

    def _sections(self) -> Dict[str, Any]:
        return {
            'search': self.search,
            'fetch': self.fetch,
            'generative': self.generative,
            'extraction': self.extraction,
            'cache': self.cache,
            'logging': self.logging,
            'batch': self.batch,
        }

    def _load_config(self) -> None:
        """
        Load configuration from YAML file

        Searches for configuration files in multiple locations in order of
        precedence. The first file found will be used.
        """
        config_paths = [
            self.config_path,
            self.config_dir / "config.yaml",
            Path("config/config.yaml"),
            Path("config.yaml")
        ]

        config_data = {}
        for path in config_paths:
            if path and Path(path).exists():
                try:
                    with open(path, 'r', encoding='utf-8') as f:
                        config_data = yaml.safe_load(f) or {}
                    break
                except (OSError, yaml.YAMLError) as e:
                    print(f"Warning: Failed to load config from {path}: {e}")

        self._apply_config(config_data)

    def _apply_config(self, config_data: Dict[str, Any]) -> None:
        """
        Apply configuration data to dataclass instances

        Maps configuration sections from the YAML file to the appropriate
        dataclass instances, updating only the attributes that exist in
        both the config file and the dataclass definition.

        Args:
            config_data: Dictionary containing configuration sections
        """
        if not isinstance(config_data, dict):
            return

        config_mapping = self._sections()
        for section_name, section_data in config_data.items():
            if section_name in config_mapping and isinstance(section_data, dict):
                config_obj = config_mapping[section_name]
                for key, value in section_data.items():
                    if hasattr(config_obj, key):
                        setattr(config_obj, key, value)

    def _load_environment_variables(self) -> None:
        """
        Load sensitive configuration from environment variables

        Environment variables take precedence over file-based configuration.
        The provider API key is picked according to the selected provider.
        """
        env_mappings = {
            'GOOGLE_API_KEY': lambda v: setattr(self.search, 'api_key', v),
            'GOOGLE_SEARCH_ENGINE_ID': lambda v: setattr(self.search, 'engine_id', v),
            'LYRICS_AI_PROVIDER': lambda v: setattr(self.generative, 'provider', v.lower()),
            'LYRICS_SLIDES_DB': lambda v: setattr(self.cache, 'database_path', v),
        }

        for env_var, setter in env_mappings.items():
            value = os.getenv(env_var)
            if value:
                setter(value)

        provider_keys = {
            'openai': 'OPENAI_API_KEY',
            'grok': 'XAI_API_KEY',
            'anthropic': 'ANTHROPIC_API_KEY',
        }
        key_var = provider_keys.get(self.generative.provider)
        if key_var and not self.generative.api_key:
            self.generative.api_key = os.getenv(key_var, "")

    def get_config_directory(self) -> Path:
        """Return the expanded configuration directory"""
        return self.config_dir

    def get_database_path(self) -> Path:
        """
        Get the expanded cache database path

        Returns:
            Path object for the SQLite song database
        """
        return Path(self.cache.database_path).expanduser()

    def save_config(self, path: Optional[str] = None) -> None:
        """
        Save current configuration to file

        Serializes the current configuration to a YAML file, excluding
        sensitive data like API keys for security.

        Args:
            path: Custom path to save config, defaults to user config directory

        Raises:
            OSError: If the configuration cannot be written
        """
        if not path:
            path = self.get_config_directory() / "config.yaml"
        else:
            path = Path(path)

        config_data = {
            name: self._dataclass_to_dict(section)
            for name, section in self._sections().items()
        }

        # Remove sensitive data from saved config
        config_data['search']['api_key'] = ""
        config_data['generative']['api_key'] = ""

        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            yaml.dump(config_data, f, default_flow_style=False, indent=2, allow_unicode=True)

    def _dataclass_to_dict(self, obj) -> Dict[str, Any]:
        """Convert a dataclass section to a plain dictionary copy"""
        result = {}
        for key, value in obj.__dict__.items():
            if isinstance(value, (list, dict)):
                value = value.copy()
            result[key] = value
        return result

    def validate(self) -> List[str]:
        """
        Validate current configuration

        Returns:
            List of human-readable problems, empty when the configuration is usable
        """
        errors = []

        if not self.search.api_key or not self.search.engine_id:
            errors.append("Search api_key and engine_id are required for web lookups")

        if self.generative.provider not in VALID_PROVIDERS:
            errors.append(f"Invalid generative provider: {self.generative.provider}")
        elif self.generative.provider != "none" and not self.generative.api_key:
            errors.append(f"No API key configured for provider: {self.generative.provider}")

        if self.fetch.timeout <= 0:
            errors.append(f"Invalid fetch timeout: {self.fetch.timeout}")

        if not isinstance(self.search.preferred_domains, list):
            errors.append("search.preferred_domains must be a list")

        if self.batch.concurrency < 1:
            errors.append(f"Invalid batch concurrency: {self.batch.concurrency}")

        return errors

    def __str__(self) -> str:
        sections = [
            f"Search: {'configured' if self.search.api_key and self.search.engine_id else 'missing credentials'}",
            f"Provider: {self.generative.provider}",
            f"Cache: {self.cache.database_path}",
        ]
        return f"Settings({', '.join(sections)})"


# Global settings instance, created on first access
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get the global settings instance

    Provides access to the singleton settings instance that is shared
    throughout the application.

    Returns:
        The global Settings instance
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings(config_path: Optional[str] = None) -> Settings:
    """
    Reload settings from configuration files

    Args:
        config_path: Optional path to specific config file

    Returns:
        New Settings instance with reloaded configuration
    """
    global _settings
    _settings = Settings(config_path)
    return _settings
