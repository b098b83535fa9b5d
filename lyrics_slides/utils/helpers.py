"""
Utility helper functions for Lyrics-Slides
Common functions for URL handling, text comparison, and input parsing
"""

from typing import Any, Optional, Tuple
from urllib.parse import urlparse


def host_of(url: str) -> str:
    """
    Extract the lowercase hostname of a URL

    Args:
        url: Absolute URL

    Returns:
        Hostname without port, empty string if the URL has none
    """
    if not url:
        return ""
    try:
        return (urlparse(url).hostname or "").lower()
    except ValueError:
        return ""


def host_matches(host: str, domain: str) -> bool:
    """
    Check whether a hostname belongs to a domain

    "mojim.com" matches "mojim.com" and "www.mojim.com" but not "notmojim.com".

    Args:
        host: Hostname to test
        domain: Registered domain

    Returns:
        True if host is the domain or one of its subdomains
    """
    host = (host or "").lower().rstrip(".")
    domain = (domain or "").lower().strip(".")
    if not host or not domain:
        return False
    return host == domain or host.endswith("." + domain)


def is_blank(value: Any) -> bool:
    """Return True for None, non-strings and whitespace-only strings"""
    return not isinstance(value, str) or not value.strip()


def same_text(a: Optional[str], b: Optional[str]) -> bool:
    """
    Case-insensitive comparison that ignores surrounding whitespace

    Args:
        a: First string (None allowed)
        b: Second string (None allowed)

    Returns:
        True if both strings are equal after trimming and case folding
    """
    return (a or "").strip().casefold() == (b or "").strip().casefold()


def truncate_string(text: str, max_length: int, suffix: str = "...") -> str:
    """
    Truncate string to maximum length with suffix

    Args:
        text: Text to truncate
        max_length: Maximum length including suffix
        suffix: Suffix to add when truncating

    Returns:
        Truncated string
    """
    if len(text) <= max_length:
        return text

    truncate_length = max_length - len(suffix)
    if truncate_length <= 0:
        return suffix[:max_length]

    return text[:truncate_length] + suffix


def parse_title_line(line: str) -> Optional[Tuple[str, Optional[str]]]:
    """
    Parse a batch input line of the form "Title" or "Title - Artist"

    Blank lines and lines starting with "#" are skipped.

    Args:
        line: Raw input line

    Returns:
        (title, artist) tuple, artist None when not given, or None to skip the line
    """
    line = line.strip()
    if not line or line.startswith("#"):
        return None

    if " - " in line:
        title, artist = line.split(" - ", 1)
        title, artist = title.strip(), artist.strip()
        if title:
            return title, artist or None

    return line, None
