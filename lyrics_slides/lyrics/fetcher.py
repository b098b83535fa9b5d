"""
Page fetching for lyrics sites

Downloads a page with browser-like headers and decodes it. Some older
Chinese lyrics sites (mojim.com) serve Big5 bytes without a usable charset
header, so the body is read as raw bytes and decoded with the codec
configured for the host. Invalid byte sequences become U+FFFD instead of
failing the request.

A fetch is attempted once: timeouts, connection errors and non-2xx answers
raise NetworkError and the caller decides what to try next.
"""

import asyncio
from typing import Dict, Optional

import aiohttp

from ..config.settings import FetchConfig, get_settings
from ..core.exceptions import NetworkError
from ..utils.helpers import host_matches, host_of
from ..utils.logger import get_logger


DEFAULT_ENCODING = "utf-8"


class PageFetcher:
    """Fetch lyrics pages over HTTP and return decoded HTML"""

    def __init__(self, config: Optional[FetchConfig] = None, session: Optional[aiohttp.ClientSession] = None):
        """
        Initialize page fetcher

        Args:
            config: Fetch settings, defaults to the global settings
            session: Shared client session; a short-lived one is opened per
                request when omitted
        """
        self.config = config or get_settings().fetch
        self.session = session
        self.logger = get_logger(__name__)

    @property
    def headers(self) -> Dict[str, str]:
        return {
            'User-Agent': self.config.user_agent,
            'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
            'Accept-Language': self.config.accept_language,
        }

    def encoding_for(self, url: str) -> str:
        """
        Pick the text codec for a URL

        Args:
            url: Page URL

        Returns:
            Legacy codec name when the host is listed, UTF-8 otherwise
        """
        host = host_of(url)
        for domain, codec in (self.config.legacy_encoding_hosts or {}).items():
            if host_matches(host, domain):
                return codec
        return DEFAULT_ENCODING

    def decode(self, body: bytes, url: str) -> str:
        """Decode a response body for the given URL, never raising on bad bytes"""
        codec = self.encoding_for(url)
        try:
            return body.decode(codec, errors="replace")
        except LookupError:
            self.logger.warning(f"Unknown codec '{codec}' configured for {host_of(url)}, using UTF-8")
            return body.decode(DEFAULT_ENCODING, errors="replace")

    async def fetch_page(self, url: str) -> str:
        """
        Download a page and return its decoded HTML

        Args:
            url: Absolute page URL

        Returns:
            Decoded HTML text

        Raises:
            NetworkError: On timeout, connection failure or non-2xx status
        """
        self.logger.debug(f"Fetching page: {url}")

        if self.session is not None:
            body = await self._get(self.session, url)
        else:
            timeout = aiohttp.ClientTimeout(total=self.config.timeout)
            async with aiohttp.ClientSession(timeout=timeout) as session:
                body = await self._get(session, url)

        return self.decode(body, url)

    async def _get(self, session, url: str) -> bytes:
        timeout = aiohttp.ClientTimeout(total=self.config.timeout)
        try:
            async with session.get(url, headers=self.headers, timeout=timeout) as response:
                status = response.status
                if not 200 <= status < 300:
                    raise NetworkError(
                        f"Page request failed with HTTP {status}",
                        details={'url': url},
                        status=status
                    )
                return await response.read()

        except asyncio.TimeoutError as e:
            raise NetworkError(
                f"Page request timed out after {self.config.timeout}s",
                details={'url': url, 'original_error': str(e)}
            ) from e
        except aiohttp.ClientError as e:
            raise NetworkError(
                f"Page request failed: {e}",
                details={'url': url, 'original_error': str(e)}
            ) from e
