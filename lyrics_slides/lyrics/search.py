"""
Web search for lyrics pages

Queries the Google Custom Search JSON API for "<title> <artist> 歌詞" and
picks the result to scrape. Preference order is the configured domain list,
not the search engine's ranking: the first preferred domain that appears
anywhere in the results wins, even if other results rank higher. When no
preferred domain appears, the top result is used.
"""

import asyncio
from typing import Any, Dict, List, Optional

import aiohttp

from ..config.settings import SearchConfig, get_settings
from ..core.exceptions import ConfigurationError, NetworkError, UpstreamError
from ..utils.helpers import host_matches, host_of, is_blank
from ..utils.logger import get_logger


class WebSearchClient:
    """Locate the best lyrics page URL for a song"""

    def __init__(self, config: Optional[SearchConfig] = None, session: Optional[aiohttp.ClientSession] = None,
                 timeout: int = 15):
        """
        Initialize search client

        Args:
            config: Search settings, defaults to the global settings
            session: Shared client session (a short-lived one is used when omitted)
            timeout: Request timeout in seconds
        """
        self.config = config or get_settings().search
        self.session = session
        self.timeout = timeout
        self.logger = get_logger(__name__)

    @property
    def is_configured(self) -> bool:
        return not is_blank(self.config.api_key) and not is_blank(self.config.engine_id)

    def build_query(self, title: str, artist: Optional[str] = None) -> str:
        parts = [title.strip()]
        if not is_blank(artist):
            parts.append(artist.strip())
        if self.config.query_suffix:
            parts.append(self.config.query_suffix)
        return " ".join(parts)

    async def search_lyrics_url(self, title: str, artist: Optional[str] = None) -> Optional[str]:
        """
        Search the web for a lyrics page

        Args:
            title: Song title
            artist: Artist name (optional)

        Returns:
            URL of the chosen result, or None when the search returned no items

        Raises:
            ConfigurationError: If api_key or engine_id is missing (no request is made)
            UpstreamError: If the API answered with an error payload
            NetworkError: If the API could not be reached
        """
        if not self.is_configured:
            raise ConfigurationError(
                "Search API credentials are not configured",
                details={'missing': [k for k in ('api_key', 'engine_id') if is_blank(getattr(self.config, k))]}
            )

        query = self.build_query(title, artist)
        self.logger.debug(f"Searching lyrics pages: {query}")

        data = await self._request(query)

        if data.get('error'):
            error = data['error']
            message = error.get('message') if isinstance(error, dict) else str(error)
            raise UpstreamError(
                f"Search API error: {message or 'unknown error'}",
                details={'query': query}
            )

        links = [item.get('link') for item in data.get('items') or [] if isinstance(item, dict)]
        links = [link for link in links if link]
        if not links:
            self.logger.debug(f"No search results for: {query}")
            return None

        url = self.select_result(links)
        self.logger.debug(f"Selected lyrics page {url} out of {len(links)} results")
        return url

    def select_result(self, links: List[str]) -> str:
        """
        Pick a result by preferred domain order

        Args:
            links: Result URLs in search engine rank order (non-empty)

        Returns:
            First link on the highest preferred domain, else the first link
        """
        hosts = [host_of(link) for link in links]
        for domain in self.config.preferred_domains or []:
            for link, host in zip(links, hosts):
                if host_matches(host, domain):
                    return link
        return links[0]

    async def _request(self, query: str) -> Dict[str, Any]:
        params = {
            'key': self.config.api_key,
            'cx': self.config.engine_id,
            'q': query,
            'num': min(max(int(self.config.max_results), 1), 10),
        }

        if self.session is not None:
            return await self._get_json(self.session, params)

        async with aiohttp.ClientSession() as session:
            return await self._get_json(session, params)

    async def _get_json(self, session, params: Dict[str, Any]) -> Dict[str, Any]:
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        try:
            async with session.get(self.config.endpoint, params=params, timeout=timeout) as response:
                try:
                    data = await response.json(content_type=None)
                except ValueError as e:
                    raise UpstreamError(
                        f"Search API returned invalid JSON (HTTP {response.status})",
                        details={'original_error': str(e)}
                    ) from e

        except asyncio.TimeoutError as e:
            raise NetworkError(f"Search request timed out after {self.timeout}s") from e
        except aiohttp.ClientError as e:
            raise NetworkError(f"Search request failed: {e}", details={'original_error': str(e)}) from e

        if not isinstance(data, dict):
            raise UpstreamError("Search API returned an unexpected payload")
        return data
