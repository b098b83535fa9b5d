"""
Lyrics lookup with cache, generative and web fallback

SourceOrchestrator is the entry point for finding lyrics. It coordinates the
sources in a fixed order and applies one failure policy at its boundary.

Lookup Flow:
1. Cache: without an artist, every song stored under exactly this title is
   returned as a "cache" result.
2. Acquisition runs when the cache had nothing, or when an artist was given
   (an artist-qualified query asks for a specific, fresh lookup):
   a. Generative text, when a provider is configured. Answers shorter than
      the minimum length are rejected and failures are logged and skipped.
   b. Web: search for a lyrics page, fetch it, extract the lyrics block.
3. The fresh result goes first, cache results follow in store order.
4. Every result is normalized exactly once, right before returning.

Failure Policy:
- Acquisition failures are absorbed when cache results exist.
- Otherwise a ConfigurationError surfaces unchanged, and any other failure
  (network, upstream, nothing found) becomes a single LyricsNotFoundError.

Results are not written back automatically; callers decide whether to
persist a fresh result through CacheAdapter.upsert().
"""

import asyncio
from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from asyncio_throttle import Throttler

from ..config.settings import Settings, get_settings
from ..core.exceptions import (
    ConfigurationError,
    LyricsNotFoundError,
    LyricsSlidesError,
    StoreError,
)
from ..store.database import SongStore
from ..utils.helpers import is_blank
from ..utils.logger import get_logger
from .cache import CacheAdapter, UpsertResult
from .extractors import ContentExtractor
from .fetcher import PageFetcher
from .generative import TextGenerator, build_lyrics_prompt, create_text_generator
from .normalizer import DEFAULT_NORMALIZER, LyricsNormalizer
from .search import WebSearchClient


PROVENANCE_CACHE = "cache"
PROVENANCE_API = "api"

DEFAULT_GENERATIVE_MIN_LENGTH = 20


@dataclass
class LyricsResult:
    """
    One lyrics candidate returned by a lookup

    Attributes:
        title: Song title
        artist: Artist name ("" when unknown)
        lyrics: Normalized lyrics text
        source: Page URL, provider name, or the stored source for cache hits
        provenance: "cache" for stored songs, "api" for freshly acquired lyrics
        song_id: Store ID for cache results
    """
    title: str
    artist: str
    lyrics: str
    source: str = ""
    provenance: str = PROVENANCE_API
    song_id: Optional[int] = None

    @property
    def is_cached(self) -> bool:
        return self.provenance == PROVENANCE_CACHE

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SearchOutcome:
    """Result of one query in a batch lookup"""
    title: str
    artist: Optional[str] = None
    results: List[LyricsResult] = field(default_factory=list)
    error: Optional[LyricsSlidesError] = None
    saved: Optional[UpsertResult] = None

    @property
    def success(self) -> bool:
        return self.error is None and bool(self.results)


class SourceOrchestrator:
    """Find lyrics through cache, generative text and web search"""

    def __init__(
        self,
        cache: Optional[CacheAdapter] = None,
        search_client: Optional[WebSearchClient] = None,
        fetcher: Optional[PageFetcher] = None,
        extractor: Optional[ContentExtractor] = None,
        text_generator: Optional[TextGenerator] = None,
        normalizer: Optional[LyricsNormalizer] = None,
        generative_min_length: int = DEFAULT_GENERATIVE_MIN_LENGTH
    ):
        """
        Initialize orchestrator

        Args:
            cache: Cache adapter; cache lookups are skipped when None
            search_client: Web search client
            fetcher: Page fetcher
            extractor: Content extractor
            text_generator: Generative text source, None when not configured
            normalizer: Normalizer applied to every returned result
            generative_min_length: Shortest generated answer accepted
        """
        self.cache = cache
        self.normalizer = normalizer or DEFAULT_NORMALIZER
        self.search_client = search_client or WebSearchClient()
        self.fetcher = fetcher or PageFetcher()
        self.extractor = extractor or ContentExtractor(normalizer=self.normalizer)
        self.text_generator = text_generator
        self.generative_min_length = generative_min_length
        self.logger = get_logger(__name__)

        self.stats = {
            'total_searches': 0,
            'cache_hits': 0,
            'generative_hits': 0,
            'web_hits': 0,
            'not_found': 0,
        }

    async def search_lyrics(self, title: str, artist: Optional[str] = None) -> List[LyricsResult]:
        """
        Find lyrics for a song

        Args:
            title: Song title
            artist: Artist name (optional)

        Returns:
            Non-empty list of results, fresh result first

        Raises:
            ConfigurationError: If acquisition needed the web search and it
                is not configured, and no cache result exists
            LyricsNotFoundError: If no source produced lyrics
        """
        if is_blank(title):
            raise ValueError("title must not be empty")

        title = title.strip()
        artist = None if is_blank(artist) else artist.strip()
        self.stats['total_searches'] += 1

        cached = await self._lookup_cache(title) if artist is None else []
        if cached:
            self.stats['cache_hits'] += 1

        fresh = None
        if not cached or artist is not None:
            try:
                fresh = await self._acquire(title, artist)
            except ConfigurationError as e:
                if not cached:
                    raise
                self.logger.warning(f"Lookup for '{title}' not configured, returning cached lyrics: {e}")
            except Exception as e:
                if not cached:
                    self.stats['not_found'] += 1
                    raise LyricsNotFoundError(title, artist, details={'original_error': str(e)}) from e
                self.logger.warning(f"Lookup for '{title}' failed, returning cached lyrics: {e}")

        # Single normalization pass for every result
        results = []
        if fresh is not None:
            fresh.lyrics = self.normalizer.clean(fresh.lyrics)
            if fresh.lyrics:
                results.append(fresh)
            else:
                self.logger.debug(f"Lyrics from {fresh.source} were empty after cleaning")

        for result in cached:
            result.lyrics = self.normalizer.clean(result.lyrics)
            results.append(result)

        if not results:
            self.stats['not_found'] += 1
            raise LyricsNotFoundError(title, artist)

        return results

    async def _lookup_cache(self, title: str) -> List[LyricsResult]:
        if self.cache is None:
            return []

        try:
            rows = await self.cache.find_cached(title)
        except StoreError as e:
            self.logger.warning(f"Cache lookup failed for '{title}': {e}")
            return []

        return [
            LyricsResult(
                title=row.get('title') or title,
                artist=row.get('artist') or "",
                lyrics=row.get('lyrics') or "",
                source=row.get('source') or "",
                provenance=PROVENANCE_CACHE,
                song_id=row.get('id'),
            )
            for row in rows
        ]

    async def _acquire(self, title: str, artist: Optional[str]) -> Optional[LyricsResult]:
        """Generative text first, then web search; raw (uncleaned) lyrics"""
        if self.text_generator is not None:
            text = await self._generate(title, artist)
            if text is not None:
                self.stats['generative_hits'] += 1
                return LyricsResult(
                    title=title,
                    artist=artist or "",
                    lyrics=text,
                    source=self.text_generator.provider,
                    provenance=PROVENANCE_API,
                )

        url = await self.search_client.search_lyrics_url(title, artist)
        if url is None:
            self.logger.debug(f"No lyrics page found for '{title}'")
            return None

        html = await self.fetcher.fetch_page(url)
        lyrics = self.extractor.extract_raw(html, url)
        if lyrics is None:
            self.logger.debug(f"No lyrics extracted from {url}")
            return None

        self.stats['web_hits'] += 1
        return LyricsResult(
            title=title,
            artist=artist or "",
            lyrics=lyrics,
            source=url,
            provenance=PROVENANCE_API,
        )

    async def _generate(self, title: str, artist: Optional[str]) -> Optional[str]:
        provider = self.text_generator.provider
        try:
            text = await self.text_generator.generate_text(build_lyrics_prompt(title, artist))
        except Exception as e:
            self.logger.warning(f"Generative lookup with {provider} failed, trying web search: {e}")
            return None

        text = (text or "").strip()
        if len(text) < self.generative_min_length:
            self.logger.debug(
                f"Rejected {provider} answer of {len(text)} characters "
                f"(minimum {self.generative_min_length})"
            )
            return None
        if not self.normalizer.clean(text):
            # Refusals and disclaimers are made of marker lines only
            self.logger.debug(f"Rejected {provider} answer: nothing left after cleaning")
            return None
        return text

    async def save_result(self, result: LyricsResult) -> Optional[UpsertResult]:
        """
        Persist a fresh result in the cache

        Returns:
            UpsertResult, or None when there is no cache or the result came from it
        """
        if self.cache is None or result.is_cached:
            return None
        return await self.cache.upsert(result.title, result.artist, result.lyrics, result.source)

    async def search_many(
        self,
        queries: Iterable[Tuple[str, Optional[str]]],
        concurrency: int = 3,
        rate_limit: int = 2,
        save: bool = False,
        on_complete: Optional[Callable[[SearchOutcome], None]] = None
    ) -> List[SearchOutcome]:
        """
        Run many independent lookups concurrently

        Identical queries are not coalesced; each runs its own lookup.

        Args:
            queries: (title, artist) pairs
            concurrency: Maximum lookups in flight
            rate_limit: Maximum lookups started per second
            save: Upsert each fresh result into the cache
            on_complete: Called with each outcome as it finishes

        Returns:
            Outcomes in query order; failures are reported, not raised
        """
        semaphore = asyncio.Semaphore(max(1, concurrency))
        throttler = Throttler(rate_limit=max(1, rate_limit), period=1.0)

        async def run(title: str, artist: Optional[str]) -> SearchOutcome:
            outcome = SearchOutcome(title=title, artist=artist)
            async with semaphore:
                async with throttler:
                    try:
                        outcome.results = await self.search_lyrics(title, artist)
                    except LyricsSlidesError as e:
                        outcome.error = e
                    except ValueError as e:
                        outcome.error = LyricsNotFoundError(title, artist, details={'original_error': str(e)})

                if save and outcome.results and not outcome.results[0].is_cached:
                    outcome.saved = await self.save_result(outcome.results[0])

            if on_complete is not None:
                on_complete(outcome)
            return outcome

        return await asyncio.gather(*(run(title, artist) for title, artist in queries))

    def get_stats(self) -> Dict[str, Any]:
        stats = dict(self.stats)
        total = stats['total_searches']
        stats['success_rate'] = (total - stats['not_found']) / total * 100 if total else 0.0
        stats['generative_enabled'] = self.text_generator is not None
        return stats


def create_orchestrator(settings: Optional[Settings] = None, session=None, store=None) -> SourceOrchestrator:
    """
    Build an orchestrator from application settings

    Args:
        settings: Settings, defaults to the global settings
        session: Shared aiohttp session for search and page requests
        store: Song store; a SongStore at the configured path when omitted

    Returns:
        Configured SourceOrchestrator

    Raises:
        ConfigurationError: If the generative provider name is unknown
        StoreError: If the cache database cannot be opened
    """
    settings = settings or get_settings()

    if store is None:
        db_path = settings.get_database_path()
        db_path.parent.mkdir(parents=True, exist_ok=True)
        store = SongStore(db_path)

    normalizer = DEFAULT_NORMALIZER
    return SourceOrchestrator(
        cache=CacheAdapter(store, normalizer),
        search_client=WebSearchClient(settings.search, session=session, timeout=settings.fetch.timeout),
        fetcher=PageFetcher(settings.fetch, session=session),
        extractor=ContentExtractor(settings.extraction, normalizer=normalizer),
        text_generator=create_text_generator(settings.generative),
        normalizer=normalizer,
        generative_min_length=settings.generative.min_length,
    )
