"""
Lyrics acquisition package

Components of the lookup chain, from the entry point down:

- SourceOrchestrator: cache, then generative text, then web search, with a
  single failure policy at its boundary
- CacheAdapter: exact-title lookup and deduplicating upsert into the song store
- TextGenerator implementations: OpenAI, xAI (grok) and Anthropic
- WebSearchClient: custom search API with preferred lyrics domains
- PageFetcher: HTTP fetch with legacy (Big5) decoding per host
- ContentExtractor: per-site adapters plus a generic block heuristic
- LyricsNormalizer: deterministic cleanup that keeps paragraph breaks

Usage:
    orchestrator = create_orchestrator()
    results = await orchestrator.search_lyrics("Title", "Artist")
"""

from .normalizer import LyricsNormalizer, LyricsParagraph, clean_lyrics, split_paragraphs
from .fetcher import PageFetcher
from .extractors import ContentExtractor, SiteAdapter, GenericAdapter
from .search import WebSearchClient
from .generative import (
    TextGenerator,
    OpenAITextGenerator,
    AnthropicTextGenerator,
    create_text_generator,
    build_lyrics_prompt,
)
from .cache import CacheAdapter, UpsertResult
from .orchestrator import SourceOrchestrator, LyricsResult, SearchOutcome, create_orchestrator

__all__ = [
    'LyricsNormalizer',
    'LyricsParagraph',
    'clean_lyrics',
    'split_paragraphs',
    'PageFetcher',
    'ContentExtractor',
    'SiteAdapter',
    'GenericAdapter',
    'WebSearchClient',
    'TextGenerator',
    'OpenAITextGenerator',
    'AnthropicTextGenerator',
    'create_text_generator',
    'build_lyrics_prompt',
    'CacheAdapter',
    'UpsertResult',
    'SourceOrchestrator',
    'LyricsResult',
    'SearchOutcome',
    'create_orchestrator',
]
