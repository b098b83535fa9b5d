"""
Lyrics-Slides: acquire and normalize song lyrics for slide generation

Lyrics are looked up through a fallback chain: the local song cache first,
then an optional generative-text provider, then a web search whose best
result page is fetched and scraped by a site-specific or generic extractor.
Every returned text passes through the deterministic normalizer, which strips
attribution lines, section labels and bracketed notes while keeping the
paragraph breaks that the source had.

Main entry points:
    orchestrator = create_orchestrator()
    results = await orchestrator.search_lyrics("Title", "Artist")

    clean_lyrics(raw_text)
"""

__version__ = "0.4.0"

from .lyrics.normalizer import clean_lyrics, split_paragraphs
from .lyrics.orchestrator import SourceOrchestrator, LyricsResult, create_orchestrator
from .lyrics.cache import CacheAdapter, UpsertResult

__all__ = [
    '__version__',
    'clean_lyrics',
    'split_paragraphs',
    'SourceOrchestrator',
    'LyricsResult',
    'create_orchestrator',
    'CacheAdapter',
    'UpsertResult',
]
