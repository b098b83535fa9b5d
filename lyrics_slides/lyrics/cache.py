"""
Song cache integration

CacheAdapter is the only writer of lyrics into the song store. Its upsert
rule is the duplicate-prevention mechanism of the whole application: a
song is identified by its title (case-insensitive) and its artist
(case-insensitive, with "" and None treated as the same blank artist).

The store is any object exposing the coroutines used below; SongStore from
lyrics_slides.store provides them on top of SQLite. Matching and writing
happen in one store call (aupsert_song), so concurrent saves of the same
song cannot both insert.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..core.exceptions import StoreError
from ..utils.helpers import is_blank, same_text
from ..utils.logger import get_logger
from .normalizer import DEFAULT_NORMALIZER, LyricsNormalizer


@dataclass
class UpsertResult:
    """Outcome of a cache upsert"""
    success: bool
    song_id: Optional[int] = None
    created: bool = False


def is_same_song(record: Dict[str, Any], title: str, artist: Optional[str]) -> bool:
    """
    Check whether a stored record is the given song

    Args:
        record: Stored song row
        title: Song title
        artist: Artist name, None or "" when unknown

    Returns:
        True if titles match and artists are both blank or match
    """
    if not same_text(record.get('title'), title):
        return False

    stored_artist = record.get('artist')
    if is_blank(stored_artist) and is_blank(artist):
        return True
    return same_text(stored_artist, artist)


class CacheAdapter:
    """Read and write cached lyrics through a song store"""

    def __init__(self, store, normalizer: Optional[LyricsNormalizer] = None):
        """
        Initialize cache adapter

        Args:
            store: Song store with afind_by_exact_title and aupsert_song
                coroutines
            normalizer: Normalizer applied before every write
        """
        self.store = store
        self.normalizer = normalizer or DEFAULT_NORMALIZER
        self.logger = get_logger(__name__)

    async def find_cached(self, title: str) -> List[Dict[str, Any]]:
        """
        Cached songs stored under exactly this title

        Raises:
            StoreError: If the store fails
        """
        return await self.store.afind_by_exact_title(title)

    async def upsert(self, title: str, artist: Optional[str], lyrics: str, source: Optional[str] = None) -> UpsertResult:
        """
        Insert or update the cached lyrics of a song

        Lyrics are normalized before they are written. An existing record
        with the same title and artist is updated in place; otherwise a new
        record is created.

        Args:
            title: Song title
            artist: Artist name (None or "" when unknown)
            lyrics: Lyrics text
            source: Where the lyrics came from (URL or provider name)

        Returns:
            UpsertResult with the ID of the written record; success is False
            when the store failed or the title is blank
        """
        if is_blank(title):
            self.logger.warning("Refusing to cache lyrics without a title")
            return UpsertResult(success=False)

        cleaned = self.normalizer.clean(lyrics)

        record = {
            'title': title.strip(),
            'artist': (artist or "").strip(),
            'lyrics': cleaned,
            'source': source,
        }

        try:
            song_id, created = await self.store.aupsert_song(
                record, lambda row: is_same_song(row, title, artist)
            )
        except StoreError as e:
            self.logger.warning(f"Failed to cache lyrics for '{title}': {e}")
            return UpsertResult(success=False)

        action = "Cached" if created else "Updated cached"
        self.logger.debug(f"{action} lyrics for '{title}' (id {song_id})")
        return UpsertResult(success=True, song_id=song_id, created=created)
