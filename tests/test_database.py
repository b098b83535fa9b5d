"""Test the SQLite song store"""

import asyncio
import sqlite3

import pytest

from lyrics_slides.core.exceptions import StoreError
from lyrics_slides.store.database import DATABASE_VERSION, SongStore


def song(title, artist="", lyrics="words", source=None):
    return {'title': title, 'artist': artist, 'lyrics': lyrics, 'source': source}


class TestSongStore:
    """Test basic CRUD"""

    def test_insert_and_get(self, song_store):
        song_id = song_store.insert(song("奇異恩典", lyrics="奇異恩典 何等甘甜"))

        row = song_store.get_by_id(song_id)
        assert row['title'] == "奇異恩典"
        assert row['artist'] == ""
        assert row['lyrics'] == "奇異恩典 何等甘甜"
        assert row['created_at'] == row['updated_at']

    def test_insert_none_artist_stored_blank(self, song_store):
        song_id = song_store.insert({'title': "Song", 'artist': None})
        assert song_store.get_by_id(song_id)['artist'] == ""

    def test_insert_requires_title(self, song_store):
        with pytest.raises(StoreError):
            song_store.insert({'title': "", 'lyrics': "words"})

    def test_update(self, song_store):
        song_id = song_store.insert(song("Song"))

        assert song_store.update(song_id, {'lyrics': "new words", 'source': "openai"})

        row = song_store.get_by_id(song_id)
        assert row['lyrics'] == "new words"
        assert row['source'] == "openai"
        assert row['updated_at'] >= row['created_at']

    def test_update_missing_id(self, song_store):
        assert not song_store.update(999, {'lyrics': "x"})
        assert not song_store.update(999, {})

    def test_update_unknown_field(self, song_store):
        song_id = song_store.insert(song("Song"))
        with pytest.raises(StoreError):
            song_store.update(song_id, {'id': 5})

    def test_delete(self, song_store):
        song_id = song_store.insert(song("Song"))
        assert song_store.delete(song_id)
        assert not song_store.delete(song_id)
        assert song_store.count() == 0


class TestQueries:
    """Test exact and broad title lookups"""

    def test_exact_title(self, song_store):
        song_store.insert(song("Song X"))
        song_store.insert(song("Song X (Live)"))
        song_store.insert(song("song x"))

        rows = song_store.find_by_exact_title("Song X")
        assert [r['title'] for r in rows] == ["Song X"]

    def test_exact_title_newest_first(self, song_store):
        older = song_store.insert(song("Song", artist="A"))
        newer = song_store.insert(song("Song", artist="B"))
        song_store.update(older, {'lyrics': "refreshed"})

        rows = song_store.find_by_exact_title("Song")
        assert [r['id'] for r in rows] == [older, newer]

    def test_broad_title(self, song_store):
        song_store.insert(song("Song X"))
        song_store.insert(song("Song X (Live)"))
        song_store.insert(song("Other"))

        rows = song_store.find_by_title("song x")
        assert [r['title'] for r in rows] == ["Song X", "Song X (Live)"]

    def test_broad_title_escapes_wildcards(self, song_store):
        song_store.insert(song("100% Love"))
        song_store.insert(song("1000 Loves"))
        song_store.insert(song("a_b"))
        song_store.insert(song("axb"))

        assert [r['title'] for r in song_store.find_by_title("100%")] == ["100% Love"]
        assert [r['title'] for r in song_store.find_by_title("a_b")] == ["a_b"]

    def test_broad_title_folds_non_ascii(self, song_store):
        song_store.insert(song("КАТЮША"))
        song_store.insert(song("CAFÉ"))
        song_store.insert(song("Straße"))

        assert [r['title'] for r in song_store.find_by_title("катюша")] == ["КАТЮША"]
        assert [r['title'] for r in song_store.find_by_title("café")] == ["CAFÉ"]
        assert [r['title'] for r in song_store.find_by_title("STRASSE")] == ["Straße"]


class TestUpsertSong:
    """Test the locked match-then-write operation"""

    def test_inserts_when_nothing_matches(self, song_store):
        song_id, created = song_store.upsert_song(song("Song", lyrics="first"), lambda row: False)

        assert created
        assert song_store.get_by_id(song_id)['lyrics'] == "first"

    def test_updates_first_match(self, song_store):
        live = song_store.insert(song("Song (Live)", lyrics="live"))
        studio = song_store.insert(song("Song", lyrics="studio"))

        song_id, created = song_store.upsert_song(
            song("Song", lyrics="new studio", source="grok"),
            lambda row: row['title'] == "Song"
        )

        assert not created
        assert song_id == studio
        assert song_store.get_by_id(studio)['lyrics'] == "new studio"
        assert song_store.get_by_id(studio)['source'] == "grok"
        assert song_store.get_by_id(live)['lyrics'] == "live"

    def test_candidates_are_broad_title_matches(self, song_store):
        song_store.insert(song("Song"))
        song_store.insert(song("Other"))
        seen = []

        song_store.upsert_song(song("SONG"), lambda row: seen.append(row['title']) or False)

        assert seen == ["Song"]
        assert song_store.count() == 3

    def test_update_keeps_source_when_none_given(self, song_store):
        song_id = song_store.insert(song("Song", source="https://mojim.com/x"))

        song_store.upsert_song(song("Song", lyrics="new"), lambda row: True)

        assert song_store.get_by_id(song_id)['source'] == "https://mojim.com/x"

    def test_requires_title(self, song_store):
        with pytest.raises(StoreError):
            song_store.upsert_song({'title': "", 'lyrics': "words"}, lambda row: True)
        assert song_store.count() == 0

    def test_match_error_rolls_back(self, song_store):
        """A failing match callable leaves the store usable and unchanged"""
        song_store.insert(song("Song"))

        def broken(row):
            raise RuntimeError("bad row")

        with pytest.raises(RuntimeError):
            song_store.upsert_song(song("Song", lyrics="new"), broken)

        assert song_store.count() == 1
        assert song_store.insert(song("Other")) > 0


class TestDatabaseFile:
    """Test database creation and versioning"""

    def test_missing_parent_directory(self, temp_dir):
        with pytest.raises(StoreError):
            SongStore(temp_dir / "missing" / "songs.db")

    def test_reopen_keeps_data(self, temp_dir):
        path = temp_dir / "songs.db"
        store = SongStore(path)
        store.insert(song("Song"))
        store.close()

        reopened = SongStore(path)
        try:
            assert reopened.count() == 1
        finally:
            reopened.close()

    def test_version_mismatch(self, temp_dir):
        path = temp_dir / "songs.db"
        SongStore(path).close()

        conn = sqlite3.connect(str(path))
        conn.execute("UPDATE schema_version SET version = ?", (DATABASE_VERSION + 98,))
        conn.commit()
        conn.close()

        with pytest.raises(StoreError) as exc_info:
            SongStore(path)
        assert exc_info.value.details['actual'] == DATABASE_VERSION + 98


class TestAsyncWrappers:
    """Test the coroutine API used by the cache adapter"""

    @pytest.mark.asyncio
    async def test_round_trip(self, song_store):
        song_id = await song_store.ainsert(song("Song", lyrics="first"))
        assert await song_store.aupdate(song_id, {'lyrics': "second"})

        exact = await song_store.afind_by_exact_title("Song")
        broad = await song_store.afind_by_title("on")

        assert exact[0]['lyrics'] == "second"
        assert [r['id'] for r in broad] == [song_id]

    @pytest.mark.asyncio
    async def test_concurrent_upserts_insert_once(self, song_store):
        def matches(row):
            return row['title'] == "Song"

        outcomes = await asyncio.gather(*(
            song_store.aupsert_song(song("Song", lyrics=f"version {i}"), matches)
            for i in range(4)
        ))

        assert len({song_id for song_id, _ in outcomes}) == 1
        assert [created for _, created in outcomes].count(True) == 1
        assert song_store.count() == 1
