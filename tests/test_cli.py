"""Test the command-line interface"""

import pytest
from click.testing import CliRunner
from unittest.mock import AsyncMock, Mock

from lyrics_slides import __version__
from lyrics_slides.core.exceptions import LyricsNotFoundError
from lyrics_slides.lyrics.cache import UpsertResult
from lyrics_slides.lyrics.orchestrator import LyricsResult, SearchOutcome
from lyrics_slides.main import cli
from lyrics_slides.store.database import SongStore


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def orchestrator(monkeypatch, settings):
    """Patch settings and the orchestrator factory used by the commands"""
    orchestrator = Mock()
    orchestrator.cache = None
    orchestrator.search_lyrics = AsyncMock(return_value=[
        LyricsResult(title="Song", artist="", lyrics="line one\nline two\n\nline three",
                     source="https://mojim.com/x.htm"),
    ])
    orchestrator.save_result = AsyncMock(return_value=UpsertResult(success=True, song_id=7, created=True))

    monkeypatch.setattr("lyrics_slides.main.get_settings", lambda: settings)
    monkeypatch.setattr("lyrics_slides.main.create_orchestrator", Mock(return_value=orchestrator))
    return orchestrator


class TestCli:
    """Test CLI commands"""

    def test_version(self, runner):
        result = runner.invoke(cli, ['--version'])
        assert result.exit_code == 0
        assert f"v{__version__}" in result.output

    def test_clean_stdin(self, runner):
        result = runner.invoke(cli, ['clean'], input="作詞：王\n\n[Chorus]\n我愛你\n你愛我")
        assert result.exit_code == 0
        assert result.output == "我愛你\n你愛我\n"

    def test_clean_file(self, runner, temp_dir):
        path = temp_dir / "raw.txt"
        path.write_text("first line\n\n\n\nsecond line", encoding='utf-8')

        result = runner.invoke(cli, ['clean', str(path)])

        assert result.output == "first line\n\nsecond line\n"

    def test_search(self, runner, orchestrator):
        result = runner.invoke(cli, ['search', 'Song', '--save'])

        assert result.exit_code == 0
        assert "Found 1 result(s) for 'Song'" in result.output
        assert "line one\nline two\n\nline three" in result.output
        assert "Saved to cache (song #7)" in result.output
        orchestrator.search_lyrics.assert_awaited_once_with('Song', None)

    def test_search_paragraphs(self, runner, orchestrator):
        result = runner.invoke(cli, ['search', 'Song', '--artist', 'Someone', '--paragraphs'])

        assert result.exit_code == 0
        assert "[p0 lyrics]" in result.output
        assert "[p1 lyrics]" in result.output
        orchestrator.search_lyrics.assert_awaited_once_with('Song', 'Someone')

    def test_search_not_found(self, runner, orchestrator):
        orchestrator.search_lyrics.side_effect = LyricsNotFoundError("Missing")

        result = runner.invoke(cli, ['search', 'Missing'])

        assert result.exit_code == 1
        assert "Lyrics not found: Missing" in result.output

    def test_batch(self, runner, orchestrator, temp_dir):
        path = temp_dir / "songs.txt"
        path.write_text("# worship set\nSong\nMissing - Someone\n\n", encoding='utf-8')
        orchestrator.search_many = AsyncMock(return_value=[
            SearchOutcome(title="Song", results=orchestrator.search_lyrics.return_value,
                          saved=UpsertResult(success=True, song_id=1, created=True)),
            SearchOutcome(title="Missing", artist="Someone", error=LyricsNotFoundError("Missing", "Someone")),
        ])

        result = runner.invoke(cli, ['batch', str(path), '--no-save'])

        assert result.exit_code == 0
        queries = orchestrator.search_many.await_args.args[0]
        assert queries == [("Song", None), ("Missing", "Someone")]
        assert orchestrator.search_many.await_args.kwargs['save'] is False
        assert "[OK] Song: api https://mojim.com/x.htm (saved)" in result.output
        assert "[FAIL] Missing - Someone: Lyrics not found: Missing - Someone" in result.output

    def test_cache_command(self, runner, monkeypatch, settings, temp_dir):
        monkeypatch.setattr("lyrics_slides.main.get_settings", lambda: settings)
        path = temp_dir / "lyrics.txt"
        path.write_text("[Verse]\n奇異恩典\n何等甘甜", encoding='utf-8')

        first = runner.invoke(cli, ['cache', 'Amazing Grace', str(path)])
        second = runner.invoke(cli, ['cache', 'amazing grace', str(path), '--source', 'hymnal'])

        assert first.exit_code == 0
        assert "Created song #1: Amazing Grace" in first.output
        assert "Updated song #1: amazing grace" in second.output

        store = SongStore(settings.get_database_path())
        try:
            rows = store.find_by_exact_title("Amazing Grace")
        finally:
            store.close()
        assert [(r['lyrics'], r['source']) for r in rows] == [("奇異恩典\n何等甘甜", "hymnal")]

    def test_sources(self, runner, monkeypatch, settings):
        monkeypatch.setattr("lyrics_slides.main.get_settings", lambda: settings)

        result = runner.invoke(cli, ['sources'])

        assert result.exit_code == 0
        assert "Lyrics Sources Status:" in result.output
        assert "[OK] web search: configured" in result.output
        assert "ai provider: disabled" in result.output
        assert "mojim.com" in result.output

    def test_sources_shows_log_file(self, runner, monkeypatch, settings, temp_dir):
        log_path = temp_dir / "lyrics-slides.log"
        monkeypatch.setattr("lyrics_slides.main.get_settings", lambda: settings)
        monkeypatch.setattr("lyrics_slides.main.current_log_file", lambda: log_path)

        result = runner.invoke(cli, ['sources'])

        assert result.exit_code == 0
        assert f"Log file: {log_path}" in result.output
