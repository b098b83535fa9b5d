"""Test configuration and fixtures"""

import pytest
import tempfile
from pathlib import Path

from lyrics_slides.config.settings import (
    ExtractionConfig,
    FetchConfig,
    SearchConfig,
)
from lyrics_slides.store.database import SongStore


class FakeResponse:
    """Stand-in for an aiohttp response used as `async with session.get(...)`"""

    def __init__(self, status=200, body=b"", json_data=None, error=None):
        self.status = status
        self.body = body
        self.json_data = json_data
        self.error = error

    async def __aenter__(self):
        if self.error is not None:
            raise self.error
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def read(self):
        return self.body

    async def json(self, content_type=None):
        if self.json_data is None:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self.json_data


class FakeSession:
    """Stand-in for aiohttp.ClientSession routing GET requests by URL prefix"""

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.calls = []

    def add(self, url_prefix, response):
        self.routes[url_prefix] = response

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls.append({'url': url, 'params': params, 'headers': headers})
        for prefix, response in self.routes.items():
            if url.startswith(prefix):
                return response
        return FakeResponse(status=404)


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests"""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def song_store(temp_dir):
    """SQLite song store in a temporary directory"""
    store = SongStore(temp_dir / "songs.db")
    yield store
    store.close()


@pytest.fixture
def search_config():
    """Search settings with credentials and two preferred domains"""
    return SearchConfig(
        api_key="test-key",
        engine_id="test-cx",
        preferred_domains=["mojim.com", "kkbox.com"],
    )


@pytest.fixture
def fetch_config():
    return FetchConfig(timeout=5)


@pytest.fixture
def extraction_config():
    return ExtractionConfig()


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def amazing_grace_html():
    """Mojim-style lyrics page (markup as served, before encoding)"""
    return (
        '<html><head><title>奇異恩典</title></head><body>'
        '<div id="header">魔鏡歌詞網</div>'
        '<dl id="fsZx3">'
        '奇異恩典 何等甘甜<br>我罪已得赦免<br><br>'
        '前我失喪 今被尋回<br>瞎眼今得看見<br>'
        '更多更詳盡歌詞 在 ※ Mojim.com 魔鏡歌詞網'
        '</dl>'
        '</body></html>'
    )


SETTINGS_ENV_VARS = [
    "GOOGLE_API_KEY",
    "GOOGLE_SEARCH_ENGINE_ID",
    "LYRICS_AI_PROVIDER",
    "LYRICS_SLIDES_DB",
    "OPENAI_API_KEY",
    "XAI_API_KEY",
    "ANTHROPIC_API_KEY",
]


@pytest.fixture
def isolated_env(monkeypatch, temp_dir):
    """No config files or credentials from the developer machine"""
    for name in SETTINGS_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HOME", str(temp_dir))
    monkeypatch.chdir(temp_dir)
    return temp_dir


@pytest.fixture
def settings(isolated_env):
    """Settings with search credentials and a temporary cache database"""
    from lyrics_slides.config.settings import Settings

    settings = Settings()
    settings.search.api_key = "test-key"
    settings.search.engine_id = "test-cx"
    settings.cache.database_path = str(isolated_env / "cache" / "songs.db")
    return settings
