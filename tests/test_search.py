"""Test web search result selection"""

import pytest

from lyrics_slides.config.settings import SearchConfig
from lyrics_slides.core.exceptions import ConfigurationError, NetworkError, UpstreamError
from lyrics_slides.lyrics.search import WebSearchClient
from tests.conftest import FakeResponse, FakeSession


ENDPOINT = "https://www.googleapis.com/customsearch/v1"


def search_session(payload):
    return FakeSession({ENDPOINT: FakeResponse(json_data=payload)})


def items(*links):
    return {'items': [{'link': link, 'title': 'result'} for link in links]}


class TestSelectResult:
    """Test preferred-domain ordering"""

    def test_preferred_order_beats_rank(self, search_config):
        """mojim.com is preferred over kkbox.com even when ranked lower"""
        client = WebSearchClient(search_config)
        links = [
            "https://other.example/song",
            "https://www.kkbox.com/tw/song/1",
            "https://mojim.com/twy1.htm",
        ]
        assert client.select_result(links) == "https://mojim.com/twy1.htm"

    def test_first_link_on_preferred_domain(self, search_config):
        client = WebSearchClient(search_config)
        links = ["https://www.kkbox.com/a", "https://www.kkbox.com/b"]
        assert client.select_result(links) == "https://www.kkbox.com/a"

    def test_falls_back_to_top_result(self, search_config):
        client = WebSearchClient(search_config)
        links = ["https://first.example/a", "https://second.example/b"]
        assert client.select_result(links) == "https://first.example/a"

    def test_lookalike_host_not_preferred(self, search_config):
        client = WebSearchClient(search_config)
        links = ["https://top.example/", "https://notmojim.com/x"]
        assert client.select_result(links) == "https://top.example/"


class TestSearchLyricsUrl:
    """Test the search request and response handling"""

    @pytest.mark.asyncio
    async def test_returns_preferred_link(self, search_config):
        session = search_session(items(
            "https://other.example/song",
            "https://www.kkbox.com/tw/song/1",
            "https://mojim.com/twy1.htm",
        ))
        client = WebSearchClient(search_config, session=session)

        assert await client.search_lyrics_url("奇異恩典") == "https://mojim.com/twy1.htm"

    @pytest.mark.asyncio
    async def test_query_parameters(self, search_config):
        session = search_session(items("https://mojim.com/x"))
        client = WebSearchClient(search_config, session=session)

        await client.search_lyrics_url("Amazing Grace", "John Newton")

        call = session.calls[0]
        assert call['url'] == ENDPOINT
        assert call['params']['q'] == "Amazing Grace John Newton 歌詞"
        assert call['params']['key'] == "test-key"
        assert call['params']['cx'] == "test-cx"
        assert call['params']['num'] == 10

    def test_build_query_without_artist(self, search_config):
        client = WebSearchClient(search_config)
        assert client.build_query("  奇異恩典 ", None) == "奇異恩典 歌詞"
        assert client.build_query("奇異恩典", "   ") == "奇異恩典 歌詞"

    @pytest.mark.asyncio
    async def test_no_items(self, search_config):
        client = WebSearchClient(search_config, session=search_session({'items': []}))
        assert await client.search_lyrics_url("Nothing") is None

        client = WebSearchClient(search_config, session=search_session({'kind': 'customsearch#search'}))
        assert await client.search_lyrics_url("Nothing") is None

    @pytest.mark.asyncio
    async def test_missing_credentials(self):
        """No request is made without api_key and engine_id"""
        session = FakeSession()
        client = WebSearchClient(SearchConfig(api_key="", engine_id="cx"), session=session)

        with pytest.raises(ConfigurationError) as exc_info:
            await client.search_lyrics_url("Song")

        assert exc_info.value.details['missing'] == ['api_key']
        assert session.calls == []

    @pytest.mark.asyncio
    async def test_error_payload(self, search_config):
        session = search_session({'error': {'code': 403, 'message': 'Daily limit exceeded'}})
        client = WebSearchClient(search_config, session=session)

        with pytest.raises(UpstreamError) as exc_info:
            await client.search_lyrics_url("Song")

        assert "Daily limit exceeded" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_invalid_json(self, search_config):
        session = FakeSession({ENDPOINT: FakeResponse(status=500, json_data=None)})
        client = WebSearchClient(search_config, session=session)

        with pytest.raises(UpstreamError):
            await client.search_lyrics_url("Song")

    @pytest.mark.asyncio
    async def test_unexpected_payload(self, search_config):
        client = WebSearchClient(search_config, session=search_session(["not", "a", "dict"]))

        with pytest.raises(UpstreamError):
            await client.search_lyrics_url("Song")

    @pytest.mark.asyncio
    async def test_network_failure(self, search_config):
        import aiohttp

        session = FakeSession({ENDPOINT: FakeResponse(error=aiohttp.ClientConnectionError("dns"))})
        client = WebSearchClient(search_config, session=session)

        with pytest.raises(NetworkError):
            await client.search_lyrics_url("Song")
