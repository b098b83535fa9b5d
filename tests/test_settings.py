"""Test configuration loading"""

import yaml

from lyrics_slides.config.settings import Settings


class TestSettings:
    """Test settings sources and validation"""

    def test_defaults(self, isolated_env):
        settings = Settings()

        assert settings.search.preferred_domains[:2] == ["mojim.com", "kkbox.com"]
        assert settings.fetch.legacy_encoding_hosts == {"mojim.com": "big5"}
        assert settings.generative.provider == "none"
        assert settings.extraction.min_length == 10
        assert settings.get_database_path() == isolated_env / ".lyrics-slides" / "songs.db"

    def test_yaml_file(self, isolated_env):
        path = isolated_env / "custom.yaml"
        path.write_text(yaml.safe_dump({
            'search': {'engine_id': 'from-file', 'preferred_domains': ['genius.com']},
            'fetch': {'timeout': 7},
            'unknown_section': {'x': 1},
            'batch': {'not_a_field': True},
        }), encoding='utf-8')

        settings = Settings(str(path))

        assert settings.search.engine_id == "from-file"
        assert settings.search.preferred_domains == ["genius.com"]
        assert settings.fetch.timeout == 7
        assert not hasattr(settings.batch, 'not_a_field')

    def test_environment_overrides_file(self, isolated_env, monkeypatch):
        path = isolated_env / "config.yaml"
        path.write_text("search:\n  engine_id: from-file\n", encoding='utf-8')
        monkeypatch.setenv("GOOGLE_SEARCH_ENGINE_ID", "from-env")
        monkeypatch.setenv("GOOGLE_API_KEY", "key-from-env")

        settings = Settings()

        assert settings.search.engine_id == "from-env"
        assert settings.search.api_key == "key-from-env"

    def test_provider_key_from_environment(self, isolated_env, monkeypatch):
        monkeypatch.setenv("LYRICS_AI_PROVIDER", "Grok")
        monkeypatch.setenv("XAI_API_KEY", "xai-key")
        monkeypatch.setenv("OPENAI_API_KEY", "openai-key")

        settings = Settings()

        assert settings.generative.provider == "grok"
        assert settings.generative.api_key == "xai-key"

    def test_validate(self, isolated_env):
        settings = Settings()
        problems = settings.validate()
        assert any("api_key" in p for p in problems)

        settings.search.api_key = "k"
        settings.search.engine_id = "cx"
        assert settings.validate() == []

        settings.generative.provider = "bard"
        assert settings.validate() == ["Invalid generative provider: bard"]

        settings.generative.provider = "anthropic"
        assert settings.validate() == ["No API key configured for provider: anthropic"]

    def test_save_config_blanks_keys(self, isolated_env):
        settings = Settings()
        settings.search.api_key = "secret"
        settings.generative.api_key = "also-secret"
        path = isolated_env / "saved" / "config.yaml"

        settings.save_config(str(path))

        data = yaml.safe_load(path.read_text(encoding='utf-8'))
        assert data['search']['api_key'] == ""
        assert data['generative']['api_key'] == ""
        assert settings.search.api_key == "secret"
        assert data['fetch']['legacy_encoding_hosts'] == {"mojim.com": "big5"}
