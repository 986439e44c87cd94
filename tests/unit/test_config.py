import pytest
import structlog

from powcap.config.logging import setup_logging
from powcap.config.settings import DEFAULT_TOKENS_STORE, Settings, get_settings
from powcap.exceptions import ConfigError


@pytest.mark.unit
class TestSettings:
    def test_default_settings(self) -> None:
        settings = Settings()
        assert settings.tokens_store_path == DEFAULT_TOKENS_STORE == ".data/tokensList.json"
        assert settings.no_fs_state is False
        assert settings.keep_token is False
        assert settings.log_level == "INFO"

    def test_settings_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TOKENS_STORE_PATH", "/var/lib/powcap/tokens.json")
        monkeypatch.setenv("NO_FS_STATE", "true")
        monkeypatch.setenv("CHALLENGE_DIFFICULTY", "2")
        monkeypatch.setenv("KEEP_TOKEN", "1")
        settings = Settings()
        assert settings.tokens_store_path == "/var/lib/powcap/tokens.json"
        assert settings.no_fs_state is True
        assert settings.challenge_difficulty == 2
        assert settings.keep_token is True

    def test_challenge_config(self) -> None:
        settings = Settings(
            challenge_count=3,
            challenge_size=8,
            challenge_difficulty=1,
            challenge_expires_ms=1_000,
            challenge_store=False,
        )
        config = settings.challenge_config()
        assert config.challenge_count == 3
        assert config.challenge_size == 8
        assert config.challenge_difficulty == 1
        assert config.expires_ms == 1_000
        assert config.store is False

    def test_token_config(self) -> None:
        assert Settings(keep_token=True).token_config().keep_token is True


@pytest.mark.unit
class TestGetSettings:
    @pytest.fixture(autouse=True)
    def _clear_cache(self):
        get_settings.cache_clear()
        yield
        get_settings.cache_clear()

    def test_cached(self) -> None:
        assert get_settings() is get_settings()

    def test_rejects_non_positive_cleanup_interval(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CLEANUP_INTERVAL_SECONDS", "0")
        with pytest.raises(ConfigError):
            get_settings()


@pytest.mark.unit
class TestSetupLogging:
    def teardown_method(self) -> None:
        structlog.reset_defaults()

    def test_json_output_merges_request_context(self) -> None:
        setup_logging(log_level="DEBUG", json_output=True)
        processors = structlog.get_config()["processors"]
        assert processors[0] is structlog.contextvars.merge_contextvars
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)
