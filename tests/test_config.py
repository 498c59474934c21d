"""
Configuration tests
Environment parsing helpers and required setting validation
"""

import pytest

from config import Config, ConfigurationError, _bounded_int, _optional_int


@pytest.fixture
def configured(monkeypatch):
    """A complete configuration"""
    monkeypatch.setattr(Config, "DISCORD_TOKEN", "token")
    monkeypatch.setattr(Config, "BOOSTER_CHANNEL_ID", 1001)
    monkeypatch.setattr(Config, "LOG_CHANNEL_ID", 1002)
    monkeypatch.setattr(Config, "TICKET_CATEGORY_ID", 2002)


class TestEnvironmentParsing:

    def test_optional_int_reads_snowflake(self, monkeypatch):
        monkeypatch.setenv("BOOSTER_CHANNEL_ID", " 123456789012345678 ")
        assert _optional_int("BOOSTER_CHANNEL_ID") == 123456789012345678

    @pytest.mark.parametrize("value", ["", "   ", "booster-channel", "-5"])
    def test_optional_int_rejects_non_ids(self, monkeypatch, value):
        monkeypatch.setenv("BOOSTER_CHANNEL_ID", value)
        assert _optional_int("BOOSTER_CHANNEL_ID") is None

    def test_optional_int_absent(self, monkeypatch):
        monkeypatch.delenv("BOOSTER_CHANNEL_ID", raising=False)
        assert _optional_int("BOOSTER_CHANNEL_ID") is None

    def test_bounded_int_default(self, monkeypatch):
        monkeypatch.delenv("LOG_REPLAY_LIMIT", raising=False)
        assert _bounded_int("LOG_REPLAY_LIMIT", 1000, 1, 10000) == 1000

    @pytest.mark.parametrize("value,expected", [
        ("250", 250),
        ("0", 1),
        ("50000", 10000),
        ("lots", 1000),
    ])
    def test_bounded_int_clamps(self, monkeypatch, value, expected):
        monkeypatch.setenv("LOG_REPLAY_LIMIT", value)
        assert _bounded_int("LOG_REPLAY_LIMIT", 1000, 1, 10000) == expected


class TestValidation:

    def test_complete_configuration_is_valid(self, configured):
        assert Config.missing_settings() == []
        assert Config.validate_bot_configuration() is True

    def test_missing_settings_are_listed(self, configured, monkeypatch):
        monkeypatch.setattr(Config, "DISCORD_TOKEN", None)
        monkeypatch.setattr(Config, "LOG_CHANNEL_ID", None)

        with pytest.raises(ConfigurationError) as exc_info:
            Config.validate_bot_configuration()

        assert "DISCORD_TOKEN, LOG_CHANNEL_ID" in str(exc_info.value)
