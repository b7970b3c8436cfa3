"""Tests for application configuration."""

from pvpplanner.config import Settings


class TestDisplayChannels:
    def test_empty_by_default(self) -> None:
        settings = Settings(database_url="sqlite+aiosqlite:///:memory:")
        assert settings.display_channels() == []

    def test_parses_comma_separated_ids(self) -> None:
        settings = Settings(display_channel_ids="123, 456,789")
        assert settings.display_channels() == [123, 456, 789]

    def test_skips_blank_and_non_numeric_entries(self) -> None:
        settings = Settings(display_channel_ids="123,,abc, 456 ")
        assert settings.display_channels() == [123, 456]


class TestDefaults:
    def test_development_is_default_env(self) -> None:
        settings = Settings()
        assert settings.planner_env == "development"
        assert settings.discord_enabled is False

    def test_history_limit_default(self) -> None:
        assert Settings().planner_display_history_limit == 50

    def test_env_override(self, monkeypatch) -> None:
        monkeypatch.setenv("PLANNER_TIMEZONE", "America/New_York")
        monkeypatch.setenv("DISPLAY_CHANNEL_IDS", "42")
        settings = Settings()
        assert settings.planner_timezone == "America/New_York"
        assert settings.display_channels() == [42]
