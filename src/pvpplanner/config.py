"""Application settings via pydantic-settings. Loads from environment and .env file."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """PvP Planner configuration.

    All values can be overridden via environment variables or .env file.
    """

    # Discord
    discord_bot_token: str = ""
    discord_guild_id: str = ""
    discord_enabled: bool = False
    # Comma-separated channel IDs where session displays are posted.
    # Empty means "post in the channel the session was scheduled from".
    display_channel_ids: str = ""

    # Database
    database_url: str = "sqlite+aiosqlite:///pvpplanner.db"

    # Runtime
    planner_env: str = "development"
    planner_log_level: str = "INFO"
    planner_timezone: str = "UTC"

    # How many recent messages to scan when locating a session's display message.
    planner_display_history_limit: int = 50

    model_config = {"env_prefix": "", "env_file": ".env", "extra": "ignore"}

    def display_channels(self) -> list[int]:
        """Parse ``display_channel_ids`` into a list of ints, skipping junk."""
        ids: list[int] = []
        for part in self.display_channel_ids.split(","):
            part = part.strip()
            if part.isdigit():
                ids.append(int(part))
        return ids
