"""Builders for in-memory sessions and entries used across test modules."""

from datetime import UTC, datetime

from pvpplanner.models.session import Gamer, Session, SessionMeta

SESSION_DATE = datetime(2026, 3, 6, 20, 30, tzinfo=UTC)


def make_session(category: str = "pvp", gamers: list[Gamer] | None = None, **overrides) -> Session:
    """Build an in-memory Session for renderer and transition tests."""
    fields = {
        "session_id": "abc123",
        "guild_id": "111",
        "channel_id": "222",
        "host_id": "333",
        "game_mode": "RBGs" if category == "pvp" else "Raid",
        "date": SESSION_DATE,
        "meta": SessionMeta(category=category),
        "gamers": gamers or [],
    }
    fields.update(overrides)
    return Session(**fields)


def gamer(user_id: str = "1", **fields) -> Gamer:
    return Gamer(user_id=user_id, username=f"user{user_id}", **fields)
