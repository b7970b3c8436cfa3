"""Repository pattern for database access.

Wraps SQLAlchemy async sessions. Sessions are saved with a compare-and-swap
on their ``version`` column: a save only lands if nobody else saved since
the caller loaded the document.
"""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from pvpplanner.db.models import SessionRow, UserPreferencesRow, new_session_id
from pvpplanner.models.session import (
    Gamer,
    PreferenceSlot,
    Session,
    SessionMeta,
    UserPreferences,
    normalize_slot,
)


class SessionNotFound(LookupError):
    """No session exists with the requested id."""


class StaleSessionError(Exception):
    """The session changed in the store after it was loaded."""


def _aware(value: datetime) -> datetime:
    # SQLite drops tzinfo; everything is stored as UTC.
    return value if value.tzinfo else value.replace(tzinfo=UTC)


def session_from_row(row: SessionRow) -> Session:
    return Session(
        session_id=row.session_id,
        guild_id=row.guild_id,
        channel_id=row.channel_id or "",
        host_id=row.host_id or "",
        game_mode=row.game_mode,
        date=_aware(row.date),
        notes=row.notes or "",
        meta=SessionMeta.model_validate(row.meta or {}),
        gamers=[Gamer.model_validate(g) for g in row.gamers or []],
        version=row.version,
    )


class Repository:
    """Async repository for all database operations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    # --- Sessions ---

    async def create_signup_session(
        self,
        guild_id: str,
        game_mode: str,
        date: datetime,
        *,
        channel_id: str = "",
        host_id: str = "",
        notes: str = "",
        meta: SessionMeta | None = None,
    ) -> Session:
        row = SessionRow(
            session_id=new_session_id(),
            guild_id=guild_id,
            channel_id=channel_id,
            host_id=host_id,
            game_mode=game_mode,
            date=date.astimezone(UTC),
            notes=notes,
            meta=(meta or SessionMeta()).model_dump(),
            gamers=[],
            version=0,
        )
        self.session.add(row)
        await self.session.flush()
        return session_from_row(row)

    async def _get_session_row(self, session_id: str) -> SessionRow | None:
        result = await self.session.execute(
            select(SessionRow).where(SessionRow.session_id == session_id)
        )
        return result.scalar_one_or_none()

    async def get_signup_session(self, session_id: str) -> Session | None:
        """Load a session by its public id, bypassing any cached identity."""
        result = await self.session.execute(
            select(SessionRow)
            .where(SessionRow.session_id == session_id)
            .execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
        return session_from_row(row) if row else None

    async def save_signup_session(self, signup: Session) -> Session:
        """Persist roster/notes/meta if the stored version still matches.

        Returns the saved session with its bumped version. Raises
        StaleSessionError on a version mismatch and SessionNotFound when
        the session was deleted in the meantime.
        """
        result = await self.session.execute(
            update(SessionRow)
            .where(
                SessionRow.session_id == signup.session_id,
                SessionRow.version == signup.version,
            )
            .values(
                gamers=[g.model_dump() for g in signup.gamers],
                meta=signup.meta.model_dump(),
                notes=signup.notes,
                version=signup.version + 1,
                updated_at=datetime.now(UTC),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            if await self._get_session_row(signup.session_id) is None:
                raise SessionNotFound(signup.session_id)
            raise StaleSessionError(signup.session_id)
        return signup.model_copy(update={"version": signup.version + 1})

    async def delete_signup_session(self, session_id: str) -> bool:
        result = await self.session.execute(
            delete(SessionRow).where(SessionRow.session_id == session_id)
        )
        return result.rowcount > 0

    # --- Preferences ---

    async def get_preferences(self, user_id: str, guild_id: str) -> UserPreferences | None:
        row = await self._get_preferences_row(user_id, guild_id)
        if row is None:
            return None
        return UserPreferences(
            user_id=row.user_id,
            guild_id=row.guild_id,
            slots={k: PreferenceSlot.model_validate(v) for k, v in (row.slots or {}).items()},
        )

    async def _get_preferences_row(self, user_id: str, guild_id: str) -> UserPreferencesRow | None:
        result = await self.session.execute(
            select(UserPreferencesRow).where(
                UserPreferencesRow.user_id == user_id,
                UserPreferencesRow.guild_id == guild_id,
            )
        )
        return result.scalar_one_or_none()

    async def update_preference_slot(
        self,
        user_id: str,
        guild_id: str,
        slot: str | None,
        **fields: str,
    ) -> UserPreferences:
        """Merge *fields* (role / wow_class / wow_spec) into one preference slot."""
        name = normalize_slot(slot)
        row = await self._get_preferences_row(user_id, guild_id)
        if row is None:
            row = UserPreferencesRow(user_id=user_id, guild_id=guild_id, slots={})
            self.session.add(row)

        slots = dict(row.slots or {})
        current = PreferenceSlot.model_validate(slots.get(name, {}))
        slots[name] = current.model_copy(update=fields).model_dump()
        # Reassign so SQLAlchemy sees the JSON column change.
        row.slots = slots
        row.updated_at = datetime.now(UTC)
        await self.session.flush()
        return UserPreferences(
            user_id=user_id,
            guild_id=guild_id,
            slots={k: PreferenceSlot.model_validate(v) for k, v in slots.items()},
        )
