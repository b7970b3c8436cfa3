"""Roster service: load a session, apply one signup transition, persist it.

Every mutation goes through ``RosterService._apply``, which reloads the
session, runs a pure transition from ``pvpplanner.core.signup`` on it and
saves with a version check. When another interaction saved first, the
transition is re-run on the fresh copy, so concurrent clicks on the same
session are applied one after another instead of overwriting each other.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncEngine

from pvpplanner.core.signup import (
    apply_class_selection,
    apply_role_selection,
    apply_spec_selection,
    is_complete,
    is_same_status,
    role_capacity_reached,
    transition_entry,
)
from pvpplanner.db.engine import get_session
from pvpplanner.db.repository import Repository, SessionNotFound, StaleSessionError
from pvpplanner.models.constants import NOT_ATTENDING, WOW_CATEGORIES
from pvpplanner.models.session import Gamer, PreferenceSlot, Session

logger = logging.getLogger(__name__)

MAX_APPLY_ATTEMPTS = 3


class NotSignedUp(LookupError):
    """The user has no entry in the session."""


class RoleFull(Exception):
    """Every slot for the requested role is already taken."""

    def __init__(self, role: str) -> None:
        super().__init__(role)
        self.role = role


class ConcurrentUpdateError(Exception):
    """The session kept changing underneath us; gave up after MAX_APPLY_ATTEMPTS."""


@dataclass(frozen=True)
class StatusOutcome:
    session: Session
    entry: Gamer
    changed: bool
    complete: bool


@dataclass(frozen=True)
class SelectionOutcome:
    session: Session
    entry: Gamer
    complete: bool
    # "class" or "spec" when the user still has a menu to pick from.
    next_step: str | None


def _next_step(entry: Gamer, category: str) -> str | None:
    if category not in WOW_CATEGORIES or is_complete(entry, category):
        return None
    if not entry.role:
        return "role"
    if not entry.wow_class:
        return "class"
    return "spec"


class RosterService:
    """Signup mutations for one database."""

    def __init__(self, engine: AsyncEngine) -> None:
        self.engine = engine

    async def load(self, session_id: str) -> Session:
        async with get_session(self.engine) as db:
            signup = await Repository(db).get_signup_session(session_id)
        if signup is None:
            raise SessionNotFound(session_id)
        return signup

    async def get_signup(self, session_id: str, user_id: str) -> tuple[Session, Gamer | None]:
        signup = await self.load(session_id)
        return signup, signup.find_gamer(user_id)

    async def reload_for_display(self, saved: Session) -> Session:
        """Re-fetch *saved* so the public message shows other users' writes too.

        Falls back to the in-memory copy when the store can't be read.
        """
        try:
            return await self.load(saved.session_id)
        except Exception:  # Degrade to the copy we just wrote rather than fail the interaction
            logger.warning("display_reload_failed session=%s", saved.session_id, exc_info=True)
            return saved

    async def _apply(
        self,
        session_id: str,
        mutate: Callable[[Session], Session | None],
    ) -> tuple[Session, bool]:
        """Load, mutate and save with a version check.

        *mutate* returns the new session, or None when nothing needs writing.
        Returns ``(session, written)``.
        """
        for attempt in range(1, MAX_APPLY_ATTEMPTS + 1):
            try:
                async with get_session(self.engine) as db:
                    repo = Repository(db)
                    current = await repo.get_signup_session(session_id)
                    if current is None:
                        raise SessionNotFound(session_id)
                    updated = mutate(current)
                    if updated is None:
                        return current, False
                    return await repo.save_signup_session(updated), True
            except StaleSessionError:
                logger.info("session_version_conflict session=%s attempt=%d", session_id, attempt)
        raise ConcurrentUpdateError(session_id)

    async def _load_preference(
        self, user_id: str, guild_id: str, slot: str
    ) -> PreferenceSlot | None:
        try:
            async with get_session(self.engine) as db:
                prefs = await Repository(db).get_preferences(user_id, guild_id)
        except Exception:  # Preferences only seed a signup; never block on them
            logger.warning(
                "preference_fetch_failed user=%s guild=%s", user_id, guild_id, exc_info=True
            )
            return None
        return prefs.slot(slot) if prefs else None

    async def _save_preference(self, signup: Session, user_id: str, **fields: str) -> None:
        if not fields:
            return
        try:
            async with get_session(self.engine) as db:
                await Repository(db).update_preference_slot(
                    user_id, signup.guild_id, signup.preference_slot(), **fields
                )
        except Exception:  # A lost preference must not fail the selection that triggered it
            logger.warning(
                "preference_save_failed user=%s guild=%s",
                user_id,
                signup.guild_id,
                exc_info=True,
            )

    # --- Status ---

    async def change_status(
        self,
        session_id: str,
        user_id: str,
        username: str,
        target: str,
    ) -> StatusOutcome:
        """Move the user to *target* status, creating their entry if needed.

        Clicking the status the user already has is a no-op.
        """
        signup, entry = await self.get_signup(session_id, user_id)
        if is_same_status(entry, target):
            return StatusOutcome(
                signup, entry, changed=False, complete=is_complete(entry, signup.category)
            )

        preference = None
        if target != NOT_ATTENDING and (
            entry is None or not (entry.role and entry.wow_class and entry.wow_spec)
        ):
            preference = await self._load_preference(
                user_id, signup.guild_id, signup.preference_slot()
            )

        def mutate(current: Session) -> Session | None:
            existing = current.find_gamer(user_id)
            if is_same_status(existing, target):
                return None
            new_entry = transition_entry(
                existing,
                target,
                current.category,
                user_id=user_id,
                username=username,
                preference=preference,
            )
            return current.with_gamer(new_entry)

        saved, written = await self._apply(session_id, mutate)
        if written:
            logger.info("status_changed session=%s user=%s status=%s", session_id, user_id, target)
            saved = await self.reload_for_display(saved)
        entry = saved.find_gamer(user_id)
        if entry is None:
            # Reload raced with a delete of this entry; report what we wrote.
            entry = Gamer(user_id=user_id, username=username, status=target)
        return StatusOutcome(
            saved, entry, changed=written, complete=is_complete(entry, saved.category)
        )

    # --- Selections ---

    async def _select(
        self,
        session_id: str,
        user_id: str,
        change: Callable[[Session, Gamer], Gamer],
    ) -> SelectionOutcome:
        def mutate(current: Session) -> Session:
            existing = current.find_gamer(user_id)
            if existing is None:
                raise NotSignedUp(user_id)
            return current.with_gamer(change(current, existing))

        saved, _ = await self._apply(session_id, mutate)
        saved = await self.reload_for_display(saved)
        entry = saved.find_gamer(user_id)
        if entry is None:
            raise NotSignedUp(user_id)
        return SelectionOutcome(
            saved,
            entry,
            complete=is_complete(entry, saved.category),
            next_step=_next_step(entry, saved.category),
        )

    async def select_role(self, session_id: str, user_id: str, role: str) -> SelectionOutcome:
        def change(current: Session, entry: Gamer) -> Gamer:
            updated = apply_role_selection(entry, role, current.category)
            if entry.role != role and role_capacity_reached(current, role, user_id):
                raise RoleFull(role)
            return updated

        outcome = await self._select(session_id, user_id, change)
        logger.info("role_selected session=%s user=%s role=%s", session_id, user_id, role)
        fields = {"role": role}
        if outcome.entry.wow_spec:
            fields["wow_class"] = outcome.entry.wow_class
            fields["wow_spec"] = outcome.entry.wow_spec
        await self._save_preference(outcome.session, user_id, **fields)
        return outcome

    async def select_class(self, session_id: str, user_id: str, wow_class: str) -> SelectionOutcome:
        outcome = await self._select(
            session_id,
            user_id,
            lambda current, entry: apply_class_selection(entry, wow_class, current.category),
        )
        logger.info("class_selected session=%s user=%s class=%s", session_id, user_id, wow_class)
        fields = {"wow_class": wow_class}
        if outcome.entry.wow_spec:
            fields["wow_spec"] = outcome.entry.wow_spec
        await self._save_preference(outcome.session, user_id, **fields)
        return outcome

    async def select_spec(self, session_id: str, user_id: str, wow_spec: str) -> SelectionOutcome:
        outcome = await self._select(
            session_id,
            user_id,
            lambda current, entry: apply_spec_selection(entry, wow_spec, current.category),
        )
        logger.info("spec_selected session=%s user=%s spec=%s", session_id, user_id, wow_spec)
        await self._save_preference(outcome.session, user_id, wow_spec=wow_spec)
        return outcome
