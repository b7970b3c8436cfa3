"""Tests for the roster service: status changes, selections, conflicts."""

import logging

import pytest
from session_factories import SESSION_DATE, gamer
from sqlalchemy.ext.asyncio import AsyncEngine

from pvpplanner.core.roster import (
    MAX_APPLY_ATTEMPTS,
    ConcurrentUpdateError,
    NotSignedUp,
    RoleFull,
    RosterService,
)
from pvpplanner.core.signup import InvalidSelection
from pvpplanner.db.engine import get_session
from pvpplanner.db.repository import Repository, SessionNotFound, StaleSessionError
from pvpplanner.models.session import SessionMeta


async def _create(engine: AsyncEngine, category: str = "pvp", **meta) -> str:
    async with get_session(engine) as session:
        created = await Repository(session).create_signup_session(
            "111",
            "RBGs",
            SESSION_DATE,
            channel_id="222",
            meta=SessionMeta(category=category, **meta),
        )
    return created.session_id


async def _prefs(engine: AsyncEngine, slot: str = "main", **fields) -> None:
    async with get_session(engine) as session:
        await Repository(session).update_preference_slot("1", "111", slot, **fields)


@pytest.fixture
def roster(engine: AsyncEngine) -> RosterService:
    return RosterService(engine)


class TestChangeStatus:
    async def test_new_user_join_without_preferences(self, engine, roster):
        sid = await _create(engine, "pvp")
        outcome = await roster.change_status(sid, "1", "user1", "attending")
        assert outcome.changed
        assert not outcome.complete
        assert outcome.entry.status == "attending"
        assert (outcome.entry.role, outcome.entry.wow_class, outcome.entry.wow_spec) == ("", "", "")
        assert outcome.session.version == 1

    async def test_join_with_complete_preferences(self, engine, roster):
        sid = await _create(engine, "pve")
        await _prefs(engine, role="tank", wow_class="warrior", wow_spec="protection")
        outcome = await roster.change_status(sid, "1", "user1", "attending")
        assert outcome.complete
        assert (outcome.entry.role, outcome.entry.wow_class, outcome.entry.wow_spec) == (
            "tank",
            "warrior",
            "protection",
        )

    async def test_rbg_tier_selects_alt_slot(self, engine, roster):
        sid = await _create(engine, "pvp", rbg_tier="alt")
        await _prefs(engine, "main", role="tank")
        await _prefs(engine, "alt", role="healer")
        outcome = await roster.change_status(sid, "1", "user1", "attending")
        assert outcome.entry.role == "healer"

    async def test_same_status_twice_is_noop(self, engine, roster):
        sid = await _create(engine, "pve")
        await _prefs(engine, role="tank", wow_class="warrior", wow_spec="protection")
        first = await roster.change_status(sid, "1", "user1", "late")
        second = await roster.change_status(sid, "1", "user1", "late")
        assert first.changed
        assert not second.changed
        assert second.session.version == first.session.version
        assert second.entry.model_dump() == first.entry.model_dump()

    async def test_preference_fetch_failure_is_swallowed(self, engine, roster, monkeypatch, caplog):
        sid = await _create(engine, "pvp")

        async def boom(self, user_id, guild_id):
            raise RuntimeError("preferences offline")

        monkeypatch.setattr(Repository, "get_preferences", boom)
        with caplog.at_level(logging.WARNING):
            outcome = await roster.change_status(sid, "1", "user1", "attending")
        assert outcome.changed
        assert outcome.entry.role == ""
        assert "preference_fetch_failed" in caplog.text

    async def test_missing_session(self, roster):
        with pytest.raises(SessionNotFound):
            await roster.change_status("nope", "1", "user1", "attending")


class TestConcurrency:
    async def test_conflicting_write_is_reapplied_not_lost(self, engine, roster, monkeypatch):
        sid = await _create(engine, "pvp")
        original = Repository.save_signup_session
        calls = 0

        async def racing_save(self, signup):
            nonlocal calls
            calls += 1
            if calls == 1:
                # Another user's click lands between our load and our save.
                others = [g for g in signup.gamers if g.user_id != "1"]
                other = signup.model_copy(update={"gamers": [*others, gamer("2", status="late")]})
                await original(self, other)
                await self.session.commit()
                raise StaleSessionError(signup.session_id)
            return await original(self, signup)

        monkeypatch.setattr(Repository, "save_signup_session", racing_save)
        outcome = await roster.change_status(sid, "1", "user1", "attending")

        assert calls == 2
        assert {g.user_id for g in outcome.session.gamers} == {"1", "2"}
        assert outcome.session.version == 2

    async def test_gives_up_after_repeated_conflicts(self, engine, roster, monkeypatch):
        sid = await _create(engine, "pvp")
        calls = 0

        async def always_stale(self, signup):
            nonlocal calls
            calls += 1
            raise StaleSessionError(signup.session_id)

        monkeypatch.setattr(Repository, "save_signup_session", always_stale)
        with pytest.raises(ConcurrentUpdateError):
            await roster.change_status(sid, "1", "user1", "attending")
        assert calls == MAX_APPLY_ATTEMPTS


class TestSelections:
    async def test_role_requires_signup(self, engine, roster):
        sid = await _create(engine, "pvp")
        with pytest.raises(NotSignedUp):
            await roster.select_role(sid, "1", "tank")

    async def test_invalid_role_writes_nothing(self, engine, roster):
        sid = await _create(engine, "pvp")
        joined = await roster.change_status(sid, "1", "user1", "attending")
        with pytest.raises(InvalidSelection):
            await roster.select_role(sid, "1", "dm")
        reloaded = await roster.load(sid)
        assert reloaded.version == joined.session.version

    async def test_full_role_is_rejected(self, engine, roster):
        sid = await _create(engine, "pvp")
        await roster.change_status(sid, "2", "user2", "attending")
        await roster.select_role(sid, "2", "tank")
        await roster.change_status(sid, "1", "user1", "attending")
        with pytest.raises(RoleFull):
            await roster.select_role(sid, "1", "tank")

    async def test_backup_tank_does_not_fill_the_slot(self, engine, roster):
        sid = await _create(engine, "pvp")
        await roster.change_status(sid, "2", "user2", "backup")
        await roster.select_role(sid, "2", "tank")
        await roster.change_status(sid, "1", "user1", "attending")
        outcome = await roster.select_role(sid, "1", "tank")
        assert outcome.entry.role == "tank"
        tanks = [g.user_id for g in outcome.session.gamers if g.role == "tank"]
        assert sorted(tanks) == ["1", "2"]

    async def test_role_change_auto_picks_single_spec(self, engine, roster):
        sid = await _create(engine, "pvp")
        await roster.change_status(sid, "1", "user1", "attending")
        await roster.select_role(sid, "1", "dps")
        await roster.select_class(sid, "1", "warrior")
        await roster.select_spec(sid, "1", "fury")
        outcome = await roster.select_role(sid, "1", "tank")
        assert outcome.entry.wow_spec == "protection"
        assert outcome.complete
        assert outcome.next_step is None

        async with get_session(engine) as session:
            prefs = await Repository(session).get_preferences("1", "111")
        slot = prefs.slot("main")
        assert (slot.role, slot.wow_class, slot.wow_spec) == ("tank", "warrior", "protection")

    async def test_pvp_chain_role_class_spec(self, engine, roster):
        sid = await _create(engine, "pvp")
        await roster.change_status(sid, "1", "user1", "attending")

        role = await roster.select_role(sid, "1", "dps")
        assert role.next_step == "class"
        assert not role.complete

        klass = await roster.select_class(sid, "1", "mage")
        assert klass.next_step == "spec"

        spec = await roster.select_spec(sid, "1", "frost")
        assert spec.complete
        assert spec.next_step is None

        async with get_session(engine) as session:
            prefs = await Repository(session).get_preferences("1", "111")
        slot = prefs.slot("main")
        assert (slot.role, slot.wow_class, slot.wow_spec) == ("dps", "mage", "frost")

    async def test_single_spec_class_completes_immediately(self, engine, roster):
        sid = await _create(engine, "pve")
        await roster.change_status(sid, "1", "user1", "attending")
        await roster.select_role(sid, "1", "tank")
        outcome = await roster.select_class(sid, "1", "druid")
        assert outcome.entry.wow_spec == "guardian"
        assert outcome.complete
        assert outcome.next_step is None

    async def test_dnd_role_alone_completes(self, engine, roster):
        sid = await _create(engine, "dnd")
        await roster.change_status(sid, "1", "user1", "attending")
        outcome = await roster.select_role(sid, "1", "dm")
        assert outcome.complete
        assert outcome.next_step is None

    async def test_preference_save_failure_does_not_block(self, engine, roster, monkeypatch):
        sid = await _create(engine, "dnd")
        await roster.change_status(sid, "1", "user1", "attending")

        async def boom(self, *args, **kwargs):
            raise RuntimeError("disk full")

        monkeypatch.setattr(Repository, "update_preference_slot", boom)
        outcome = await roster.select_role(sid, "1", "player")
        assert outcome.entry.role == "player"


class TestReloadForDisplay:
    async def test_falls_back_to_in_memory_copy(self, engine, roster, monkeypatch, caplog):
        sid = await _create(engine, "pvp")
        saved = await roster.load(sid)

        async def boom(session_id):
            raise RuntimeError("store unreachable")

        monkeypatch.setattr(roster, "load", boom)
        with caplog.at_level(logging.WARNING):
            result = await roster.reload_for_display(saved)
        assert result is saved
        assert "display_reload_failed" in caplog.text
