"""Session models: a scheduled event, its roster, and saved user preferences.

A Session is stored as one document. Each user has at most one Gamer entry
in it. WoW class/spec fields only carry meaning for pvp/pve sessions; the
category-specific views (WowSignup, NarrativeSignup, CustomSignup) make that
explicit for code that needs to reason about completeness.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel, Field

from pvpplanner.models.constants import (
    CATEGORY_ROLES,
    DEFAULT_GROUP_SIZE,
    DEFAULT_PREFERENCE_SLOT,
    DEFAULT_ROLE_REQUIREMENTS,
    GAME_MODE_CATEGORIES,
    PREFERENCE_SLOTS,
    ROLE_SPECS,
    WOW_CATEGORIES,
    Category,
)


class Gamer(BaseModel):
    """One user's signup entry within a session."""

    user_id: str
    username: str = ""
    status: str = ""
    role: str = ""
    wow_class: str = ""
    wow_spec: str = ""
    reason: str = ""


class SessionMeta(BaseModel):
    category: Category = "pvp"
    rbg_tier: str = ""
    role_requirements: dict[str, int] | None = None
    group_size: int | None = None


class Session(BaseModel):
    """A scheduled group-gaming event and everyone who responded to it."""

    session_id: str
    guild_id: str
    channel_id: str = ""
    host_id: str = ""
    game_mode: str
    date: datetime
    notes: str = ""
    meta: SessionMeta = Field(default_factory=SessionMeta)
    gamers: list[Gamer] = Field(default_factory=list)
    version: int = 0

    @property
    def category(self) -> str:
        return self.meta.category

    def find_gamer(self, user_id: str) -> Gamer | None:
        for gamer in self.gamers:
            if gamer.user_id == user_id:
                return gamer
        return None

    def with_gamer(self, entry: Gamer) -> Session:
        """Return a copy with *entry* replacing the user's entry, or appended."""
        gamers = list(self.gamers)
        for i, existing in enumerate(gamers):
            if existing.user_id == entry.user_id:
                gamers[i] = entry
                break
        else:
            gamers.append(entry)
        return self.model_copy(update={"gamers": gamers})

    def role_requirements(self) -> dict[str, int]:
        """Slot counts per role, falling back to the category defaults."""
        reqs = dict(DEFAULT_ROLE_REQUIREMENTS[self.category])
        if self.category == "custom":
            reqs["participant"] = self.meta.group_size or DEFAULT_GROUP_SIZE
        if self.meta.role_requirements:
            for role, count in self.meta.role_requirements.items():
                if role in reqs:
                    reqs[role] = count
        return reqs

    def preference_slot(self) -> str:
        return normalize_slot(self.meta.rbg_tier)


def infer_category(game_mode: str) -> str:
    """Guess a category from a game mode name; unknown modes are custom events."""
    return GAME_MODE_CATEGORIES.get(game_mode, "custom")


def normalize_slot(slot: str | None) -> str:
    """Map a tier name to a known preference slot; anything unknown is ``main``."""
    if slot and slot.lower() in PREFERENCE_SLOTS:
        return slot.lower()
    return DEFAULT_PREFERENCE_SLOT


# ---------------------------------------------------------------------------
# Preferences
# ---------------------------------------------------------------------------


class PreferenceSlot(BaseModel):
    role: str = ""
    wow_class: str = ""
    wow_spec: str = ""

    def is_empty(self) -> bool:
        return not (self.role or self.wow_class or self.wow_spec)


class UserPreferences(BaseModel):
    """Saved role/class/spec defaults for one user in one guild."""

    user_id: str
    guild_id: str
    slots: dict[str, PreferenceSlot] = Field(default_factory=dict)

    def slot(self, name: str | None) -> PreferenceSlot:
        return self.slots.get(normalize_slot(name), PreferenceSlot())


# ---------------------------------------------------------------------------
# Category-specific signup views
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WowSignup:
    role: str
    wow_class: str
    wow_spec: str

    @property
    def is_complete(self) -> bool:
        if not (self.role and self.wow_class and self.wow_spec):
            return False
        return self.wow_spec in ROLE_SPECS.get(self.role, {}).get(self.wow_class, ())


@dataclass(frozen=True)
class NarrativeSignup:
    role: str

    @property
    def is_complete(self) -> bool:
        return self.role in CATEGORY_ROLES["dnd"]


@dataclass(frozen=True)
class CustomSignup:
    @property
    def is_complete(self) -> bool:
        return True


Signup = WowSignup | NarrativeSignup | CustomSignup


def signup_for(entry: Gamer, category: str) -> Signup:
    """Project an entry onto the fields that mean something for *category*."""
    if category in WOW_CATEGORIES:
        return WowSignup(role=entry.role, wow_class=entry.wow_class, wow_spec=entry.wow_spec)
    if category == "dnd":
        return NarrativeSignup(role=entry.role)
    return CustomSignup()
