"""Shared vocabulary for sessions: categories, statuses, roles, classes, specs.

Placed here so the domain core, the database layer and the Discord layer can
all import it without creating a layer violation.
"""

from __future__ import annotations

from typing import Literal

Category = Literal["pvp", "pve", "dnd", "custom"]
CATEGORIES: tuple[str, ...] = ("pvp", "pve", "dnd", "custom")
WOW_CATEGORIES: frozenset[str] = frozenset({"pvp", "pve"})

# Persisted status values. "" means the user has not picked one yet.
ATTENDING = "attending"
LATE = "late"
TENTATIVE = "tentative"
BACKUP = "backup"
NOT_ATTENDING = "not attending"

STATUSES: tuple[str, ...] = (ATTENDING, LATE, TENTATIVE, BACKUP, NOT_ATTENDING)

# Statuses that put a user on the roster and so need a valid role.
ROSTER_STATUSES: frozenset[str] = frozenset({ATTENDING, LATE, BACKUP})

# Button keyword in a ``user_<keyword>_...`` component id -> persisted status.
STATUS_KEYWORDS: dict[str, str] = {
    "letsgo": ATTENDING,
    "late": LATE,
    "tentative": TENTATIVE,
    "backup": BACKUP,
    "cantmakeit": NOT_ATTENDING,
}

CATEGORY_ROLES: dict[str, tuple[str, ...]] = {
    "pvp": ("tank", "healer", "dps"),
    "pve": ("tank", "healer", "dps"),
    "dnd": ("dm", "player"),
    "custom": ("participant",),
}

DEFAULT_GROUP_SIZE = 10

DEFAULT_ROLE_REQUIREMENTS: dict[str, dict[str, int]] = {
    "pvp": {"tank": 1, "healer": 3, "dps": 6},
    "pve": {"tank": 2, "healer": 3, "dps": 5},
    "dnd": {"dm": 1, "player": 5},
    "custom": {"participant": DEFAULT_GROUP_SIZE},
}

# role -> class -> specs able to fill that role
ROLE_SPECS: dict[str, dict[str, tuple[str, ...]]] = {
    "tank": {
        "warrior": ("protection",),
        "paladin": ("protection",),
        "druid": ("guardian",),
        "deathknight": ("blood",),
        "demonhunter": ("vengeance",),
        "monk": ("brewmaster",),
    },
    "healer": {
        "priest": ("discipline", "holy"),
        "paladin": ("holy",),
        "druid": ("restoration",),
        "monk": ("mistweaver",),
        "shaman": ("restoration",),
        "evoker": ("preservation",),
    },
    "dps": {
        "warrior": ("arms", "fury"),
        "paladin": ("retribution",),
        "hunter": ("beastmastery", "marksmanship", "survival"),
        "rogue": ("assassination", "outlaw", "subtlety"),
        "priest": ("shadow",),
        "shaman": ("elemental", "enhancement"),
        "mage": ("arcane", "fire", "frost"),
        "warlock": ("affliction", "demonology", "destruction"),
        "druid": ("balance", "feral"),
        "deathknight": ("frost", "unholy"),
        "monk": ("windwalker",),
        "demonhunter": ("havoc",),
        "evoker": ("devastation", "augmentation"),
    },
}

CLASS_DISPLAY_NAMES: dict[str, str] = {
    "warrior": "Warrior",
    "paladin": "Paladin",
    "hunter": "Hunter",
    "rogue": "Rogue",
    "priest": "Priest",
    "shaman": "Shaman",
    "mage": "Mage",
    "warlock": "Warlock",
    "druid": "Druid",
    "deathknight": "Death Knight",
    "monk": "Monk",
    "demonhunter": "Demon Hunter",
    "evoker": "Evoker",
}

ROLE_DISPLAY_NAMES: dict[str, str] = {
    "tank": "Tank",
    "healer": "Healer",
    "dps": "DPS",
    "dm": "Dungeon Master",
    "player": "Player",
    "participant": "Participant",
}

ROLE_EMOJI: dict[str, str] = {
    "tank": "\U0001f6e1️",
    "healer": "\U0001f49a",
    "dps": "⚔️",
    "dm": "\U0001f3b2",
    "player": "\U0001f9d9",
    "participant": "\U0001f464",
}

CATEGORY_EMOJI: dict[str, str] = {
    "pvp": "⚔️",
    "pve": "\U0001f409",
    "dnd": "\U0001f3b2",
    "custom": "\U0001f3ae",
}

CATEGORY_NAMES: dict[str, str] = {
    "pvp": "PvP",
    "pve": "PvE",
    "dnd": "D&D",
    "custom": "Custom Event",
}

COLOR_PVP = 0x0099FF
COLOR_PVP_BY_MODE: dict[str, int] = {
    "2v2": 0x00AAFF,
    "3v3": 0x9932CC,
    "RBGs": 0xFF5500,
}
COLOR_PVE = 0x2ECC71
COLOR_DND = 0xD63031
COLOR_CUSTOM = 0xF39C12

# Game modes that imply a category when one was never stored.
GAME_MODE_CATEGORIES: dict[str, str] = {
    "2v2": "pvp",
    "3v3": "pvp",
    "RBGs": "pvp",
    "Mythic+": "pve",
    "Raid": "pve",
    "One Shot": "dnd",
    "Campaign": "dnd",
}

PREFERENCE_SLOTS: tuple[str, ...] = ("main", "alt")
DEFAULT_PREFERENCE_SLOT = "main"
