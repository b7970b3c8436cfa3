"""Embed builders for session displays and per-user signup summaries.

Every builder here is a pure function of its inputs: rendering the same
Session twice yields identical embeds, so editing the public message with
an unchanged session is harmless.
"""

from __future__ import annotations

from datetime import UTC, tzinfo

import discord

from pvpplanner.models.constants import (
    ATTENDING,
    BACKUP,
    CATEGORY_EMOJI,
    CATEGORY_NAMES,
    CATEGORY_ROLES,
    CLASS_DISPLAY_NAMES,
    COLOR_CUSTOM,
    COLOR_DND,
    COLOR_PVE,
    COLOR_PVP,
    COLOR_PVP_BY_MODE,
    LATE,
    NOT_ATTENDING,
    ROLE_DISPLAY_NAMES,
    ROLE_EMOJI,
    TENTATIVE,
    WOW_CATEGORIES,
)
from pvpplanner.models.session import Gamer, Session

FIELD_VALUE_LIMIT = 1024
COLOR_ERROR = 0xFF0000

# Plural headings and empty-group placeholders for role groups.
ROLE_GROUP_HEADINGS: dict[str, str] = {
    "tank": "Tanks",
    "healer": "Healers",
    "dps": "DPS",
    "dm": "Dungeon Master",
    "player": "Players",
    "participant": "Participants",
}
ROLE_GROUP_PLACEHOLDERS: dict[str, str] = {
    "tank": "No tanks signed up yet",
    "healer": "No healers signed up yet",
    "dps": "No DPS signed up yet",
    "dm": "No DM yet",
    "player": "No players yet",
    "participant": "No participants yet",
}

# (status, heading, placeholder) for the groups shown under the roster.
STATUS_GROUPS: tuple[tuple[str, str, str], ...] = (
    (LATE, "⏰ Running Late", "Nobody is running late"),
    (TENTATIVE, "\U0001f914 Will Try to Make It", "Nobody is on the fence"),
    (BACKUP, "\U0001f504 Backup Players", "No backups yet"),
    (NOT_ATTENDING, "\U0001f44e Can't Make It", "Everyone's showing up so far"),
)

NO_ROLE_HEADING = "❓ No Role Selected Yet"
NO_ROLE_PLACEHOLDER = "Everyone has picked a role"
NOTES_PLACEHOLDER = "No notes. Winging it as usual."

STATUS_LABELS: dict[str, str] = {
    ATTENDING: "✅ Attending",
    LATE: "⏰ Running Late",
    TENTATIVE: "\U0001f914 Tentative",
    BACKUP: "\U0001f504 Backup",
    NOT_ATTENDING: "❌ Not Attending",
}
NOT_SIGNED_UP_LABEL = "Not Signed Up"


def status_label(status: str) -> str:
    return STATUS_LABELS.get(status, NOT_SIGNED_UP_LABEL)


def format_role(role: str) -> str:
    return ROLE_DISPLAY_NAMES.get(role, role.title()) if role else "Not selected"


def format_class(wow_class: str) -> str:
    return CLASS_DISPLAY_NAMES.get(wow_class, wow_class.title()) if wow_class else "Not selected"


def format_spec(wow_spec: str) -> str:
    return wow_spec.title() if wow_spec else "Not selected"


def truncate_field(value: str, limit: int = FIELD_VALUE_LIMIT) -> str:
    """Clip *value* to Discord's field limit, ending on a whole line where possible."""
    if len(value) <= limit:
        return value
    suffix = "\n…"
    clipped = value[: limit - len(suffix)]
    if "\n" in clipped:
        clipped = clipped[: clipped.rindex("\n")]
    return clipped + suffix


def session_color(session: Session) -> int:
    category = session.category
    if category == "pvp":
        return COLOR_PVP_BY_MODE.get(session.game_mode, COLOR_PVP)
    if category == "pve":
        return COLOR_PVE
    if category == "dnd":
        return COLOR_DND
    return COLOR_CUSTOM


def session_title(session: Session, tz: tzinfo = UTC) -> str:
    local = session.date.astimezone(tz)
    when = f"{local:%A} ({local:%m/%d}) at {local:%I:%M %p}"
    emoji = CATEGORY_EMOJI.get(session.category, "\U0001f4c6")
    if session.category == "pvp" and session.game_mode == "RBGs" and session.meta.rbg_tier:
        return f"{emoji} {session.game_mode} ({session.meta.rbg_tier.upper()} RUN) on {when}"
    return f"{emoji} {session.game_mode} on {when}"


def session_footer(session: Session) -> str:
    """Footer text; the display service finds a session's message by the id in it."""
    category = CATEGORY_NAMES.get(session.category, session.category.title())
    return f"Session ID: {session.session_id} • Category: {category}"


def build_session_content(session: Session) -> str:
    if session.host_id:
        return f"**{session.game_mode} Session** | <@{session.host_id}> is organizing"
    return f"**{session.game_mode} Session**"


def _player_line(gamer: Gamer, category: str) -> str:
    if category in WOW_CATEGORIES and gamer.wow_class:
        detail = format_class(gamer.wow_class)
        if gamer.wow_spec:
            detail = f"{format_spec(gamer.wow_spec)} {detail}"
        return f"• <@{gamer.user_id}> ({detail})"
    emoji = ROLE_EMOJI.get(gamer.role, "")
    return f"• {emoji} <@{gamer.user_id}>" if emoji else f"• <@{gamer.user_id}>"


def _group_value(members: list[Gamer], category: str, placeholder: str) -> str:
    if not members:
        return placeholder
    return truncate_field("\n".join(_player_line(g, category) for g in members))


def build_session_embed(session: Session, tz: tzinfo = UTC) -> discord.Embed:
    """Build the public roster embed for a session.

    Attending users are grouped by role; the other statuses each get their
    own field. Every group is always present, with a placeholder when empty.
    """
    category = session.category
    roles = CATEGORY_ROLES.get(category, ())
    reqs = session.role_requirements()
    attending = [g for g in session.gamers if g.status == ATTENDING]

    embed = discord.Embed(
        title=session_title(session, tz),
        description=(
            f"Hosted by <@{session.host_id}>" if session.host_id else "Hosted by Unknown Host"
        ),
        color=session_color(session),
        timestamp=session.date,
    )

    by_role = {role: [g for g in attending if g.role == role] for role in roles}
    no_role = [g for g in attending if g.role not in roles]

    counts = " | ".join(
        f"**{ROLE_GROUP_HEADINGS[role]}:** {len(by_role[role])}/{reqs.get(role, 0)}"
        for role in roles
    )
    if no_role:
        counts += f" | **No Role:** {len(no_role)}"
    embed.add_field(name="\U0001f465 Roster Status", value=counts, inline=False)

    for role in roles:
        embed.add_field(
            name=f"{ROLE_EMOJI[role]} {ROLE_GROUP_HEADINGS[role]}",
            value=_group_value(by_role[role], category, ROLE_GROUP_PLACEHOLDERS[role]),
            inline=False,
        )
    if category != "custom":
        embed.add_field(
            name=NO_ROLE_HEADING,
            value=_group_value(no_role, category, NO_ROLE_PLACEHOLDER),
            inline=False,
        )

    for status, heading, placeholder in STATUS_GROUPS:
        members = [g for g in session.gamers if g.status == status]
        embed.add_field(
            name=f"{heading} ({len(members)})",
            value=_group_value(members, category, placeholder),
            inline=False,
        )

    embed.add_field(
        name="\U0001f4dd Notes",
        value=truncate_field(session.notes) if session.notes else NOTES_PLACEHOLDER,
        inline=False,
    )
    embed.set_footer(text=session_footer(session))
    return embed


def build_error_embed(session_id: str) -> discord.Embed:
    embed = discord.Embed(
        title="Error displaying session details",
        description=(
            "There was an error displaying this session. "
            "Please try again or contact an administrator."
        ),
        color=COLOR_ERROR,
    )
    embed.set_footer(text=f"Session ID: {session_id} • PvP Planner")
    return embed


def describe_selection(entry: Gamer, category: str) -> str:
    """Human summary like ``Protection Warrior TANK`` (WoW) or ``Player``."""
    if category in WOW_CATEGORIES:
        parts = [
            format_spec(entry.wow_spec) if entry.wow_spec else "",
            format_class(entry.wow_class) if entry.wow_class else "",
            entry.role.upper(),
        ]
        return " ".join(p for p in parts if p) or "no role"
    return format_role(entry.role) if entry.role else "no role"
