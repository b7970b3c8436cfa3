"""Component builders — buttons, select menus and the per-user control panel.

These views carry no callbacks: every component has a ``custom_id`` from
``pvpplanner.core.custom_ids`` and the bot's interaction router dispatches
clicks by decoding it. Views never time out so the public message keeps
working across restarts.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import discord

from pvpplanner.core.custom_ids import (
    ClassSelect,
    ControlAction,
    ManageSignup,
    SpecSelect,
    UserNoChanges,
    UserRole,
    UserStatus,
    UserUpdate,
)
from pvpplanner.core.signup import allowed_roles, classes_for_role, specs_for
from pvpplanner.discord.embeds import (
    describe_selection,
    format_class,
    format_role,
    format_spec,
    status_label,
)
from pvpplanner.models.constants import ATTENDING, ROLE_EMOJI, WOW_CATEGORIES
from pvpplanner.models.session import Session

logger = logging.getLogger(__name__)

MAX_SELECT_OPTIONS = 25

# (keyword, label, emoji, style) for the status buttons, in display order.
STATUS_BUTTONS: tuple[tuple[str, str, str, discord.ButtonStyle], ...] = (
    ("letsgo", "Let's Go", "✅", discord.ButtonStyle.success),
    ("late", "Running Late", "⏰", discord.ButtonStyle.primary),
    ("tentative", "Tentative", "\U0001f914", discord.ButtonStyle.secondary),
    ("backup", "Backup", "\U0001f504", discord.ButtonStyle.secondary),
    ("cantmakeit", "Can't Make It", "❌", discord.ButtonStyle.danger),
)

ROLE_BUTTON_STYLES: dict[str, discord.ButtonStyle] = {
    "tank": discord.ButtonStyle.primary,
    "healer": discord.ButtonStyle.success,
    "dps": discord.ButtonStyle.danger,
    "dm": discord.ButtonStyle.primary,
    "player": discord.ButtonStyle.success,
    "participant": discord.ButtonStyle.secondary,
}

CONTROL_PANEL_ERROR = (
    "❌ There was an error loading your signup details. "
    "Please try again or contact an administrator."
)


class SessionButtonsView(discord.ui.View):
    """The single public entry point on a session's display message."""

    def __init__(self, session_id: str) -> None:
        super().__init__(timeout=None)
        self.add_item(
            discord.ui.Button(
                label="Manage My Signup",
                emoji="⚙️",
                style=discord.ButtonStyle.primary,
                custom_id=ManageSignup(session_id).encode(),
            )
        )


class StatusButtonsView(discord.ui.View):
    """Status choices for one user, plus a "No Change" escape hatch."""

    def __init__(self, session_id: str, user_id: str, *, include_no_change: bool = False) -> None:
        super().__init__(timeout=None)
        for keyword, label, emoji, style in STATUS_BUTTONS:
            self.add_item(
                discord.ui.Button(
                    label=label,
                    emoji=emoji,
                    style=style,
                    custom_id=UserStatus(keyword, session_id, user_id).encode(),
                )
            )
        if include_no_change:
            self.add_item(
                discord.ui.Button(
                    label="No Change",
                    style=discord.ButtonStyle.secondary,
                    custom_id=UserNoChanges(session_id, user_id).encode(),
                    row=1,
                )
            )


class RoleButtonsView(discord.ui.View):
    """One button per role the session's category allows."""

    def __init__(
        self,
        session_id: str,
        user_id: str,
        category: str,
        *,
        include_keep: bool = False,
    ) -> None:
        super().__init__(timeout=None)
        for role in allowed_roles(category):
            self.add_item(
                discord.ui.Button(
                    label=format_role(role),
                    emoji=ROLE_EMOJI.get(role),
                    style=ROLE_BUTTON_STYLES.get(role, discord.ButtonStyle.secondary),
                    custom_id=UserRole(role, session_id, user_id).encode(),
                )
            )
        if include_keep:
            self.add_item(
                discord.ui.Button(
                    label="Keep Current Selection",
                    emoji="✅",
                    style=discord.ButtonStyle.secondary,
                    custom_id=UserUpdate(session_id, user_id).encode(),
                    row=1,
                )
            )


class ClassSelectView(discord.ui.View):
    """Class menu limited to the classes that can fill *role*."""

    def __init__(self, session_id: str, user_id: str, role: str) -> None:
        super().__init__(timeout=None)
        options = [
            discord.SelectOption(label=format_class(c), value=c)
            for c in classes_for_role(role)[:MAX_SELECT_OPTIONS]
        ]
        self.add_item(
            discord.ui.Select(
                custom_id=ClassSelect(session_id, user_id).encode(),
                placeholder="Select your class",
                options=options,
            )
        )


class SpecSelectView(discord.ui.View):
    """Spec menu limited to *wow_class*'s specs for *role*."""

    def __init__(self, session_id: str, user_id: str, role: str, wow_class: str) -> None:
        super().__init__(timeout=None)
        options = [
            discord.SelectOption(label=format_spec(s), value=s)
            for s in specs_for(role, wow_class)[:MAX_SELECT_OPTIONS]
        ]
        self.add_item(
            discord.ui.Select(
                custom_id=SpecSelect(session_id, user_id).encode(),
                placeholder="Select your specialization",
                options=options,
            )
        )


@dataclass(frozen=True)
class ControlPanel:
    content: str
    view: discord.ui.View | None


class ControlPanelView(discord.ui.View):
    def __init__(self, session_id: str, user_id: str, message_id: str, status: str) -> None:
        super().__init__(timeout=None)
        self.add_item(
            discord.ui.Button(
                label="Update Role",
                emoji="\U0001f504",
                style=discord.ButtonStyle.primary,
                custom_id=ControlAction("role", session_id, user_id, message_id).encode(),
            )
        )
        self.add_item(
            discord.ui.Button(
                label="Update Signup",
                emoji="\U0001f4dd",
                style=discord.ButtonStyle.secondary,
                custom_id=ControlAction("status", session_id, user_id, message_id).encode(),
            )
        )
        self.add_item(
            discord.ui.Button(
                label=status_label(status),
                style=(
                    discord.ButtonStyle.success
                    if status == ATTENDING
                    else discord.ButtonStyle.secondary
                ),
                custom_id=ControlAction("info", session_id, user_id, message_id).encode(),
                disabled=True,
            )
        )


def control_panel_content(session: Session, user_id: str) -> str:
    entry = session.find_gamer(user_id)
    if entry is None:
        return (
            "### Your signup for this event\n"
            f"**Status:** {status_label('')}\n\n"
            "Use the buttons below to sign up."
        )
    lines = [
        "### Your signup for this event",
        f"**Status:** {status_label(entry.status)}",
        f"**Role:** {format_role(entry.role)}",
    ]
    if session.category in WOW_CATEGORIES:
        lines.append(f"**Class:** {format_class(entry.wow_class)}")
        lines.append(f"**Spec:** {format_spec(entry.wow_spec)}")
    lines.append("")
    lines.append("Use the buttons below to update your signup information.")
    return "\n".join(lines)


def build_control_panel(
    session: Session,
    user_id: str,
    message_id: str | int = "0",
) -> ControlPanel:
    """Render the per-user control panel. Never raises.

    On any rendering error the panel degrades to plain text with no buttons.
    """
    try:
        entry = session.find_gamer(user_id)
        view = ControlPanelView(
            session.session_id,
            user_id,
            str(message_id),
            entry.status if entry else "",
        )
        return ControlPanel(control_panel_content(session, user_id), view)
    except Exception:  # Control panel must always render something
        logger.exception(
            "control_panel_render_failed session=%s user=%s", session.session_id, user_id
        )
        return ControlPanel(CONTROL_PANEL_ERROR, None)


def selection_confirmation(session: Session, user_id: str) -> str:
    entry = session.find_gamer(user_id)
    if entry is None:
        return "❌ You are not signed up for this session. Please join first."
    return (
        f"✅ Got it! You're still signed up as a {describe_selection(entry, session.category)}. "
        "No changes made."
    )
