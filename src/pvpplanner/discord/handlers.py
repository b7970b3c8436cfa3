"""Signup interaction handlers — the Discord side of each status and selection.

Each handler acknowledges the interaction first, calls into the roster
service, refreshes the public display after a write, then edits the user's
ephemeral message into the next step (a menu, or the control panel).
Domain errors propagate to the router, which turns them into replies.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord

from pvpplanner.core.roster import NotSignedUp
from pvpplanner.core.signup import InvalidSelection, is_complete
from pvpplanner.discord.components import (
    ClassSelectView,
    RoleButtonsView,
    SpecSelectView,
    StatusButtonsView,
    build_control_panel,
    selection_confirmation,
)
from pvpplanner.discord.display import update_session_display
from pvpplanner.discord.embeds import describe_selection, format_class, format_role, status_label
from pvpplanner.discord.helpers import component_values, message_id_of
from pvpplanner.models.constants import NOT_ATTENDING

if TYPE_CHECKING:
    from pvpplanner.config import Settings
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
    from pvpplanner.core.roster import RosterService, SelectionOutcome
    from pvpplanner.models.session import Session

logger = logging.getLogger(__name__)

NO_CHANGES_MESSAGE = "✅ No changes were made to your session preferences."


class SignupHandlers:
    """Handlers for every signup component, sharing one roster service."""

    def __init__(
        self,
        client: discord.Client,
        roster: RosterService,
        settings: Settings,
    ) -> None:
        self.client = client
        self.roster = roster
        self.settings = settings

    async def refresh_display(self, session: Session) -> None:
        await update_session_display(self.client, session, self.settings)

    async def _show_panel(
        self, interaction: discord.Interaction, session: Session, user_id: str
    ) -> None:
        panel = build_control_panel(session, user_id, message_id_of(interaction))
        await interaction.edit_original_response(content=panel.content, view=panel.view)

    # --- Entry point from the public message ---

    async def manage_signup(self, interaction: discord.Interaction, cid: ManageSignup) -> None:
        await interaction.response.defer(ephemeral=True)
        user_id = str(interaction.user.id)
        session, entry = await self.roster.get_signup(cid.session_id, user_id)
        if entry is not None:
            panel = build_control_panel(session, user_id, message_id_of(interaction))
            if panel.view is None:
                await interaction.followup.send(panel.content, ephemeral=True)
            else:
                await interaction.followup.send(panel.content, view=panel.view, ephemeral=True)
            return
        await interaction.followup.send(
            "How are you showing up for this session?",
            view=StatusButtonsView(cid.session_id, user_id),
            ephemeral=True,
        )

    # --- Status mutators ---

    async def change_status(self, interaction: discord.Interaction, cid: UserStatus) -> None:
        await interaction.response.defer()
        outcome = await self.roster.change_status(
            cid.session_id, cid.user_id, interaction.user.display_name, cid.status
        )
        if outcome.changed:
            await self.refresh_display(outcome.session)

        if not outcome.changed or outcome.complete or cid.status == NOT_ATTENDING:
            await self._show_panel(interaction, outcome.session, cid.user_id)
            return

        await interaction.edit_original_response(
            content=(
                f"You're marked as **{status_label(cid.status)}**. "
                "Pick your role to finish signing up:"
            ),
            view=RoleButtonsView(cid.session_id, cid.user_id, outcome.session.category),
        )

    async def no_change(self, interaction: discord.Interaction, cid: UserNoChanges) -> None:
        await interaction.response.defer()
        logger.info("no_change_confirmed session=%s user=%s", cid.session_id, cid.user_id)
        await interaction.edit_original_response(content=NO_CHANGES_MESSAGE, view=None)

    # --- Selections ---

    async def _after_selection(
        self,
        interaction: discord.Interaction,
        outcome: SelectionOutcome,
        user_id: str,
    ) -> None:
        await self.refresh_display(outcome.session)
        entry = outcome.entry
        session_id = outcome.session.session_id
        if outcome.next_step == "class":
            await interaction.edit_original_response(
                content=f"Role set to **{format_role(entry.role)}**. Now pick your class:",
                view=ClassSelectView(session_id, user_id, entry.role),
            )
        elif outcome.next_step == "spec":
            await interaction.edit_original_response(
                content=f"Class set to **{format_class(entry.wow_class)}**. Now pick your spec:",
                view=SpecSelectView(session_id, user_id, entry.role, entry.wow_class),
            )
        else:
            await self._show_panel(interaction, outcome.session, user_id)

    async def select_role(self, interaction: discord.Interaction, cid: UserRole) -> None:
        await interaction.response.defer()
        outcome = await self.roster.select_role(cid.session_id, cid.user_id, cid.role)
        await self._after_selection(interaction, outcome, cid.user_id)

    async def select_class(self, interaction: discord.Interaction, cid: ClassSelect) -> None:
        values = component_values(interaction)
        if not values:
            raise InvalidSelection("no class chosen")
        await interaction.response.defer()
        outcome = await self.roster.select_class(cid.session_id, cid.user_id, values[0])
        await self._after_selection(interaction, outcome, cid.user_id)

    async def select_spec(self, interaction: discord.Interaction, cid: SpecSelect) -> None:
        values = component_values(interaction)
        if not values:
            raise InvalidSelection("no spec chosen")
        await interaction.response.defer()
        outcome = await self.roster.select_spec(cid.session_id, cid.user_id, values[0])
        await self._after_selection(interaction, outcome, cid.user_id)

    async def confirm_selection(self, interaction: discord.Interaction, cid: UserUpdate) -> None:
        """Re-display the current selection. Writes nothing."""
        await interaction.response.defer()
        session, _ = await self.roster.get_signup(cid.session_id, cid.user_id)
        logger.info("selection_confirmed session=%s user=%s", cid.session_id, cid.user_id)
        await interaction.edit_original_response(
            content=selection_confirmation(session, cid.user_id), view=None
        )

    # --- Control panel ---

    async def control(self, interaction: discord.Interaction, cid: ControlAction) -> None:
        await interaction.response.defer()
        if cid.action == "info":
            return

        session, entry = await self.roster.get_signup(cid.session_id, cid.user_id)
        if entry is None:
            raise NotSignedUp(cid.user_id)
        if cid.action == "status":
            await interaction.edit_original_response(
                content="Update your signup status:",
                view=StatusButtonsView(cid.session_id, cid.user_id, include_no_change=True),
            )
            return

        if entry.role and is_complete(entry, session.category):
            current = describe_selection(entry, session.category)
            await interaction.edit_original_response(
                content=(
                    f"You're currently signed up as a **{current}**. "
                    "Pick a new role, or keep your current selection:"
                ),
                view=RoleButtonsView(
                    cid.session_id, cid.user_id, session.category, include_keep=True
                ),
            )
            return

        await interaction.edit_original_response(
            content="Select your role:",
            view=RoleButtonsView(cid.session_id, cid.user_id, session.category),
        )
