"""Interaction router: decode a component's custom id and run its handler.

The router owns no state. It enforces the one access rule the bot has
(a component that embeds a user id only works for that user) and is the
outermost error boundary for component interactions: nothing raised by a
handler escapes it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord

from pvpplanner.core.custom_ids import (
    ClassSelect,
    ControlAction,
    MalformedComponentId,
    ManageSignup,
    SpecSelect,
    UnknownComponentId,
    UserNoChanges,
    UserRole,
    UserStatus,
    UserUpdate,
    owner_id,
    parse_custom_id,
)
from pvpplanner.core.roster import ConcurrentUpdateError, NotSignedUp, RoleFull
from pvpplanner.core.signup import InvalidSelection
from pvpplanner.db.repository import SessionNotFound
from pvpplanner.discord.embeds import format_role
from pvpplanner.discord.helpers import reply_ephemeral

if TYPE_CHECKING:
    from pvpplanner.core.custom_ids import ComponentId
    from pvpplanner.discord.handlers import SignupHandlers

logger = logging.getLogger(__name__)

NOT_FOR_YOU = "❌ This button is not for you."
INVALID_FORMAT = "❌ Invalid button format. Please try refreshing the message."
NOT_RECOGNIZED = "❌ This button interaction is not recognized. Please try refreshing the message."
SESSION_GONE = "❌ This session no longer exists."
NOT_SIGNED_UP = "❌ You are not signed up for this session. Please join first."
INVALID_SELECTION = "❌ That choice isn't available for this session. Please pick again."
BUSY = "❌ Lots of people are signing up right now. Please try again."
GENERIC_FAILURE = "❌ Something went wrong while updating your signup. Please try again."


class InteractionRouter:
    """Routes component interactions to SignupHandlers."""

    def __init__(self, handlers: SignupHandlers) -> None:
        self.handlers = handlers

    async def route(self, interaction: discord.Interaction) -> None:
        custom_id = str((interaction.data or {}).get("custom_id", ""))
        try:
            component = parse_custom_id(custom_id)
        except UnknownComponentId:
            logger.warning("component_id_unrecognized custom_id=%s", custom_id)
            await reply_ephemeral(interaction, NOT_RECOGNIZED)
            return
        except MalformedComponentId as exc:
            logger.warning("component_id_malformed custom_id=%s error=%s", custom_id, exc)
            await reply_ephemeral(interaction, INVALID_FORMAT)
            return

        owner = owner_id(component)
        if owner is not None and owner != str(interaction.user.id):
            logger.warning(
                "component_owner_mismatch custom_id=%s user=%s", custom_id, interaction.user.id
            )
            await reply_ephemeral(interaction, NOT_FOR_YOU)
            return

        try:
            await self.dispatch(interaction, component)
        except SessionNotFound:
            await reply_ephemeral(interaction, SESSION_GONE)
        except NotSignedUp:
            await reply_ephemeral(interaction, NOT_SIGNED_UP)
        except InvalidSelection as exc:
            logger.info("selection_rejected custom_id=%s reason=%s", custom_id, exc)
            await reply_ephemeral(interaction, INVALID_SELECTION)
        except RoleFull as exc:
            await reply_ephemeral(
                interaction,
                f"❌ All {format_role(exc.role)} slots are full for this session.",
            )
        except ConcurrentUpdateError:
            logger.warning("component_gave_up_on_conflicts custom_id=%s", custom_id)
            await reply_ephemeral(interaction, BUSY)
        except Exception:  # Outermost boundary — every interaction gets an answer
            logger.exception("component_handler_failed custom_id=%s", custom_id)
            try:
                await reply_ephemeral(interaction, GENERIC_FAILURE)
            except discord.HTTPException:
                logger.exception("component_failure_reply_failed custom_id=%s", custom_id)

    async def dispatch(self, interaction: discord.Interaction, component: ComponentId) -> None:
        handlers = self.handlers
        if isinstance(component, ManageSignup):
            await handlers.manage_signup(interaction, component)
        elif isinstance(component, UserStatus):
            await handlers.change_status(interaction, component)
        elif isinstance(component, UserNoChanges):
            await handlers.no_change(interaction, component)
        elif isinstance(component, UserRole):
            await handlers.select_role(interaction, component)
        elif isinstance(component, ClassSelect):
            await handlers.select_class(interaction, component)
        elif isinstance(component, SpecSelect):
            await handlers.select_spec(interaction, component)
        elif isinstance(component, UserUpdate):
            await handlers.confirm_selection(interaction, component)
        elif isinstance(component, ControlAction):
            await handlers.control(interaction, component)
