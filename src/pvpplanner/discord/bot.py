"""Discord bot for PvP Planner.

Runs alongside FastAPI using the same event loop. Two slash commands create
and cancel sessions; everything else happens through message components,
which ``on_interaction`` hands to the InteractionRouter.

The bot is optional: if DISCORD_BOT_TOKEN is not set, nothing starts.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import TYPE_CHECKING

import discord
from discord import Intents, app_commands
from discord.ext import commands
from sqlalchemy.exc import SQLAlchemyError

from pvpplanner.core.roster import RosterService
from pvpplanner.discord.display import (
    display_timezone,
    remove_session_display,
    update_session_display,
)
from pvpplanner.discord.handlers import SignupHandlers
from pvpplanner.discord.helpers import db_session
from pvpplanner.discord.router import InteractionRouter
from pvpplanner.models.constants import CATEGORIES, PREFERENCE_SLOTS
from pvpplanner.models.session import SessionMeta, infer_category

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from pvpplanner.config import Settings

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d %H:%M"

GAME_MODE_CHOICES: tuple[str, ...] = (
    "2v2",
    "3v3",
    "RBGs",
    "Mythic+",
    "Raid",
    "One Shot",
    "Campaign",
)


class PlannerBot(commands.Bot):
    """The PvP Planner Discord bot.

    Runs in-process with FastAPI. Owns the roster service and the
    interaction router; component clicks never go through discord.py's
    persistent-view store.
    """

    def __init__(self, settings: Settings, engine: AsyncEngine) -> None:
        intents = Intents.default()

        super().__init__(
            command_prefix="!",
            intents=intents,
            description="PvP Planner -- session scheduling and signups.",
        )
        self.settings = settings
        self.engine = engine
        self.roster = RosterService(engine)
        self.handlers = SignupHandlers(self, self.roster, settings)
        self.router = InteractionRouter(self.handlers)
        self._setup_commands()

    def _setup_commands(self) -> None:
        """Register slash commands on the bot's command tree."""

        @self.tree.command(name="schedule", description="Schedule a new session")
        @app_commands.describe(
            game_mode="What you're playing (2v2, RBGs, Mythic+, One Shot, ...)",
            date="Start time as YYYY-MM-DD HH:MM",
            category="Override the category inferred from the game mode",
            rbg_tier="Which character tier signs up (main or alt)",
            notes="Anything people should know",
        )
        @app_commands.choices(
            category=[app_commands.Choice(name=c, value=c) for c in CATEGORIES],
            rbg_tier=[app_commands.Choice(name=s, value=s) for s in PREFERENCE_SLOTS],
        )
        async def schedule_command(
            interaction: discord.Interaction,
            game_mode: str,
            date: str,
            category: app_commands.Choice[str] | None = None,
            rbg_tier: app_commands.Choice[str] | None = None,
            notes: str = "",
        ) -> None:
            await self._handle_schedule(
                interaction,
                game_mode,
                date,
                category.value if category else None,
                rbg_tier.value if rbg_tier else "",
                notes,
            )

        @schedule_command.autocomplete("game_mode")
        async def _game_mode_autocomplete(
            interaction: discord.Interaction,
            current: str,
        ) -> list[app_commands.Choice[str]]:
            return [
                app_commands.Choice(name=mode, value=mode)
                for mode in GAME_MODE_CHOICES
                if current.lower() in mode.lower()
            ]

        @self.tree.command(name="cancel", description="Cancel a scheduled session")
        @app_commands.describe(session_id="The Session ID from the session's footer")
        async def cancel_command(interaction: discord.Interaction, session_id: str) -> None:
            await self._handle_cancel(interaction, session_id)

    async def setup_hook(self) -> None:
        """Called when the bot is ready to start. Syncs slash commands."""
        if self.settings.discord_guild_id:
            guild = discord.Object(id=int(self.settings.discord_guild_id))
            self.tree.copy_global_to(guild=guild)
            await self.tree.sync(guild=guild)
            logger.info("discord_commands_synced guild_id=%s", self.settings.discord_guild_id)
        else:
            await self.tree.sync()
            logger.info("discord_commands_synced globally")

    async def on_ready(self) -> None:
        user = self.user
        logger.info("discord_bot_ready user=%s", user.name if user else "unknown")

    async def on_interaction(self, interaction: discord.Interaction) -> None:
        """Route button clicks and select menus; slash commands go through the tree."""
        if interaction.type != discord.InteractionType.component:
            return
        await self.router.route(interaction)

    # --- Slash command handlers ---

    async def _handle_schedule(
        self,
        interaction: discord.Interaction,
        game_mode: str,
        date: str,
        category: str | None,
        rbg_tier: str,
        notes: str,
    ) -> None:
        """Handle the /schedule slash command."""
        if interaction.guild_id is None:
            await interaction.response.send_message(
                "Sessions can only be scheduled in a server.", ephemeral=True
            )
            return
        try:
            when = datetime.strptime(date.strip(), DATE_FORMAT).replace(
                tzinfo=display_timezone(self.settings)
            )
        except ValueError:
            await interaction.response.send_message(
                f"Couldn't read `{date}`. Use the format YYYY-MM-DD HH:MM.", ephemeral=True
            )
            return

        await interaction.response.defer(ephemeral=True)
        meta = SessionMeta(category=category or infer_category(game_mode), rbg_tier=rbg_tier)
        try:
            async with db_session(self.engine) as repo:
                session = await repo.create_signup_session(
                    str(interaction.guild_id),
                    game_mode,
                    when,
                    channel_id=str(interaction.channel_id or ""),
                    host_id=str(interaction.user.id),
                    notes=notes,
                    meta=meta,
                )
        except SQLAlchemyError:
            logger.exception("schedule_failed guild=%s", interaction.guild_id)
            await interaction.followup.send(
                "Something went wrong creating the session. Please try again.", ephemeral=True
            )
            return

        logger.info(
            "session_scheduled session=%s guild=%s mode=%s category=%s",
            session.session_id,
            session.guild_id,
            game_mode,
            session.category,
        )
        await update_session_display(self, session, self.settings)
        await interaction.followup.send(
            f"Scheduled **{game_mode}**. Session ID: `{session.session_id}`", ephemeral=True
        )

    async def _handle_cancel(self, interaction: discord.Interaction, session_id: str) -> None:
        """Handle the /cancel slash command."""
        await interaction.response.defer(ephemeral=True)
        session_id = session_id.strip()
        try:
            async with db_session(self.engine) as repo:
                session = await repo.get_signup_session(session_id)
                if session is None or session.guild_id != str(interaction.guild_id):
                    await interaction.followup.send(
                        "No session with that ID in this server.", ephemeral=True
                    )
                    return
                if session.host_id and session.host_id != str(interaction.user.id):
                    await interaction.followup.send(
                        "Only the host can cancel this session.", ephemeral=True
                    )
                    return
                await repo.delete_signup_session(session_id)
        except SQLAlchemyError:
            logger.exception("cancel_failed session=%s", session_id)
            await interaction.followup.send(
                "Something went wrong cancelling the session. Please try again.", ephemeral=True
            )
            return

        removed = await remove_session_display(self, session, self.settings)
        logger.info("session_cancelled session=%s displays_removed=%d", session_id, removed)
        await interaction.followup.send(
            f"Cancelled **{session.game_mode}** (`{session_id}`).", ephemeral=True
        )


def is_discord_enabled(settings: Settings) -> bool:
    """Check whether Discord integration should be started.

    Returns True only when discord_enabled is True, a token is set, AND the
    environment is not development, so a local server never connects to
    the production guild.
    """
    if settings.planner_env == "development":
        logger.info("discord_bot_skipped_in_development")
        return False
    return bool(settings.discord_enabled and settings.discord_bot_token)


async def start_discord_bot(settings: Settings, engine: AsyncEngine) -> PlannerBot:
    """Create and start the Discord bot in the current event loop.

    Returns the bot instance so the caller can stop it during shutdown.
    The bot runs as a background task; this function returns immediately
    after starting it.
    """
    bot = PlannerBot(settings=settings, engine=engine)

    async def _run_bot() -> None:
        try:
            await bot.start(settings.discord_bot_token)
        except asyncio.CancelledError:
            logger.info("discord_bot_cancelled")
        except Exception:  # Last-resort handler — bot.start can raise connection and auth errors
            logger.exception("discord_bot_error")
        finally:
            if not bot.is_closed():
                await bot.close()

    asyncio.create_task(_run_bot(), name="discord-bot")
    logger.info("discord_bot_started")
    return bot
