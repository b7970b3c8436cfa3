"""Discord bot helpers — DB session context, ephemeral replies."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import discord
from sqlalchemy.ext.asyncio import AsyncEngine

from pvpplanner.db.engine import get_session
from pvpplanner.db.repository import Repository

logger = logging.getLogger(__name__)


@asynccontextmanager
async def db_session(
    engine: AsyncEngine,
) -> AsyncGenerator[Repository, None]:
    """Yield a Repository bound to a fresh async session."""
    async with get_session(engine) as session:
        yield Repository(session)


async def reply_ephemeral(
    interaction: discord.Interaction,
    content: str,
    view: discord.ui.View | None = None,
) -> None:
    """Send an ephemeral reply whether or not the interaction was acknowledged yet."""
    kwargs: dict[str, object] = {"content": content, "ephemeral": True}
    if view is not None:
        kwargs["view"] = view
    if interaction.response.is_done():
        await interaction.followup.send(**kwargs)
    else:
        await interaction.response.send_message(**kwargs)


def component_values(interaction: discord.Interaction) -> list[str]:
    """Values chosen in a select menu interaction."""
    data = interaction.data or {}
    return list(data.get("values", []))  # type: ignore[union-attr]


def message_id_of(interaction: discord.Interaction) -> str:
    return str(interaction.message.id) if interaction.message is not None else "0"
