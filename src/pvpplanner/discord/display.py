"""Keeps each session's public display message in sync with the store.

The display message is a cache of ``build_session_embed``: it is located by
scanning recent channel history for a bot message whose embed footer carries
the session id (or, for messages posted before the footer marker existed,
whose embed title matches the session title), then edited in place. A new
message is posted only when none is found. Failures are logged per channel and
never propagate, since a stale display must not fail the signup that triggered
the refresh. A session that cannot be rendered is shown as an error embed.
"""

from __future__ import annotations

import logging
from datetime import tzinfo
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo

import discord

from pvpplanner.discord.components import SessionButtonsView
from pvpplanner.discord.embeds import (
    build_error_embed,
    build_session_content,
    build_session_embed,
    session_title,
)

if TYPE_CHECKING:
    from pvpplanner.config import Settings
    from pvpplanner.models.session import Session

logger = logging.getLogger(__name__)


def display_timezone(settings: Settings) -> tzinfo:
    return ZoneInfo(settings.planner_timezone)


def display_channel_ids(session: Session, settings: Settings) -> list[int]:
    """Configured display channels, else the channel the session was scheduled in."""
    configured = settings.display_channels()
    if configured:
        return configured
    if session.channel_id.isdigit():
        return [int(session.channel_id)]
    return []


async def _resolve_channel(client: discord.Client, channel_id: int) -> discord.abc.Messageable:
    channel = client.get_channel(channel_id)
    if channel is None:
        channel = await client.fetch_channel(channel_id)
    return channel  # type: ignore[return-value]


async def find_display_message(
    client: discord.Client,
    channel: discord.abc.Messageable,
    session_id: str,
    limit: int,
    title: str | None = None,
) -> discord.Message | None:
    """Newest bot message in *channel* whose embed footer names *session_id*.

    When *title* is given, a bot message with no session id in its footer
    matches on an equal embed title.
    """
    bot_id = client.user.id if client.user else None
    async for message in channel.history(limit=limit):
        if bot_id is not None and message.author.id != bot_id:
            continue
        for embed in message.embeds:
            footer = embed.footer.text or ""
            if f"Session ID: {session_id}" in footer:
                return message
            if title is not None and "Session ID:" not in footer and embed.title == title:
                return message
    return None


def _render_embed(session: Session, settings: Settings) -> discord.Embed:
    try:
        return build_session_embed(session, display_timezone(settings))
    except Exception:
        logger.exception("display_render_failed session=%s", session.session_id)
        return build_error_embed(session.session_id)


def _display_title(session: Session, settings: Settings) -> str | None:
    try:
        return session_title(session, display_timezone(settings))
    except Exception:
        logger.warning("display_title_failed session=%s", session.session_id, exc_info=True)
        return None


async def update_session_display(
    client: discord.Client,
    session: Session,
    settings: Settings,
) -> list[discord.Message]:
    """Edit (or post) the session's display message in every display channel."""
    content = build_session_content(session)
    embed = _render_embed(session, settings)
    title = _display_title(session, settings)
    view = SessionButtonsView(session.session_id)

    messages: list[discord.Message] = []
    for channel_id in display_channel_ids(session, settings):
        try:
            channel = await _resolve_channel(client, channel_id)
            existing = await find_display_message(
                client,
                channel,
                session.session_id,
                settings.planner_display_history_limit,
                title=title,
            )
            if existing is not None:
                messages.append(await existing.edit(content=content, embed=embed, view=view))
                logger.info("display_updated session=%s channel=%d", session.session_id, channel_id)
            else:
                messages.append(await channel.send(content=content, embed=embed, view=view))
                logger.info("display_posted session=%s channel=%d", session.session_id, channel_id)
        except discord.DiscordException:
            logger.exception(
                "display_update_failed session=%s channel=%d", session.session_id, channel_id
            )
    if not messages:
        logger.warning("display_not_updated session=%s", session.session_id)
    return messages


async def remove_session_display(
    client: discord.Client,
    session: Session,
    settings: Settings,
) -> int:
    """Delete the session's display messages. Returns how many were removed."""
    removed = 0
    title = _display_title(session, settings)
    for channel_id in display_channel_ids(session, settings):
        try:
            channel = await _resolve_channel(client, channel_id)
            existing = await find_display_message(
                client,
                channel,
                session.session_id,
                settings.planner_display_history_limit,
                title=title,
            )
            if existing is not None:
                await existing.delete()
                removed += 1
        except discord.DiscordException:
            logger.exception(
                "display_remove_failed session=%s channel=%d", session.session_id, channel_id
            )
    return removed
