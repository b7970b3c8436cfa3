"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from pvpplanner.config import Settings
from pvpplanner.db.engine import create_engine, create_tables

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: create engine/tables, optionally start the Discord bot."""
    settings: Settings = app.state.settings
    engine = create_engine(settings.database_url)
    await create_tables(engine)
    app.state.engine = engine

    discord_bot = None
    from pvpplanner.discord.bot import is_discord_enabled

    if is_discord_enabled(settings):
        from pvpplanner.discord.bot import start_discord_bot

        discord_bot = await start_discord_bot(settings, engine)
        app.state.discord_bot = discord_bot
        logger.info("discord_bot_integration_started")
    else:
        app.state.discord_bot = None
        logger.info("discord_bot_integration_disabled")

    yield

    if discord_bot is not None:
        await discord_bot.close()
        logger.info("discord_bot_integration_stopped")

    await engine.dispose()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the PvP Planner FastAPI application."""
    settings = settings or Settings()

    logging.basicConfig(
        level=getattr(logging, settings.planner_log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="PvP Planner",
        version="0.1.0",
        description="Discord bot for scheduling group-gaming sessions and collecting signups",
        docs_url="/docs" if settings.planner_env != "production" else None,
        lifespan=lifespan,
    )
    app.state.settings = settings

    @app.get("/health")
    async def health() -> dict[str, str]:
        bot = getattr(app.state, "discord_bot", None)
        discord_status = "disabled"
        if bot is not None:
            discord_status = "ready" if bot.is_ready() else "connecting"
        return {"status": "ok", "env": settings.planner_env, "discord": discord_status}

    return app


app = create_app()
