"""
NailongWatch Discord Bot
========================

Watches images posted in Discord servers for the nailong pattern, answers the
on-demand check command with annotated images and, in servers that opted in,
deletes offending images and times out repeat offenders.
"""

import os
import sys
from pathlib import Path


def resolve_base_dir() -> Path:
    """Determine the base directory of the project.

    Resolution order:
    1. NAILONGWATCH_HOME environment variable, if set.
    2. If running in a frozen/compiled context, the executable's directory.
    3. Otherwise the repository root (two levels above this package).
    """
    if env_home := os.getenv("NAILONGWATCH_HOME"):
        return Path(env_home).resolve()

    if getattr(sys, "frozen", False) or getattr(sys, "compiled", False):
        return Path(sys.argv[0]).resolve().parent

    return Path(__file__).resolve().parents[2]


BASE_DIR = resolve_base_dir()
os.chdir(BASE_DIR)

import asyncio
import discord
from dotenv import load_dotenv

from nailongwatch.configuration.app_configuration import CONFIG_PATH, AppConfig
from nailongwatch.errors import NailongWatchError
from nailongwatch.runtime import NailongRuntime
from nailongwatch.util.logger import get_logger, handle_exception


logger = get_logger("main")


def load_environment() -> str:
    """Load ``.env`` and return the Discord bot token.

    Raises
    ------
    SystemExit
        If ``DISCORD_BOT_TOKEN`` is missing.
    """
    load_dotenv(dotenv_path=BASE_DIR / ".env")
    token = os.getenv("DISCORD_BOT_TOKEN")
    if not token:
        logger.critical("'DISCORD_BOT_TOKEN' environment variable not set. Bot cannot start.")
        sys.exit(1)
    return token


def build_intents() -> discord.Intents:
    """Intents for reading guild messages and resolving members to time out."""
    intents = discord.Intents.default()
    intents.message_content = True
    intents.guilds = True
    intents.messages = True
    intents.members = True
    return intents


def create_bot(runtime: NailongRuntime) -> discord.Bot:
    """Instantiate the Discord bot and register the message listener."""
    from nailongwatch.bot.cogs import message_listener

    bot = discord.Bot(intents=build_intents())
    message_listener.setup(bot, runtime)

    @bot.listen("on_ready")
    async def announce_ready():
        logger.info("Bot connected as %s (ID: %s)", bot.user, getattr(bot.user, "id", "?"))

    return bot


async def start_bot(bot: discord.Bot, token: str) -> None:
    logger.info("Attempting to connect to Discord…")
    try:
        await bot.start(token)
    except asyncio.CancelledError:
        logger.info("Discord bot start cancelled; shutting down")
    finally:
        logger.info("Discord bot start routine finished.")


async def shutdown_runtime(bot: discord.Bot | None, runtime: NailongRuntime) -> int:
    """Close the Discord connection, then flush state and sweep temp files.

    Returns
    -------
    int
        0 on a clean shutdown, 1 if persisted state could not be saved.
    """
    if bot is not None and not bot.is_closed():
        try:
            await bot.close()
        except Exception as exc:
            logger.exception("Error while closing Discord client: %s", exc)

    try:
        await runtime.shutdown()
    except NailongWatchError as exc:
        logger.critical("Shutdown failed to persist state: %s", exc)
        return 1
    return 0


async def async_main() -> int:
    """Load configuration, state and model, then run the bot until it stops."""
    token = load_environment()
    config = AppConfig(CONFIG_PATH)

    try:
        logger.info("Loading whitelist, moderation records and detection model...")
        runtime = await asyncio.to_thread(NailongRuntime.create, config)
    except NailongWatchError as exc:
        logger.critical("Failed to initialize runtime: %s", exc)
        return 1

    bot = None
    exit_code = 0
    try:
        bot = create_bot(runtime)
        await start_bot(bot, token)
    except Exception as exc:
        logger.critical("Discord bot runtime error: %s", exc)
        exit_code = 1
    finally:
        shutdown_code = await shutdown_runtime(bot, runtime)

    return exit_code or shutdown_code


def main() -> int:
    """Entrypoint that runs the async runtime and returns the process exit code."""
    sys.excepthook = handle_exception
    logger.info("Starting NailongWatch…")
    try:
        return asyncio.run(async_main())
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user.")
        return 0
    except Exception as exc:
        logger.critical("An unexpected error occurred while running the bot: %s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
