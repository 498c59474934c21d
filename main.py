#!/usr/bin/env python3
"""
Clean Deterministic Startup - Booster Job Board Discord Bot

Startup sequence:
1. Validate configuration (fatal when incomplete)
2. Build the discord client, gateway, event log and workflow coordinator
3. Register event handlers
4. Log in; setup_hook replays the event log before the gateway connects,
   so no message or button press is handled on unrecovered state
"""

import logging
import asyncio
import sys
from typing import Optional

import discord
from discord.ext import commands

from config import Config, ConfigurationError
from services.claim_registry import ClaimRegistry
from services.discord_gateway import DiscordChannelLogStore, DiscordChatGateway
from services.event_log import EventLog
from services.state_recovery import StateRecoveryEngine
from services.ticket_link_registry import TicketLinkRegistry
from services.workflow_coordinator import WorkflowCoordinator

logger = logging.getLogger(__name__)


def setup_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, Config.LOG_LEVEL, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    # discord.py is chatty at INFO
    logging.getLogger("discord").setLevel(logging.WARNING)


class BoosterBot(commands.Bot):
    """Discord client whose setup_hook is the recovery barrier"""

    def __init__(self, startup_manager: "CleanStartupManager"):
        intents = discord.Intents.default()
        intents.guilds = True
        intents.messages = True
        intents.message_content = True  # needed to read webhook text/content
        super().__init__(command_prefix=commands.when_mentioned, intents=intents)
        self.startup_manager = startup_manager

    async def setup_hook(self) -> None:
        await self.startup_manager.recover_state()

    async def on_ready(self) -> None:
        logger.info(f"✅ Bot online as {self.user}")


class CleanStartupManager:
    """
    Clean startup manager with deterministic sequence.
    Owns the bot and the coordinator; no module-level state.
    """

    def __init__(self):
        self.bot: Optional[BoosterBot] = None
        self.coordinator: Optional[WorkflowCoordinator] = None
        self.recovery_engine: Optional[StateRecoveryEngine] = None
        self.startup_errors = []

    def validate_configuration(self) -> bool:
        try:
            Config.validate_bot_configuration()
            Config.log_environment_config()
            return True
        except ConfigurationError as e:
            self.startup_errors.append(f"Configuration: {e}")
            return False

    def create_application(self) -> bool:
        """Create the discord client and wire the workflow services to it."""
        try:
            logger.info("🤖 Creating Discord client...")
            self.bot = BoosterBot(self)
            event_log = EventLog(DiscordChannelLogStore(self.bot, Config.LOG_CHANNEL_ID))
            self.coordinator = WorkflowCoordinator(
                gateway=DiscordChatGateway(self.bot),
                event_log=event_log,
                booster_channel_id=Config.BOOSTER_CHANNEL_ID,
                ticket_category_id=Config.TICKET_CATEGORY_ID,
            )
            self.recovery_engine = StateRecoveryEngine(event_log, replay_limit=Config.LOG_REPLAY_LIMIT)
            logger.info("✅ Discord client created")
            return True
        except Exception as e:
            logger.error(f"❌ Application creation failed: {e}")
            self.startup_errors.append(f"Application: {e}")
            return False

    def register_handlers(self) -> bool:
        try:
            logger.info("📋 Registering handlers...")
            if not self.bot or not self.coordinator:
                raise ValueError("Application not initialized")

            from handlers.job_board import register_job_board_handlers
            register_job_board_handlers(self.bot, self.coordinator)
            return True
        except Exception as e:
            logger.error(f"❌ Handler registration failed: {e}")
            self.startup_errors.append(f"Handlers: {e}")
            return False

    async def recover_state(self) -> None:
        """Replay the event log into the coordinator; always opens the gate"""
        logger.info("🔄 Replaying event log...")
        try:
            claims, links = await self.recovery_engine.recover()
        except Exception as e:
            logger.error(f"❌ Recovery failed, starting with empty state: {e}")
            claims, links = ClaimRegistry(), TicketLinkRegistry()
        self.coordinator.install_state(claims, links)

    def startup_sequence(self) -> bool:
        """Execute clean startup sequence; every step here is critical."""
        logger.info("🚀 Starting Booster Job Board with clean startup sequence...")

        startup_steps = [
            ("Configuration", self.validate_configuration),
            ("Application", self.create_application),
            ("Handlers", self.register_handlers),
        ]

        for step_name, step_func in startup_steps:
            logger.info(f"▶️ Executing step: {step_name}")
            if not step_func():
                logger.error(f"🚨 Critical step '{step_name}' failed - cannot continue startup")
                for error in self.startup_errors:
                    logger.error(f"  - {error}")
                return False

        logger.info("✅ Clean startup sequence completed successfully")
        return True

    async def run(self) -> None:
        async with self.bot:
            await self.bot.start(Config.DISCORD_TOKEN)


async def main_clean():
    """Main function with clean startup."""
    setup_logging()
    startup_manager = CleanStartupManager()

    if not startup_manager.startup_sequence():
        logger.error("❌ Startup failed - exiting")
        sys.exit(1)

    try:
        await startup_manager.run()
    except discord.LoginFailure as e:
        logger.error(f"❌ Discord login failed: {e}")
        sys.exit(1)


def cli() -> None:
    try:
        asyncio.run(main_clean())
    except KeyboardInterrupt:
        logger.info("👋 Bot stopped by user")


if __name__ == "__main__":
    cli()
