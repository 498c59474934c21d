"""
Job Board Handlers - discord.py event wiring for the booster job board
Turns messages and button interactions into workflow events; every handler
is an error boundary so a failing event never takes the bot down
"""

import logging

import discord
from discord.ext import commands

from services.discord_gateway import message_from_discord, press_from_interaction
from services.workflow_coordinator import WorkflowCoordinator

logger = logging.getLogger(__name__)


async def handle_message_created(bot: commands.Bot, coordinator: WorkflowCoordinator, message: discord.Message) -> None:
    """Route a new message to the job posting / ticket workflow"""
    try:
        logger.debug(
            f"[MSG] channel={message.channel.id} webhook={'yes' if message.webhook_id else 'no'} "
            f"author={message.author}"
        )
        own_user_id = bot.user.id if bot.user else None
        await coordinator.handle_message(message_from_discord(message, own_user_id))
    except Exception as e:
        logger.exception(f"❌ MessageCreate error: {e}")


async def handle_interaction_created(coordinator: WorkflowCoordinator, interaction: discord.Interaction) -> None:
    """Route a Claim / Log button press to the workflow"""
    if interaction.type != discord.InteractionType.component:
        return

    try:
        await coordinator.handle_button(press_from_interaction(interaction))
    except Exception as e:
        logger.exception(f"❌ Interaction error: {e}")
        # If something goes wrong, at least respond
        try:
            if interaction.response.is_done():
                await interaction.followup.send("Error handling that.", ephemeral=True)
            else:
                await interaction.response.send_message("Error handling that.", ephemeral=True)
        except Exception as reply_error:
            logger.debug(f"Fallback reply failed (non-critical): {reply_error}")


def register_job_board_handlers(bot: commands.Bot, coordinator: WorkflowCoordinator) -> None:
    """Register job board listeners with the discord bot"""

    async def on_message(message: discord.Message) -> None:
        await handle_message_created(bot, coordinator, message)

    async def on_interaction(interaction: discord.Interaction) -> None:
        await handle_interaction_created(coordinator, interaction)

    bot.add_listener(on_message, "on_message")
    bot.add_listener(on_interaction, "on_interaction")
    logger.info("Registered job board handlers")
