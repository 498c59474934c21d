"""
Discord Gateway
discord.py implementations of the chat gateway and of the log channel
store, plus the converters from discord objects to inbound events.
"""

import logging
from typing import List, Optional

import discord

from models import ButtonAction, ButtonPress, EmbedData, InboundMessage, LogEntry
from services.chat_gateway import ChatGateway
from services.event_log import LogStore, LogStoreUnavailable
from utils.job_buttons import CLAIM_LABEL, CLAIMED_LABEL, LOG_LABEL, build_custom_id

logger = logging.getLogger(__name__)

NO_MENTIONS = discord.AllowedMentions.none()


def build_job_view(order_id: str, claimed: bool = False) -> discord.ui.View:
    """Claim / Log button row for a job posting"""
    view = discord.ui.View(timeout=None)
    view.add_item(discord.ui.Button(
        label=CLAIMED_LABEL if claimed else CLAIM_LABEL,
        style=discord.ButtonStyle.success,
        custom_id=build_custom_id(ButtonAction.CLAIM, order_id),
        disabled=claimed,
    ))
    view.add_item(discord.ui.Button(
        label=LOG_LABEL,
        style=discord.ButtonStyle.secondary,
        custom_id=build_custom_id(ButtonAction.LOG, order_id),
    ))
    return view


def embed_data(embed: discord.Embed) -> EmbedData:
    return EmbedData(title=embed.title or "", description=embed.description or "", raw=embed.to_dict())


def to_discord_embeds(embeds: List[EmbedData]) -> List[discord.Embed]:
    result = []
    for embed in embeds:
        if embed.raw:
            result.append(discord.Embed.from_dict(dict(embed.raw)))
        else:
            result.append(discord.Embed(title=embed.title or None, description=embed.description or None))
    return result


def message_from_discord(message: discord.Message, own_user_id: Optional[int]) -> InboundMessage:
    """Convert a discord message into an InboundMessage"""
    channel = message.channel
    # Messages in threads inherit the category of their parent channel
    parent = getattr(channel, "parent", None)
    category_id = getattr(channel, "category_id", None)
    if category_id is None and parent is not None:
        category_id = getattr(parent, "category_id", None)

    return InboundMessage(
        message_id=message.id,
        channel_id=message.channel.id,
        author_id=message.author.id,
        content=message.content or "",
        category_id=category_id,
        author_is_bot=bool(message.author.bot),
        is_webhook=message.webhook_id is not None,
        is_own=own_user_id is not None and message.author.id == own_user_id,
        embeds=[embed_data(embed) for embed in message.embeds],
        mentions=[user.id for user in message.mentions],
        has_components=bool(message.components),
        raw=message,
    )


def press_from_interaction(interaction: discord.Interaction) -> ButtonPress:
    """Convert a component interaction into a ButtonPress"""
    data = interaction.data or {}
    message = interaction.message
    return ButtonPress(
        custom_id=str(data.get("custom_id", "")),
        user_id=interaction.user.id,
        user_name=interaction.user.name,
        channel_id=interaction.channel_id,
        message_id=message.id if message else None,
        embeds=[embed_data(embed) for embed in message.embeds] if message else [],
        raw=interaction,
    )


async def resolve_channel(client: discord.Client, channel_id: int):
    """Cached channel if present, otherwise fetched over HTTP"""
    channel = client.get_channel(channel_id)
    if channel is None:
        channel = await client.fetch_channel(channel_id)
    return channel


class DiscordChatGateway(ChatGateway):
    """ChatGateway backed by a discord.py client"""

    def __init__(self, client: discord.Client):
        self.client = client

    async def send_job_posting(self, channel_id, content, embeds, order_id, claimed=False):
        channel = await resolve_channel(self.client, channel_id)
        repost = await channel.send(
            content=content or None,
            embeds=to_discord_embeds(embeds),
            view=build_job_view(order_id, claimed),
        )
        return repost.jump_url

    async def delete_message(self, message):
        await message.raw.delete()

    async def send_message(self, channel_id, text):
        channel = await resolve_channel(self.client, channel_id)
        await channel.send(text)

    async def grant_ticket_access(self, channel_id, user_id):
        channel = await resolve_channel(self.client, channel_id)
        member = channel.guild.get_member(user_id) or await channel.guild.fetch_member(user_id)
        await channel.set_permissions(
            member,
            view_channel=True,
            send_messages=True,
            read_message_history=True,
            reason="Booster claimed the linked order",
        )
        logger.info(f"🎫 ACCESS_GRANTED: user {user_id} -> channel {channel_id}")

    async def acknowledge(self, press):
        interaction: discord.Interaction = press.raw
        if not interaction.response.is_done():
            await interaction.response.defer()

    async def mark_posting_claimed(self, press, order_id, claimant_name):
        interaction: discord.Interaction = press.raw
        embeds = to_discord_embeds(press.embeds)
        if embeds:
            embeds[0].set_footer(text=f"Claimed by {claimant_name}")
        view = build_job_view(order_id, claimed=True)
        if interaction.response.is_done():
            # Deferred component interactions edit the message the buttons sit on
            await interaction.edit_original_response(embeds=embeds, view=view)
        else:
            await interaction.response.edit_message(embeds=embeds, view=view)

    async def reply(self, press, text):
        interaction: discord.Interaction = press.raw
        if interaction.response.is_done():
            await interaction.followup.send(text, ephemeral=True)
        else:
            await interaction.response.send_message(text, ephemeral=True)


class DiscordChannelLogStore(LogStore):
    """Event log kept as messages in the log channel; sequence is the message snowflake"""

    def __init__(self, client: discord.Client, channel_id: int):
        self.client = client
        self.channel_id = channel_id

    async def append(self, line: str) -> LogEntry:
        channel = await resolve_channel(self.client, self.channel_id)
        message = await channel.send(line, allowed_mentions=NO_MENTIONS)
        return LogEntry(sequence=message.id, text=line)

    async def fetch_recent(self, limit: int) -> List[LogEntry]:
        """Recent log channel messages written by this bot; anyone else's lines are not records"""
        if self.client.user is None:
            raise LogStoreUnavailable("client is not logged in, own user id unknown")
        own_user_id = self.client.user.id
        try:
            channel = await resolve_channel(self.client, self.channel_id)
            return [
                LogEntry(sequence=message.id, text=message.content or "")
                async for message in channel.history(limit=limit)
                if message.author.id == own_user_id
            ]
        except (discord.HTTPException, discord.ClientException) as e:
            raise LogStoreUnavailable(f"log channel {self.channel_id}: {e}") from e
