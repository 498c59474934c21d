"""
Chat Gateway
Outbound command surface used by the workflow coordinator. The discord.py
implementation lives in services/discord_gateway.py.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from models import ButtonPress, EmbedData, InboundMessage


class ChatGateway(ABC):
    """Outbound chat commands. Implementations raise on failure; callers decide what is fatal."""

    @abstractmethod
    async def send_job_posting(
        self,
        channel_id: int,
        content: str,
        embeds: List[EmbedData],
        order_id: str,
        claimed: bool = False,
    ) -> Optional[str]:
        """Post a job with Claim/Log buttons, returns a link to the new message"""

    @abstractmethod
    async def delete_message(self, message: InboundMessage) -> None:
        """Delete an inbound message"""

    @abstractmethod
    async def send_message(self, channel_id: int, text: str) -> None:
        """Post plain text to a channel"""

    @abstractmethod
    async def grant_ticket_access(self, channel_id: int, user_id: int) -> None:
        """Let a user view, read the history of and write in a ticket channel"""

    @abstractmethod
    async def acknowledge(self, press: ButtonPress) -> None:
        """Accept a button press right away; later edits and replies follow up on it"""

    @abstractmethod
    async def mark_posting_claimed(self, press: ButtonPress, order_id: str, claimant_name: str) -> None:
        """Show the claimant on the pressed job posting and disable its claim button"""

    @abstractmethod
    async def reply(self, press: ButtonPress, text: str) -> None:
        """Private reply to the user who pressed a button"""
