"""
Workflow Coordinator
Single owner of the claim / ticket-link state. Reacts to job postings,
ticket messages and Claim / Log button presses, records CLAIM and LINK
events in the event log and drives the chat gateway.

Per order id the claim and link dimensions each move one way only
(unclaimed -> claimed, unlinked -> linked). Whichever transition happens
second grants the claimant access to the ticket channel, exactly once:
both transitions run under the same per-order assignment lock and read the
other dimension inside it, so only one of them can see the other already set.

Side effects after a state change are best-effort. A failed log append or
chat call is logged and never rolls the registries back.
"""

import asyncio
import logging
from typing import Awaitable, Optional

from models import ButtonAction, ButtonPress, InboundMessage, LogRecord, TicketLink
from services.chat_gateway import ChatGateway
from services.claim_registry import ClaimRegistry
from services.event_log import EventLog
from services.order_id_parser import extract_from_message
from services.ticket_link_registry import TicketLinkRegistry
from utils.job_buttons import parse_custom_id
from utils.keyed_lock import KeyedLock

logger = logging.getLogger(__name__)


class WorkflowCoordinator:
    """Booster job board workflow"""

    def __init__(
        self,
        gateway: ChatGateway,
        event_log: EventLog,
        booster_channel_id: int,
        ticket_category_id: int,
        assignment_lock: Optional[KeyedLock] = None,
    ):
        self.gateway = gateway
        self.event_log = event_log
        self.booster_channel_id = booster_channel_id
        self.ticket_category_id = ticket_category_id
        self.assignment_lock = assignment_lock if assignment_lock is not None else KeyedLock("assignment")

        self.claims = ClaimRegistry()
        self.links = TicketLinkRegistry()
        # Set once recovered state is installed; every handler waits on it
        self.ready = asyncio.Event()

    def install_state(self, claims: ClaimRegistry, links: TicketLinkRegistry) -> None:
        """Adopt the recovered registries and open the gate for inbound events"""
        self.claims = claims
        self.links = links
        self.ready.set()
        logger.info(f"✅ Workflow ready: {len(claims)} claims, {len(links)} ticket links")

    async def _best_effort(self, action: str, call: Awaitable):
        try:
            return await call
        except Exception as e:
            logger.error(f"❌ {action} failed: {e}")
            return None

    # ── Inbound messages ─────────────────────────────

    async def handle_message(self, message: InboundMessage) -> None:
        await self.ready.wait()
        if message.channel_id == self.booster_channel_id:
            await self.handle_job_posting(message)
        elif message.category_id is not None and message.category_id == self.ticket_category_id:
            await self.handle_ticket_message(message)

    async def handle_job_posting(self, message: InboundMessage) -> None:
        """Repost a webhook / member job posting with Claim and Log buttons"""
        # Our own reposts (and other bots) are not job postings
        if message.is_own or (message.author_is_bot and not message.is_webhook):
            return

        order_id = extract_from_message(message.content, message.embeds)
        if not order_id:
            logger.info(f"[MSG] No order id in booster message {message.message_id}, skipping")
            return

        if message.has_components:
            logger.info(f"[MSG] {order_id} already has buttons, skipping")
            return

        claimed = order_id in self.claims
        url = await self._best_effort(
            f"Repost of {order_id}",
            self.gateway.send_job_posting(message.channel_id, message.content, message.embeds, order_id, claimed),
        )
        if url is None:
            return
        logger.info(f"[REPOST] {order_id} -> {url}")

        # Only webhook originals are removed, member posts stay
        if message.is_webhook:
            await self._best_effort(f"Delete of original {order_id} posting", self.gateway.delete_message(message))

        await self.event_log.note(f"🆕 Job reposted: **{order_id}**\n{url}")

    async def handle_ticket_message(self, message: InboundMessage) -> None:
        """Bind a ticket channel to the first order id it mentions"""
        if message.is_own:
            return
        if self.links.link_for_channel(message.channel_id) is not None:
            return

        order_id = extract_from_message(message.content, message.embeds)
        if not order_id:
            return

        customer_id = self._customer_of(message)
        if customer_id is None:
            logger.info(f"🔗 LINK_DEFERRED: {order_id} in channel {message.channel_id}, no customer mentioned yet")
            return

        async with self.assignment_lock.hold(order_id):
            result = await self.links.try_link(order_id, message.channel_id, customer_id)
            claimant_id = self.claims.claimant_of(order_id) if result.linked else None

        if not result.linked:
            logger.info(
                f"🔗 LINK_IGNORED: {order_id} in channel {message.channel_id} "
                f"({result.status.value}, bound to {result.link.order_id} / {result.link.ticket_channel_id})"
            )
            return

        link = result.link
        entry = await self.event_log.append(LogRecord.link(order_id, message.channel_id, customer_id))
        if entry is not None:
            link = self.links.set_position(order_id, entry.sequence) or link
        await self._best_effort(
            f"Ticket acknowledgement for {order_id}",
            self.gateway.send_message(
                message.channel_id,
                f"✅ Order **{order_id}** received. A booster will join this ticket once the job is claimed.",
            ),
        )

        if claimant_id is not None:
            await self._grant_and_announce(link, claimant_id)

    @staticmethod
    def _customer_of(message: InboundMessage) -> Optional[int]:
        # Ticket tools open the channel as a bot and mention the customer
        if message.author_is_bot:
            return message.mentions[0] if message.mentions else None
        return message.author_id

    # ── Buttons ──────────────────────────────────────

    async def handle_button(self, press: ButtonPress) -> bool:
        """Dispatch a button press; returns False for buttons that are not ours"""
        parsed = parse_custom_id(press.custom_id)
        if parsed is None:
            return False
        # Log channel writes can be rate limited past the interaction deadline
        await self._best_effort("Interaction acknowledgement", self.gateway.acknowledge(press))
        await self.ready.wait()

        action, order_id = parsed
        if press.channel_id != self.booster_channel_id:
            await self._best_effort("Wrong channel notice", self.gateway.reply(press, "Wrong channel."))
            return True

        if action == ButtonAction.CLAIM:
            await self.handle_claim(press, order_id)
        elif action == ButtonAction.LOG:
            await self.handle_log(press, order_id)
        return True

    async def handle_claim(self, press: ButtonPress, order_id: str) -> None:
        async with self.assignment_lock.hold(order_id):
            result = await self.claims.try_claim(order_id, press.user_id)
            link = self.links.link_of(order_id) if result.claimed else None

        if not result.claimed:
            logger.info(f"⛔ CLAIM_REJECTED: {order_id} by {press.user_id}, held by {result.claimant_id}")
            await self._best_effort(
                f"Already-claimed notice for {order_id}",
                self.gateway.reply(press, f"Too late - already claimed by <@{result.claimant_id}>."),
            )
            return

        logger.info(f"✅ CLAIM_ACCEPTED: {order_id} by {press.user_id} ({press.user_name})")
        entry = await self.event_log.append(LogRecord.claim(order_id, press.user_id))
        if entry is not None:
            self.claims.set_position(order_id, entry.sequence)
        await self._best_effort(
            f"Posting update for {order_id}",
            self.gateway.mark_posting_claimed(press, order_id, press.user_name),
        )

        if link is not None:
            await self._grant_and_announce(link, press.user_id)
            notice = f"You claimed **{order_id}**. Your ticket is <#{link.ticket_channel_id}>."
        else:
            notice = (
                f"You claimed **{order_id}**. No ticket references this order yet, "
                f"you will get access automatically once one does."
            )
        await self._best_effort(f"Claim confirmation for {order_id}", self.gateway.reply(press, notice))

    async def handle_log(self, press: ButtonPress, order_id: str) -> None:
        status = self.describe(order_id)
        await self.event_log.note(f"📝 Log requested for **{order_id}** by <@{press.user_id}> - status: {status}")
        await self._best_effort(f"Log acknowledgement for {order_id}", self.gateway.reply(press, "Logged ✅"))

    # ── Assignment ───────────────────────────────────

    async def _grant_and_announce(self, link: TicketLink, claimant_id: int) -> None:
        granted = await self._best_effort(
            f"Access grant for {link.order_id}",
            self._grant(link.ticket_channel_id, claimant_id),
        )
        if not granted:
            return
        await self._best_effort(
            f"Assignment announcement for {link.order_id}",
            self.gateway.send_message(
                link.ticket_channel_id,
                f"👋 <@{claimant_id}> has been assigned to **{link.order_id}**.",
            ),
        )

    async def _grant(self, channel_id: int, user_id: int) -> bool:
        await self.gateway.grant_ticket_access(channel_id, user_id)
        return True

    def describe(self, order_id: str) -> str:
        """Human-readable claim / ticket status of an order"""
        claimant_id = self.claims.claimant_of(order_id)
        status = f"<@{claimant_id}>" if claimant_id is not None else "Unclaimed"
        link = self.links.link_of(order_id)
        if link is not None:
            status += f", ticket <#{link.ticket_channel_id}>"
        return status
