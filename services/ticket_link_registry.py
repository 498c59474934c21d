"""
Ticket Link Registry
Binds each order id to the ticket channel (and customer) that first
mentioned it. A ticket channel is bound to one order for good.
"""

import logging
from dataclasses import replace
from typing import Dict, Optional

from models import LinkResult, LinkStatus, TicketLink
from utils.keyed_lock import KeyedLock

logger = logging.getLogger(__name__)


class TicketLinkRegistry:
    """In-memory order <-> ticket channel table, first link wins in both directions"""

    def __init__(self, lock: Optional[KeyedLock] = None):
        self._by_order: Dict[str, TicketLink] = {}
        self._by_channel: Dict[int, TicketLink] = {}
        self._lock = lock if lock is not None else KeyedLock("ticket_link_registry")
        self._position = 0

    async def try_link(
        self,
        order_id: str,
        ticket_channel_id: int,
        customer_id: int,
        position: Optional[int] = None,
    ) -> LinkResult:
        """
        Link an order to a ticket channel.

        Returns:
            LinkResult - LINKED with the new link, ALREADY_LINKED with the
            order's existing link, or CHANNEL_BOUND with the link the channel
            already carries for another order
        """
        async with self._lock.hold(order_id):
            return self._link_if_absent(order_id, ticket_channel_id, customer_id, position)

    def restore(self, order_id: str, ticket_channel_id: int, customer_id: int, position: int) -> LinkResult:
        """First-write-wins apply for log replay; only used before events are processed"""
        return self._link_if_absent(order_id, ticket_channel_id, customer_id, position)

    def _link_if_absent(
        self,
        order_id: str,
        ticket_channel_id: int,
        customer_id: int,
        position: Optional[int],
    ) -> LinkResult:
        existing = self._by_order.get(order_id)
        if existing is not None:
            return LinkResult(LinkStatus.ALREADY_LINKED, existing)

        bound = self._by_channel.get(ticket_channel_id)
        if bound is not None:
            return LinkResult(LinkStatus.CHANNEL_BOUND, bound)

        if position is None:
            position = self._position + 1
        self._position = max(self._position, position)

        link = TicketLink(
            order_id=order_id,
            ticket_channel_id=ticket_channel_id,
            customer_id=customer_id,
            linked_at=position,
        )
        self._by_order[order_id] = link
        self._by_channel[ticket_channel_id] = link
        logger.info(f"🔗 LINK_RECORDED: {order_id} -> channel {ticket_channel_id} customer {customer_id}")
        return LinkResult(LinkStatus.LINKED, link)

    def set_position(self, order_id: str, position: int) -> Optional[TicketLink]:
        """Re-stamp a live link with the sequence of the log entry that recorded it"""
        link = self._by_order.get(order_id)
        if link is None:
            return None
        link = replace(link, linked_at=position)
        self._by_order[order_id] = link
        self._by_channel[link.ticket_channel_id] = link
        self._position = max(self._position, position)
        return link

    def link_of(self, order_id: str) -> Optional[TicketLink]:
        return self._by_order.get(order_id)

    def link_for_channel(self, ticket_channel_id: int) -> Optional[TicketLink]:
        return self._by_channel.get(ticket_channel_id)

    def snapshot(self) -> Dict[str, TicketLink]:
        return dict(self._by_order)

    def __contains__(self, order_id: str) -> bool:
        return order_id in self._by_order

    def __len__(self) -> int:
        return len(self._by_order)
