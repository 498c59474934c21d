"""
Ticket link registry tests
"""

import asyncio

import pytest

from models import LinkStatus, TicketLink
from services.ticket_link_registry import TicketLinkRegistry
from utils.keyed_lock import KeyedLock


class TestTicketLinkRegistry:

    @pytest.mark.asyncio
    async def test_first_link_is_recorded(self):
        registry = TicketLinkRegistry()

        result = await registry.try_link("TD-001", 900, 7)

        assert result.status == LinkStatus.LINKED
        assert registry.link_of("TD-001") == TicketLink("TD-001", 900, 7, linked_at=1)
        assert registry.link_for_channel(900).order_id == "TD-001"

    @pytest.mark.asyncio
    async def test_second_channel_for_same_order_is_rejected(self):
        registry = TicketLinkRegistry()
        await registry.try_link("TD-001", 900, 7)

        result = await registry.try_link("TD-001", 901, 8)

        assert result.status == LinkStatus.ALREADY_LINKED
        assert result.link.ticket_channel_id == 900
        assert registry.link_for_channel(901) is None

    @pytest.mark.asyncio
    async def test_channel_stays_bound_to_first_order(self):
        registry = TicketLinkRegistry()
        await registry.try_link("TD-001", 900, 7)

        result = await registry.try_link("TD-002", 900, 7)

        assert result.status == LinkStatus.CHANNEL_BOUND
        assert result.link.order_id == "TD-001"
        assert registry.link_of("TD-002") is None

    @pytest.mark.asyncio
    async def test_concurrent_links_for_same_order(self):
        registry = TicketLinkRegistry()

        results = await asyncio.gather(
            registry.try_link("TD-001", 900, 7),
            registry.try_link("TD-001", 901, 8),
        )

        assert sum(1 for result in results if result.linked) == 1
        assert len(registry) == 1

    def test_restore_first_write_wins(self):
        registry = TicketLinkRegistry()

        registry.restore("TD-001", 900, 7, position=10)
        registry.restore("TD-001", 901, 8, position=11)

        assert registry.link_of("TD-001") == TicketLink("TD-001", 900, 7, linked_at=10)
        assert registry.snapshot() == {"TD-001": TicketLink("TD-001", 900, 7, linked_at=10)}

    @pytest.mark.asyncio
    async def test_link_waits_for_injected_order_lock(self):
        lock = KeyedLock("shared")
        registry = TicketLinkRegistry(lock=lock)

        async with lock.hold("TD-001"):
            pending = asyncio.ensure_future(registry.try_link("TD-001", 900, 7))
            await asyncio.sleep(0)
            assert not pending.done()

        assert (await pending).linked

    @pytest.mark.asyncio
    async def test_set_position_updates_both_indexes(self):
        registry = TicketLinkRegistry()
        await registry.try_link("TD-001", 900, 7)

        link = registry.set_position("TD-001", 4242)

        assert link == TicketLink("TD-001", 900, 7, linked_at=4242)
        assert registry.link_for_channel(900) == link
        assert registry.set_position("TD-404404", 1) is None
