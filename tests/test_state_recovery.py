"""
State recovery tests
Replaying the event log rebuilds the registries deterministically
"""

import pytest
from unittest.mock import AsyncMock

from models import LogEntry, TicketLink
from services.event_log import EventLog, InMemoryLogStore, LogStoreUnavailable
from services.state_recovery import RecoveryReport, StateRecoveryEngine, replay_entries


def _engine(lines, replay_limit=1000):
    return StateRecoveryEngine(EventLog(InMemoryLogStore(lines)), replay_limit=replay_limit)


class TestReplayEntries:
    """Pure fold over log entries"""

    def test_claim_then_link(self):
        entries = [
            LogEntry(1, "[CLAIM] order=TD-001 booster=42"),
            LogEntry(2, "[LINK] order=TD-001 channel=900 customer=7"),
        ]

        claims, links = replay_entries(entries)

        assert claims.claimant_of("TD-001") == 42
        assert links.link_of("TD-001") == TicketLink("TD-001", 900, 7, linked_at=2)
        assert links.link_for_channel(900).order_id == "TD-001"

    def test_first_write_wins_per_order(self):
        report = RecoveryReport()
        entries = [
            LogEntry(1, "[CLAIM] order=TD-001 booster=42"),
            LogEntry(2, "[CLAIM] order=TD-001 booster=99"),
            LogEntry(3, "[LINK] order=TD-001 channel=900 customer=7"),
            LogEntry(4, "[LINK] order=TD-001 channel=901 customer=8"),
        ]

        claims, links = replay_entries(entries, report=report)

        assert claims.claimant_of("TD-001") == 42
        assert links.link_of("TD-001").ticket_channel_id == 900
        assert report.conflicts == 2

    def test_entries_fold_in_sequence_order(self):
        entries = [
            LogEntry(20, "[CLAIM] order=TD-001 booster=99"),
            LogEntry(10, "[CLAIM] order=TD-001 booster=42"),
        ]

        claims, _ = replay_entries(entries)

        assert claims.claimant_of("TD-001") == 42
        assert claims.record_of("TD-001").claimed_at == 10

    def test_malformed_and_note_lines_are_skipped(self):
        report = RecoveryReport()
        entries = [
            LogEntry(1, "[CLAIM] booster=42"),
            LogEntry(2, "🆕 Job reposted: **TD-001**\nhttps://discord.com/channels/1/2/3"),
            LogEntry(3, "[CLAIM] order=TD-002 booster=5"),
        ]

        claims, links = replay_entries(entries, report=report)

        assert claims.snapshot() == {"TD-002": 5}
        assert len(links) == 0
        assert report.ignored == 2
        assert report.claims_applied == 1

    def test_channel_bound_to_first_order_on_replay(self):
        entries = [
            LogEntry(1, "[LINK] order=TD-001 channel=900 customer=7"),
            LogEntry(2, "[LINK] order=TD-002 channel=900 customer=7"),
        ]

        _, links = replay_entries(entries)

        assert links.link_for_channel(900).order_id == "TD-001"
        assert links.link_of("TD-002") is None


class TestStateRecoveryEngine:
    """Reading the window from the log and cold starts"""

    @pytest.mark.asyncio
    async def test_recovers_claim_and_link(self):
        engine = _engine([
            "[CLAIM] order=TD-001 booster=42",
            "[LINK] order=TD-001 channel=900 customer=7",
        ])

        claims, links = await engine.recover()

        assert claims.claimant_of("TD-001") == 42
        assert links.link_of("TD-001").customer_id == 7
        assert engine.last_report.claims_applied == 1
        assert engine.last_report.links_applied == 1
        assert not engine.last_report.cold_start

    @pytest.mark.asyncio
    async def test_recovery_is_deterministic(self):
        lines = [
            "[CLAIM] order=TD-001 booster=42",
            "📝 Log requested for **TD-001** by <@42> - status: <@42>",
            "[LINK] order=TD-002 channel=901 customer=8",
            "[CLAIM] order=TD-001 booster=99",
            "[LINK] order=TD-001 channel=900 customer=7",
            "[CLAIM] order=TD-002 booster=43",
        ]

        first_claims, first_links = await _engine(lines).recover()
        second_claims, second_links = await _engine(lines).recover()

        assert first_claims.snapshot() == second_claims.snapshot()
        assert first_links.snapshot() == second_links.snapshot()
        assert first_claims.snapshot() == {"TD-001": 42, "TD-002": 43}

    @pytest.mark.asyncio
    async def test_unreachable_log_is_cold_start(self):
        store = InMemoryLogStore()
        store.fetch_recent = AsyncMock(side_effect=LogStoreUnavailable("Missing Access"))
        engine = StateRecoveryEngine(EventLog(store))

        claims, links = await engine.recover()

        assert len(claims) == 0
        assert len(links) == 0
        assert engine.last_report.cold_start

    @pytest.mark.asyncio
    async def test_only_replay_window_is_recovered(self):
        lines = ["[CLAIM] order=TD-OLD001 booster=1"]
        lines += [f"[CLAIM] order=TD-{i:06d} booster=2" for i in range(5)]

        claims, _ = await _engine(lines, replay_limit=5).recover()

        assert "TD-OLD001" not in claims
        assert len(claims) == 5

    @pytest.mark.asyncio
    async def test_live_claims_continue_after_replayed_positions(self):
        claims, _ = await _engine(["[CLAIM] order=TD-001 booster=42"] * 3).recover()

        await claims.try_claim("TD-002", 99)

        assert claims.record_of("TD-002").claimed_at > claims.record_of("TD-001").claimed_at
