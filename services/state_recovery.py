"""
State Recovery Engine
Rebuilds the claim and ticket-link registries at startup by folding the
event log oldest-first. Must finish before any chat event is handled.

Known limitation: only the most recent LOG_REPLAY_LIMIT log messages are
replayed. Claims or links older than that window are not recovered.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from models import LogEntry, LogTag
from services.claim_registry import ClaimRegistry
from services.event_log import EventLog, LogStoreUnavailable, parse_record
from services.ticket_link_registry import TicketLinkRegistry

logger = logging.getLogger(__name__)


@dataclass
class RecoveryReport:
    """Counters from the last replay"""
    entries_read: int = 0
    claims_applied: int = 0
    links_applied: int = 0
    conflicts: int = 0
    ignored: int = 0
    cold_start: bool = False


def replay_entries(
    entries: Iterable[LogEntry],
    claims: Optional[ClaimRegistry] = None,
    links: Optional[TicketLinkRegistry] = None,
    report: Optional[RecoveryReport] = None,
) -> Tuple[ClaimRegistry, TicketLinkRegistry]:
    """
    Pure fold of log entries into registries.

    Entries are applied in sequence order regardless of the order given, and
    the first record per order id wins, exactly as the live handlers do.
    """
    claims = claims if claims is not None else ClaimRegistry()
    links = links if links is not None else TicketLinkRegistry()
    report = report if report is not None else RecoveryReport()

    for entry in sorted(entries, key=lambda e: e.sequence):
        report.entries_read += 1
        record = parse_record(entry.text)
        if record is None:
            report.ignored += 1
            continue

        if record.tag == LogTag.CLAIM:
            result = claims.restore(record.order_id, record.claimant_id, entry.sequence)
            if result.claimed:
                report.claims_applied += 1
            else:
                report.conflicts += 1
        elif record.tag == LogTag.LINK:
            result = links.restore(
                record.order_id, record.ticket_channel_id, record.customer_id, entry.sequence
            )
            if result.linked:
                report.links_applied += 1
            else:
                report.conflicts += 1

    return claims, links


class StateRecoveryEngine:
    """Reads the bounded replay window from the event log and folds it"""

    def __init__(self, event_log: EventLog, replay_limit: int = 1000):
        self.event_log = event_log
        self.replay_limit = replay_limit
        self.last_report: Optional[RecoveryReport] = None

    async def recover(self) -> Tuple[ClaimRegistry, TicketLinkRegistry]:
        report = RecoveryReport()
        self.last_report = report

        try:
            entries = await self.event_log.read_all(self.replay_limit)
        except LogStoreUnavailable as e:
            logger.warning(f"⚠️ RECOVERY_COLD_START: log channel unreachable ({e}), starting with empty state")
            report.cold_start = True
            return ClaimRegistry(), TicketLinkRegistry()

        claims, links = replay_entries(entries, report=report)

        if report.entries_read >= self.replay_limit:
            logger.warning(
                f"⚠️ RECOVERY_WINDOW_FULL: read {report.entries_read} entries (limit {self.replay_limit}), "
                f"older claims/links may be missing"
            )
        logger.info(
            f"✅ RECOVERY_COMPLETE: {report.entries_read} entries, "
            f"{report.claims_applied} claims, {report.links_applied} links, "
            f"{report.conflicts} conflicts, {report.ignored} ignored"
        )
        return claims, links
