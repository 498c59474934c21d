"""
Event Log Service
Append-only log of CLAIM / LINK records kept as plain text lines in the log
channel. It is the bot's only durable state: every restart rebuilds the
registries by replaying it.

Line grammar (must stay stable for recovery):
    [CLAIM] order=<ID> booster=<userId>
    [LINK] order=<ID> channel=<channelId> customer=<userId>
Any other line (human notes, job repost notices) is ignored by the parser.
"""

import re
import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from models import LogEntry, LogRecord, LogTag
from services.order_id_parser import normalize_order_id

logger = logging.getLogger(__name__)

CLAIM_LINE_RE = re.compile(r"^\[CLAIM\]\s+order=(?P<order>\S+)\s+booster=(?P<booster>\d+)\s*$")
LINK_LINE_RE = re.compile(
    r"^\[LINK\]\s+order=(?P<order>\S+)\s+channel=(?P<channel>\d+)\s+customer=(?P<customer>\d+)\s*$"
)


class LogStoreUnavailable(Exception):
    """The log store could not be read (channel missing, no access, network down)"""


def format_record(record: LogRecord) -> str:
    """Serialize a record to its single-line log form"""
    if record.tag == LogTag.CLAIM:
        return f"[CLAIM] order={record.order_id} booster={record.claimant_id}"
    if record.tag == LogTag.LINK:
        return (
            f"[LINK] order={record.order_id} "
            f"channel={record.ticket_channel_id} customer={record.customer_id}"
        )
    raise ValueError(f"Unknown log tag: {record.tag}")


def parse_record(line: Optional[str]) -> Optional[LogRecord]:
    """Parse a log line back into a record, None for anything that is not a valid record"""
    if not line:
        return None
    text = line.strip()

    match = CLAIM_LINE_RE.match(text)
    if match:
        order_id = normalize_order_id(match.group("order"))
        if order_id is None:
            return None
        return LogRecord.claim(order_id, int(match.group("booster")))

    match = LINK_LINE_RE.match(text)
    if match:
        order_id = normalize_order_id(match.group("order"))
        if order_id is None:
            return None
        return LogRecord.link(order_id, int(match.group("channel")), int(match.group("customer")))

    return None


class LogStore(ABC):
    """Storage substrate for the event log"""

    @abstractmethod
    async def append(self, line: str) -> LogEntry:
        """Persist one line; raises on failure"""

    @abstractmethod
    async def fetch_recent(self, limit: int) -> List[LogEntry]:
        """Return up to `limit` most recent entries in any order; raises LogStoreUnavailable"""


class InMemoryLogStore(LogStore):
    """Process-local store with an incrementing sequence, used for tests and dry runs"""

    def __init__(self, lines: Optional[List[str]] = None):
        self.entries: List[LogEntry] = []
        for line in lines or []:
            self._add(line)

    def _add(self, line: str) -> LogEntry:
        entry = LogEntry(sequence=len(self.entries) + 1, text=line)
        self.entries.append(entry)
        return entry

    async def append(self, line: str) -> LogEntry:
        return self._add(line)

    async def fetch_recent(self, limit: int) -> List[LogEntry]:
        return list(reversed(self.entries[-limit:])) if limit > 0 else []

    @property
    def lines(self) -> List[str]:
        return [entry.text for entry in self.entries]


class EventLog:
    """
    Best-effort writer and ordered reader over a LogStore.

    Appends never raise: by the time a record is written the registry has
    already changed, so a failed append is logged and the in-memory state
    stays ahead of the log until the next successful write.
    """

    def __init__(self, store: LogStore):
        self.store = store

    async def append(self, record: LogRecord) -> Optional[LogEntry]:
        return await self._append_line(format_record(record), kind=record.tag.value)

    async def note(self, text: str) -> Optional[LogEntry]:
        """Append a human-readable line that recovery ignores"""
        return await self._append_line(text, kind="NOTE")

    async def _append_line(self, line: str, kind: str) -> Optional[LogEntry]:
        try:
            entry = await self.store.append(line)
            logger.debug(f"📝 LOG_APPENDED: {kind} seq={entry.sequence}")
            return entry
        except Exception as e:
            logger.error(f"❌ LOG_APPEND_FAILED: {kind} line={line!r}: {e}")
            return None

    async def read_all(self, limit: int) -> List[LogEntry]:
        """Most recent `limit` entries, oldest first by sequence number"""
        try:
            entries = await self.store.fetch_recent(limit)
        except LogStoreUnavailable:
            raise
        except Exception as e:
            raise LogStoreUnavailable(str(e)) from e
        return sorted(entries, key=lambda entry: entry.sequence)
