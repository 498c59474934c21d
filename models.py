"""
Booster Job Board - In-Memory Data Model
========================================

Plain value types shared by the registries, the event log and the workflow
coordinator:
- Claim and ticket-link records (the state folded from the event log)
- Log records and raw log entries (the durable event log)
- Inbound chat events, decoupled from the chat platform library

Nothing here touches the network; the chat gateway fills in the inbound
event objects and keeps the platform object in ``raw``.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional


# ============================================================================
# ENUMS - Workflow Constants
# ============================================================================

class LogTag(Enum):
    """Discriminant of an event log record"""
    CLAIM = "CLAIM"
    LINK = "LINK"


class ClaimStatus(Enum):
    """Outcome of a claim attempt"""
    CLAIMED = "claimed"
    ALREADY_CLAIMED = "already_claimed"


class LinkStatus(Enum):
    """Outcome of a ticket link attempt"""
    LINKED = "linked"
    ALREADY_LINKED = "already_linked"
    CHANNEL_BOUND = "channel_bound"  # channel already linked to another order


class ButtonAction(Enum):
    """Actions carried in a job posting button custom id"""
    CLAIM = "claim"
    LOG = "log"


# ============================================================================
# REGISTRY RECORDS
# ============================================================================

@dataclass(frozen=True)
class ClaimRecord:
    """A worker's claim on an order. claimed_at is a log position, not wall time."""
    order_id: str
    claimant_id: int
    claimed_at: int


@dataclass(frozen=True)
class TicketLink:
    """Binding between an order and the ticket channel that first mentioned it"""
    order_id: str
    ticket_channel_id: int
    customer_id: int
    linked_at: int = 0


@dataclass(frozen=True)
class ClaimResult:
    """Response model for ClaimRegistry.try_claim"""
    status: ClaimStatus
    order_id: str
    claimant_id: int

    @property
    def claimed(self) -> bool:
        return self.status == ClaimStatus.CLAIMED


@dataclass(frozen=True)
class LinkResult:
    """Response model for TicketLinkRegistry.try_link

    ``link`` is the new link on LINKED, otherwise the existing link that
    blocked the attempt.
    """
    status: LinkStatus
    link: TicketLink

    @property
    def linked(self) -> bool:
        return self.status == LinkStatus.LINKED


# ============================================================================
# EVENT LOG
# ============================================================================

@dataclass(frozen=True)
class LogRecord:
    """A structured event log record (CLAIM or LINK)"""
    tag: LogTag
    order_id: str
    claimant_id: Optional[int] = None
    ticket_channel_id: Optional[int] = None
    customer_id: Optional[int] = None

    @classmethod
    def claim(cls, order_id: str, claimant_id: int) -> "LogRecord":
        return cls(tag=LogTag.CLAIM, order_id=order_id, claimant_id=claimant_id)

    @classmethod
    def link(cls, order_id: str, ticket_channel_id: int, customer_id: int) -> "LogRecord":
        return cls(
            tag=LogTag.LINK,
            order_id=order_id,
            ticket_channel_id=ticket_channel_id,
            customer_id=customer_id,
        )


@dataclass(frozen=True)
class LogEntry:
    """A raw line from the log store with its monotonic sequence number"""
    sequence: int
    text: str


# ============================================================================
# INBOUND CHAT EVENTS
# ============================================================================

@dataclass
class EmbedData:
    """Platform-neutral view of a rich embed"""
    title: str = ""
    description: str = ""
    raw: Optional[dict] = None


@dataclass
class InboundMessage:
    """A message-created event"""
    message_id: int
    channel_id: int
    author_id: int
    content: str = ""
    category_id: Optional[int] = None
    author_is_bot: bool = False
    is_webhook: bool = False
    is_own: bool = False
    embeds: List[EmbedData] = field(default_factory=list)
    mentions: List[int] = field(default_factory=list)
    has_components: bool = False
    raw: Any = None


@dataclass
class ButtonPress:
    """A button interaction event"""
    custom_id: str
    user_id: int
    user_name: str
    channel_id: Optional[int]
    message_id: Optional[int] = None
    embeds: List[EmbedData] = field(default_factory=list)
    raw: Any = None
