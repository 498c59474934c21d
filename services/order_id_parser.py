"""
Order ID Parser
Extracts the canonical order identifier (TD-XXXXXX) from job postings,
ticket messages and button payloads
"""

import re
import logging
from typing import Iterable, Optional

from models import EmbedData

logger = logging.getLogger(__name__)

ORDER_ID_PREFIX = "TD-"
MIN_SUFFIX_LENGTH = 6

# Free text: prefix is case-insensitive, at least six id characters after it
ORDER_ID_RE = re.compile(r"\b(TD-[A-Z0-9-]{%d,})" % MIN_SUFFIX_LENGTH, re.IGNORECASE)

# Job posting embeds carry a "**Order ID:** TD-..." line
ORDER_ID_LABEL_RE = re.compile(
    r"Order\s*ID\s*:\s*\**\s*(TD-[A-Z0-9-]{%d,})" % MIN_SUFFIX_LENGTH,
    re.IGNORECASE,
)

# System-produced ids (button payloads, log lines) have no length floor
SYSTEM_ORDER_ID_RE = re.compile(r"^TD-[A-Z0-9-]+$")


def normalize_order_id(value: Optional[str]) -> Optional[str]:
    """
    Normalize an order id produced by the bot itself.

    Returns:
        The trimmed, uppercased id, or None if it is not a TD- identifier

    Examples:
        >>> normalize_order_id("  td-001 ")
        'TD-001'
        >>> normalize_order_id("claim") is None
        True
    """
    if not value:
        return None
    token = value.strip().upper()
    if not SYSTEM_ORDER_ID_RE.match(token):
        return None
    return token


def _first_match(pattern: re.Pattern, text: str) -> Optional[str]:
    for match in pattern.finditer(text):
        # "TD-ABC123-." style trailing hyphens belong to the punctuation
        token = match.group(1).rstrip("-").upper()
        if len(token) - len(ORDER_ID_PREFIX) >= MIN_SUFFIX_LENGTH:
            return token
    return None


def extract_order_id(*texts: Optional[str]) -> Optional[str]:
    """Return the first order id found, scanning texts in the given priority order"""
    for text in texts:
        if not text:
            continue
        token = _first_match(ORDER_ID_RE, text)
        if token:
            return token
    return None


def extract_from_message(content: Optional[str], embeds: Iterable[EmbedData] = ()) -> Optional[str]:
    """
    Extract the order id from a chat message.

    Priority order:
        1. "Order ID:" label in the first embed's description
        2. first embed's title
        3. first embed's description
        4. message content
    """
    first = next(iter(embeds), None)
    if first is not None:
        labelled = _first_match(ORDER_ID_LABEL_RE, first.description or "")
        if labelled:
            return labelled
        order_id = extract_order_id(first.title, first.description)
        if order_id:
            return order_id

    order_id = extract_order_id(content)
    if order_id is None:
        logger.debug("No order id found in message")
    return order_id
