"""
Claim Registry
Maps each order id to the booster who claimed it. First claim wins and is
never overwritten or removed for the lifetime of the process.
"""

import logging
from dataclasses import replace
from typing import Dict, Optional

from models import ClaimRecord, ClaimResult, ClaimStatus
from utils.keyed_lock import KeyedLock

logger = logging.getLogger(__name__)


class ClaimRegistry:
    """
    In-memory claim table with an explicit per-order critical section.

    try_claim holds the order's lock around the check-and-set, so
    overlapping claim handlers for the same order always resolve to one
    CLAIMED and the rest ALREADY_CLAIMED.
    """

    def __init__(self, lock: Optional[KeyedLock] = None):
        self._claims: Dict[str, ClaimRecord] = {}
        self._lock = lock if lock is not None else KeyedLock("claim_registry")
        self._position = 0

    async def try_claim(self, order_id: str, claimant_id: int, position: Optional[int] = None) -> ClaimResult:
        """
        Claim an order for a booster.

        Args:
            order_id: Normalized order id
            claimant_id: Discord user id of the booster
            position: Log position of the claim, defaults to the next local position

        Returns:
            ClaimResult, CLAIMED with the new claimant or ALREADY_CLAIMED with
            the existing one (no mutation)
        """
        async with self._lock.hold(order_id):
            return self._claim_if_absent(order_id, claimant_id, position)

    def restore(self, order_id: str, claimant_id: int, position: int) -> ClaimResult:
        """First-write-wins apply for log replay; only used before events are processed"""
        return self._claim_if_absent(order_id, claimant_id, position)

    def _claim_if_absent(self, order_id: str, claimant_id: int, position: Optional[int]) -> ClaimResult:
        existing = self._claims.get(order_id)
        if existing is not None:
            return ClaimResult(ClaimStatus.ALREADY_CLAIMED, order_id, existing.claimant_id)

        if position is None:
            position = self._position + 1
        self._position = max(self._position, position)

        self._claims[order_id] = ClaimRecord(order_id=order_id, claimant_id=claimant_id, claimed_at=position)
        logger.info(f"🔒 CLAIM_RECORDED: {order_id} -> {claimant_id} (position {position})")
        return ClaimResult(ClaimStatus.CLAIMED, order_id, claimant_id)

    def set_position(self, order_id: str, position: int) -> None:
        """Re-stamp a live claim with the sequence of the log entry that recorded it"""
        record = self._claims.get(order_id)
        if record is None:
            return
        self._claims[order_id] = replace(record, claimed_at=position)
        self._position = max(self._position, position)

    def claimant_of(self, order_id: str) -> Optional[int]:
        record = self._claims.get(order_id)
        return record.claimant_id if record else None

    def record_of(self, order_id: str) -> Optional[ClaimRecord]:
        return self._claims.get(order_id)

    def snapshot(self) -> Dict[str, int]:
        """order id -> claimant id, for status views and determinism checks"""
        return {order_id: record.claimant_id for order_id, record in self._claims.items()}

    def __contains__(self, order_id: str) -> bool:
        return order_id in self._claims

    def __len__(self) -> int:
        return len(self._claims)
