"""Custom id helpers for the Claim / Log buttons on job postings"""

from typing import Optional, Tuple

from models import ButtonAction
from services.order_id_parser import normalize_order_id

CLAIM_LABEL = "Claim"
CLAIMED_LABEL = "Claimed"
LOG_LABEL = "Log"


def build_custom_id(action: ButtonAction, order_id: str) -> str:
    """claim:TD-XXXXXX / log:TD-XXXXXX"""
    return f"{action.value}:{order_id}"


def parse_custom_id(custom_id: Optional[str]) -> Optional[Tuple[ButtonAction, str]]:
    """
    Split a button custom id into (action, order id).

    Returns None for buttons that do not belong to the job board.
    """
    if not custom_id or ":" not in custom_id:
        return None
    action_value, _, raw_order_id = custom_id.partition(":")
    try:
        action = ButtonAction(action_value.strip().lower())
    except ValueError:
        return None
    order_id = normalize_order_id(raw_order_id)
    if order_id is None:
        return None
    return action, order_id
