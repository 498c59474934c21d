"""
Shared fixtures for the Booster Job Board tests
Coordinator fixtures are wired to an in-memory event log and a recording gateway
"""

import logging
import os
import sys

import pytest

# Tests import the flat top-level modules (config, models, services, ...)
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from services.event_log import EventLog, InMemoryLogStore
from services.claim_registry import ClaimRegistry
from services.ticket_link_registry import TicketLinkRegistry
from services.workflow_coordinator import WorkflowCoordinator
from tests.chat_test_foundation import (
    BOOSTER_CHANNEL_ID,
    TICKET_CATEGORY_ID,
    ChatEventFactory,
    RecordingGateway,
)

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


@pytest.fixture
def chat_factory():
    """Provide the chat event factory"""
    return ChatEventFactory()


@pytest.fixture
def gateway():
    return RecordingGateway()


@pytest.fixture
def log_store():
    return InMemoryLogStore()


@pytest.fixture
def event_log(log_store):
    return EventLog(log_store)


@pytest.fixture
def coordinator(gateway, event_log):
    """Coordinator with empty recovered state, ready for events"""
    coordinator = WorkflowCoordinator(
        gateway=gateway,
        event_log=event_log,
        booster_channel_id=BOOSTER_CHANNEL_ID,
        ticket_category_id=TICKET_CATEGORY_ID,
    )
    coordinator.install_state(ClaimRegistry(), TicketLinkRegistry())
    return coordinator
