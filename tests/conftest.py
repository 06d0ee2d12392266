"""
Pytest configuration and fixtures for Capability Mint Authority tests.
"""

import threading

import pytest

from authority.service import IssuanceAuthority
from crypto.keys import PrivateKey
from crypto.verifier import CryptographicVerifier
from registry.capabilities import CapabilityRegistry
from registry.concurrency import TxContext
from registry.events import EventEmitter
from registry.schema import (
    CollectionParams,
    CommissionPolicy,
    PaymentPolicy,
    SigningPolicy,
)
from registry.storage import ObjectStore


ADMIN = "0xadmin"
CREATOR = "0xcreator"
MINTER = "0xminter"
BUYER = "0xbuyer"
RECEIVER = "0xreceiver"
PAYMENT_RECEIVER = "0xpayee"
COMMISSION_RECEIVER = "0xcommission"
STRANGER = "0xstranger"


@pytest.fixture
def store():
    """Create an empty object store."""
    return ObjectStore()


@pytest.fixture
def emitter():
    """Create an event emitter with the default in-memory sink."""
    return EventEmitter()


@pytest.fixture
def capabilities(store):
    return CapabilityRegistry(store)


@pytest.fixture
def ctx():
    """Factory for per-call contexts."""
    def make(sender: str = ADMIN) -> TxContext:
        return TxContext(sender=sender)
    return make


@pytest.fixture
def verifier():
    return CryptographicVerifier()


@pytest.fixture
def signing_key():
    """Off-chain signing authority key."""
    return PrivateKey()


@pytest.fixture
def authority():
    """Fresh, uninitialized authority."""
    return IssuanceAuthority()


@pytest.fixture
def initialized(authority, ctx):
    """Initialized authority plus its admin capability and version record."""
    admin_cap, version = authority.initialize(ctx(ADMIN))
    return authority, admin_cap, version


@pytest.fixture
def creator_cap(initialized, ctx):
    """Collection-creation capability held by CREATOR."""
    authority, admin_cap, _ = initialized
    return authority.create_collection_creation_authority(ctx(ADMIN), admin_cap.id, CREATOR)


@pytest.fixture
def make_collection(initialized, creator_cap, ctx):
    """Factory creating a collection as CREATOR with the given policy fields."""
    authority, _, _ = initialized

    def make(**overrides):
        fields = {"name": "Test Collection", "description": "For tests"}
        fields.update(overrides)
        return authority.create_collection(ctx(CREATOR), creator_cap.id, CollectionParams(**fields))

    return make


@pytest.fixture
def paid_policy():
    """Payment 100 to PAYMENT_RECEIVER with 20 commission to COMMISSION_RECEIVER."""
    return {
        "payment": PaymentPolicy(enabled=True, amount=100, receiver=PAYMENT_RECEIVER),
        "commission": CommissionPolicy(enabled=True, amount=20, receiver=COMMISSION_RECEIVER),
    }


@pytest.fixture
def signed_policy(signing_key):
    return {"signing": SigningPolicy(required=True, public_key=signing_key.public_key().hex)}


class ThreadSafeCounter:
    """Thread-safe counter for testing."""

    def __init__(self, initial_value: int = 0):
        self._value = initial_value
        self._lock = threading.Lock()

    def increment(self) -> int:
        with self._lock:
            self._value += 1
            return self._value

    def get_value(self) -> int:
        with self._lock:
            return self._value


@pytest.fixture
def thread_counter():
    """Create thread-safe counter for testing."""
    return ThreadSafeCounter()


# Test markers for different test categories
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "concurrency: mark test as a concurrency test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


# Pytest collection hooks
def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers based on test paths and names."""
    for item in items:
        if "unit" in str(item.path):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.path):
            item.add_marker(pytest.mark.integration)

        if "concurrent" in item.name or "thread" in item.name:
            item.add_marker(pytest.mark.concurrency)
