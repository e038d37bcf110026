"""
Shared pytest fixtures for posauth tests.

This module provides common fixtures including:
- FakeClock: controllable time source for lockout and liveness tests
- Seeded accounts and an in-memory account store
- Redis mocks for store/audit tests
- A fully wired AuthOrchestrator
"""

import os
import sys
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from posauth.config.provider import LockoutConfig
from posauth.modules.auth import AuditLog, AuthOrchestrator
from posauth.modules.credentials import BcryptVerifier, hash_pin
from posauth.modules.lockout import LockoutPolicy
from posauth.modules.session import LivenessCheck, SessionRegistry
from posauth.modules.storage import Account, InMemoryAccountStore, Role

# Lowest bcrypt cost keeps the suite fast
ADMIN_ID = "1234567"
ADMIN_PIN = "1234"
CASHIER_ID = "7654321"
CASHIER_PIN = "5678"
INACTIVE_ID = "1111111"

ADMIN_HASH = hash_pin(ADMIN_PIN, rounds=4)
CASHIER_HASH = hash_pin(CASHIER_PIN, rounds=4)


# =============================================================================
# Clock
# =============================================================================


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = datetime(2024, 3, 1, 9, 0, tzinfo=UTC)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


# =============================================================================
# Accounts and stores
# =============================================================================


def make_accounts():
    return [
        Account(
            employee_id=ADMIN_ID,
            pin_hash=ADMIN_HASH,
            role=Role.ADMIN,
            first_name="Ada",
            last_name="Admin",
        ),
        Account(
            employee_id=CASHIER_ID,
            pin_hash=CASHIER_HASH,
            role=Role.CASHIER,
            first_name="Carl",
            last_name="Cashier",
        ),
        Account(
            employee_id=INACTIVE_ID,
            pin_hash=CASHIER_HASH,
            role=Role.CASHIER,
            first_name="Ina",
            last_name="Inactive",
            is_active=False,
        ),
    ]


@pytest.fixture
def store():
    """In-memory store seeded with an admin, a cashier and an inactive cashier."""
    return InMemoryAccountStore(make_accounts())


@pytest.fixture
def orchestrator(store, clock):
    """Auth stack with default policy (4 attempts, 15 min lock, 6 min liveness)."""
    return AuthOrchestrator(
        store=store,
        verifier=BcryptVerifier(),
        lockout=LockoutPolicy(store, LockoutConfig()),
        registry=SessionRegistry(store),
        liveness=LivenessCheck(timedelta(minutes=6)),
        audit=AuditLog(),
        clock=clock,
    )


# =============================================================================
# Redis Mocking Infrastructure
# =============================================================================


@pytest.fixture
def mock_redis():
    """Create a mock Redis client for async operations."""
    redis = AsyncMock()

    # Basic operations
    redis.get = AsyncMock(return_value=None)
    redis.set = AsyncMock()
    redis.delete = AsyncMock(return_value=1)
    redis.eval = AsyncMock(return_value=1)

    # Hash operations
    redis.hgetall = AsyncMock(return_value={})
    redis.hget = AsyncMock(return_value=None)
    redis.hincrby = AsyncMock(return_value=1)

    # List operations
    redis.lpush = AsyncMock()
    redis.ltrim = AsyncMock()

    # Pipeline support: commands queue synchronously, execute() is awaited
    pipeline = MagicMock()
    pipeline.execute = AsyncMock(return_value=[])
    redis.pipeline = MagicMock(return_value=pipeline)

    return redis


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: Integration tests requiring infrastructure"
    )
