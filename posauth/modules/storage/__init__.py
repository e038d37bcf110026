"""
Storage Module - Black Box Interface

Purpose: Persist employee account records, including lockout and session state
Interface: AccountStore protocol, RedisAccountStore, InMemoryAccountStore
Hidden: Key layout, serialization, per-account write serialization

Can be replaced with any storage backend that honours the per-account
compare-and-set contract without affecting other modules.
"""

from .accounts import Account, AccountStore, Role
from .memory import InMemoryAccountStore
from .redis_store import RedisAccountStore

__all__ = ["Account", "AccountStore", "Role", "InMemoryAccountStore", "RedisAccountStore"]
