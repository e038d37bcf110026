"""
Lockout Module - Black Box Interface

Purpose: Track failed PIN attempts and temporarily lock accounts
Interface: check_lockout(), record_success(), record_failure()
Hidden: Threshold arithmetic, lazy lock expiry, admin exemption

Lock state lives on the account record, so checks are O(1) and expiry is
evaluated on the next access rather than by a sweeper.
"""

from .policy import LockoutPolicy, LockoutStatus

__all__ = ["LockoutPolicy", "LockoutStatus"]
