"""
Session Module - Black Box Interface

Purpose: Bind accounts to terminals and judge whether a binding is still in use
Interface: SessionRegistry (current_session, bind_session, touch, clear,
find_by_token), LivenessCheck.is_alive()
Hidden: Token format, store write primitive, staleness arithmetic

Replaceable with any session backend that preserves at most one active
session per account.
"""

from .liveness import LivenessCheck
from .registry import SessionInfo, SessionRaceError, SessionRegistry

__all__ = ["LivenessCheck", "SessionInfo", "SessionRaceError", "SessionRegistry"]
