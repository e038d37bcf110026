"""
Credentials Module - Black Box Interface

Purpose: One-way verification of a submitted PIN against a stored hash
Interface: CredentialVerifier.verify(), hash_pin()
Hidden: Hash algorithm, cost factor, encoding

Any verifier with a verify(secret, stored_hash) -> bool method can be
swapped in without affecting the orchestrator.
"""

from .verifier import BcryptVerifier, CredentialVerifier, hash_pin

__all__ = ["BcryptVerifier", "CredentialVerifier", "hash_pin"]
