"""
Composition root for the login stack.

Policy values come from a ConfigProvider; callers receive the
AuthenticationService facade and never the individual components.
"""

import logging
from typing import Any, Optional

from ...config.provider import ConfigProvider
from ..clock import Clock, utcnow
from ..credentials import BcryptVerifier, CredentialVerifier
from ..lockout import LockoutPolicy
from ..session import LivenessCheck, SessionRegistry
from ..storage import AccountStore, RedisAccountStore
from .audit import AuditLog
from .orchestrator import AuthOrchestrator
from .service import AuthenticationService

logger = logging.getLogger(__name__)


class AuthFactory:
    """Wires store, verifier, lockout, session registry and audit into an orchestrator."""

    @staticmethod
    def build(
        config_provider: ConfigProvider,
        redis_client: Optional[Any] = None,
        store: Optional[AccountStore] = None,
        verifier: Optional[CredentialVerifier] = None,
        clock: Clock = utcnow,
    ) -> AuthenticationService:
        """
        Assemble an AuthOrchestrator.

        Args:
            config_provider: Source of lockout and session policy
            redis_client: Redis client for the account store and audit trail
            store: Explicit account store (overrides the Redis store)
            verifier: Credential verifier (defaults to bcrypt)
            clock: Time source

        Returns:
            The orchestrator behind the AuthenticationService interface

        Raises:
            ValueError: Neither a store nor a Redis client was given
        """
        if store is None:
            if redis_client is None:
                raise ValueError("Either an account store or a Redis client is required")
            store = RedisAccountStore(redis_client)

        lockout_config = config_provider.get_lockout_config()
        session_config = config_provider.get_session_config()

        logger.info(
            f"Building authentication stack: lockout after {lockout_config.threshold} failures "
            f"for {lockout_config.lockout_minutes} min, liveness window "
            f"{session_config.liveness_window_minutes} min"
        )

        return AuthOrchestrator(
            store=store,
            verifier=verifier or BcryptVerifier(),
            lockout=LockoutPolicy(store, lockout_config),
            registry=SessionRegistry(store),
            liveness=LivenessCheck(session_config.liveness_window),
            audit=AuditLog(redis_client),
            clock=clock,
            bind_retries=session_config.bind_retries,
        )
