"""
posauth - Terminal-bound employee authentication for point-of-sale registers.

Architecture:
- Each module is self-contained with clear interfaces
- Modules are completely replaceable
- No module knows the internals of another
- All communication through defined interfaces

Modules:
- credentials: One-way PIN verification
- lockout: Failed-attempt tracking and temporary account locks
- session: Session registry and heartbeat liveness
- storage: Account record persistence
- auth: Login orchestration, validation, heartbeat and logout
- api: Transport request/response models
- config: Runtime configuration
"""

__version__ = "1.0.0"
