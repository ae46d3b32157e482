"""Coordination session state machine."""

from stellar_multisig.features.session.service import (
    CoordinationSession,
    SessionState,
)

__all__ = ["CoordinationSession", "SessionState"]
