"""
State machine enums and helpers for held authorizations and schedule phases.
"""

from subscriptions.state_machines.phase_tags import PhaseTags
from subscriptions.state_machines.states import (
    AuthorizationStatus,
    Phase,
    TERMINAL_AUTHORIZATION_STATUSES,
    can_transition,
)

__all__ = [
    "AuthorizationStatus",
    "Phase",
    "PhaseTags",
    "TERMINAL_AUTHORIZATION_STATUSES",
    "can_transition",
]
