"""
Configured phase tag strings.

The schedule writes a ``phase`` tag into every phase's metadata. The tag
strings come from configuration (``PHASE_STATUS_TRIAL`` and friends) so
they can match tags already present on live schedules. They are validated
once at startup and converted to the ``Phase`` enum; event handlers only
ever see ``Phase`` members.

Usage:
    tags = PhaseTags.from_settings(settings)
    tags.tag_for(Phase.HELD)   # "held"
    tags.parse("held")         # Phase.HELD
    tags.parse("unknown")      # None
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from django.core.exceptions import ImproperlyConfigured

from subscriptions.state_machines.states import Phase

SETTING_NAMES = {
    Phase.TRIAL: "PHASE_STATUS_TRIAL",
    Phase.HELD: "PHASE_STATUS_HELD",
    Phase.PAID: "PHASE_STATUS_PAID",
}


@dataclass(frozen=True)
class PhaseTags:
    """Bidirectional mapping between ``Phase`` members and metadata tags."""

    trial: str = Phase.TRIAL.value
    held: str = Phase.HELD.value
    paid: str = Phase.PAID.value

    def __post_init__(self) -> None:
        tags = {Phase.TRIAL: self.trial, Phase.HELD: self.held, Phase.PAID: self.paid}

        for phase, tag in tags.items():
            if not isinstance(tag, str) or not tag.strip():
                raise ImproperlyConfigured(
                    f"{SETTING_NAMES[phase]} must be a non-empty string"
                )

        if len(set(tags.values())) != len(tags):
            raise ImproperlyConfigured(
                "PHASE_STATUS_TRIAL, PHASE_STATUS_HELD and PHASE_STATUS_PAID "
                f"must be distinct, got {sorted(tags.values())}"
            )

    @classmethod
    def from_settings(cls, settings: Any) -> PhaseTags:
        """
        Build the mapping from Django settings.

        Raises:
            ImproperlyConfigured: a tag is missing, blank or duplicated
        """
        values = {}
        for phase, name in SETTING_NAMES.items():
            if not hasattr(settings, name):
                raise ImproperlyConfigured(f"{name} is not configured")
            values[phase.value] = getattr(settings, name)
        return cls(**values)

    def tag_for(self, phase: Phase) -> str:
        return getattr(self, Phase(phase).value)

    def parse(self, tag: str | None) -> Phase | None:
        """Return the phase a metadata tag stands for, or None."""
        for phase in Phase:
            if tag == self.tag_for(phase):
                return phase
        return None
