"""Configuration review state machine with transition validation."""

from __future__ import annotations

from enum import Enum

from payroll_governance.errors import InvalidStateError


class ConfigStatus(str, Enum):
    """Configuration review status values."""

    DRAFT = "draft"
    APPROVED = "approved"
    REJECTED = "rejected"


class ConfigStateMachine:
    """State machine shared by every governed configuration kind.

    Allowed transitions:
    - draft → approved
    - draft → rejected

    Approved and rejected are terminal; there is no path back to draft.
    """

    # Define valid transitions: {from_status: [allowed_to_statuses]}
    VALID_TRANSITIONS: dict[str, list[str]] = {
        ConfigStatus.DRAFT.value: [ConfigStatus.APPROVED.value, ConfigStatus.REJECTED.value],
        ConfigStatus.APPROVED.value: [],  # Terminal state
        ConfigStatus.REJECTED.value: [],  # Terminal state
    }

    # Statuses where fields may be edited and the item deleted
    MUTABLE = {ConfigStatus.DRAFT.value}

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(status_value(from_status), [])
        return status_value(to_status) in allowed

    @classmethod
    def validate_transition(
        cls, from_status: str, to_status: str, label: str = "configurations"
    ) -> None:
        """Validate a transition, raising InvalidStateError if invalid."""
        if not cls.can_transition(from_status, to_status):
            verb = "approved" if status_value(to_status) == ConfigStatus.APPROVED.value else "rejected"
            raise InvalidStateError(
                f"Cannot move {label} with status '{status_value(from_status)}' to "
                f"'{status_value(to_status)}'. Only DRAFT {label} can be {verb}.",
                status=status_value(from_status),
            )

    @classmethod
    def is_mutable(cls, status: str) -> bool:
        """Check if the item may still be edited or deleted."""
        return status_value(status) in cls.MUTABLE

    @classmethod
    def is_terminal(cls, status: str) -> bool:
        """Check if no further transition exists from this status."""
        return not cls.VALID_TRANSITIONS.get(status_value(status), [])

    @classmethod
    def get_next_statuses(cls, current_status: str) -> list[str]:
        """Get list of valid next statuses from current status."""
        return cls.VALID_TRANSITIONS.get(status_value(current_status), [])


def status_value(status: str) -> str:
    """Plain string value of a status given as enum member or string."""
    return status.value if isinstance(status, Enum) else str(status)
