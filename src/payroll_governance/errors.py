"""Error taxonomy for configuration governance and entitlement calculations.

Every error carries a stable ``code`` and the HTTP status the API layer
renders it with, so clients can branch on the cause.
"""

from __future__ import annotations

from typing import Any


class PayrollConfigError(Exception):
    """Base class for all governance and calculation failures."""

    code: str = "PAYROLL_CONFIG_ERROR"
    http_status: int = 400

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.context = context
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Return the error payload rendered by the API."""
        return {"detail": self.message, "code": self.code}


class NotFoundError(PayrollConfigError):
    """Referenced configuration item does not exist."""

    code = "NOT_FOUND"
    http_status = 404

    def __init__(self, label: str, item_id: Any):
        self.label = label
        self.item_id = item_id
        super().__init__(f"{label} with ID {item_id} not found", item_id=str(item_id))


class AlreadyExistsError(PayrollConfigError):
    """Identifying field collides with an existing item of the same kind."""

    code = "ALREADY_EXISTS"
    http_status = 409

    def __init__(self, label: str, value: str):
        self.label = label
        self.value = value
        super().__init__(f"{label} '{value}' already exists", value=value)


class InvalidRangeError(PayrollConfigError):
    """A numeric invariant (salary bounds, rate bounds, gross >= base) is violated."""

    code = "INVALID_RANGE"
    http_status = 422


class InvalidStateError(PayrollConfigError):
    """An operation that requires DRAFT was attempted on a decided item."""

    code = "INVALID_STATE"
    http_status = 409

    def __init__(self, message: str, status: str | None = None):
        self.status = status
        super().__init__(message, status=status)


class EditForbiddenError(InvalidStateError):
    """Update or delete attempted on an item that is no longer DRAFT."""

    code = "EDIT_FORBIDDEN"
    http_status = 403


class InvalidApproverError(PayrollConfigError):
    """Approver id is missing, malformed, or does not resolve to a principal."""

    code = "INVALID_APPROVER"
    http_status = 400


class SelfApprovalError(PayrollConfigError):
    """Approver is the principal who created the item."""

    code = "SELF_APPROVAL"
    http_status = 403

    def __init__(self) -> None:
        super().__init__(
            "Self-approval not allowed. Configuration must be approved by a "
            "different manager."
        )


class InvalidInputError(PayrollConfigError):
    """Malformed or out-of-domain primitive input to a calculation."""

    code = "INVALID_INPUT"
    http_status = 400
