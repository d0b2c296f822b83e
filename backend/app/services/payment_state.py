"""
Payment state machine for event registrations.

    pending ──► paid | cancelled | failed
    paid / completed ──► pending | cancelled      (administrative revert)
    failed ──► pending | cancelled
    cancelled ──► (terminal; re-registering creates a new registration)

Re-applying the current status is always a no-op. `has_paid` is never stored
independently of the status: it is derived from (status, method) so the two
cannot drift apart.
"""

from app.core.errors import ConflictError, ValidationError
from app.models.registration import PaymentMethod, PaymentStatus

TRANSITIONS: dict[PaymentStatus, frozenset[PaymentStatus]] = {
    PaymentStatus.PENDING: frozenset({PaymentStatus.PAID, PaymentStatus.CANCELLED, PaymentStatus.FAILED}),
    PaymentStatus.PAID: frozenset({PaymentStatus.PENDING, PaymentStatus.CANCELLED}),
    PaymentStatus.COMPLETED: frozenset({PaymentStatus.PENDING, PaymentStatus.CANCELLED}),
    PaymentStatus.FAILED: frozenset({PaymentStatus.PENDING, PaymentStatus.CANCELLED}),
    PaymentStatus.CANCELLED: frozenset(),
}

# Statuses finance may set through the payment-status update
FINANCE_SETTABLE = frozenset({
    PaymentStatus.PENDING,
    PaymentStatus.PAID,
    PaymentStatus.CANCELLED,
    PaymentStatus.FAILED,
})

# Methods whose payment evidence must be on file before submission completes
EVIDENCE_REQUIRED_METHODS = frozenset({PaymentMethod.MOBILE, PaymentMethod.BANK})


def parse_status(value: str, allowed=FINANCE_SETTABLE) -> PaymentStatus:
    try:
        status = PaymentStatus(value)
    except ValueError:
        status = None
    if status is None or status not in allowed:
        choices = ", ".join(sorted(s.value for s in allowed))
        raise ValidationError(f"Payment status must be one of: {choices}", field="payment_status")
    return status


def can_transition(current: PaymentStatus, target: PaymentStatus) -> bool:
    return current == target or target in TRANSITIONS[current]


def ensure_transition(current: PaymentStatus, target: PaymentStatus) -> None:
    if not can_transition(current, target):
        if current == PaymentStatus.CANCELLED:
            raise ConflictError(
                "Registration is cancelled; register again instead",
                field="payment_status",
            )
        raise ConflictError(
            f"Cannot change payment status from {current.value} to {target.value}",
            field="payment_status",
        )


def derive_has_paid(status: PaymentStatus, method) -> bool:
    """
    Paid/completed are paid. Cancelled/failed never are. A pending org_paid
    registration counts as paid on the organization's claim until finance
    confirms or fails it.
    """
    if status in (PaymentStatus.PAID, PaymentStatus.COMPLETED):
        return True
    if status in (PaymentStatus.CANCELLED, PaymentStatus.FAILED):
        return False
    return method == PaymentMethod.ORG_PAID
