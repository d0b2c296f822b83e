"""
Server-side validation of the three registration form steps.

The client walks the user through identity -> affiliation -> payment, but the
server sees only the final submission and re-checks every step here. Each
failure names exactly one field so the client can re-prompt for that field.
"""

import re
from typing import Optional

from app.core.errors import ValidationError
from app.models.registration import DelegateType, PaymentMethod
from app.services.payment_state import EVIDENCE_REQUIRED_METHODS

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

STEPS = ("identity", "affiliation", "payment")


def _require(value: Optional[str], field: str, message: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(message, field=field)
    return str(value).strip()


def validate_identity(
    *,
    country: Optional[str],
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    email: Optional[str] = None,
    phone_number: Optional[str] = None,
    personal_info: bool = True,
) -> None:
    if personal_info:
        _require(first_name, "first_name", "First name is required")
        _require(last_name, "last_name", "Last name is required")
        address = _require(email, "email", "Email is required")
        if not EMAIL_PATTERN.match(address):
            raise ValidationError("Please enter a valid email address", field="email")
        _require(phone_number, "phone_number", "Phone number is required")
    _require(country, "country", "Country is required")


def validate_affiliation(*, organization: Optional[str], position: Optional[str]) -> None:
    _require(organization, "organization", "Organization is required")
    _require(position, "position", "Position is required")


def parse_payment_method(value: Optional[str]) -> PaymentMethod:
    try:
        return PaymentMethod(value)
    except ValueError:
        choices = ", ".join(m.value for m in PaymentMethod)
        raise ValidationError(f"Payment method must be one of: {choices}", field="payment_method")


def parse_delegate_type(value: Optional[str]) -> Optional[DelegateType]:
    if value is None:
        return None
    try:
        return DelegateType(value)
    except ValueError:
        choices = ", ".join(d.value for d in DelegateType)
        raise ValidationError(f"Delegate type must be one of: {choices}", field="delegate_type")


def validate_payment(
    *,
    payment_method: Optional[str],
    has_evidence: bool,
    group_size: Optional[int] = None,
    organization_reference: Optional[str] = None,
    require_evidence: bool = True,
) -> PaymentMethod:
    method = parse_payment_method(payment_method)

    if method in EVIDENCE_REQUIRED_METHODS and require_evidence and not has_evidence:
        raise ValidationError(
            "Payment evidence is required for mobile and bank payments",
            field="evidence_file",
        )
    if method == PaymentMethod.GROUP_PAYMENT and (group_size is None or group_size < 1):
        raise ValidationError("Group size must be at least 1", field="group_size")
    if method == PaymentMethod.ORG_PAID:
        _require(
            organization_reference,
            "organization_reference",
            "Organization payment reference is required",
        )
    return method


def validate_step(step: str, payload) -> None:
    """Validate one step of a StepPayload, as the client stepper would submit it."""
    if step == "identity":
        validate_identity(
            country=payload.country,
            first_name=payload.first_name,
            last_name=payload.last_name,
            email=payload.email,
            phone_number=payload.phone_number,
        )
    elif step == "affiliation":
        validate_affiliation(organization=payload.organization, position=payload.position)
    elif step == "payment":
        validate_payment(
            payment_method=payload.payment_method,
            has_evidence=payload.has_evidence,
            group_size=payload.group_size,
            organization_reference=payload.organization_reference,
        )
    else:
        raise ValidationError(f"Unknown step. Expected one of: {', '.join(STEPS)}", field="step")
