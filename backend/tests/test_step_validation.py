"""
Tests for server-side validation of the registration form steps.
"""

import pytest

from app.core.errors import ValidationError
from app.models.registration import PaymentMethod
from app.schemas.registration import StepPayload
from app.services.step_validation import (
    validate_affiliation, validate_identity, validate_payment, validate_step,
)

IDENTITY = dict(
    country="Kenya",
    first_name="Wanjiru",
    last_name="Kamau",
    email="wanjiru@example.org",
    phone_number="+254700000000",
)


def field_of(call, **kwargs):
    with pytest.raises(ValidationError) as exc:
        call(**kwargs)
    return exc.value.field


def test_identity_ok():
    validate_identity(**IDENTITY)


@pytest.mark.parametrize("missing", ["country", "first_name", "last_name", "email", "phone_number"])
def test_identity_missing_field(missing):
    assert field_of(validate_identity, **{**IDENTITY, missing: " "}) == missing


@pytest.mark.parametrize("email", ["plainaddress", "a@b", "a b@example.com", "@example.com"])
def test_identity_bad_email(email):
    assert field_of(validate_identity, **{**IDENTITY, "email": email}) == "email"


def test_identity_without_personal_info_checks_country_only():
    validate_identity(country="Uganda", personal_info=False)
    assert field_of(validate_identity, country="", personal_info=False) == "country"


def test_affiliation():
    validate_affiliation(organization="UNICEF", position="Officer")
    assert field_of(validate_affiliation, organization="", position="Officer") == "organization"
    assert field_of(validate_affiliation, organization="UNICEF", position=None) == "position"


@pytest.mark.parametrize("method", ["mobile", "bank"])
def test_evidence_required_for_transfers(method):
    assert field_of(validate_payment, payment_method=method, has_evidence=False) == "evidence_file"
    assert validate_payment(payment_method=method, has_evidence=True) == PaymentMethod(method)


def test_evidence_not_required_on_admin_path():
    assert validate_payment(payment_method="bank", has_evidence=False, require_evidence=False) == PaymentMethod.BANK


def test_cash_needs_nothing_else():
    assert validate_payment(payment_method="cash", has_evidence=False) == PaymentMethod.CASH


def test_group_payment_size():
    assert field_of(validate_payment, payment_method="group_payment", has_evidence=False) == "group_size"
    assert field_of(validate_payment, payment_method="group_payment", has_evidence=False, group_size=0) == "group_size"
    assert validate_payment(payment_method="group_payment", has_evidence=False, group_size=1) == PaymentMethod.GROUP_PAYMENT


def test_org_paid_reference():
    assert field_of(validate_payment, payment_method="org_paid", has_evidence=False) == "organization_reference"
    assert validate_payment(
        payment_method="org_paid", has_evidence=False, organization_reference="LPO-77",
    ) == PaymentMethod.ORG_PAID


@pytest.mark.parametrize("method", [None, "", "crypto", "CASH"])
def test_unknown_payment_method(method):
    assert field_of(validate_payment, payment_method=method, has_evidence=True) == "payment_method"


def test_validate_step_dispatch():
    validate_step("identity", StepPayload(**IDENTITY))
    validate_step("affiliation", StepPayload(organization="AU", position="Director"))
    validate_step("payment", StepPayload(payment_method="bank", has_evidence=True))

    with pytest.raises(ValidationError) as exc:
        validate_step("identity", StepPayload(country="Kenya"))
    assert exc.value.field == "first_name"

    with pytest.raises(ValidationError) as exc:
        validate_step("review", StepPayload())
    assert exc.value.field == "step"
