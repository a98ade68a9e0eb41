"""
Checkout steps and their field schema.

Each step declares its fields in focus order. A field descriptor carries its
validator and whether the step-advance gate requires it, so Enter-key
navigation, inline validation and gating all read from this one table.
"""
import re
from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, Optional

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^[6-9]\d{9}$")  # Indian mobile
PIN_CODE_PATTERN = re.compile(r"^\d{6}$")

Validator = Callable[[str], Optional[str]]


class Step(IntEnum):
    CONTACT = 1
    SHIPPING = 2
    PAYMENT = 3
    REVIEW = 4

    @property
    def title(self) -> str:
        return self.name.title()


def validate_email(value: str) -> str | None:
    if not value:
        return "Email is required"
    if not EMAIL_PATTERN.match(value):
        return "Please enter a valid email address"
    return None


def validate_phone(value: str) -> str | None:
    if not value:
        return "Phone number is required"
    if not PHONE_PATTERN.match(value):
        return "Please enter a valid 10-digit phone number"
    return None


def validate_pin_code(value: str) -> str | None:
    if not value:
        return "PIN code is required"
    if not PIN_CODE_PATTERN.match(value):
        return "Please enter a valid 6-digit PIN code"
    return None


def required(label: str) -> Validator:
    def _validate(value: str) -> str | None:
        return None if value.strip() else f"{label} is required"
    return _validate


@dataclass(frozen=True)
class FieldSpec:
    path: str
    label: str
    validator: Validator | None = None
    gate: bool = False  # must be non-empty to leave the step

    def validate(self, value: str) -> str | None:
        return self.validator(value) if self.validator else None


STEP_FIELDS: dict[Step, tuple[FieldSpec, ...]] = {
    Step.CONTACT: (
        FieldSpec("customer.email", "Email", validate_email, gate=True),
        FieldSpec("customer.phone", "Phone", validate_phone, gate=True),
        FieldSpec("customer.name", "Name"),
    ),
    Step.SHIPPING: (
        FieldSpec("shipping.first_name", "First name", required("First name"), gate=True),
        FieldSpec("shipping.last_name", "Last name"),
        FieldSpec("shipping.company", "Company"),
        FieldSpec("shipping.address", "Address", required("Address"), gate=True),
        FieldSpec("shipping.apartment", "Apartment"),
        FieldSpec("shipping.pin_code", "PIN code", validate_pin_code, gate=True),
        FieldSpec("shipping.city", "City", required("City"), gate=True),
        FieldSpec("shipping.state", "State", required("State"), gate=True),
    ),
    Step.PAYMENT: (
        FieldSpec("payment_method", "Payment method", gate=True),
    ),
    Step.REVIEW: (),
}

_BY_PATH = {spec.path: (step, spec) for step, specs in STEP_FIELDS.items() for spec in specs}


def field_spec(path: str) -> FieldSpec:
    try:
        return _BY_PATH[path][1]
    except KeyError:
        raise KeyError(f"Unknown checkout field: {path}") from None


def step_of(path: str) -> Step:
    return _BY_PATH[path][0]
