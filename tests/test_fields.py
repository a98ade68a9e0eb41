"""Tests for checkout field validators and the step field table."""
import pytest

from storefront.checkout import Step, STEP_FIELDS, field_spec, step_of
from storefront.checkout.fields import validate_email, validate_phone, validate_pin_code, required


class TestValidators:
    @pytest.mark.parametrize("value, error", [
        ("", "Email is required"),
        ("bad-email", "Please enter a valid email address"),
        ("a b@c.de", "Please enter a valid email address"),
        ("jane@example.com", None),
    ])
    def test_email(self, value, error):
        assert validate_email(value) == error

    @pytest.mark.parametrize("value, error", [
        ("", "Phone number is required"),
        ("5876543210", "Please enter a valid 10-digit phone number"),
        ("987654321", "Please enter a valid 10-digit phone number"),
        ("9876543210", None),
        ("6000000000", None),
    ])
    def test_phone(self, value, error):
        assert validate_phone(value) == error

    @pytest.mark.parametrize("value, error", [
        ("", "PIN code is required"),
        ("60005", "Please enter a valid 6-digit PIN code"),
        ("60005a", "Please enter a valid 6-digit PIN code"),
        ("600058", None),
    ])
    def test_pin_code(self, value, error):
        assert validate_pin_code(value) == error

    def test_required_ignores_whitespace(self):
        assert required("City")("   ") == "City is required"
        assert required("City")("Chennai") is None


class TestFieldTable:
    def test_focus_order_of_shipping(self):
        assert [spec.path for spec in STEP_FIELDS[Step.SHIPPING]] == [
            "shipping.first_name",
            "shipping.last_name",
            "shipping.company",
            "shipping.address",
            "shipping.apartment",
            "shipping.pin_code",
            "shipping.city",
            "shipping.state",
        ]

    def test_gate_fields(self):
        gated = {spec.path for specs in STEP_FIELDS.values() for spec in specs if spec.gate}
        assert "customer.name" not in gated
        assert "shipping.company" not in gated
        assert {"customer.email", "customer.phone", "shipping.pin_code", "payment_method"} <= gated

    def test_review_has_no_fields(self):
        assert STEP_FIELDS[Step.REVIEW] == ()

    def test_lookup_helpers(self):
        assert step_of("shipping.city") is Step.SHIPPING
        assert field_spec("customer.email").label == "Email"
        with pytest.raises(KeyError):
            field_spec("customer.fax")

    def test_step_titles(self):
        assert [s.title for s in Step] == ["Contact", "Shipping", "Payment", "Review"]
