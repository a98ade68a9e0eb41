"""Pydantic models for the in-progress checkout."""
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class PaymentMethod(str, Enum):
    RAZORPAY = "razorpay"
    COD = "cod"


class _Form(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, validate_assignment=True)


class CustomerInfo(_Form):
    email: str = ""
    phone: str = ""
    name: str = ""


class ShippingInfo(_Form):
    first_name: str = ""
    last_name: str = ""
    company: str = ""
    address: str = ""
    apartment: str = ""
    city: str = ""  # filled from pin_code when the lookup succeeds
    state: str = ""
    pin_code: str = ""
    country: str = "India"


class CheckoutData(_Form):
    """Everything the checkout collects. Lives only for one checkout session."""
    customer: CustomerInfo = Field(default_factory=CustomerInfo)
    shipping: ShippingInfo = Field(default_factory=ShippingInfo)
    payment_method: PaymentMethod = PaymentMethod.RAZORPAY

    def cleaned_customer(self) -> dict[str, str]:
        """Trimmed contact for the order payload; blank name is omitted."""
        c = self.customer
        cleaned = {"email": c.email.strip(), "phone": c.phone.strip()}
        if c.name.strip():
            cleaned["name"] = c.name.strip()
        return cleaned

    def cleaned_shipping(self) -> dict[str, str]:
        s = self.shipping
        cleaned = {
            "firstName": s.first_name.strip(),
            "address": s.address.strip(),
            "city": s.city.strip(),
            "state": s.state.strip(),
            "pinCode": s.pin_code.strip(),
            "country": s.country.strip(),
        }
        for key, value in (("lastName", s.last_name), ("company", s.company), ("apartment", s.apartment)):
            if value.strip():
                cleaned[key] = value.strip()
        return cleaned
