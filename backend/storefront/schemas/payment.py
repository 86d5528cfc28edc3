"""
Storefront API — Payment Request/Response Schemas
===================================================

What:  Pydantic models for the two payment endpoints.
How:   FastAPI validates the JSON body against PaymentRequest before the
       handler runs, so a missing nested field (e.g. shippingAddress.city)
       is rejected with 400 and never reaches the payment processor.

Wire names are camelCase (customerDetails, clientSecret, ...) to match the
mobile client; Python attributes are snake_case via aliases.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class CustomerDetails(_WireModel):
    name: str = Field(min_length=1, max_length=256)
    email: str = Field(min_length=3, max_length=512)
    phone: str = Field(min_length=1, max_length=32)


class BillingDetails(_WireModel):
    """Billing address; becomes the remote customer's `address`."""
    line1: str = Field(min_length=1, max_length=256)
    line2: Optional[str] = Field(default=None, max_length=256)
    city: str = Field(min_length=1, max_length=128)
    state: str = Field(min_length=1, max_length=128)
    postal_code: str = Field(min_length=1, max_length=32)
    country: str = Field(min_length=2, max_length=64)


class ShippingAddress(BillingDetails):
    """Shipping address plus recipient name; becomes the customer's `shipping`."""
    name: str = Field(min_length=1, max_length=256)


class PaymentRequest(_WireModel):
    """
    What:  Body of POST /api/v1/payments and POST /api/v1/payment.

    amount is in minor currency units (cents). currency is an ISO 4217 code;
    when omitted the configured default currency applies.
    """
    amount: int = Field(gt=0, le=99_999_999, description="Amount in minor currency units")
    currency: Optional[str] = Field(
        default=None,
        min_length=3,
        max_length=3,
        description="Three-letter ISO currency code",
    )
    customer_details: CustomerDetails = Field(alias="customerDetails")
    shipping_address: ShippingAddress = Field(alias="shippingAddress")
    billing_details: BillingDetails = Field(alias="billingDetails")

    @field_validator("currency")
    @classmethod
    def normalize_currency(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        if not v.isalpha():
            raise ValueError(f"Invalid currency '{v}'. Expected a three-letter ISO code")
        return v.lower()


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class CardPaymentResponse(_WireModel):
    """Returned by POST /api/v1/payments (card-only checkout profile)."""
    client_secret: str = Field(alias="clientSecret")
    ephemeral_key: str = Field(alias="ephemeralKey")
    customer: str
    publishable_key: str = Field(alias="publishableKey")


class AutomaticPaymentResponse(_WireModel):
    """Returned by POST /api/v1/payment (automatic payment methods profile)."""
    payment_intent: str = Field(alias="paymentIntent", description="Payment intent client secret")
    ephemeral_key: str = Field(alias="ephemeralKey")
    customer: str
