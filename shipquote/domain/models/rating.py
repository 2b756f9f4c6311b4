"""Carrier-agnostic rating models.

Requests are validated on construction and frozen afterwards. Quotes carry
optional fields only when the carrier actually supplied them.
"""

from datetime import date
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

WeightUnit = Literal["LB", "KG"]
DimensionUnit = Literal["IN", "CM"]


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


# --- Request side ---

class Address(_Frozen):
    """Shipping address."""
    address_lines: List[str] = Field(min_length=1, max_length=3)
    city: str = Field(min_length=1)
    state_province_code: Optional[str] = Field(None, min_length=1, max_length=10)
    postal_code: str = Field(min_length=1)
    country_code: str = Field(min_length=2, max_length=2)  # ISO 3166-1 alpha-2
    is_residential: bool = False

    @field_validator("address_lines")
    @classmethod
    def strip_lines(cls, v: List[str]) -> List[str]:
        lines = [line.strip() for line in v]
        if any(not line for line in lines):
            raise ValueError("address lines cannot be empty or whitespace")
        return lines

    @field_validator("city", "postal_code", "state_province_code", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("country_code")
    @classmethod
    def upper_country(cls, v: str) -> str:
        return v.upper()


class PackageWeight(_Frozen):
    value: float = Field(gt=0)
    unit: WeightUnit


class PackageDimensions(_Frozen):
    length: float = Field(gt=0)
    width: float = Field(gt=0)
    height: float = Field(gt=0)
    unit: DimensionUnit


class Package(_Frozen):
    """A single parcel. Dimensions are optional for weight-only rating."""
    weight: PackageWeight
    dimensions: Optional[PackageDimensions] = None
    packaging_type: Optional[str] = None  # Carrier-specific, e.g. '02' for UPS
    declared_value: Optional[float] = Field(None, gt=0)
    currency: str = Field("USD", min_length=3, max_length=3)  # ISO 4217

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, v: str) -> str:
        return v.upper()


class RateRequest(_Frozen):
    """Rate request for one shipment."""
    origin: Address
    destination: Address
    packages: List[Package] = Field(min_length=1)
    shipper_name: Optional[str] = None
    account_number: Optional[str] = None
    service_code: Optional[str] = None  # Omit to shop all services
    pickup_date: Optional[date] = None
    request_negotiated_rates: bool = True

    @field_validator("shipper_name", "account_number", "service_code", mode="before")
    @classmethod
    def strip_optional(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v


# --- Response side ---

class BillingWeight(_Frozen):
    value: float = Field(gt=0)
    unit: WeightUnit


class RateQuote(_Frozen):
    """One normalized quote for one carrier service."""
    carrier: str
    service_code: str
    service_name: str
    total_charges: float = Field(ge=0)
    currency: str = Field(min_length=3, max_length=3)
    base_charges: Optional[float] = Field(None, ge=0)
    service_charges: Optional[float] = Field(None, ge=0)
    negotiated_charges: Optional[float] = Field(None, ge=0)
    billing_weight: Optional[BillingWeight] = None
    transit_days: Optional[int] = Field(None, gt=0)
    guaranteed_delivery: Optional[bool] = None
    estimated_delivery_date: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, v: str) -> str:
        return v.upper()


class RateResponse(_Frozen):
    quotes: List[RateQuote]
    warnings: Optional[List[str]] = None  # Non-fatal carrier alerts
    transaction_id: Optional[str] = None
