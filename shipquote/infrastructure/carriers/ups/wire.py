"""UPS Rating API response envelope.

Only the envelope is checked strictly; individual rated shipments are read
by the mapper, which tolerates the optional blocks UPS omits.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, field_validator


def _as_list(v: Any) -> Any:
    # UPS returns a bare object instead of a one-element array
    if isinstance(v, dict):
        return [v]
    return v


class _Wire(BaseModel):
    model_config = ConfigDict(extra="allow")


class UpsCodeDescription(_Wire):
    Code: str
    Description: str


class UpsTransactionReference(_Wire):
    CustomerContext: Optional[str] = None


class UpsResponseHeader(_Wire):
    ResponseStatus: UpsCodeDescription
    Alert: Optional[List[UpsCodeDescription]] = None
    TransactionReference: Optional[UpsTransactionReference] = None

    @field_validator("Alert", mode="before")
    @classmethod
    def alerts_as_list(cls, v: Any) -> Any:
        return _as_list(v)


class UpsRateResponseBody(_Wire):
    Response: UpsResponseHeader
    RatedShipment: List[Dict[str, Any]]

    @field_validator("RatedShipment", mode="before")
    @classmethod
    def shipments_as_list(cls, v: Any) -> Any:
        return _as_list(v)


class UpsRateResponseEnvelope(_Wire):
    RateResponse: UpsRateResponseBody
