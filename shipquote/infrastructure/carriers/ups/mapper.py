"""UPS mapper: converts between domain models and UPS Rating API payloads.

Pure functions, no I/O. UPS encodes every number as a string: weights and
dimensions carry one fractional digit, piece counts are integers, money is a
decimal string next to a currency code.
"""

from typing import Any, Dict, List, Mapping, Optional

from shipquote.domain.models.rating import Address, BillingWeight, Package, RateQuote, RateRequest, RateResponse
from shipquote.infrastructure.carriers.ups.config import UpsConfig
from shipquote.infrastructure.carriers.ups.constants import (
    CARRIER_CODE,
    DEFAULT_PACKAGING_CODE,
    DIMENSION_UNIT_MAP,
    DIMENSION_UNIT_NAMES,
    MAX_ADDRESS_LINES,
    PACKAGING_CODES,
    SERVICE_CODES,
    WEIGHT_UNIT_MAP,
    WEIGHT_UNIT_NAMES,
)


def format_measure(value: float) -> str:
    """UPS wants measures with exactly one fractional digit."""
    return f"{value:.1f}"


def resolve_service_name(code: str, description: Optional[str] = None) -> str:
    """Static table first, then the carrier's description, then the raw code."""
    return SERVICE_CODES.get(code) or description or code


# --- Domain -> UPS ---

def to_ups_address(address: Address, residential_indicator: bool = False) -> Dict[str, Any]:
    ups_address: Dict[str, Any] = {
        "AddressLine": list(address.address_lines[:MAX_ADDRESS_LINES]),
        "City": address.city,
        "PostalCode": address.postal_code,
        "CountryCode": address.country_code,
    }
    if address.state_province_code:
        ups_address["StateProvinceCode"] = address.state_province_code
    if residential_indicator and address.is_residential:
        ups_address["ResidentialAddressIndicator"] = ""
    return ups_address


def to_ups_package(package: Package) -> Dict[str, Any]:
    if package.packaging_type:
        packaging = {"Code": package.packaging_type}
        if package.packaging_type in PACKAGING_CODES:
            packaging["Description"] = PACKAGING_CODES[package.packaging_type]
    else:
        packaging = {"Code": DEFAULT_PACKAGING_CODE, "Description": PACKAGING_CODES[DEFAULT_PACKAGING_CODE]}

    weight = package.weight
    ups_package: Dict[str, Any] = {
        "PackagingType": packaging,
        "PackageWeight": {
            "UnitOfMeasurement": {
                "Code": WEIGHT_UNIT_MAP.get(weight.unit, weight.unit),
                "Description": WEIGHT_UNIT_NAMES[weight.unit],
            },
            "Weight": format_measure(weight.value),
        },
    }

    dims = package.dimensions
    if dims:
        ups_package["Dimensions"] = {
            "UnitOfMeasurement": {
                "Code": DIMENSION_UNIT_MAP.get(dims.unit, dims.unit),
                "Description": DIMENSION_UNIT_NAMES[dims.unit],
            },
            "Length": format_measure(dims.length),
            "Width": format_measure(dims.width),
            "Height": format_measure(dims.height),
        }

    return ups_package


def to_ups_rate_request(request: RateRequest, config: UpsConfig) -> Dict[str, Any]:
    """Maps a domain RateRequest to the UPS RateRequest body."""
    packages = [to_ups_package(pkg) for pkg in request.packages]

    shipper: Dict[str, Any] = {"Address": to_ups_address(request.origin)}
    ship_from: Dict[str, Any] = {"Address": to_ups_address(request.origin)}
    if request.shipper_name:
        shipper["Name"] = request.shipper_name
        ship_from["Name"] = request.shipper_name
    shipper_number = request.account_number or config.account_number
    if shipper_number:
        shipper["ShipperNumber"] = shipper_number

    body: Dict[str, Any] = {
        "Request": {
            "SubVersion": config.api_version.lstrip("vV"),
            "TransactionReference": {"CustomerContext": "Rating"},
        },
        "Shipper": shipper,
        "ShipTo": {"Address": to_ups_address(request.destination, residential_indicator=True)},
        "ShipFrom": ship_from,
        "Package": packages,
        "NumOfPieces": str(len(packages)),
    }

    if request.service_code:
        service = {"Code": request.service_code}
        if request.service_code in SERVICE_CODES:
            service["Description"] = SERVICE_CODES[request.service_code]
        body["Service"] = service

    if request.request_negotiated_rates and shipper_number:
        body["ShipmentRatingOptions"] = {"NegotiatedRatesIndicator": ""}

    return {"RateRequest": body}


# --- UPS -> Domain ---

def _money(charges: Optional[Mapping[str, Any]]) -> Optional[float]:
    if not charges or charges.get("MonetaryValue") in (None, ""):
        return None
    return float(charges["MonetaryValue"])


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def to_rate_quote(rated_shipment: Mapping[str, Any]) -> RateQuote:
    """Converts one UPS RatedShipment into a RateQuote.

    Raises:
        KeyError, TypeError, ValueError: If mandatory blocks are missing or malformed.
    """
    service = rated_shipment["Service"]
    service_code = str(service["Code"])
    total = rated_shipment["TotalCharges"]

    quote: Dict[str, Any] = {
        "carrier": CARRIER_CODE,
        "service_code": service_code,
        "service_name": resolve_service_name(service_code, service.get("Description")),
        "total_charges": float(total["MonetaryValue"]),
        "currency": total["CurrencyCode"],
    }

    base = _money(rated_shipment.get("TransportationCharges"))
    if base is not None:
        quote["base_charges"] = base
    options = _money(rated_shipment.get("ServiceOptionsCharges"))
    if options is not None:
        quote["service_charges"] = options
    negotiated = rated_shipment.get("NegotiatedRateCharges")
    if negotiated:
        negotiated_total = _money(negotiated.get("TotalCharge"))
        if negotiated_total is not None:
            quote["negotiated_charges"] = negotiated_total

    billing = rated_shipment.get("BillingWeight")
    if billing and billing.get("Weight"):
        unit_code = (billing.get("UnitOfMeasurement") or {}).get("Code")
        quote["billing_weight"] = BillingWeight(
            value=float(billing["Weight"]),
            unit="LB" if unit_code == "LBS" else "KG",
        )

    guaranteed = rated_shipment.get("GuaranteedDelivery") or {}
    if guaranteed.get("BusinessDaysInTransit"):
        quote["transit_days"] = int(guaranteed["BusinessDaysInTransit"])
        quote["guaranteed_delivery"] = True

    arrival = (
        ((rated_shipment.get("TimeInTransit") or {}).get("ServiceSummary") or {}).get("EstimatedArrival") or {}
    )
    arrival_date = (arrival.get("Arrival") or {}).get("Date")
    if arrival_date:
        quote["estimated_delivery_date"] = arrival_date
        if arrival.get("BusinessDaysInTransit"):
            quote["transit_days"] = int(arrival["BusinessDaysInTransit"])

    alerts = [a.get("Description") for a in _as_list(rated_shipment.get("RatedShipmentAlert")) if a.get("Description")]
    if alerts:
        quote["metadata"] = {"alerts": alerts}

    return RateQuote(**quote)


def from_ups_rate_response(payload: Mapping[str, Any], transaction_id: Optional[str] = None) -> RateResponse:
    """Maps a UPS rate response body to a domain RateResponse."""
    body = payload["RateResponse"]
    quotes = [to_rate_quote(shipment) for shipment in _as_list(body["RatedShipment"])]

    alerts = _as_list(body.get("Response", {}).get("Alert"))
    warnings = [alert["Description"] for alert in alerts if alert.get("Description")] if alerts else None

    return RateResponse(quotes=quotes, warnings=warnings, transaction_id=transaction_id)
