"""UPS static lookup tables and API constants."""

from enum import Enum

CARRIER_CODE = "ups"

# Service codes and human-readable names
SERVICE_CODES = {
    # Domestic US services
    "01": "UPS Next Day Air",
    "02": "UPS 2nd Day Air",
    "03": "UPS Ground",
    "12": "UPS 3 Day Select",
    "13": "UPS Next Day Air Saver",
    "14": "UPS Next Day Air Early",
    "59": "UPS 2nd Day Air A.M.",
    # International services
    "07": "UPS Worldwide Express",
    "08": "UPS Worldwide Expedited",
    "11": "UPS Standard",
    "54": "UPS Worldwide Express Plus",
    "65": "UPS Worldwide Saver",
    "96": "UPS Worldwide Express Freight",
    # SurePost
    "92": "UPS SurePost - Less than 1 lb",
    "93": "UPS SurePost - 1 lb or Greater",
    "94": "UPS SurePost - BPM",
    "95": "UPS SurePost - Media Mail",
}

PACKAGING_CODES = {
    "00": "Unknown",
    "01": "UPS Letter",
    "02": "Customer Supplied Package",
    "03": "Tube",
    "04": "PAK",
    "21": "UPS Express Box",
    "24": "UPS 25KG Box",
    "25": "UPS 10KG Box",
    "30": "Pallet",
}

DEFAULT_PACKAGING_CODE = "02"

# Domain unit -> UPS unit code
WEIGHT_UNIT_MAP = {"LB": "LBS", "KG": "KG"}
DIMENSION_UNIT_MAP = {"IN": "IN", "CM": "CM"}
WEIGHT_UNIT_NAMES = {"LB": "Pounds", "KG": "Kilograms"}
DIMENSION_UNIT_NAMES = {"IN": "Inches", "CM": "Centimeters"}

MAX_ADDRESS_LINES = 3


class RequestOption(str, Enum):
    """Rating API request options."""
    RATE = "Rate"
    SHOP = "Shop"


DEFAULT_REQUEST_OPTION = RequestOption.SHOP
RATING_PATH = "/api/rating/{version}/{option}"

RATE_REQUEST_TIMEOUT_SECONDS = 15.0
