"""Registry of carrier adapters keyed by carrier code."""

import logging
from typing import Dict, List

from shipquote.domain.interfaces.carrier_adapter import CarrierAdapter
from shipquote.domain.models.errors import CarrierNotFoundError

logger = logging.getLogger(__name__)


class CarrierRegistry:
    """Resolves carrier codes (case-insensitive) to adapter instances."""

    def __init__(self):
        self._adapters: Dict[str, CarrierAdapter] = {}

    def register(self, adapter: CarrierAdapter) -> None:
        """Adds an adapter; a later registration for the same code replaces it."""
        code = adapter.carrier_code.lower()
        if not code:
            raise ValueError("Adapter has no carrier_code")
        if code in self._adapters:
            logger.warning(f"Replacing adapter registered for carrier '{code}'")
        self._adapters[code] = adapter
        logger.debug(f"Registered carrier adapter '{code}': {adapter.__class__.__name__}")

    def resolve(self, carrier_code: str) -> CarrierAdapter:
        """Returns the adapter for ``carrier_code``.

        Raises:
            CarrierNotFoundError: If nothing is registered under that code.
        """
        adapter = self._adapters.get(carrier_code.strip().lower())
        if adapter is None:
            raise CarrierNotFoundError(carrier_code, self.list_carriers())
        return adapter

    def has(self, carrier_code: str) -> bool:
        return carrier_code.strip().lower() in self._adapters

    def list_carriers(self) -> List[str]:
        return sorted(self._adapters)

    def all_adapters(self) -> List[CarrierAdapter]:
        return [self._adapters[code] for code in self.list_carriers()]
