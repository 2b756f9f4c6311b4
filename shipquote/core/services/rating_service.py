"""Application service for rate shopping.

Routes a rate request to the adapter registered for the requested carrier.
Errors from adapters propagate unchanged; presentation is the caller's job.
"""

import logging
from typing import Any, List, Mapping, Union

from shipquote.core.carrier_registry import CarrierRegistry
from shipquote.domain.models.rating import RateRequest, RateResponse

logger = logging.getLogger(__name__)


class RatingService:
    """Handles rate lookups across registered carriers."""

    def __init__(self, registry: CarrierRegistry):
        self.registry = registry

    async def get_rates(
        self, carrier_code: str, request: Union[RateRequest, Mapping[str, Any]]
    ) -> RateResponse:
        """Gets rates from one carrier.

        Raises:
            CarrierNotFoundError: Unknown carrier code.
            CarrierError: Classified adapter failure.
        """
        adapter = self.registry.resolve(carrier_code)
        logger.info(f"Requesting rates from '{adapter.carrier_code}'")
        response = await adapter.get_rates(request)
        logger.debug(f"'{adapter.carrier_code}' returned {len(response.quotes)} quote(s)")
        return response

    def available_carriers(self) -> List[str]:
        return self.registry.list_carriers()
