"""Interface that every carrier adapter implements.

Core services depend on this port only; concrete adapters (UPS today) live
under ``shipquote.infrastructure.carriers``.
"""

import abc
from typing import Any, Mapping, Union

from shipquote.domain.models.rating import RateRequest, RateResponse


class CarrierAdapter(abc.ABC):
    """Abstract Base Class for carrier rating integrations."""

    #: Unique, lower-case carrier code (e.g., "ups").
    carrier_code: str = ""

    @abc.abstractmethod
    async def get_rates(self, request: Union[RateRequest, Mapping[str, Any]]) -> RateResponse:
        """Gets shipping rates for the given request.

        Args:
            request: A RateRequest, or a mapping to be validated as one.

        Returns:
            Normalized rate quotes from the carrier.

        Raises:
            CarrierError: Classified failure of the last attempt.
        """
        pass

    @abc.abstractmethod
    def invalidate_auth(self) -> None:
        """Drops any cached credentials. Idempotent."""
        pass
