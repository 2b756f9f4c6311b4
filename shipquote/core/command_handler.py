"""Command Handler: Orchestrates CLI command execution.

Receives commands from the main entry point (main.py), delegates the work to
the RatingService and renders results or classified errors through the
UserInterface. Handlers return a process exit code.
"""

import logging
from typing import Any, Mapping, Union

from shipquote.core.services.rating_service import RatingService
from shipquote.domain.interfaces.user_interface import UserInterface
from shipquote.domain.models.errors import CarrierError, CarrierNotFoundError
from shipquote.domain.models.rating import RateRequest

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_CARRIER_ERROR = 1
EXIT_USAGE_ERROR = 2


class CommandHandler:
    """Handles incoming commands and delegates to the rating service."""

    def __init__(self, rating_service: RatingService, ui: UserInterface):
        """Initializes the CommandHandler with required services."""
        self.rating_service = rating_service
        self.ui = ui

    async def handle_rates(
        self,
        carrier_code: str,
        request: Union[RateRequest, Mapping[str, Any]],
        as_json: bool = False,
    ) -> int:
        """Handles the 'rates' command."""
        logger.info(f"Handling 'rates' command for carrier: {carrier_code}")
        try:
            response = await self.rating_service.get_rates(carrier_code, request)
        except CarrierNotFoundError as e:
            logger.info(str(e))
            self.ui.display_error(str(e))
            return EXIT_USAGE_ERROR
        except CarrierError as e:
            logger.error(f"Rate lookup failed: {e!r}")
            self.ui.display_error(f"[{e.kind.value}] {e.message}")
            self.ui.display_details(e.to_dict())
            return EXIT_CARRIER_ERROR

        for warning in response.warnings or []:
            self.ui.display_warning(warning)
        self.ui.display_rates(response, as_json=as_json)
        return EXIT_OK

    def handle_list_carriers(self) -> int:
        """Handles the 'carriers' command."""
        self.ui.display_carriers(self.rating_service.available_carriers())
        return EXIT_OK
