"""Interface for presenting rating results to the user.

Defines the contract for displaying quotes, errors, warnings and
informational messages, allowing different UI implementations
(e.g., rich console, plain JSON).
"""

import abc
from typing import Any, Dict, List

from shipquote.domain.models.rating import RateResponse


class UserInterface(abc.ABC):
    """Abstract Base Class for user interaction."""

    @abc.abstractmethod
    def display_rates(self, response: RateResponse, **kwargs: Any) -> None:
        """Displays a normalized rate response.

        Args:
            response: The quotes to render.
            **kwargs: Additional arguments for formatting (e.g., as_json).
        """
        pass

    @abc.abstractmethod
    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message to the user.

        Args:
            error_message: The error message string.
            **kwargs: Additional arguments, e.g. ``details`` for a structured payload.
        """
        pass

    @abc.abstractmethod
    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        """Displays a warning message to the user."""
        pass

    @abc.abstractmethod
    def display_info(self, info_message: str, **kwargs: Any) -> None:
        """Displays an informational message to the user."""
        pass

    def display_carriers(self, carriers: List[str]) -> None:
        """Displays the registered carrier codes."""
        self.display_info(f"Available carriers: {', '.join(carriers) or 'none'}")

    def display_details(self, details: Dict[str, Any]) -> None:
        """Displays a structured payload (e.g. an error's to_dict())."""
        pass
