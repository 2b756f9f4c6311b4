import json
import logging
from typing import Any, Dict, List, Optional

from rich.box import HEAVY, ROUNDED, SIMPLE
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from shipquote.domain.interfaces.user_interface import UserInterface
from shipquote.domain.models.rating import RateQuote, RateResponse

logger = logging.getLogger(__name__)


def _money(amount: Optional[float], currency: str) -> str:
    if amount is None:
        return "-"
    return f"{amount:,.2f} {currency}"


class ConsoleDisplay(UserInterface):
    """Concrete implementation of UserInterface using the rich library for console output.

    Results go to stdout. Errors, warnings and info panels go to stderr so
    ``rates --json`` output can be piped.
    """

    def __init__(self, console: Optional[Console] = None, err_console: Optional[Console] = None):
        """Initializes the rich consoles."""
        self._console = console or Console()
        self._err_console = err_console or Console(stderr=True)

    @property
    def console(self) -> Console:
        """Get the Rich console instance for direct operations."""
        return self._console

    def display_rates(self, response: RateResponse, **kwargs: Any) -> None:
        """Displays quotes as a table, or as JSON when ``as_json`` is set.

        Args:
            response: The rate response to render.
            **kwargs: ``as_json`` (bool) switches to machine-readable output.
        """
        if kwargs.get("as_json"):
            self._console.print_json(response.model_dump_json(exclude_none=True))
            return

        if not response.quotes:
            self.display_info("No rates returned.")
            return

        table = Table(title="Shipping Rates", box=ROUNDED, header_style="bold cyan")
        table.add_column("Carrier", style="bold")
        table.add_column("Service")
        table.add_column("Code", justify="center")
        table.add_column("Total", justify="right", style="green")
        table.add_column("Negotiated", justify="right")
        table.add_column("Transit", justify="right")

        for quote in sorted(response.quotes, key=lambda q: q.total_charges):
            table.add_row(
                quote.carrier.upper(),
                quote.service_name,
                quote.service_code,
                _money(quote.total_charges, quote.currency),
                _money(quote.negotiated_charges, quote.currency),
                self._transit(quote),
            )

        self._console.print(table)
        if response.transaction_id:
            self._console.print(Text(f"Transaction: {response.transaction_id}", style="dim"))

    @staticmethod
    def _transit(quote: RateQuote) -> str:
        if quote.estimated_delivery_date:
            return quote.estimated_delivery_date
        if quote.transit_days:
            suffix = " (guaranteed)" if quote.guaranteed_delivery else ""
            return f"{quote.transit_days} day{'s' if quote.transit_days != 1 else ''}{suffix}"
        return "-"

    def display_carriers(self, carriers: List[str]) -> None:
        table = Table(title="Carriers", box=SIMPLE)
        table.add_column("Code", style="bold")
        for code in carriers:
            table.add_row(code)
        self._console.print(table)

    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message in a distinct style.

        Args:
            error_message: The error message to display.
        """
        panel = Panel(
            Text(error_message, style="white"),
            title="[bold red]Error[/bold red]",
            border_style="red",
            box=HEAVY,
            padding=(0, 1)
        )
        self._err_console.print(panel)

    def display_details(self, details: Dict[str, Any]) -> None:
        self._err_console.print_json(json.dumps(details, default=str))

    def display_info(self, info_message: str, **kwargs: Any) -> None:
        """Displays an informational message.

        Args:
            info_message: The informational message to display.
        """
        panel = Panel(
            Text(info_message, style="white"),
            title="[bold blue]Info[/bold blue]",
            border_style="blue",
            box=SIMPLE,
            padding=(0, 1)
        )
        self._err_console.print(panel)

    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        """Displays a warning message.

        Args:
            warning_message: The warning message to display.
        """
        logger.debug(f"Display warning: {warning_message}")
        panel = Panel(
            Text(warning_message, style="white"),
            title="[bold yellow]Warning[/bold yellow]",
            border_style="yellow",
            box=HEAVY,
            padding=(0, 1)
        )
        self._err_console.print(panel)
