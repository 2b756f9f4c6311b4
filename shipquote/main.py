"""Main entry point for the shipquote application.

Sets up the Typer CLI application, performs dependency injection (Composition Root),
defines CLI commands, and delegates execution to the CommandHandler.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import typer
from typing_extensions import Annotated

# --- Core Layer ---
from shipquote.core.carrier_registry import CarrierRegistry
from shipquote.core.command_handler import EXIT_USAGE_ERROR, CommandHandler
from shipquote.core.services.rating_service import RatingService

# --- Infrastructure Layer ---
# Config
from shipquote.infrastructure.config.settings import get_config, load_configuration
# UI
from shipquote.infrastructure.cli.display import ConsoleDisplay
# Carriers
from shipquote.infrastructure.carriers.ups import UpsRatingClient
from shipquote.infrastructure.carriers.ups.config import get_ups_config
# Transport
from shipquote.infrastructure.transport.httpx_transport import HttpxTransport
# Monitoring
from shipquote.infrastructure.monitoring.logger_setup import DEFAULT_LOG_FORMAT, setup_logging

logger = logging.getLogger(__name__)

# Atlanta -> New York, one 5 lb box
DEMO_REQUEST: Dict[str, Any] = {
    "origin": {
        "address_lines": ["123 Main St"],
        "city": "Atlanta",
        "state_province_code": "GA",
        "postal_code": "30301",
        "country_code": "US",
        "is_residential": False,
    },
    "destination": {
        "address_lines": ["456 Oak Ave"],
        "city": "New York",
        "state_province_code": "NY",
        "postal_code": "10001",
        "country_code": "US",
        "is_residential": True,
    },
    "packages": [
        {
            "weight": {"value": 5.0, "unit": "LB"},
            "dimensions": {"length": 10, "width": 8, "height": 6, "unit": "IN"},
            "currency": "USD",
        }
    ],
    "shipper_name": "Acme Corp",
    "request_negotiated_rates": True,
}

# --- Dependency Injection Container (Manual) ---

_dependencies: Optional[Dict[str, Any]] = None


def create_dependencies() -> Dict[str, Any]:
    """Creates and wires up all dependencies for the application.

    This acts as the Composition Root.
    """
    # 1. Load Configuration First
    load_configuration()
    setup_logging(
        log_level=get_config("logging.level", "WARNING"),
        log_format=get_config("logging.format", DEFAULT_LOG_FORMAT),
        log_file=get_config("logging.file"),
    )
    logger.info("Initializing application dependencies...")

    dependencies: Dict[str, Any] = {}

    # 2. Infrastructure adapters
    dependencies["ui"] = ConsoleDisplay()
    dependencies["transport"] = HttpxTransport()

    # 3. Carrier adapters
    registry = CarrierRegistry()
    registry.register(UpsRatingClient(config=get_ups_config(), transport=dependencies["transport"]))
    dependencies["registry"] = registry

    # 4. Core services
    dependencies["rating_service"] = RatingService(registry=registry)
    dependencies["command_handler"] = CommandHandler(
        rating_service=dependencies["rating_service"],
        ui=dependencies["ui"],
    )
    logger.info("All dependencies initialized successfully.")
    return dependencies


def get_dependencies() -> Dict[str, Any]:
    global _dependencies
    if _dependencies is None:
        _dependencies = create_dependencies()
    return _dependencies


def reset_dependencies() -> None:
    """Drops the wired instances; the next command rebuilds them."""
    global _dependencies
    _dependencies = None


# --- Typer App Definition ---
app = typer.Typer(
    name="shipquote",
    help="shipquote: shipping rate quotes from carrier APIs (UPS).",
    add_completion=False,
)


def _run(coro_factory) -> int:
    """Runs a handler coroutine and closes pooled connections on the same loop."""
    transport = get_dependencies()["transport"]

    async def runner() -> int:
        try:
            return await coro_factory()
        finally:
            await transport.close()

    return asyncio.run(runner())


def _load_request(path: Optional[Path]) -> Dict[str, Any]:
    if path is None:
        return dict(DEMO_REQUEST)
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError("request file must contain a JSON object")
    return data


# --- CLI Commands ---

@app.command()
def rates(
    file: Annotated[Optional[Path], typer.Option(
        "--file", "-f", exists=True, file_okay=True, dir_okay=False, readable=True,
        help="JSON rate request. Uses a built-in Atlanta -> New York demo when omitted.")] = None,
    carrier: Annotated[str, typer.Option("--carrier", "-c", help="Carrier code.")] = "ups",
    service: Annotated[Optional[str], typer.Option(
        "--service", "-s", help="Rate a single service code instead of shopping all services.")] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print the normalized response as JSON.")] = False,
):
    """Get shipping rate quotes."""
    deps = get_dependencies()
    try:
        request = _load_request(file)
    except (OSError, ValueError) as e:
        logger.error(f"Could not read request file {file}: {e}")
        deps["ui"].display_error(f"Could not read request file: {e}")
        raise typer.Exit(code=EXIT_USAGE_ERROR)
    if service:
        request["service_code"] = service

    handler: CommandHandler = deps["command_handler"]
    exit_code = _run(lambda: handler.handle_rates(carrier, request, as_json=as_json))
    raise typer.Exit(code=exit_code)


@app.command()
def carriers():
    """List registered carriers."""
    handler: CommandHandler = get_dependencies()["command_handler"]
    raise typer.Exit(code=handler.handle_list_carriers())


# --- Main Execution Guard ---

def cli_entry_point():
    """Function to be called by the script entry point in pyproject.toml."""
    app()


if __name__ == "__main__":
    cli_entry_point()
