"""Domain Layer: carrier-agnostic models, interfaces (ports) and events."""
