"""Domain models: value objects, rating schemas and the error taxonomy."""
