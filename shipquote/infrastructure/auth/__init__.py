"""Carrier authentication: OAuth client-credentials token caching."""
