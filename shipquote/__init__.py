"""shipquote: carrier rate-quote integration client.

Fetches shipping-rate quotes from carrier APIs and normalizes them into a
carrier-agnostic model, with token caching and classified retries.
"""

__version__ = "0.1.0"
