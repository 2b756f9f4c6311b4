"""UPS carrier adapter (Rating API + OAuth client credentials)."""

from shipquote.infrastructure.carriers.ups.client import UpsRatingClient

__all__ = ["UpsRatingClient"]
