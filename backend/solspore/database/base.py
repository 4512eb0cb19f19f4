"""Base document for every SolSpore collection."""

from datetime import datetime

from beanie import Document
from pydantic import Field

from solspore.utils.time_utils import utc_now


class BaseDocument(Document):
    """
    Document with created_at/updated_at stamps.

    Only save() refreshes updated_at. Conditional raw updates issued by the
    ledger and settlement services set their own timestamps.
    """

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    async def save(self, *args, **kwargs):
        self.updated_at = utc_now()
        return await super().save(*args, **kwargs)

    class Settings:
        use_state_management = True
