"""ObjectId parsing for path and body parameters."""

from typing import Type

from beanie import PydanticObjectId
from bson import ObjectId

from solspore.exceptions import InvalidRequest, SolSporeError


def parse_object_id(value: str, error: Type[SolSporeError] = InvalidRequest) -> PydanticObjectId:
    """Parse ``value`` or raise ``error`` without touching the store."""
    if not isinstance(value, (str, ObjectId)) or not ObjectId.is_valid(value):
        raise error(f"Invalid id: {value!r}")
    return PydanticObjectId(value)
