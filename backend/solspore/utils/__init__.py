"""Shared helpers."""

from solspore.utils.ids import parse_object_id
from solspore.utils.retry import TRANSIENT_ERRORS, with_retry
from solspore.utils.time_utils import ensure_utc, to_naive_utc, utc_now

__all__ = [
    "parse_object_id",
    "TRANSIENT_ERRORS",
    "with_retry",
    "ensure_utc",
    "to_naive_utc",
    "utc_now",
]
