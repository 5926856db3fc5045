"""Shared utilities: datetime, generators, nested-path lookup."""

from app.shared.utils.datetime import (
    ensure_utc,
    utc_now,
    window_start,
)
from app.shared.utils.generators import generate_cuid
from app.shared.utils.paths import MISSING, get_nested_value

__all__ = [
    "MISSING",
    "generate_cuid",
    "get_nested_value",
    "utc_now",
    "ensure_utc",
    "window_start",
]
