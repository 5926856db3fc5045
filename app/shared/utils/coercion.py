"""Loose value coercion used by rule conditions and templates.

Payloads arrive as parsed JSON, so values are None, bool, int, float, str,
list or dict (or MISSING for absent fields).
"""

import json
import math
from typing import Any

from app.shared.utils.paths import MISSING


def to_text(value: Any) -> str:
    """Render a payload value as text.

    Literals use their JSON spelling. Lists join their elements with commas,
    null and absent elements as empty text; objects render as compact JSON.
    """
    if value is MISSING:
        return "undefined"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, list):
        return ",".join(
            "" if item is None or item is MISSING else to_text(item) for item in value
        )
    if isinstance(value, dict):
        return json.dumps(value, separators=(",", ":"), default=str)
    return str(value)


def to_number(value: Any) -> float:
    """Numeric coercion; values with no numeric reading become NaN.

    Booleans count as 0/1, null and blank strings as 0, single-element lists
    as their element.
    """
    if value is MISSING:
        return math.nan
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        try:
            if text.lower().startswith(("0x", "0o", "0b")):
                return float(int(text, 0))
            number = float(text)
        except ValueError:
            return math.nan
        # float() accepts "nan"/"inf" spellings that are not numeric literals here
        if text.lower().lstrip("+-") in {"nan", "inf", "infinity"} and text not in {
            "Infinity",
            "+Infinity",
            "-Infinity",
        }:
            return math.nan
        return number
    if isinstance(value, list):
        return to_number(to_text(value))
    return math.nan


def strict_equals(left: Any, right: Any) -> bool:
    """Identity-style equality: same kind and same value for scalars.

    Booleans never equal numbers, null never equals an absent value, and
    containers are only equal to themselves.
    """
    if left is MISSING or right is MISSING:
        return left is right
    if left is None or right is None:
        return left is right
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if isinstance(left, (int, float)) and isinstance(right, (int, float)):
        return left == right
    if isinstance(left, str) and isinstance(right, str):
        return left == right
    return left is right
