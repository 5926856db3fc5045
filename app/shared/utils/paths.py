"""Dotted-path lookup into JSON-like payloads (dicts and lists).

Missing intermediate keys yield MISSING rather than raising, so callers can
tell an absent value apart from an explicit null.
"""

from typing import Any, Final


class _Missing:
    """Sentinel type for a value that is absent from a payload."""

    _instance: "_Missing | None" = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Final = _Missing()


def get_nested_value(data: Any, path: str) -> Any:
    """Walk data along a dotted path (e.g. "candidate.profile.email").

    Dict keys are matched as strings; list segments must be integer indexes.
    Returns MISSING when any segment is absent or the walk hits null.
    """
    current = data
    for key in path.split("."):
        if current is MISSING or current is None:
            return MISSING
        if isinstance(current, dict):
            current = current.get(key, MISSING)
        elif isinstance(current, list) and key.isdigit():
            index = int(key)
            current = current[index] if index < len(current) else MISSING
        else:
            return MISSING
    return current
