"""ID generators (CUID2 primary keys for rules and executions)."""

from cuid2 import cuid_wrapper

_cuid = cuid_wrapper()


def generate_cuid() -> str:
    """Return a new collision-resistant unique identifier (CUID2)."""
    value = _cuid()
    if not isinstance(value, str):
        raise TypeError(f"Expected str from cuid2, got {type(value).__name__}")
    return value
