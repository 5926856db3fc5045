"""Resolves {{ path.to.field }} placeholders against a trigger payload (implements ITemplateResolver).

Tokens whose path is absent from the payload are left untouched, so a
partially available payload never blanks out a template. Defined falsy
values (0, false, "") are substituted.
"""

from __future__ import annotations

import re
from typing import Any

from app.shared.utils.coercion import to_text
from app.shared.utils.paths import MISSING, get_nested_value

_TOKEN = re.compile(r"\{\{([^}]+)\}\}")


class TemplateResolver:
    """Stateless placeholder substitution for strings and nested maps."""

    def resolve(self, template: str, data: dict[str, Any]) -> str:
        """Substitute every {{path}} token in template with its payload value."""
        if not template:
            return template

        def substitute(match: re.Match[str]) -> str:
            value = get_nested_value(data, match.group(1).strip())
            return match.group(0) if value is MISSING else to_text(value)

        return _TOKEN.sub(substitute, template)

    def resolve_value(self, value: Any, data: dict[str, Any]) -> Any:
        """Resolve strings, recurse into maps and lists; pass anything else through."""
        if isinstance(value, str):
            return self.resolve(value, data)
        if isinstance(value, dict):
            return self.resolve_object(value, data)
        if isinstance(value, list):
            return [self.resolve_value(item, data) for item in value]
        return value

    def resolve_object(self, obj: dict[str, Any], data: dict[str, Any]) -> dict[str, Any]:
        """Return a copy of obj with every string value (at any depth) resolved."""
        return {key: self.resolve_value(value, data) for key, value in obj.items()}
