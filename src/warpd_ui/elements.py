"""
Interactable element records returned by the daemon.

Element payloads come from ``elements.list`` and ``elements.info``. Fields
that are missing or of the wrong type fall back to defaults instead of
failing the whole list.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

# Elements shown by the UI, regardless of how many the daemon returns
MAX_ELEMENTS = 50


def _uint_field(item: dict[str, Any], key: str) -> int:
    value = item.get(key)
    if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
        return value
    return 0


def _str_field(item: dict[str, Any], key: str) -> str:
    value = item.get(key)
    return value if isinstance(value, str) else ""


@dataclass(frozen=True)
class ElementItem:
    """
    One interactable element on screen.

    Attributes:
        id: Daemon-side index used by elements.click/focus/info.
        hint: Hint label typed to select the element.
        label: Accessible title, possibly empty.
        role: Accessibility role (e.g., "button").
        desc: Accessible description, possibly empty.
    """

    id: int = 0
    hint: str = ""
    label: str = ""
    role: str = ""
    desc: str = ""

    @classmethod
    def from_dict(cls, item: Any) -> ElementItem:
        """Build an element from a daemon payload, defaulting bad fields."""
        if not isinstance(item, dict):
            return cls()
        return cls(
            id=_uint_field(item, "id"),
            hint=_str_field(item, "hint"),
            label=_str_field(item, "label"),
            role=_str_field(item, "role"),
            desc=_str_field(item, "desc"),
        )

    def display_line(self) -> str:
        """
        Render the line shown for this element.

        With a label: "[hint] label (role)". Without one the description is
        shown, or the role when the description is empty too.
        """
        if self.label:
            return f"[{self.hint}] {self.label} ({self.role})"
        fallback = self.desc or self.role
        return f"[{self.hint}] {fallback}"


def parse_elements(result: Any, limit: int = MAX_ELEMENTS) -> list[ElementItem]:
    """
    Parse an ``elements.list`` result into at most ``limit`` elements.

    Args:
        result: The result object, expected to hold an "elements" array.
        limit: Maximum number of elements to keep.

    Returns:
        Parsed elements; empty when the result has no element array.
    """
    if not isinstance(result, dict):
        return []
    items = result.get("elements")
    if not isinstance(items, list):
        return []
    return [ElementItem.from_dict(item) for item in items[:limit]]
