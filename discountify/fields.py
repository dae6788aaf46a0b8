"""Logical item field resolution.

The engine reads two logical fields from each item, ``price`` and
``quantity``. FieldResolver maps them onto the keys a caller's items
actually use:

    resolver = FieldResolver({"price": "amount"}).set_field("quantity", "qty")
    resolver.price({"amount": 20, "qty": 2})  # -> 20
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional

from .config import DEFAULT_FIELDS

PRICE = "price"
QUANTITY = "quantity"


class FieldResolver:
    """Two-level field mapping: instance overrides, then defaults, then identity."""

    def __init__(self, defaults: Optional[Mapping[str, str]] = None) -> None:
        self._defaults: dict[str, str] = dict(DEFAULT_FIELDS if defaults is None else defaults)
        self._overrides: dict[str, str] = {}

    def set_field(self, name: str, key: str) -> FieldResolver:
        self._overrides[name] = key
        return self

    def set_fields(self, fields: Mapping[str, str]) -> FieldResolver:
        for name, key in fields.items():
            self.set_field(name, key)
        return self

    @property
    def fields(self) -> dict[str, str]:
        """Instance overrides only."""
        return dict(self._overrides)

    @property
    def mapping(self) -> dict[str, str]:
        """Effective logical name -> item key mapping."""
        return {**self._defaults, **self._overrides}

    def key_for(self, name: str) -> str:
        if name in self._overrides:
            return self._overrides[name]
        return self._defaults.get(name, name)

    def resolve(self, item: Mapping[str, Any], name: str) -> Any:
        """Return the item's value for a logical field, or None if absent."""
        return item.get(self.key_for(name))

    def price(self, item: Mapping[str, Any]) -> Any:
        return self.resolve(item, PRICE)

    def quantity(self, item: Mapping[str, Any]) -> Any:
        return self.resolve(item, QUANTITY)
