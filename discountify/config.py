"""Settings and logging configuration for discountify.

Settings are read from the process environment:
    DISCOUNTIFY_PRICE_FIELD: Item key holding the unit price (default: price)
    DISCOUNTIFY_QUANTITY_FIELD: Item key holding the quantity (default: quantity)
    DISCOUNTIFY_GLOBAL_DISCOUNT: Default global discount percentage (default: 0)
    DISCOUNTIFY_GLOBAL_TAX_RATE: Default global tax percentage (default: 0)
    DISCOUNTIFY_FIRE_EVENTS: Emit notifications, "true"/"false" (default: true)
    DISCOUNTIFY_STATE_FILE_PATH: Coupon state JSON file (default: unset, in-memory)
    DISCOUNTIFY_CONDITION_NAMESPACE: Module namespace for rule discovery
    DISCOUNTIFY_CONDITION_PATH: Directory scanned for rule modules
    DISCOUNTIFY_LOG_LEVEL: Minimum log level (default: info)
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Optional

import structlog

from .validation import require_discount_rate, require_tax_rate

ENV_PREFIX = "DISCOUNTIFY_"

DEFAULT_FIELDS = {
    "price": "price",
    "quantity": "quantity",
}
DEFAULT_CONDITION_NAMESPACE = "conditions"

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class Settings:
    """Configuration consumed by the registries and the calculation engine."""

    fields: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_FIELDS))
    global_discount: float = 0.0
    global_tax_rate: float = 0.0
    fire_events: bool = True
    state_file_path: Optional[str] = None
    condition_namespace: str = DEFAULT_CONDITION_NAMESPACE
    condition_path: Optional[str] = None
    log_level: str = "info"

    def __post_init__(self) -> None:
        self.global_discount = require_discount_rate(self.global_discount)
        self.global_tax_rate = require_tax_rate(self.global_tax_rate)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> Settings:
        """Build settings from environment variables.

        Args:
            environ: Mapping to read instead of os.environ (used by tests)

        Raises:
            InvalidRateError: If a configured rate is out of range.
            ValueError: If a configured rate is not a number.
        """
        env = os.environ if environ is None else environ

        def get(name: str, default=None):
            return env.get(ENV_PREFIX + name, default)

        fields = {
            "price": get("PRICE_FIELD", DEFAULT_FIELDS["price"]),
            "quantity": get("QUANTITY_FIELD", DEFAULT_FIELDS["quantity"]),
        }

        return cls(
            fields=fields,
            global_discount=float(get("GLOBAL_DISCOUNT", "0")),
            global_tax_rate=float(get("GLOBAL_TAX_RATE", "0")),
            fire_events=get("FIRE_EVENTS", "true").strip().lower() in _TRUTHY,
            state_file_path=get("STATE_FILE_PATH") or None,
            condition_namespace=get("CONDITION_NAMESPACE", DEFAULT_CONDITION_NAMESPACE),
            condition_path=get("CONDITION_PATH") or None,
            log_level=get("LOG_LEVEL", "info"),
        )


def configure_logging(level: str = "info") -> None:
    """Configure structlog with JSON rendering and ISO timestamps."""
    min_level = logging.getLevelName(level.upper())
    if not isinstance(min_level, int):
        min_level = logging.INFO

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(min_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
    )
