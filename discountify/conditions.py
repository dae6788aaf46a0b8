"""Condition registry.

Conditions accumulate in insertion order for the lifetime of a registry.
Slugs are unique: a duplicate raises and never overwrites.

Example::

    registry = (ConditionRegistry()
        .define("more_than_2_products_10", lambda items: len(items) > 2, 10)
        .define_if("client_has_renewal_10", True, 10)
        .add([
            {"slug": "special_type_10", "condition": has_special, "discount": 10},
        ]))
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from typing import Any

import structlog

from .models import Condition, Items, Rule
from .rules import RuleTable, discount_for, is_skipped, load_rule_modules, rules, slug_for
from .validation import require_slug, require_unique_slug


class ConditionRegistry:
    """Stores named discount conditions."""

    def __init__(self, rule_table: RuleTable = rules) -> None:
        self._conditions: list[Condition] = []
        self._rule_table = rule_table
        self._log = structlog.get_logger(component="conditions")

    def _slugs(self) -> set[str]:
        return {c.slug for c in self._conditions}

    def add(self, specs: Iterable[Mapping[str, Any]]) -> ConditionRegistry:
        """Add several conditions at once.

        Each spec is a mapping with ``slug``, ``condition`` (callable or bool),
        ``discount`` and an optional ``skip`` flag. Skipped specs are
        validated but not stored. The batch is all-or-nothing.

        Raises:
            EmptySlugError: If a spec has no slug.
            DuplicateSlugError: If a slug is already taken, including by an
                earlier spec of the same batch.
        """
        taken = self._slugs()
        accepted = []
        for spec in specs:
            slug = spec.get("slug")
            require_slug(slug)
            require_unique_slug(slug, taken)
            taken.add(slug)
            if spec.get("skip", False):
                continue
            accepted.append(Condition(slug, spec.get("condition", False), spec.get("discount", 0)))

        self._conditions.extend(accepted)
        self._log.debug("conditions_added", count=len(accepted))
        return self

    def define(self, slug: str, rule: Rule, discount: float, skip: bool = False) -> ConditionRegistry:
        """Define a single condition.

        Raises:
            EmptySlugError: If slug is empty.
            DuplicateSlugError: If slug is already taken.
        """
        require_slug(slug)
        require_unique_slug(slug, self._slugs())
        if not skip:
            self._conditions.append(Condition(slug, rule, discount))
            self._log.debug("condition_defined", slug=slug, discount=discount)
        return self

    def define_if(self, slug: str, is_acceptable: bool, discount: float) -> ConditionRegistry:
        """Define a condition whose rule always returns `is_acceptable`."""
        return self.define(slug, lambda items: is_acceptable, discount)

    def discover(self, namespace: str, directory) -> ConditionRegistry:
        """Register the rule classes declared by the modules of `directory`.

        Each rule is instantiated once; instances with a true ``skip``
        attribute are left out. A missing directory is a no-op.
        """
        modules = load_rule_modules(namespace, directory)
        for cls in self._rule_table.for_modules(modules):
            rule = cls()
            if is_skipped(rule):
                self._log.debug("rule_skipped", rule=cls.__name__)
                continue
            self.define(slug_for(rule), rule, discount_for(rule))
        return self

    def get_conditions(self) -> list[Condition]:
        return list(self._conditions)

    def evaluate(self, items: Items) -> Iterator[tuple[Condition, bool]]:
        """Evaluate every condition against `items`, in insertion order."""
        for condition in self._conditions:
            yield condition, condition.evaluate(items)

    def __len__(self) -> int:
        return len(self._conditions)

    def __iter__(self) -> Iterator[Condition]:
        return iter(list(self._conditions))

    def __contains__(self, slug: object) -> bool:
        return any(c.slug == slug for c in self._conditions)
