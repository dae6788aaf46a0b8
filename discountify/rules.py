"""Condition rule plugins and rule module discovery.

Rule classes live in plain Python modules and register themselves with the
@condition_rule decorator. Discovery imports the modules of a rule
directory, which runs the decorators, then reads the plugin table.

Example rule module (``conditions/bulk.py``):

    from discountify import ConditionRule, condition_rule

    @condition_rule
    class MoreThan1Products(ConditionRule):
        slug = "more_than_1_products_10"
        discount = 10

        def __call__(self, items) -> bool:
            return len(items) > 1

Attributes are optional: without ``slug`` the lower-cased class name is
used, without ``discount`` the rule contributes 0, and ``skip = True``
keeps the rule out of the registry.
"""

from __future__ import annotations

import importlib.util
import sys
from pathlib import Path
from typing import Optional

import structlog

from .errors import errmsg

ERRMSG_NOT_A_CLASS = "condition rules must be classes"
ERRMSG_NOT_CALLABLE = "condition rules must define __call__(self, items)"
ERRMSG_BAD_SLUG = "slug attribute must be a non-empty string"
ERRMSG_BAD_DISCOUNT = "discount attribute must be a number"

log = structlog.get_logger(component="rules")


class ConditionRule:
    """Base class documenting the rule capability contract."""

    slug: Optional[str] = None
    discount: float = 0
    skip: bool = False

    def __call__(self, items: list) -> bool:
        raise NotImplementedError


def _validate_rule(cls: type) -> None:
    if not isinstance(cls, type):
        raise TypeError(ERRMSG_NOT_A_CLASS)
    if not any(
        "__call__" in vars(base) for base in cls.__mro__ if base not in (object, ConditionRule)
    ):
        raise TypeError(f"{cls.__name__}: {ERRMSG_NOT_CALLABLE}")
    slug = getattr(cls, "slug", None)
    if slug is not None and (not isinstance(slug, str) or not slug):
        raise TypeError(f"{cls.__name__}: {ERRMSG_BAD_SLUG}")
    discount = getattr(cls, "discount", 0)
    if isinstance(discount, bool) or not isinstance(discount, (int, float)):
        raise TypeError(f"{cls.__name__}: {ERRMSG_BAD_DISCOUNT}")


def slug_for(rule) -> str:
    """Declared slug, or the lower-cased class name."""
    slug = getattr(rule, "slug", None)
    if slug:
        return slug
    return type(rule).__name__.lower()


def discount_for(rule) -> float:
    return float(getattr(rule, "discount", 0) or 0)


def is_skipped(rule) -> bool:
    return bool(getattr(rule, "skip", False))


class RuleTable:
    """Plugin table of rule classes keyed by ``module.ClassName``."""

    def __init__(self) -> None:
        self._rules: dict[str, type] = {}

    def register(self, cls: type) -> type:
        """Register a rule class. Usable as a class decorator.

        Raises:
            TypeError: If the class does not satisfy the rule contract.
        """
        _validate_rule(cls)
        self._rules[f"{cls.__module__}.{cls.__qualname__}"] = cls
        return cls

    def for_modules(self, modules) -> list[type]:
        """Rule classes defined in the given modules, in registration order."""
        wanted = set(modules)
        return [cls for cls in self._rules.values() if cls.__module__ in wanted]

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, cls: type) -> bool:
        return cls in self._rules.values()


rules = RuleTable()


def condition_rule(cls: type) -> type:
    """Decorator registering a rule class in the default plugin table."""
    return rules.register(cls)


def _require_same_file(name: str, module, file: Path) -> None:
    loaded = getattr(module, "__file__", None)
    if loaded is None or Path(loaded).resolve() != file.resolve():
        raise ImportError(errmsg.RULE_MODULE_CLASH.format(name=name, loaded=loaded, path=file))


def load_rule_modules(namespace: str, directory) -> list[str]:
    """Import every rule module directly inside `directory`.

    Modules are imported as ``<namespace>.<stem>``; files starting with an
    underscore are ignored and subdirectories are not searched. Modules
    already imported under that name from the same file are reused. A
    missing directory loads nothing.

    Returns:
        The dotted names of the modules found.

    Raises:
        ImportError: If the module name is taken by a module loaded from
            another file.
    """
    path = Path(directory)
    if not path.is_dir():
        log.debug("rule_directory_missing", directory=str(path))
        return []

    namespace = namespace.strip(".")
    names = []
    for file in sorted(path.glob("*.py")):
        if file.name.startswith("_"):
            continue
        name = f"{namespace}.{file.stem}"
        names.append(name)
        loaded = sys.modules.get(name)
        if loaded is not None:
            _require_same_file(name, loaded, file)
            continue
        spec = importlib.util.spec_from_file_location(name, file)
        module = importlib.util.module_from_spec(spec)
        sys.modules[name] = module
        try:
            spec.loader.exec_module(module)
        except BaseException:
            del sys.modules[name]
            raise
        log.debug("rule_module_loaded", module=name)
    return names
