"""Shared fixtures for discountify tests."""

import sys
import uuid
from pathlib import Path

import pytest
import structlog

RULES_DIR = Path(__file__).parent / "rules"


@pytest.fixture
def items():
    """Two line items with a subtotal of 200."""
    return [
        {"quantity": 2, "price": 50},
        {"quantity": 1, "price": 100},
    ]


@pytest.fixture
def rules_dir():
    return RULES_DIR


@pytest.fixture
def rule_namespace():
    """Fresh module namespace so each test imports the rule modules anew."""
    namespace = f"discountify_test_rules_{uuid.uuid4().hex}"
    yield namespace
    for name in [n for n in sys.modules if n.startswith(namespace + ".")]:
        del sys.modules[name]


@pytest.fixture
def state_path(tmp_path):
    return tmp_path / "state" / "coupons.json"


@pytest.fixture
def restore_structlog():
    """Restore the structlog configuration a test replaced."""
    saved = structlog.get_config()
    yield
    structlog.configure(**saved)
