"""Coupon state persistence.

CouponStore is the save/load seam the coupon registry persists through.
JsonFileCouponStore keeps the whole coupon map in one JSON object keyed by
coupon code, with dates as RFC3339 strings:

    {
      "WELCOME20": {
        "code": "WELCOME20",
        "discount": 20,
        "startDate": "2024-03-01T00:00:00Z",
        "endDate": "2024-03-08T00:00:00Z",
        "applied": false,
        "usedBy": []
      }
    }

There is no locking: one writer per file is assumed.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Protocol, Union

import structlog

from .errors import StateFileError, errmsg
from .models import Coupon


class CouponStore(Protocol):
    """Durable storage for a coupon map."""

    def load(self) -> dict[str, Coupon]:
        ...

    def save(self, coupons: dict[str, Coupon]) -> None:
        ...


class JsonFileCouponStore:
    """Stores coupons in a single JSON file."""

    def __init__(self, path: Union[str, os.PathLike]) -> None:
        self.path = Path(path)
        self._log = structlog.get_logger(component="coupon_store", path=str(self.path))
        self._ensure_exists()

    def _ensure_exists(self) -> None:
        if self.path.exists():
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps({}), encoding="utf-8")
        self._log.info("state_file_created")

    def load(self) -> dict[str, Coupon]:
        """Read the coupon map.

        Raises:
            StateFileError: If the file is not a JSON object of records.
            InvalidTimestampError: If a stored date cannot be parsed.
        """
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except json.JSONDecodeError as e:
            raise StateFileError(str(self.path), e) from e

        if not isinstance(raw, dict):
            raise StateFileError(str(self.path), ValueError(errmsg.STATE_FILE_INVALID))

        coupons = {}
        for code, record in raw.items():
            if not isinstance(record, dict):
                raise StateFileError(str(self.path), ValueError(f"record {code!r} is not an object"))
            record = dict(record)
            record.setdefault("code", code)
            try:
                coupons[code] = Coupon.from_dict(record)
            except TypeError as e:
                raise StateFileError(str(self.path), e) from e

        self._log.debug("state_loaded", coupons=len(coupons))
        return coupons

    def save(self, coupons: dict[str, Coupon]) -> None:
        """Rewrite the file with the full coupon map."""
        payload = {code: coupon.to_record() for code, coupon in coupons.items()}
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        os.replace(tmp, self.path)
        self._log.debug("state_saved", coupons=len(payload))
