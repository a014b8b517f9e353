"""
Vendor Collection Store — in-memory vendor records keyed by id.

Insertion order is preserved and drives display order. Mutations are
serialised so concurrent writers resolve to last-writer-wins.
"""

import logging
import re
import threading
from typing import Callable, Dict, Iterable, Iterator, List, Optional

from .errors import DuplicateIdError, NotFoundError, ValidationError
from .models import RiskTier, VendorRecord, VendorStatus

logger = logging.getLogger(__name__)

ID_PATTERN = re.compile(r"^V-(\d+)$")
FIRST_GENERATED_ID = 1001


class VendorStore:

    def __init__(self, records: Optional[Iterable[VendorRecord]] = None):
        self._records: Dict[str, VendorRecord] = {}
        self._lock = threading.RLock()
        for record in records or []:
            self.add(record)

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, vendor_id: object) -> bool:
        return vendor_id in self._records

    def __iter__(self) -> Iterator[VendorRecord]:
        return iter(self.list())

    # ── Writes ────────────────────────────────
    def add(self, record: VendorRecord) -> VendorRecord:
        with self._lock:
            if record.id in self._records:
                raise DuplicateIdError(
                    f"Vendor {record.id} already exists", {"id": record.id}
                )
            self._records[record.id] = record
        logger.debug("Added vendor %s", record.id)
        return record

    def update_by_key(self, vendor_id: str, record: VendorRecord) -> VendorRecord:
        """Replace the record stored under ``vendor_id`` wholesale."""
        if record.id != vendor_id:
            raise ValidationError(
                "Replacement record must keep the vendor id",
                {"id": vendor_id, "attempted": record.id},
            )
        with self._lock:
            if vendor_id not in self._records:
                raise NotFoundError(f"Vendor {vendor_id} not found", {"id": vendor_id})
            self._records[vendor_id] = record
        return record

    def update_with(
        self, vendor_id: str, change: Callable[[VendorRecord], VendorRecord]
    ) -> VendorRecord:
        """Atomically replace a record with ``change(current)``."""
        with self._lock:
            return self.update_by_key(vendor_id, change(self.require(vendor_id)))

    def remove(self, vendor_id: str) -> VendorRecord:
        with self._lock:
            try:
                return self._records.pop(vendor_id)
            except KeyError:
                raise NotFoundError(
                    f"Vendor {vendor_id} not found", {"id": vendor_id}
                ) from None

    # ── Reads ─────────────────────────────────
    def get_by_id(self, vendor_id: str) -> Optional[VendorRecord]:
        return self._records.get(vendor_id)

    def require(self, vendor_id: str) -> VendorRecord:
        record = self._records.get(vendor_id)
        if record is None:
            raise NotFoundError(f"Vendor {vendor_id} not found", {"id": vendor_id})
        return record

    def list(self) -> List[VendorRecord]:
        with self._lock:
            return list(self._records.values())

    def filter_by_status(self, status: VendorStatus) -> List[VendorRecord]:
        return [r for r in self.list() if r.status == status]

    def filter_by_risk_tier(self, tier: RiskTier) -> List[VendorRecord]:
        return [r for r in self.list() if r.risk_tier == tier]

    def search(self, query: str) -> List[VendorRecord]:
        """Case-insensitive match on name, id or category."""
        needle = query.strip().lower()
        if not needle:
            return self.list()
        return [
            r for r in self.list()
            if needle in r.name.lower()
            or needle in r.id.lower()
            or needle in r.category.lower()
        ]

    def next_id(self) -> str:
        """Next free ``V-####`` identifier."""
        with self._lock:
            numbers = [
                int(m.group(1)) for m in map(ID_PATTERN.match, self._records) if m
            ]
            return "V-%d" % (max(numbers) + 1 if numbers else FIRST_GENERATED_ID)
