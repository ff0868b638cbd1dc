"""
Record services for cases and caregivers.

Read/write access to the two collections for the application and for
maintenance scripts. Documents written by older import tools may still use
the localized column labels as keys (姓名, 目前狀態, CMS等級, ...); on read
those are mapped back to canonical keys, canonical key first and legacy key
second, with the same alias machinery the importer uses.
"""

from collections.abc import Callable, Iterable
from datetime import datetime
from typing import Any

from loguru import logger

from homecare.core.models import isoformat_timestamp, utc_now
from homecare.core.store import DocumentStore, Filter
from homecare.ingest.mappings import CAREGIVER, CASE, OMIT, EntityType, FieldKind, FieldSpec
from homecare.ingest.services.assembler import deep_clean
from homecare.ingest.services.standardizer import coerce_value, resolve_alias

# Keys that are kept as-is on read
PASSTHROUGH_KEYS = ("createdAt", "updatedAt")

_KIND_READ_DEFAULTS = {
    FieldKind.TEXT: "",
    FieldKind.INTEGER: 0,
    FieldKind.NUMBER: 0,
    FieldKind.BOOLEAN: False,
    FieldKind.DATE: "",
}


def _read_default(spec: FieldSpec) -> Any:
    # Reads never stamp the current date into a document
    if spec.default is OMIT or spec.default_today:
        return _KIND_READ_DEFAULTS.get(spec.kind, "")
    return spec.default


def map_document(doc_id: str, data: dict[str, Any], entity: EntityType) -> dict[str, Any]:
    """
    Map a stored document to canonical keys.

    Canonical values are returned unchanged; legacy-keyed values are coerced
    the way the importer would have. Required fields that are missing get
    their empty default so callers can rely on them being present. Keys that
    belong to no field are kept.
    """
    record: dict[str, Any] = {"id": doc_id}
    consumed = set()

    for spec in entity.fields:
        # Canonical name first, then the localized labels
        aliases = (spec.name, *spec.aliases[:-1])
        consumed.update(aliases)
        label, raw = resolve_alias(data, aliases)
        if label is None:
            if spec.required:
                record[spec.name] = _read_default(spec)
            continue
        if label == spec.name:
            record[spec.name] = raw
        else:
            record[spec.name] = coerce_value(spec, raw, entity.status_rules)

    for key, value in data.items():
        if key in PASSTHROUGH_KEYS or key not in consumed:
            record[key] = value
    return record


class RecordService:
    """CRUD over one collection, returning canonical records."""

    entity: EntityType

    def __init__(self, store: DocumentStore, clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.clock = clock

    @property
    def collection(self) -> str:
        return self.entity.collection

    def _map(self, doc_id: str, data: dict[str, Any]) -> dict[str, Any]:
        return map_document(doc_id, data, self.entity)

    def _timestamp(self) -> str:
        return isoformat_timestamp(self.clock())

    def get_all(self) -> list[dict[str, Any]]:
        return [self._map(doc_id, data) for doc_id, data in self.store.list_documents(self.collection)]

    def get_by_id(self, doc_id: str) -> dict[str, Any] | None:
        data = self.store.get_document(self.collection, doc_id)
        return self._map(doc_id, data) if data is not None else None

    def query(
        self,
        filters: Iterable[Filter] = (),
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        results = self.store.query_documents(
            self.collection, filters, order_by=order_by, descending=descending, limit=limit
        )
        return [self._map(doc_id, data) for doc_id, data in results]

    def create(self, data: dict[str, Any]) -> str:
        """Create a record with fresh createdAt/updatedAt and return its id."""
        timestamp = self._timestamp()
        payload = deep_clean({**data, "createdAt": timestamp, "updatedAt": timestamp})
        payload.pop("id", None)
        doc_id = self.store.create_document(self.collection, payload)
        logger.info(f"Created {self.entity.name} {doc_id}")
        return doc_id

    def update(self, doc_id: str, data: dict[str, Any]) -> None:
        """Merge fields into a record and refresh updatedAt."""
        payload = deep_clean({**data, "updatedAt": self._timestamp()})
        payload.pop("id", None)
        payload.pop("createdAt", None)
        self.store.update_document(self.collection, doc_id, payload)
        logger.info(f"Updated {self.entity.name} {doc_id}")

    def delete(self, doc_id: str) -> None:
        self.store.delete_document(self.collection, doc_id)
        logger.info(f"Deleted {self.entity.name} {doc_id}")


class CaseService(RecordService):
    entity = CASE

    def search(self, term: str) -> list[dict[str, Any]]:
        """Case-insensitive substring match on name, phone and address."""
        needle = term.strip().lower()
        return [
            record
            for record in self.get_all()
            if needle in str(record.get("name", "")).lower()
            or needle in str(record.get("phone", "")).lower()
            or needle in str(record.get("address", "")).lower()
        ]

    def get_by_status(self, status: str) -> list[dict[str, Any]]:
        return self.query([("status", "==", str(status))])

    def get_recent_visits(self, limit: int = 5) -> list[dict[str, Any]]:
        """Most recently visited cases first."""
        return self.query(order_by="lastVisit", descending=True, limit=limit)


class CaregiverService(RecordService):
    entity = CAREGIVER

    def add(self, data: dict[str, Any]) -> str:
        return self.create(data)

    def get_by_status(self, status: str) -> list[dict[str, Any]]:
        """Caregivers with a status, ordered by name."""
        return self.query([("status", "==", str(status))], order_by="name")
