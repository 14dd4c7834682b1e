"""
Generic document repository (persistence).

One `DocumentRepository` wraps one Supabase table ("collection") and a record
schema. Every write is validated first; nothing is sent to the store when
validation fails. Entity services compose a repository instead of
subclassing it.

Timestamps are assigned by the database, not by this process:
- `created_at_utc` and `updated_at_utc` default to now() on insert
- a trigger refreshes `updated_at_utc` on every update
(see db/schema.sql). Write payloads never carry them.

Store failures are not retried. A response carrying an error raises
StoreError; exceptions raised by the client itself propagate unchanged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from domain.time import parse_utc_datetime, to_iso_utc
from domain.validation import Schema, validate_or_raise

logger = logging.getLogger(__name__)

ID_FIELD = "id"
CREATED_AT_FIELD = "created_at_utc"
UPDATED_AT_FIELD = "updated_at_utc"

_SERVER_FIELDS = frozenset({ID_FIELD, CREATED_AT_FIELD, UPDATED_AT_FIELD})

# query operator -> postgrest builder method
_OPERATORS: Dict[str, str] = {
    "==": "eq",
    "!=": "neq",
    "<": "lt",
    "<=": "lte",
    ">": "gt",
    ">=": "gte",
    "in": "in_",
    "array-contains": "contains",
}


class StoreError(RuntimeError):
    """The store answered a request with an error."""


class RecordNotFoundError(LookupError):
    """A write or compound operation referenced a record that does not exist."""

    def __init__(self, collection: str, record_id: str) -> None:
        self.collection = collection
        self.record_id = record_id
        super().__init__(f"{collection} record with ID {record_id} not found")


class UnsupportedOperatorError(ValueError):
    pass


@dataclass(frozen=True, slots=True)
class QueryFilter:
    """One `field <operator> value` condition. Filters in a query are ANDed."""

    field: str
    operator: str
    value: Any

    def __post_init__(self) -> None:
        if self.operator not in _OPERATORS:
            raise UnsupportedOperatorError(
                f"Unsupported operator {self.operator!r}; expected one of {sorted(_OPERATORS)}"
            )


@dataclass(frozen=True, slots=True)
class QueryOptions:
    order_by: Optional[str] = None
    direction: str = "asc"  # asc, desc
    limit: Optional[int] = None

    def __post_init__(self) -> None:
        if self.direction not in ("asc", "desc"):
            raise ValueError("direction must be 'asc' or 'desc'")
        if self.limit is not None and self.limit < 1:
            raise ValueError("limit must be >= 1")


def _serialize(value: Any) -> Any:
    """Convert a record value into something the JSON client can send."""

    if isinstance(value, datetime):
        return to_iso_utc(value)
    if isinstance(value, Mapping):
        return {key: _serialize(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_serialize(item) for item in value]
    return value


class DocumentRepository:
    """
    CRUD and filtered queries over one collection, with validation on every write.

    Args:
        collection: Supabase table name
        schema: Record schema used by create and update
        client: Supabase client (defaults to the shared client from repositories.client)
        timestamp_fields: Extra fields parsed to UTC datetimes when rows are read

    Example:
        products = DocumentRepository("products", PRODUCT_SCHEMA)
        created = products.create({"name": "Rose Soap", "category": "Soaps", "price": 150, "qty": 20})
        products.get_by_id(created["id"])
    """

    def __init__(
        self,
        collection: str,
        schema: Schema,
        *,
        client: Any = None,
        timestamp_fields: Iterable[str] = (),
    ) -> None:
        self.collection = collection
        self.schema = schema
        self._client = client
        self._timestamp_fields = (CREATED_AT_FIELD, UPDATED_AT_FIELD, *timestamp_fields)

    @property
    def client(self) -> Any:
        if self._client is None:
            from repositories.client import get_supabase

            self._client = get_supabase()
        return self._client

    def _table(self) -> Any:
        return self.client.table(self.collection)

    def _rows(self, response: Any, action: str) -> List[Mapping[str, Any]]:
        error = getattr(response, "error", None)
        if error:
            raise StoreError(f"Failed to {action} {self.collection}: {error}")
        return getattr(response, "data", None) or []

    def _to_payload(self, record: Mapping[str, Any]) -> Dict[str, Any]:
        return {key: _serialize(value) for key, value in record.items() if key not in _SERVER_FIELDS}

    def _from_row(self, row: Mapping[str, Any]) -> Dict[str, Any]:
        record = dict(row)
        if record.get(ID_FIELD) is not None:
            record[ID_FIELD] = str(record[ID_FIELD])
        for name in self._timestamp_fields:
            if record.get(name) is not None:
                record[name] = parse_utc_datetime(record[name])
        return record

    def validate(self, record: Mapping[str, Any]) -> None:
        validate_or_raise(record, self.schema, label=f"{self.collection} validation")

    def create(self, record: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Validate and insert a record.

        Returns:
            The stored record including its generated `id` and server timestamps

        Raises:
            ValidationError: record does not satisfy the schema (nothing written)
            StoreError: the store rejected the insert
        """

        self.validate(record)

        response = self._table().insert(self._to_payload(record)).execute()
        rows = self._rows(response, "create")
        if not rows:
            raise StoreError(f"Failed to create {self.collection}: insert returned no rows")

        created = self._from_row(rows[0])
        logger.debug(
            "Created record",
            extra={"collection": self.collection, "record_id": created.get(ID_FIELD)},
        )
        return created

    def get_by_id(self, record_id: str) -> Optional[Dict[str, Any]]:
        """Fetch one record. Returns None when it does not exist."""

        response = (
            self._table()
            .select("*")
            .eq(ID_FIELD, str(record_id))
            .limit(1)
            .execute()
        )
        rows = self._rows(response, "fetch")
        if not rows:
            return None
        return self._from_row(rows[0])

    def get_all(self) -> List[Dict[str, Any]]:
        response = self._table().select("*").execute()
        return [self._from_row(row) for row in self._rows(response, "list")]

    def update(self, record_id: str, record: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Re-validate the full replacement record and persist it.

        `created_at_utc` is never sent; the store refreshes `updated_at_utc`.

        Raises:
            ValidationError: record does not satisfy the schema (nothing written)
            RecordNotFoundError: no record has this id
            StoreError: the store rejected the update
        """

        self.validate(record)

        response = (
            self._table()
            .update(self._to_payload(record))
            .eq(ID_FIELD, str(record_id))
            .execute()
        )
        rows = self._rows(response, "update")
        if not rows:
            raise RecordNotFoundError(self.collection, str(record_id))

        logger.debug(
            "Updated record",
            extra={"collection": self.collection, "record_id": str(record_id)},
        )
        return self._from_row(rows[0])

    def delete(self, record_id: str) -> None:
        """Hard delete. Deleting an id that does not exist is not an error."""

        response = self._table().delete().eq(ID_FIELD, str(record_id)).execute()
        self._rows(response, "delete")
        logger.debug(
            "Deleted record",
            extra={"collection": self.collection, "record_id": str(record_id)},
        )

    def query(
        self,
        filters: Sequence[QueryFilter] = (),
        options: Optional[QueryOptions] = None,
    ) -> List[Dict[str, Any]]:
        """
        Query records matching every filter.

        Args:
            filters: Conditions ANDed together. `== None` / `!= None` test for null.
            options: Optional single sort field/direction and result cap

        Example:
            repo.query(
                [QueryFilter("qty", "<=", 5)],
                QueryOptions(order_by="qty", direction="asc", limit=10),
            )
        """

        query = self._table().select("*")

        for condition in filters:
            value = _serialize(condition.value)
            if value is None and condition.operator == "==":
                query = query.is_(condition.field, "null")
            elif value is None and condition.operator == "!=":
                query = query.not_.is_(condition.field, "null")
            elif condition.operator == "array-contains":
                query = query.contains(condition.field, [value])
            else:
                method = getattr(query, _OPERATORS[condition.operator])
                query = method(condition.field, value)

        if options is not None:
            if options.order_by:
                query = query.order(options.order_by, desc=options.direction == "desc")
            if options.limit:
                query = query.limit(options.limit)

        response = query.execute()
        return [self._from_row(row) for row in self._rows(response, "query")]


__all__ = [
    "DocumentRepository",
    "QueryFilter",
    "QueryOptions",
    "StoreError",
    "RecordNotFoundError",
    "UnsupportedOperatorError",
]
