"""Generic entity store: CRUD over one kind slice of the shared table.

Concrete stores supply three hooks: ``validate_record`` (raw item to
envelope record), ``to_record`` (entity to raw item) and ``from_record``
(record to entity). Everything else is built here once.

Writes are conditional on key existence instead of locked: ``create``
fails if the key exists and ``update``/``delete`` fail if it does not,
all with :class:`ConditionalCheckFailedError`. Any other backend error
propagates unchanged.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from imgroute.domain.ids import now_iso
from imgroute.domain.types import EntityType
from imgroute.domain.validation import format_errors
from imgroute.infrastructure.database import (
    Condition,
    ConditionalCheckFailedError,
    ConfigTable,
    PageKey,
    QueryPage,
    TableIndex,
)
from imgroute.infrastructure.repositories.cursor import decode_token, encode_token
from imgroute.infrastructure.repositories.errors import InvalidRecordError
from imgroute.infrastructure.repositories.records import StoredRecord

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50

RecordT = TypeVar("RecordT", bound=StoredRecord)
EntityT = TypeVar("EntityT", bound=BaseModel)


@dataclass(frozen=True)
class Page(Generic[EntityT]):
    """One page of a listing; ``next_token`` is ``None`` on the last page."""

    items: list[EntityT] = field(default_factory=list)
    next_token: str | None = None


class EntityStore(ABC, Generic[RecordT, EntityT]):
    """Validated access to the records of ``entity_types``."""

    entity_types: ClassVar[tuple[EntityType, ...]]

    def __init__(self, table: ConfigTable, *, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        if page_size < 1:
            msg = f"page_size must be positive, got {page_size}"
            raise ValueError(msg)
        self._table = table
        self._page_size = page_size

    # -- hooks -------------------------------------------------------------

    @abstractmethod
    def validate_record(self, item: dict[str, Any]) -> RecordT:
        """Parse a raw table item; raises ``ValidationError`` if malformed."""

    @abstractmethod
    def to_record(self, entity: EntityT) -> dict[str, Any]:
        """Raw table item for *entity*."""

    @abstractmethod
    def from_record(self, record: RecordT) -> EntityT:
        """Wire-level entity for a validated record."""

    # -- reads -------------------------------------------------------------

    def list(self, next_token: str | None = None) -> Page[EntityT]:
        """List entities ordered by sort key, one page at a time."""
        start = decode_token(next_token, PageKey) if next_token else None
        if not self._resumable(start):
            start = None
        page = self._query_type(self.entity_types[0], start)
        token = encode_token(page.last_key) if page.last_key is not None else None
        return Page(items=self._convert_items(page.items), next_token=token)

    def get(self, entity_id: str) -> EntityT | None:
        """Point lookup; ``None`` if absent, another kind, or invalid."""
        item = self._table.get_item(entity_id)
        if item is None or item.get("entity_type") not in self.entity_types:
            return None
        return self._parse(item)

    # -- writes ------------------------------------------------------------

    def create(self, entity: EntityT) -> EntityT:
        """Write *entity* if its key is free.

        Raises:
            ConditionalCheckFailedError: If the key already exists.
            InvalidRecordError: If the record fails validation.
        """
        record = self._build(entity, created_at=now_iso())
        self._table.put_item(record.to_item(), Condition.NOT_EXISTS)
        return self.from_record(record)

    def update(self, entity: EntityT) -> EntityT:
        """Rewrite *entity* in full if its key exists.

        Raises:
            ConditionalCheckFailedError: If the key does not exist.
            InvalidRecordError: If the record fails validation.
        """
        record = self._build(entity, updated_at=now_iso())
        self._require_kind(record.pk)
        self._table.put_item(record.to_item(), Condition.EXISTS)
        return self.from_record(record)

    def delete(self, entity_id: str) -> None:
        """Delete the entity at *entity_id*.

        Raises:
            ConditionalCheckFailedError: If no entity of this kind exists there.
        """
        self._require_kind(entity_id)
        self._table.delete_item(entity_id, Condition.EXISTS)

    # -- helpers -----------------------------------------------------------

    @staticmethod
    def _resumable(*keys: PageKey | None) -> bool:
        """Whether decoded resume keys can be used; stored records always sort."""
        if any(key is not None and key.sort_key is None for key in keys):
            logger.warning(
                "Ignoring pagination token without a sort key, starting from the first page"
            )
            return False
        return True

    def _query_type(self, entity_type: EntityType, start: PageKey | None) -> QueryPage:
        return self._table.query(
            TableIndex.BY_TYPE, entity_type, limit=self._page_size, start_key=start
        )

    def _convert_items(self, items: list[dict[str, Any]]) -> list[EntityT]:
        """Entities for valid items; invalid ones are logged and skipped."""
        entities: list[EntityT] = []
        for item in items:
            entity = self._parse(item)
            if entity is not None:
                entities.append(entity)
        return entities

    def _parse(self, item: dict[str, Any]) -> EntityT | None:
        try:
            return self.from_record(self.validate_record(item))
        except ValidationError as exc:
            logger.warning(
                "Skipping invalid %s record %s: %s",
                item.get("entity_type"),
                item.get("pk"),
                "; ".join(format_errors(exc)),
                extra={"pk": item.get("pk"), "entity_type": item.get("entity_type")},
            )
            return None

    def _build(
        self, entity: EntityT, *, created_at: str | None = None, updated_at: str | None = None
    ) -> RecordT:
        """Validated record for *entity*, stamping missing timestamps.

        ``created_at`` only fills a missing value; ``updated_at`` always wins.
        """
        raw = self.to_record(entity)
        if created_at is not None and not raw.get("created_at"):
            raw["created_at"] = created_at
        if updated_at is not None:
            raw["updated_at"] = updated_at
        try:
            return self.validate_record(raw)
        except ValidationError as exc:
            errors = format_errors(exc)
            logger.error(
                "Refusing to write invalid record %s: %s",
                raw.get("pk"),
                errors,
                extra={"pk": raw.get("pk"), "entity_type": raw.get("entity_type")},
            )
            raise InvalidRecordError(str(raw.get("pk")), errors) from exc

    def _require_kind(self, entity_id: str) -> dict[str, Any]:
        item = self._table.get_item(entity_id)
        if item is None or item.get("entity_type") not in self.entity_types:
            raise ConditionalCheckFailedError(entity_id)
        return item
