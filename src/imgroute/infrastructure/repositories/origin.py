"""Origin store: upstream image sources."""

from __future__ import annotations

from typing import Any

from imgroute.domain.entities import Origin
from imgroute.domain.types import EntityType
from imgroute.infrastructure.database import TableIndex
from imgroute.infrastructure.repositories.base import EntityStore
from imgroute.infrastructure.repositories.errors import ReferencedEntityError
from imgroute.infrastructure.repositories.records import OriginRecord

_ENVELOPE_FIELDS = ("originId", "createdAt", "updatedAt")


class OriginStore(EntityStore[OriginRecord, Origin]):
    """Origins, listed by name."""

    entity_types = (EntityType.ORIGIN,)

    def validate_record(self, item: dict[str, Any]) -> OriginRecord:
        return OriginRecord.model_validate(item)

    def to_record(self, entity: Origin) -> dict[str, Any]:
        wire = entity.to_wire()
        return {
            "pk": entity.origin_id,
            "entity_type": EntityType.ORIGIN.value,
            "sort_key": entity.origin_name,
            "created_at": entity.created_at,
            "updated_at": entity.updated_at,
            "data": {k: v for k, v in wire.items() if k not in _ENVELOPE_FIELDS},
        }

    def from_record(self, record: OriginRecord) -> Origin:
        return Origin(
            origin_id=record.pk,
            created_at=record.created_at,
            updated_at=record.updated_at,
            **record.data.model_dump(exclude_none=True),
        )

    def delete(self, entity_id: str) -> None:
        """Delete an origin no mapping refers to.

        Raises:
            ReferencedEntityError: If a mapping still uses the origin.
        """
        if self._table.exists(TableIndex.BY_ORIGIN, entity_id):
            raise ReferencedEntityError(EntityType.ORIGIN, entity_id)
        super().delete(entity_id)
