"""Mapping store: two sub-collections behind one listing.

Path mappings and host-header mappings live under different entity
types. The stored type alone decides which pattern field a mapping
carries on read, and it never changes after creation.
"""

from __future__ import annotations

from typing import Any

from imgroute.domain.entities import Mapping
from imgroute.domain.types import MAPPING_TYPES, EntityType
from imgroute.infrastructure.database import PageKey
from imgroute.infrastructure.repositories.base import EntityStore, Page
from imgroute.infrastructure.repositories.cursor import MappingCursor, decode_token, encode_token
from imgroute.infrastructure.repositories.errors import DanglingReferenceError, MappingKindError
from imgroute.infrastructure.repositories.records import MappingRecord


class MappingStore(EntityStore[MappingRecord, Mapping]):
    """Path and host-header mappings, each listed by pattern."""

    entity_types = MAPPING_TYPES

    def validate_record(self, item: dict[str, Any]) -> MappingRecord:
        return MappingRecord.model_validate(item)

    def to_record(self, entity: Mapping) -> dict[str, Any]:
        """Raw item; raises ``MappingKindError`` unless exactly one pattern is set."""
        if entity.path_pattern is not None and entity.host_header_pattern is not None:
            msg = "A mapping cannot have both pathPattern and hostHeaderPattern"
            raise MappingKindError(msg)
        if entity.path_pattern is not None:
            entity_type, pattern = EntityType.PATH_MAPPING, entity.path_pattern
        elif entity.host_header_pattern is not None:
            entity_type, pattern = EntityType.HOST_HEADER_MAPPING, entity.host_header_pattern
        else:
            msg = "A mapping needs a pathPattern or a hostHeaderPattern"
            raise MappingKindError(msg)

        data: dict[str, Any] = {"mappingName": entity.mapping_name, "pattern": pattern}
        if entity.description is not None:
            data["description"] = entity.description
        return {
            "pk": entity.mapping_id,
            "entity_type": entity_type.value,
            "sort_key": pattern,
            "origin_ref": entity.origin_id,
            "policy_ref": entity.policy_id,
            "created_at": entity.created_at,
            "updated_at": entity.updated_at,
            "data": data,
        }

    def from_record(self, record: MappingRecord) -> Mapping:
        pattern_field = (
            "pathPattern" if record.entity_type == EntityType.PATH_MAPPING else "hostHeaderPattern"
        )
        payload = record.data.model_dump(by_alias=True, exclude_none=True)
        return Mapping.model_validate(
            {
                "mappingId": record.pk,
                "mappingName": payload["mappingName"],
                "description": payload.get("description"),
                pattern_field: payload["pattern"],
                "originId": record.origin_ref,
                "policyId": record.policy_ref,
                "createdAt": record.created_at,
                "updatedAt": record.updated_at,
            }
        )

    # -- listing -------------------------------------------------------------

    def list(self, next_token: str | None = None) -> Page[Mapping]:
        """List path mappings, then host-header mappings.

        Each call reads at most one page per sub-collection, so a page can
        hold up to twice the page size. A sub-collection whose cursor is
        spent is not queried again until listing restarts.
        """
        cursor = decode_token(next_token, MappingCursor) if next_token else None
        if cursor is not None and not self._resumable(cursor.path, cursor.host_header):
            cursor = None
        items: list[Mapping] = []
        resume: dict[str, PageKey | None] = {"path": None, "host_header": None}
        for name, entity_type in (
            ("path", EntityType.PATH_MAPPING),
            ("host_header", EntityType.HOST_HEADER_MAPPING),
        ):
            start = getattr(cursor, name) if cursor is not None else None
            if cursor is not None and start is None:
                continue
            page = self._query_type(entity_type, start)
            items.extend(self._convert_items(page.items))
            resume[name] = page.last_key

        if resume["path"] is None and resume["host_header"] is None:
            return Page(items=items)
        return Page(items=items, next_token=encode_token(MappingCursor(**resume)))

    # -- writes --------------------------------------------------------------

    def create(self, entity: Mapping) -> Mapping:
        """Create a mapping whose origin and policy exist.

        Raises:
            DanglingReferenceError: If the origin or policy is missing.
        """
        self._check_references(entity)
        return super().create(entity)

    def update(self, entity: Mapping) -> Mapping:
        """Rewrite a mapping, keeping its pattern kind.

        Raises:
            DanglingReferenceError: If the origin or policy is missing.
            ConditionalCheckFailedError: If the mapping does not exist.
            MappingKindError: If the update would change the pattern kind.
        """
        self._check_references(entity)
        new_type = self.to_record(entity)["entity_type"]
        current = self._require_kind(entity.mapping_id)
        if current["entity_type"] != new_type:
            msg = "Cannot change a mapping between pathPattern and hostHeaderPattern"
            raise MappingKindError(msg)
        return super().update(entity)

    def _check_references(self, entity: Mapping) -> None:
        if not self._entity_exists(entity.origin_id, EntityType.ORIGIN):
            raise DanglingReferenceError(EntityType.ORIGIN, entity.origin_id)
        if entity.policy_id is not None and not self._entity_exists(
            entity.policy_id, EntityType.POLICY
        ):
            raise DanglingReferenceError(EntityType.POLICY, entity.policy_id)

    def _entity_exists(self, entity_id: str, entity_type: EntityType) -> bool:
        """Whether *entity_id* is stored *and* is of *entity_type*.

        Ids are shared across kinds, so existence alone is not enough.
        """
        item = self._table.get_item(entity_id)
        return item is not None and item.get("entity_type") == entity_type
