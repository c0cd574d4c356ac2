"""Store-level error signals.

Failed existence preconditions are reported with the table's own
:class:`~imgroute.infrastructure.database.ConditionalCheckFailedError`;
the classes here cover the rules the stores add on top of the table.
"""

from __future__ import annotations

from imgroute.domain.types import EntityType


class StoreError(Exception):
    """Base class for store-level failures."""


class InvalidRecordError(StoreError):
    """A record about to be written failed schema validation."""

    def __init__(self, pk: str, errors: list[str]) -> None:
        self.pk = pk
        self.errors = errors
        super().__init__(f"Invalid record {pk}: {'; '.join(errors)}")


class ReferencedEntityError(StoreError):
    """Delete blocked: a mapping still references the entity."""

    def __init__(self, entity_type: EntityType, entity_id: str) -> None:
        self.entity_type = entity_type
        self.entity_id = entity_id
        kind = "Origin" if entity_type == EntityType.ORIGIN else "Policy"
        super().__init__(f"{kind} {entity_id} is referenced by a mapping, cannot delete")


class DanglingReferenceError(StoreError):
    """A mapping names an origin or policy that does not exist."""

    def __init__(self, entity_type: EntityType, ref_id: str) -> None:
        self.entity_type = entity_type
        self.ref_id = ref_id
        kind = "Origin" if entity_type == EntityType.ORIGIN else "Policy"
        super().__init__(f"{kind} not found: {ref_id}")


class DefaultPolicyExistsError(StoreError):
    """Another policy already holds the default claim."""

    def __init__(self) -> None:
        super().__init__("A default policy already exists")


class MappingKindError(StoreError):
    """A mapping would carry both patterns, or switch pattern kind."""
