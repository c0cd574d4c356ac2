"""Envelope records: the stored shape of each entity kind.

Every record shares the envelope fields (primary key, type
discriminator, sort key, timestamps) and carries its entity payload in
``data``. Raw table items are re-validated against these models on
every read and before every write.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, StrictBool, TypeAdapter, model_validator
from pydantic.alias_generators import to_camel

from imgroute.domain.entities import (
    Domain,
    Headers,
    HostHeaderPattern,
    MappingDescription,
    Name,
    OriginPath,
    PathPattern,
    PolicyDescription,
    Timestamp,
    Uuid4,
)
from imgroute.domain.policy_document import PolicyDocument
from imgroute.domain.types import EntityType

_PATH_PATTERN: TypeAdapter[str] = TypeAdapter(PathPattern)
_HOST_PATTERN: TypeAdapter[str] = TypeAdapter(HostHeaderPattern)


class _Payload(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="forbid", frozen=True
    )


class OriginData(_Payload):
    origin_name: Name
    origin_domain: Domain
    origin_path: OriginPath | None = None
    origin_headers: Headers | None = None


class PolicyData(_Payload):
    policy_name: Name
    description: PolicyDescription | None = None
    policy_json: PolicyDocument = Field(alias="policyJSON")
    is_default: StrictBool


class MappingData(_Payload):
    """``pattern`` is a path or host-header pattern depending on the record type."""

    mapping_name: Name
    description: MappingDescription | None = None
    pattern: str


class StoredRecord(BaseModel):
    """Fields common to every entity record."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    pk: Uuid4
    entity_type: EntityType
    sort_key: str
    created_at: Timestamp
    updated_at: Timestamp | None = None

    def to_item(self) -> dict[str, Any]:
        """Table item for this record."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class OriginRecord(StoredRecord):
    entity_type: Literal["ORIGIN"]
    data: OriginData


class PolicyRecord(StoredRecord):
    entity_type: Literal["POLICY"]
    data: PolicyData


class MappingRecord(StoredRecord):
    entity_type: Literal["PATH_MAPPING", "HOST_HEADER_MAPPING"]
    origin_ref: Uuid4
    policy_ref: Uuid4 | None = None
    data: MappingData

    @model_validator(mode="after")
    def _check_pattern(self) -> MappingRecord:
        adapter = _PATH_PATTERN if self.entity_type == EntityType.PATH_MAPPING else _HOST_PATTERN
        adapter.validate_python(self.data.pattern)
        return self
