"""Wire-level entity models and their create/update request shapes.

Field names are snake_case in Python and camelCase on the wire
(``origin_name`` <-> ``originName``). Every model is closed: unknown
fields are rejected. Models are frozen; updates produce new instances.
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StringConstraints,
    model_validator,
)
from pydantic.alias_generators import to_camel

from imgroute.domain.ids import UUID4_PATTERN, parse_iso
from imgroute.domain.policy_document import PolicyDocument


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        frozen=True,
    )

    def to_wire(self) -> dict[str, Any]:
        """camelCase JSON dict, absent optionals omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def _check_timestamp(value: str) -> str:
    parse_iso(value)
    return value


# ---------------------------------------------------------------------------
# Field types
# ---------------------------------------------------------------------------

Uuid4 = Annotated[str, StringConstraints(pattern=UUID4_PATTERN)]
Timestamp = Annotated[str, AfterValidator(_check_timestamp)]

Name = Annotated[
    str,
    StringConstraints(
        strip_whitespace=True, min_length=1, max_length=100, pattern=r"^[a-zA-Z0-9 _-]+$"
    ),
]
Domain = Annotated[
    str,
    StringConstraints(
        min_length=1,
        max_length=253,
        pattern=(
            r"^[a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
            r"(\.[a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*\.[a-zA-Z]{2,}$"
        ),
    ),
]
OriginPath = Annotated[
    str,
    StringConstraints(
        min_length=2, max_length=2048, pattern=r"^/[a-zA-Z0-9_-]+(?:/[a-zA-Z0-9_-]+)*[^.]$"
    ),
]
HeaderName = Annotated[
    str, StringConstraints(min_length=1, max_length=100, pattern=r"^[a-zA-Z0-9-]+$")
]
HeaderValue = Annotated[
    str, StringConstraints(min_length=1, max_length=1000, pattern=r"^[a-zA-Z0-9 ._:;,/=+-]+$")
]
Headers = dict[HeaderName, HeaderValue]

PolicyDescription = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=1, max_length=500)
]
MappingDescription = Annotated[str, StringConstraints(strip_whitespace=True, max_length=500)]
PathPattern = Annotated[
    str,
    StringConstraints(min_length=1, max_length=1023, pattern=r"^/([a-zA-Z0-9._-]+/?)*(\*)?$"),
]
HostHeaderPattern = Annotated[
    str,
    StringConstraints(
        min_length=1,
        max_length=253,
        pattern=(
            r"^(\*\.)?[a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
            r"(\.[a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
        ),
    ),
]


def _require_any_field(model: BaseModel) -> None:
    """Reject updates that set nothing; a field sent as null does not count."""
    if all(getattr(model, name) is None for name in model.model_fields_set):
        msg = "At least one field must be provided for update"
        raise ValueError(msg)


# ---------------------------------------------------------------------------
# Origin
# ---------------------------------------------------------------------------


class Origin(_WireModel):
    """Upstream image source."""

    origin_id: Uuid4
    origin_name: Name
    origin_domain: Domain
    origin_path: OriginPath | None = None
    origin_headers: Headers | None = None
    created_at: Timestamp
    updated_at: Timestamp | None = None


class OriginCreate(_WireModel):
    origin_name: Name
    origin_domain: Domain
    origin_path: OriginPath | None = None
    origin_headers: Headers | None = None


class OriginUpdate(_WireModel):
    origin_name: Name | None = None
    origin_domain: Domain | None = None
    origin_path: OriginPath | None = None
    origin_headers: Headers | None = None

    @model_validator(mode="after")
    def _any_field(self) -> OriginUpdate:
        _require_any_field(self)
        return self


# ---------------------------------------------------------------------------
# Transformation policy
# ---------------------------------------------------------------------------


class TransformationPolicy(_WireModel):
    """Named image-processing rule set; at most one is the default."""

    policy_id: Uuid4
    policy_name: Name
    description: PolicyDescription | None = None
    policy_json: PolicyDocument = Field(alias="policyJSON")
    is_default: StrictBool
    created_at: Timestamp
    updated_at: Timestamp | None = None


class PolicyCreate(_WireModel):
    policy_name: Name
    description: PolicyDescription | None = None
    policy_json: PolicyDocument = Field(alias="policyJSON")
    is_default: StrictBool = False


class PolicyUpdate(_WireModel):
    policy_name: Name | None = None
    description: PolicyDescription | None = None
    policy_json: PolicyDocument | None = Field(default=None, alias="policyJSON")
    is_default: StrictBool | None = None

    @model_validator(mode="after")
    def _any_field(self) -> PolicyUpdate:
        _require_any_field(self)
        return self


# ---------------------------------------------------------------------------
# Mapping
# ---------------------------------------------------------------------------


class Mapping(_WireModel):
    """Routing rule: a path or host-header pattern bound to an origin.

    A mapping carries a pattern of one kind. A value carrying both kinds
    can exist transiently while an update is merged; the mapping store
    refuses to persist it.
    """

    mapping_id: Uuid4
    mapping_name: Name
    description: MappingDescription | None = None
    path_pattern: PathPattern | None = None
    host_header_pattern: HostHeaderPattern | None = None
    origin_id: Uuid4
    policy_id: Uuid4 | None = None
    created_at: Timestamp
    updated_at: Timestamp | None = None

    @model_validator(mode="after")
    def _has_pattern(self) -> Mapping:
        if self.path_pattern is None and self.host_header_pattern is None:
            msg = "One of hostHeaderPattern or pathPattern must be provided"
            raise ValueError(msg)
        return self


class MappingCreate(_WireModel):
    mapping_name: Name
    description: MappingDescription | None = None
    path_pattern: PathPattern | None = None
    host_header_pattern: HostHeaderPattern | None = None
    origin_id: Uuid4
    policy_id: Uuid4 | None = None

    @model_validator(mode="after")
    def _exactly_one_pattern(self) -> MappingCreate:
        if (self.path_pattern is None) == (self.host_header_pattern is None):
            msg = "Exactly one of hostHeaderPattern or pathPattern must be provided"
            raise ValueError(msg)
        return self


class MappingUpdate(_WireModel):
    mapping_name: Name | None = None
    description: MappingDescription | None = None
    path_pattern: PathPattern | None = None
    host_header_pattern: HostHeaderPattern | None = None
    origin_id: Uuid4 | None = None
    policy_id: Uuid4 | None = None

    @model_validator(mode="after")
    def _check_fields(self) -> MappingUpdate:
        _require_any_field(self)
        if self.path_pattern is not None and self.host_header_pattern is not None:
            msg = "Cannot have both hostHeaderPattern and pathPattern"
            raise ValueError(msg)
        return self
