"""Entity-type discriminator and error kinds shared by every layer."""

from __future__ import annotations

from enum import StrEnum


class EntityType(StrEnum):
    """Kinds of record stored in the shared configuration table."""

    ORIGIN = "ORIGIN"
    POLICY = "POLICY"
    PATH_MAPPING = "PATH_MAPPING"
    HOST_HEADER_MAPPING = "HOST_HEADER_MAPPING"


MAPPING_TYPES: tuple[EntityType, ...] = (
    EntityType.PATH_MAPPING,
    EntityType.HOST_HEADER_MAPPING,
)


class ErrorKind(StrEnum):
    """Error codes carried by ``ServiceError.code``."""

    INVALID_FIELD = "INVALID_FIELD"
    NOT_FOUND = "NOT_FOUND"
    DUPLICATE = "DUPLICATE"
    REFERENCED_ENTITY = "REFERENCED_ENTITY"
    DANGLING_REFERENCE = "DANGLING_REFERENCE"
    SINGLETON_CONFLICT = "SINGLETON_CONFLICT"
    THROTTLED = "THROTTLED"
    INTERNAL = "INTERNAL"
