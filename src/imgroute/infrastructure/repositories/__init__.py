"""Entity stores over the shared configuration table."""

from imgroute.infrastructure.repositories.base import DEFAULT_PAGE_SIZE, EntityStore, Page
from imgroute.infrastructure.repositories.errors import (
    DanglingReferenceError,
    DefaultPolicyExistsError,
    InvalidRecordError,
    MappingKindError,
    ReferencedEntityError,
    StoreError,
)
from imgroute.infrastructure.repositories.mapping import MappingStore
from imgroute.infrastructure.repositories.origin import OriginStore
from imgroute.infrastructure.repositories.policy import PolicyStore

__all__ = [
    "DEFAULT_PAGE_SIZE",
    "DanglingReferenceError",
    "DefaultPolicyExistsError",
    "EntityStore",
    "InvalidRecordError",
    "MappingKindError",
    "MappingStore",
    "OriginStore",
    "Page",
    "PolicyStore",
    "ReferencedEntityError",
    "StoreError",
]
