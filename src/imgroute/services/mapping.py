"""MappingService: routing rules binding a pattern to an origin."""

from __future__ import annotations

from imgroute.domain.entities import Mapping
from imgroute.domain.validation import MAPPING_VALIDATOR, Validator
from imgroute.infrastructure.database import ConfigTable
from imgroute.infrastructure.repositories import DEFAULT_PAGE_SIZE, MappingStore
from imgroute.services.base import EntityService


class MappingService(EntityService[Mapping]):
    """Mappings over both sub-collections.

    Updates are merged over the stored mapping, so sending the other kind
    of pattern yields a mapping with both, which the store rejects.
    """

    kind = "mapping"
    plural = "mappings"
    label = "Mapping"
    entity_model = Mapping
    id_field = "mappingId"

    def __init__(
        self,
        table: ConfigTable,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        validator: Validator | None = None,
    ) -> None:
        super().__init__(MappingStore(table, page_size=page_size), validator or MAPPING_VALIDATOR)
