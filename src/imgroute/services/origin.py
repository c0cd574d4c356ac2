"""OriginService: upstream image sources."""

from __future__ import annotations

from imgroute.domain.entities import Origin
from imgroute.domain.validation import ORIGIN_VALIDATOR, Validator
from imgroute.infrastructure.database import ConfigTable
from imgroute.infrastructure.repositories import DEFAULT_PAGE_SIZE, OriginStore
from imgroute.services.base import EntityService


class OriginService(EntityService[Origin]):
    kind = "origin"
    plural = "origins"
    label = "Origin"
    entity_model = Origin
    id_field = "originId"

    def __init__(
        self,
        table: ConfigTable,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        validator: Validator | None = None,
    ) -> None:
        super().__init__(OriginStore(table, page_size=page_size), validator or ORIGIN_VALIDATOR)
