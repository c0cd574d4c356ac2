"""Opaque pagination tokens.

A token is the URL-safe base64 of a JSON cursor. Callers treat it as
opaque; only the stores decode it.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from typing import TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from imgroute.infrastructure.database import PageKey

logger = logging.getLogger(__name__)

CursorT = TypeVar("CursorT", bound=BaseModel)


class MappingCursor(BaseModel):
    """Resume positions of the two mapping sub-collections.

    A missing side means that sub-collection is exhausted.
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="forbid", frozen=True
    )

    path: PageKey | None = None
    host_header: PageKey | None = None

    @model_validator(mode="after")
    def _not_empty(self) -> MappingCursor:
        if self.path is None and self.host_header is None:
            msg = "cursor has no resume position"
            raise ValueError(msg)
        return self


def encode_token(cursor: BaseModel) -> str:
    payload = json.dumps(
        cursor.model_dump(mode="json", by_alias=True, exclude_none=True), separators=(",", ":")
    )
    return base64.urlsafe_b64encode(payload.encode()).decode("ascii")


def decode_token(token: str, model: type[CursorT]) -> CursorT | None:
    """Decode *token* into *model*; ``None`` (and a warning) if it is unusable."""
    try:
        raw = base64.urlsafe_b64decode(token.encode("ascii"))
        return model.model_validate_json(raw)
    except (binascii.Error, UnicodeError, ValidationError) as exc:
        logger.warning("Ignoring invalid pagination token, starting from the first page: %s", exc)
        return None
