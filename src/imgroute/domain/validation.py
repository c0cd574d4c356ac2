"""Request validators: raw payload in, normalised wire dict out.

Services depend only on the ``Validator`` protocol, so a caller can
swap in a different schema source without touching the stores.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

from pydantic import BaseModel, ValidationError

from imgroute.domain.entities import (
    MappingCreate,
    MappingUpdate,
    OriginCreate,
    OriginUpdate,
    PolicyCreate,
    PolicyUpdate,
)


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating one payload."""

    valid: bool
    data: dict[str, Any] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)


class Validator(Protocol):
    def validate_create(self, payload: Any) -> ValidationResult: ...

    def validate_update(self, payload: Any) -> ValidationResult: ...


def format_errors(exc: ValidationError) -> list[str]:
    """Flatten pydantic errors to ``loc: message`` strings."""
    messages: list[str] = []
    for error in exc.errors():
        loc = ".".join(str(part) for part in error["loc"])
        messages.append(f"{loc}: {error['msg']}" if loc else error["msg"])
    return messages


class ModelValidator:
    """Validator backed by a pair of pydantic request models.

    Create payloads are returned with defaults filled in. Update payloads
    only carry the fields the caller actually sent; ``null`` leaves a
    field unchanged, but at least one field must be non-null.
    """

    def __init__(self, create_model: type[BaseModel], update_model: type[BaseModel]) -> None:
        self._create_model = create_model
        self._update_model = update_model

    def validate_create(self, payload: Any) -> ValidationResult:
        return self._validate(self._create_model, payload, exclude_unset=False)

    def validate_update(self, payload: Any) -> ValidationResult:
        return self._validate(self._update_model, payload, exclude_unset=True)

    @staticmethod
    def _validate(model: type[BaseModel], payload: Any, *, exclude_unset: bool) -> ValidationResult:
        if not isinstance(payload, dict):
            return ValidationResult(valid=False, errors=["Request body must be a JSON object"])
        try:
            parsed = model.model_validate(payload)
        except ValidationError as exc:
            return ValidationResult(valid=False, errors=format_errors(exc))
        data = parsed.model_dump(
            mode="json", by_alias=True, exclude_none=True, exclude_unset=exclude_unset
        )
        return ValidationResult(valid=True, data=data)


ORIGIN_VALIDATOR = ModelValidator(OriginCreate, OriginUpdate)
POLICY_VALIDATOR = ModelValidator(PolicyCreate, PolicyUpdate)
MAPPING_VALIDATOR = ModelValidator(MappingCreate, MappingUpdate)
