"""EntityService: the per-kind orchestrator over an entity store.

Pipeline for writes: VALIDATE -> BUILD -> STORE -> RESPOND.

Raw request payloads go through the kind's ``Validator``; the service
assigns ids and timestamps, hands a wire entity to the store, and turns
every store or backend exception into a ``ServiceError`` whose code is
an :class:`ErrorKind`.
"""

from __future__ import annotations

import functools
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar

import structlog
from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import SQLAlchemyError

from imgroute.domain.ids import generate_id, is_valid_id, now_iso
from imgroute.domain.types import ErrorKind
from imgroute.domain.validation import format_errors
from imgroute.infrastructure.database import (
    ConditionalCheckFailedError,
    TableError,
    ThrottlingError,
)
from imgroute.infrastructure.repositories import (
    DanglingReferenceError,
    DefaultPolicyExistsError,
    MappingKindError,
    ReferencedEntityError,
    StoreError,
)
from imgroute.services.result import ServiceError, ServiceResult

if TYPE_CHECKING:
    from imgroute.domain.validation import Validator
    from imgroute.infrastructure.repositories import EntityStore

logger = structlog.get_logger(__name__)

EntityT = TypeVar("EntityT", bound=BaseModel)

# Converted into failed results; anything else is a bug and propagates.
HANDLED_ERRORS = (TableError, StoreError, ValidationError, SQLAlchemyError)


def failure(op: str, code: ErrorKind, message: str, **detail: Any) -> ServiceResult:
    """Failed result carrying an ErrorKind code."""
    return ServiceResult(
        ok=False,
        op=op,
        error=ServiceError(code=code, message=message, detail=detail),
    )


def bind_op(
    method: Callable[..., ServiceResult],
) -> Callable[..., ServiceResult]:
    """Bind ``op`` and ``kind`` into the log context for one service call.

    The op is the method name joined to the plural for ``list`` and to
    the kind otherwise, so store logs emitted underneath carry it.
    """

    @functools.wraps(method)
    def wrapper(self: EntityService[Any], *args: Any, **kwargs: Any) -> ServiceResult:
        noun = self.plural if method.__name__ == "list" else self.kind
        op = f"{method.__name__}_{noun}"
        with structlog.contextvars.bound_contextvars(op=op, kind=self.kind):
            return method(self, *args, **kwargs)

    return wrapper


class EntityService(Generic[EntityT]):
    """CRUD orchestration for one entity kind.

    Subclasses set the class attributes and build their store::

        class OriginService(EntityService[Origin]):
            kind = "origin"
            plural = "origins"
            label = "Origin"
            entity_model = Origin
            id_field = "originId"
    """

    kind: ClassVar[str]
    plural: ClassVar[str]
    label: ClassVar[str]
    entity_model: ClassVar[type[BaseModel]]
    id_field: ClassVar[str]

    def __init__(self, store: EntityStore[Any, EntityT], validator: Validator) -> None:
        self._store = store
        self._validator = validator

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @bind_op
    def list(self, next_token: str | None = None) -> ServiceResult:
        """One page of entities; pass ``nextToken`` back for the next."""
        op = f"list_{self.plural}"
        try:
            page = self._store.list(next_token)
        except HANDLED_ERRORS as exc:
            return self._error(op, exc)

        data: dict[str, Any] = {"items": [entity.to_wire() for entity in page.items]}
        if page.next_token is not None:
            data["nextToken"] = page.next_token
        return ServiceResult(ok=True, op=op, data=data, meta={"count": len(page.items)})

    @bind_op
    def get(self, entity_id: str) -> ServiceResult:
        op = f"get_{self.kind}"
        if not is_valid_id(entity_id):
            return self._invalid_id(op, entity_id)
        try:
            entity = self._store.get(entity_id)
        except HANDLED_ERRORS as exc:
            return self._error(op, exc, entity_id=entity_id)
        if entity is None:
            return self._not_found(op, entity_id)
        return ServiceResult(ok=True, op=op, data=entity.to_wire())

    @bind_op
    def create(self, payload: Any) -> ServiceResult:
        """Validate *payload*, assign an id and ``createdAt``, and store it."""
        op = f"create_{self.kind}"
        result = self._validator.validate_create(payload)
        if not result.valid:
            return self._invalid_payload(op, result.errors)

        entity_id = generate_id()
        try:
            entity = self.entity_model.model_validate(
                {**result.data, self.id_field: entity_id, "createdAt": now_iso()}
            )
            created = self._store.create(entity)
        except HANDLED_ERRORS as exc:
            return self._error(op, exc, entity_id=entity_id)

        logger.debug("entity_created", id=entity_id)
        return ServiceResult(ok=True, op=op, data=created.to_wire())

    @bind_op
    def update(self, entity_id: str, payload: Any) -> ServiceResult:
        """Merge *payload* over the stored entity and rewrite it."""
        op = f"update_{self.kind}"
        if not is_valid_id(entity_id):
            return self._invalid_id(op, entity_id)
        result = self._validator.validate_update(payload)
        if not result.valid:
            return self._invalid_payload(op, result.errors)

        try:
            current = self._store.get(entity_id)
            if current is None:
                return self._not_found(op, entity_id)
            entity = self.entity_model.model_validate(
                {**current.to_wire(), **result.data, "updatedAt": now_iso()}
            )
            updated = self._store.update(entity)
        except HANDLED_ERRORS as exc:
            return self._error(op, exc, entity_id=entity_id)

        logger.debug("entity_updated", id=entity_id, fields=sorted(result.data))
        return ServiceResult(ok=True, op=op, data=updated.to_wire())

    @bind_op
    def delete(self, entity_id: str) -> ServiceResult:
        op = f"delete_{self.kind}"
        if not is_valid_id(entity_id):
            return self._invalid_id(op, entity_id)
        try:
            self._store.delete(entity_id)
        except HANDLED_ERRORS as exc:
            return self._error(op, exc, entity_id=entity_id)

        logger.debug("entity_deleted", id=entity_id)
        return ServiceResult(ok=True, op=op, data={"id": entity_id})

    # ------------------------------------------------------------------
    # Error mapping
    # ------------------------------------------------------------------

    def _invalid_id(self, op: str, entity_id: str) -> ServiceResult:
        return failure(
            op, ErrorKind.INVALID_FIELD, f"Invalid {self.label} id: {entity_id!r}", field="id"
        )

    def _invalid_payload(self, op: str, errors: list[str]) -> ServiceResult:
        return failure(
            op,
            ErrorKind.INVALID_FIELD,
            f"Invalid {self.label} request: {'; '.join(errors)}",
            errors=errors,
        )

    def _not_found(self, op: str, entity_id: str) -> ServiceResult:
        return failure(
            op, ErrorKind.NOT_FOUND, f"{self.label} not found: {entity_id}", id=entity_id
        )

    def _error(self, op: str, exc: Exception, *, entity_id: str | None = None) -> ServiceResult:
        """Translate a store or backend exception into a failed result."""
        if isinstance(exc, ThrottlingError):
            return failure(op, ErrorKind.THROTTLED, "Too many requests, retry later")
        if isinstance(exc, ConditionalCheckFailedError):
            if op.startswith("create_"):
                return failure(op, ErrorKind.DUPLICATE, "Duplicate item found", id=exc.pk)
            return self._not_found(op, entity_id or exc.pk)
        if isinstance(exc, DanglingReferenceError):
            return failure(
                op,
                ErrorKind.DANGLING_REFERENCE,
                str(exc),
                entity=exc.entity_type.value,
                id=exc.ref_id,
            )
        if isinstance(exc, ReferencedEntityError):
            return failure(op, ErrorKind.REFERENCED_ENTITY, str(exc), id=exc.entity_id)
        if isinstance(exc, DefaultPolicyExistsError):
            return failure(op, ErrorKind.SINGLETON_CONFLICT, str(exc))
        if isinstance(exc, MappingKindError):
            return failure(op, ErrorKind.INVALID_FIELD, str(exc))
        if isinstance(exc, ValidationError):
            errors = format_errors(exc)
            return failure(
                op,
                ErrorKind.INVALID_FIELD,
                f"Invalid {self.label}: {'; '.join(errors)}",
                errors=errors,
            )

        logger.exception("internal_error", id=entity_id)
        return failure(op, ErrorKind.INTERNAL, "Internal error", reason=str(exc))
