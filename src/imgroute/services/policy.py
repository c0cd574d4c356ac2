"""PolicyService: transformation policies and the default policy."""

from __future__ import annotations

from imgroute.domain.entities import TransformationPolicy
from imgroute.domain.types import ErrorKind
from imgroute.domain.validation import POLICY_VALIDATOR, Validator
from imgroute.infrastructure.database import ConfigTable
from imgroute.infrastructure.repositories import DEFAULT_PAGE_SIZE, PolicyStore
from imgroute.services.base import HANDLED_ERRORS, EntityService, bind_op, failure
from imgroute.services.result import ServiceResult


class PolicyService(EntityService[TransformationPolicy]):
    kind = "policy"
    plural = "policies"
    label = "Policy"
    entity_model = TransformationPolicy
    id_field = "policyId"

    def __init__(
        self,
        table: ConfigTable,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        validator: Validator | None = None,
    ) -> None:
        self._policies = PolicyStore(table, page_size=page_size)
        super().__init__(self._policies, validator or POLICY_VALIDATOR)

    @bind_op
    def get_default(self) -> ServiceResult:
        """The policy applied when a mapping names none."""
        op = "get_default_policy"
        try:
            policy = self._policies.get_default()
        except HANDLED_ERRORS as exc:
            return self._error(op, exc)
        if policy is None:
            return failure(op, ErrorKind.NOT_FOUND, "No default policy is set")
        return ServiceResult(ok=True, op=op, data=policy.to_wire())
