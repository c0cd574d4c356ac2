"""Transformation policy store with the single-default rule.

At most one policy may have ``isDefault`` set. The claim is held by a
control record at the fixed key ``DEFAULT_POLICY`` whose ``entity_id``
names the current default. Setting or clearing the flag writes the
policy and creates or deletes the control record in one transaction,
so concurrent claimants lose the transaction rather than racing.

Transaction layout is always ``[policy operation, control operation]``;
a cancellation is classified by which of the two failed.
"""

from __future__ import annotations

import logging
from typing import Any

from imgroute.domain.entities import TransformationPolicy
from imgroute.domain.ids import now_iso
from imgroute.domain.types import EntityType
from imgroute.infrastructure.database import (
    Condition,
    ConditionalCheckFailedError,
    Delete,
    Put,
    TableIndex,
    TransactionCanceledError,
)
from imgroute.infrastructure.repositories.base import EntityStore
from imgroute.infrastructure.repositories.errors import (
    DefaultPolicyExistsError,
    ReferencedEntityError,
    StoreError,
)
from imgroute.infrastructure.repositories.records import PolicyRecord

logger = logging.getLogger(__name__)

CONTROL_RECORD_KEY = "DEFAULT_POLICY"

_ENVELOPE_FIELDS = ("policyId", "createdAt", "updatedAt")
_POLICY_OP = 0


def _control_item(policy_id: str) -> dict[str, Any]:
    return {"pk": CONTROL_RECORD_KEY, "entity_id": policy_id, "created_at": now_iso()}


class PolicyStore(EntityStore[PolicyRecord, TransformationPolicy]):
    """Transformation policies, listed by name."""

    entity_types = (EntityType.POLICY,)

    def validate_record(self, item: dict[str, Any]) -> PolicyRecord:
        return PolicyRecord.model_validate(item)

    def to_record(self, entity: TransformationPolicy) -> dict[str, Any]:
        wire = entity.to_wire()
        return {
            "pk": entity.policy_id,
            "entity_type": EntityType.POLICY.value,
            "sort_key": entity.policy_name,
            "created_at": entity.created_at,
            "updated_at": entity.updated_at,
            "data": {k: v for k, v in wire.items() if k not in _ENVELOPE_FIELDS},
        }

    def from_record(self, record: PolicyRecord) -> TransformationPolicy:
        return TransformationPolicy.model_validate(
            {
                **record.data.model_dump(mode="json", by_alias=True, exclude_none=True),
                "policyId": record.pk,
                "createdAt": record.created_at,
                "updatedAt": record.updated_at,
            }
        )

    # -- default policy ------------------------------------------------------

    def get_default(self) -> TransformationPolicy | None:
        """The policy currently holding the default claim, if any."""
        control = self._table.get_item(CONTROL_RECORD_KEY)
        if control is None or "entity_id" not in control:
            return None
        policy = self.get(control["entity_id"])
        if policy is None:
            logger.warning(
                "Default policy control record names missing policy %s", control["entity_id"]
            )
        return policy

    # -- writes --------------------------------------------------------------

    def create(self, entity: TransformationPolicy) -> TransformationPolicy:
        """Create a policy; a default one also claims the control record.

        Raises:
            ConditionalCheckFailedError: If the policy id already exists.
            DefaultPolicyExistsError: If another policy is the default.
        """
        if not entity.is_default:
            return super().create(entity)
        record = self._build(entity, created_at=now_iso())
        self._transact(
            [
                Put(record.to_item(), Condition.NOT_EXISTS),
                Put(_control_item(record.pk), Condition.NOT_EXISTS),
            ],
            claiming=True,
        )
        return self.from_record(record)

    def update(self, entity: TransformationPolicy) -> TransformationPolicy:
        """Rewrite a policy, moving the default claim when the flag changes.

        Raises:
            ConditionalCheckFailedError: If the policy does not exist.
            DefaultPolicyExistsError: If the flag is being set while another
                policy is the default.
        """
        current = self.get(entity.policy_id)
        if current is None:
            raise ConditionalCheckFailedError(entity.policy_id)
        if current.is_default == entity.is_default:
            return super().update(entity)

        record = self._build(entity, updated_at=now_iso())
        policy_put = Put(record.to_item(), Condition.EXISTS)
        if entity.is_default:
            control_op: Put | Delete = Put(_control_item(record.pk), Condition.NOT_EXISTS)
        else:
            control_op = Delete(CONTROL_RECORD_KEY, Condition.EXISTS)
        self._transact([policy_put, control_op], claiming=entity.is_default)
        return self.from_record(record)

    def delete(self, entity_id: str) -> None:
        """Delete an unreferenced policy, releasing the claim if it is the default.

        The control record decides whether the claim is released, so a
        default policy whose stored record no longer validates still frees it.

        Raises:
            ReferencedEntityError: If a mapping still uses the policy.
            ConditionalCheckFailedError: If the policy does not exist.
        """
        if self._table.exists(TableIndex.BY_POLICY, entity_id):
            raise ReferencedEntityError(EntityType.POLICY, entity_id)
        control = self._table.get_item(CONTROL_RECORD_KEY)
        if control is None or control.get("entity_id") != entity_id:
            super().delete(entity_id)
            return
        self._transact(
            [
                Delete(entity_id, Condition.EXISTS),
                Delete(CONTROL_RECORD_KEY, Condition.EXISTS),
            ],
            claiming=False,
        )

    def _transact(self, operations: list[Put | Delete], *, claiming: bool) -> None:
        try:
            self._table.transact_write(operations)
        except TransactionCanceledError as exc:
            if exc.failed_index == _POLICY_OP:
                op = operations[_POLICY_OP]
                key = op.item["pk"] if isinstance(op, Put) else op.pk
                raise ConditionalCheckFailedError(key) from exc
            if claiming:
                raise DefaultPolicyExistsError from exc
            logger.error("Default policy control record missing while releasing claim")
            raise StoreError("Default policy control record is missing") from exc
