"""Tests for PolicyService and the default-policy rule."""

from __future__ import annotations

from imgroute.domain.ids import generate_id
from imgroute.services import MappingService, OriginService, PolicyService
from tests.conftest import mapping_payload, origin_payload, policy_payload


class TestCreate:
    def test_document_is_normalised(self, policies: PolicyService) -> None:
        result = policies.create(
            policy_payload(
                policyJSON={"transformations": [{"transformation": "tint", "value": [1, 2, 3]}]}
            )
        )
        assert result.ok
        assert result.data["policyJSON"]["transformations"][0]["value"] == [1, 2, 3, 1]
        assert result.data["isDefault"] is False

    def test_invalid_document(self, policies: PolicyService) -> None:
        result = policies.create(policy_payload(policyJSON={"outputs": []}))
        assert result.error is not None
        assert result.error.code == "INVALID_FIELD"

    def test_second_default(self, policies: PolicyService) -> None:
        assert policies.create(policy_payload("a", isDefault=True)).ok
        result = policies.create(policy_payload("b", isDefault=True))
        assert result.error is not None
        assert result.error.code == "SINGLETON_CONFLICT"
        assert result.error.message == "A default policy already exists"
        assert len(policies.list().data["items"]) == 1


class TestDefault:
    def test_no_default(self, policies: PolicyService) -> None:
        policies.create(policy_payload())
        result = policies.get_default()
        assert result.op == "get_default_policy"
        assert result.error is not None
        assert result.error.code == "NOT_FOUND"

    def test_get_default(self, policies: PolicyService) -> None:
        created = policies.create(policy_payload(isDefault=True)).data
        result = policies.get_default()
        assert result.ok
        assert result.data == created

    def test_move_default_by_update(self, policies: PolicyService) -> None:
        first = policies.create(policy_payload("a", isDefault=True)).data
        second = policies.create(policy_payload("b")).data

        conflict = policies.update(second["policyId"], {"isDefault": True})
        assert conflict.error is not None
        assert conflict.error.code == "SINGLETON_CONFLICT"

        assert policies.update(first["policyId"], {"isDefault": False}).ok
        assert policies.update(second["policyId"], {"isDefault": True}).ok
        assert policies.get_default().data["policyId"] == second["policyId"]

    def test_delete_default(self, policies: PolicyService) -> None:
        created = policies.create(policy_payload(isDefault=True)).data
        assert policies.delete(created["policyId"]).ok
        assert policies.get_default().error is not None
        assert policies.create(policy_payload("next", isDefault=True)).ok


class TestUpdate:
    def test_replace_document(self, policies: PolicyService) -> None:
        created = policies.create(policy_payload()).data
        doc = {"outputs": [{"type": "quality", "value": [70]}]}
        result = policies.update(created["policyId"], {"policyJSON": doc})
        assert result.ok
        assert result.data["policyJSON"] == doc
        assert result.data["policyName"] == created["policyName"]

    def test_missing(self, policies: PolicyService) -> None:
        result = policies.update(generate_id(), {"isDefault": True})
        assert result.error is not None
        assert result.error.code == "NOT_FOUND"

    def test_origin_id_is_not_a_policy(
        self, policies: PolicyService, origins: OriginService
    ) -> None:
        origin_id = origins.create(origin_payload()).data["originId"]
        result = policies.update(origin_id, {"policyName": "hijack"})
        assert result.error is not None
        assert result.error.code == "NOT_FOUND"
        assert origins.get(origin_id).data["originName"] == "assets"


def test_delete_referenced_policy(
    policies: PolicyService, origins: OriginService, mappings: MappingService
) -> None:
    policy_id = policies.create(policy_payload()).data["policyId"]
    origin_id = origins.create(origin_payload()).data["originId"]
    assert mappings.create(mapping_payload(origin_id, policyId=policy_id)).ok

    result = policies.delete(policy_id)
    assert result.error is not None
    assert result.error.code == "REFERENCED_ENTITY"
    assert policies.get(policy_id).ok
