"""Tests for MappingService."""

from __future__ import annotations

import pytest

from imgroute.domain.ids import generate_id
from imgroute.services import MappingService, OriginService, PolicyService
from tests.conftest import mapping_payload, origin_payload, policy_payload


@pytest.fixture
def origin_id(origins: OriginService) -> str:
    return origins.create(origin_payload()).data["originId"]


class TestCreate:
    def test_path_mapping(self, mappings: MappingService, origin_id: str) -> None:
        result = mappings.create(mapping_payload(origin_id))
        assert result.ok
        assert result.data["pathPattern"] == "/thumbs/*"
        assert "hostHeaderPattern" not in result.data
        assert mappings.get(result.data["mappingId"]).data == result.data

    def test_host_mapping(self, mappings: MappingService, origin_id: str) -> None:
        result = mappings.create(mapping_payload(origin_id, hostHeaderPattern="img.example.com"))
        assert result.data["hostHeaderPattern"] == "img.example.com"
        assert "pathPattern" not in result.data

    def test_dangling_origin(self, mappings: MappingService) -> None:
        missing = generate_id()
        result = mappings.create(mapping_payload(missing))
        assert result.error is not None
        assert result.error.code == "DANGLING_REFERENCE"
        assert result.error.message == f"Origin not found: {missing}"
        assert result.error.detail == {"entity": "ORIGIN", "id": missing}

    def test_policy_id_as_origin(self, mappings: MappingService, policies: PolicyService) -> None:
        policy_id = policies.create(policy_payload()).data["policyId"]
        result = mappings.create(mapping_payload(policy_id))
        assert result.error is not None
        assert result.error.code == "DANGLING_REFERENCE"

    def test_dangling_policy(self, mappings: MappingService, origin_id: str) -> None:
        missing = generate_id()
        result = mappings.create(mapping_payload(origin_id, policyId=missing))
        assert result.error is not None
        assert result.error.message == f"Policy not found: {missing}"

    def test_both_patterns(self, mappings: MappingService, origin_id: str) -> None:
        result = mappings.create(
            mapping_payload(origin_id, pathPattern="/a", hostHeaderPattern="a.example.com")
        )
        assert result.error is not None
        assert result.error.code == "INVALID_FIELD"


class TestUpdate:
    def test_pattern_within_kind(self, mappings: MappingService, origin_id: str) -> None:
        mapping_id = mappings.create(mapping_payload(origin_id)).data["mappingId"]
        result = mappings.update(mapping_id, {"pathPattern": "/small/*"})
        assert result.ok
        assert result.data["pathPattern"] == "/small/*"

    def test_pattern_kind_is_immutable(self, mappings: MappingService, origin_id: str) -> None:
        created = mappings.create(mapping_payload(origin_id)).data
        result = mappings.update(created["mappingId"], {"hostHeaderPattern": "a.example.com"})
        assert result.error is not None
        assert result.error.code == "INVALID_FIELD"
        assert mappings.get(created["mappingId"]).data == created

    def test_both_patterns_in_payload(self, mappings: MappingService, origin_id: str) -> None:
        mapping_id = mappings.create(mapping_payload(origin_id)).data["mappingId"]
        result = mappings.update(
            mapping_id, {"pathPattern": "/b", "hostHeaderPattern": "a.example.com"}
        )
        assert result.error is not None
        assert result.error.code == "INVALID_FIELD"

    def test_attach_policy(
        self, mappings: MappingService, policies: PolicyService, origin_id: str
    ) -> None:
        mapping_id = mappings.create(mapping_payload(origin_id)).data["mappingId"]
        policy_id = policies.create(policy_payload()).data["policyId"]
        result = mappings.update(mapping_id, {"policyId": policy_id})
        assert result.data["policyId"] == policy_id

    def test_dangling_policy(self, mappings: MappingService, origin_id: str) -> None:
        mapping_id = mappings.create(mapping_payload(origin_id)).data["mappingId"]
        result = mappings.update(mapping_id, {"policyId": generate_id()})
        assert result.error is not None
        assert result.error.code == "DANGLING_REFERENCE"


class TestList:
    def test_mixed_kinds_across_pages(self, mappings: MappingService, origin_id: str) -> None:
        for n in range(3):
            mappings.create(mapping_payload(origin_id, f"p{n}", pathPattern=f"/p{n}"))
        for n in range(2):
            mappings.create(
                mapping_payload(origin_id, f"h{n}", hostHeaderPattern=f"h{n}.example.com")
            )

        names: list[str] = []
        token: str | None = None
        while True:
            result = mappings.list(token)
            assert result.op == "list_mappings"
            names.extend(item["mappingName"] for item in result.data["items"])
            token = result.data.get("nextToken")
            if token is None:
                break
        assert sorted(names) == ["h0", "h1", "p0", "p1", "p2"]
        assert len(names) == 5
