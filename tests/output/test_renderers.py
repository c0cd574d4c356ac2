"""Tests for the Rich renderers."""

from __future__ import annotations

from imgroute.output.renderers import render_quiet, render_result
from imgroute.services.result import ServiceError, ServiceResult

ORIGIN_ID = "1b4e28ba-2fa1-4d3b-a3f5-ef19b5a7633b"
POLICY = {
    "policyId": "6f1c2d3e-4b5a-4c6d-8e7f-9a0b1c2d3e4f",
    "policyName": "thumbs",
    "policyJSON": {
        "transformations": [{"transformation": "resize", "value": {"width": 200}}],
        "outputs": [{"type": "format", "value": "auto"}],
    },
    "isDefault": True,
    "createdAt": "2025-01-31T12:00:00.000Z",
}


def _list(op: str, items: list[dict[str, object]], token: str | None = None) -> ServiceResult:
    data: dict[str, object] = {"items": items}
    if token:
        data["nextToken"] = token
    return ServiceResult(ok=True, op=op, data=data, meta={"count": len(items)})


class TestRenderList:
    def test_table_and_count(self) -> None:
        result = _list(
            "list_origins",
            [{"originId": ORIGIN_ID, "originName": "assets", "originDomain": "a.example.com"}],
        )
        output = render_result(result)
        assert "assets" in output
        assert "a.example.com" in output
        assert "1 items" in output
        assert "next token" not in output

    def test_next_token_shown(self) -> None:
        output = render_result(_list("list_origins", [], token="eyJwayI6IngifQ=="))
        assert "next token: eyJwayI6IngifQ==" in output

    def test_mapping_pattern_column(self) -> None:
        result = _list(
            "list_mappings",
            [
                {"mappingId": "m1", "mappingName": "a", "pathPattern": "/a/*", "originId": "o"},
                {"mappingId": "m2", "mappingName": "b", "hostHeaderPattern": "[b].example.com"},
            ],
        )
        output = render_result(result)
        assert "/a/*" in output
        assert "[b].example.com" in output


class TestRenderEntity:
    def test_policy_summary(self) -> None:
        output = render_result(ServiceResult(ok=True, op="get_policy", data=POLICY))
        assert "isDefault: True" in output
        assert "1 transformations, 1 outputs" in output
        assert "resize" not in output

    def test_policy_verbose_shows_document(self) -> None:
        output = render_result(ServiceResult(ok=True, op="get_policy", data=POLICY), verbose=True)
        assert "resize" in output

    def test_default_policy_uses_policy_view(self) -> None:
        output = render_result(ServiceResult(ok=True, op="get_default_policy", data=POLICY))
        assert "get_default_policy" in output
        assert "1 transformations" in output

    def test_deleted(self) -> None:
        output = render_result(ServiceResult(ok=True, op="delete_origin", data={"id": ORIGIN_ID}))
        assert "delete_origin" in output
        assert ORIGIN_ID in output


class TestRenderError:
    def test_error_line(self) -> None:
        result = ServiceResult(
            ok=False,
            op="create_mapping",
            error=ServiceError(
                code="DANGLING_REFERENCE",
                message="Origin not found: x",
                detail={"entity": "ORIGIN", "id": "x"},
            ),
        )
        output = render_result(result)
        assert "ERROR" in output
        assert "[DANGLING_REFERENCE]" in output
        assert "Origin not found: x" in output
        assert "detail" not in output
        assert "entity: ORIGIN" in render_result(result, verbose=True)


class TestRenderQuiet:
    def test_list_ids(self) -> None:
        result = _list("list_origins", [{"originId": "a"}, {"originId": "b"}])
        assert render_quiet(result) == "a\nb"

    def test_entity_id(self) -> None:
        assert render_quiet(ServiceResult(ok=True, op="create_policy", data=POLICY)) == (
            POLICY["policyId"]
        )

    def test_delete_id(self) -> None:
        result = ServiceResult(ok=True, op="delete_mapping", data={"id": "m1"})
        assert render_quiet(result) == "m1"

    def test_error(self) -> None:
        result = ServiceResult(
            ok=False, op="get_origin", error=ServiceError(code="NOT_FOUND", message="gone")
        )
        assert render_quiet(result) == "ERROR: get_origin - gone"
