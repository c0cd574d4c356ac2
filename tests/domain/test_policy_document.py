"""Tests for the policyJSON document schema."""

from __future__ import annotations

from typing import Any

import pytest
from pydantic import ValidationError

from imgroute.domain.policy_document import PolicyDocument


def _step(name: str, value: Any, **extra: Any) -> dict[str, Any]:
    return {"transformation": name, "value": value, **extra}


def _doc(*steps: dict[str, Any], outputs: list[dict[str, Any]] | None = None) -> PolicyDocument:
    raw: dict[str, Any] = {}
    if steps:
        raw["transformations"] = list(steps)
    if outputs is not None:
        raw["outputs"] = outputs
    return PolicyDocument.model_validate(raw)


def _value(step: dict[str, Any]) -> Any:
    doc = _doc(step)
    assert doc.transformations is not None
    return doc.transformations[0].value


class TestDocumentShape:
    def test_needs_transformation_or_output(self) -> None:
        with pytest.raises(ValidationError, match="at least one transformation"):
            PolicyDocument.model_validate({})

    def test_outputs_only_is_valid(self) -> None:
        doc = _doc(outputs=[{"type": "format", "value": "auto"}])
        assert doc.transformations is None

    def test_empty_transformation_list_rejected(self) -> None:
        with pytest.raises(ValidationError):
            PolicyDocument.model_validate({"transformations": []})

    def test_too_many_transformations(self) -> None:
        with pytest.raises(ValidationError):
            _doc(*[_step("flip", True)] * 101)

    def test_unknown_top_level_key(self) -> None:
        with pytest.raises(ValidationError):
            PolicyDocument.model_validate(
                {"transformations": [_step("flip", True)], "extra": 1}
            )

    def test_unknown_transformation(self) -> None:
        with pytest.raises(ValidationError):
            _doc(_step("explode", True))

    def test_document_size_limit(self) -> None:
        condition = {"field": "Accept", "value": ["image/webp-variant"] * 1000}
        with pytest.raises(ValidationError, match="too large"):
            _doc(_step("flip", True, condition=condition))

    def test_condition_kept(self) -> None:
        doc = _doc(_step("format", "webp", condition={"field": "Accept", "value": "image/webp"}))
        assert doc.to_json()["transformations"][0]["condition"] == {
            "field": "Accept",
            "value": "image/webp",
        }

    def test_normalised_document_revalidates_unchanged(self) -> None:
        doc = _doc(
            _step("tint", [10, 20, 30]),
            _step("rotate", 450),
            _step("sharpen", {"sigma": 1}),
            outputs=[{"type": "quality", "value": [80, [1, 2, 0.5]]}],
        )
        again = PolicyDocument.model_validate(doc.to_json())
        assert again.to_json() == doc.to_json()


class TestTransformationValues:
    def test_booleans_are_strict(self) -> None:
        assert _value(_step("grayscale", True)) is True
        with pytest.raises(ValidationError, match="Invalid value for grayscale"):
            _doc(_step("grayscale", "yes"))

    def test_resize_needs_a_dimension(self) -> None:
        with pytest.raises(ValidationError, match="Invalid value for resize"):
            _doc(_step("resize", {"fit": "cover"}))

    @pytest.mark.parametrize("width", [0, 4001, 12.5])
    def test_resize_width_bounds(self, width: Any) -> None:
        with pytest.raises(ValidationError):
            _doc(_step("resize", {"width": width}))

    def test_resize_fields_are_camel_case(self) -> None:
        value = _value(_step("resize", {"width": 300, "withoutEnlargement": True}))
        assert value == {"width": 300, "withoutEnlargement": True}

    def test_resize_ratio_only(self) -> None:
        assert _value(_step("resize", {"ratio": 0.5})) == {"ratio": 0.5}

    def test_rotate_keeps_sign(self) -> None:
        assert _value(_step("rotate", -450)) == -90
        assert _value(_step("rotate", 720)) == 0

    def test_color_triplet_gets_alpha(self) -> None:
        assert _value(_step("tint", [255, 0, 0])) == [255, 0, 0, 1]

    @pytest.mark.parametrize("color", ["red", "#f00", "#ff000080", [0, 0, 0, 0.5]])
    def test_valid_colors(self, color: Any) -> None:
        _doc(_step("flatten", color))

    @pytest.mark.parametrize("color", ["#ff000", [256, 0, 0], [0, 0, 0, 0], "re"])
    def test_invalid_colors(self, color: Any) -> None:
        with pytest.raises(ValidationError):
            _doc(_step("flatten", color))

    def test_sharpen_defaults(self) -> None:
        assert _value(_step("sharpen", {"sigma": 1})) == {
            "sigma": 1.0,
            "m1": 1,
            "m2": 2,
            "x1": 2,
            "y2": 10,
            "y3": 20,
        }

    def test_smart_crop(self) -> None:
        assert _value(_step("smartCrop", {"index": 3})) == {"index": 3, "padding": 0}
        with pytest.raises(ValidationError):
            _doc(_step("smartCrop", {"index": 16}))

    def test_convolve_kernel_length(self) -> None:
        _doc(_step("convolve", {"width": 3, "height": 3, "kernel": [0, 1, 0] * 3}))
        with pytest.raises(ValidationError):
            _doc(_step("convolve", {"width": 3, "height": 3, "kernel": [0] * 8}))

    @pytest.mark.parametrize(
        ("name", "value"),
        [("blur", 0.2), ("quality", 101), ("format", "bmp"), ("extract", [0, 0, 10])],
    )
    def test_out_of_range_values(self, name: str, value: Any) -> None:
        with pytest.raises(ValidationError, match=f"Invalid value for {name}"):
            _doc(_step(name, value))

    def test_extract(self) -> None:
        assert _value(_step("extract", [0, 0, 100, 100])) == [0, 0, 100, 100]


class TestWatermark:
    def test_bare_domain_becomes_https(self) -> None:
        value = _value(_step("watermark", ["example.com/logo.png", [10, 10, 0.5, 0.2]]))
        assert value == ["https://example.com/logo.png", [10, 10, 0.5, 0.2]]

    def test_percentage_offsets(self) -> None:
        _doc(_step("watermark", ["https://example.com/logo.png", ["50p", "-10p", 1, 0.3]]))

    def test_list_of_watermarks(self) -> None:
        value = _value(
            _step(
                "watermark",
                [
                    ["a.example.com/x.png", [0, 0, 1, 0.5]],
                    ["b.example.com/y.png", [0, 0, 1, 0.5, 0.5]],
                ],
            )
        )
        assert [pair[0] for pair in value] == [
            "https://a.example.com/x.png",
            "https://b.example.com/y.png",
        ]

    def test_unsupported_protocol(self) -> None:
        with pytest.raises(ValidationError, match="protocol"):
            _doc(_step("watermark", ["ftp://example.com/logo.png", [0, 0, 1, 0.5]]))

    def test_needs_size_ratio(self) -> None:
        with pytest.raises(ValidationError, match="widthRatio or heightRatio"):
            _doc(_step("watermark", ["example.com/logo.png", [10, 10]]))

    def test_ratio_out_of_range(self) -> None:
        with pytest.raises(ValidationError):
            _doc(_step("watermark", ["example.com/logo.png", [10, 10, 1, 1.5]]))

    def test_empty_list(self) -> None:
        with pytest.raises(ValidationError, match="At least one watermark"):
            _doc(_step("watermark", []))


class TestOutputs:
    def test_duplicate_output_types(self) -> None:
        with pytest.raises(ValidationError, match="only be defined once"):
            _doc(outputs=[{"type": "format", "value": "webp"}, {"type": "format", "value": "png"}])

    def test_quality_rules(self) -> None:
        doc = _doc(outputs=[{"type": "quality", "value": [80, [1, 2, 0.5]]}])
        assert doc.to_json()["outputs"] == [{"type": "quality", "value": [80, [1, 2, 0.5]]}]

    @pytest.mark.parametrize("value", [[], [0], [80, [1, 2]], [80, [1, 2, 1.5]]])
    def test_invalid_quality(self, value: list[Any]) -> None:
        with pytest.raises(ValidationError):
            _doc(outputs=[{"type": "quality", "value": value}])

    def test_autosize(self) -> None:
        _doc(outputs=[{"type": "autosize", "value": [320, 640]}])
        with pytest.raises(ValidationError):
            _doc(outputs=[{"type": "autosize", "value": []}])

    def test_unknown_output_type(self) -> None:
        with pytest.raises(ValidationError):
            _doc(outputs=[{"type": "dpr", "value": 2}])
