"""Transformation policy document schema (the ``policyJSON`` payload).

A policy is an ordered list of image transformations, each optionally
guarded by a request condition, plus output optimizations applied to the
final image. The store treats the document as opaque JSON; only this
module knows its shape.

Transformation values are validated per transformation name and then
normalised to plain JSON data, so a stored document re-validates to an
identical value.
"""

from __future__ import annotations

import json
import math
import re
from typing import Annotated, Any, Literal
from urllib.parse import urlsplit

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StringConstraints,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

MAX_DOCUMENT_CHARS = 10_000
MAX_TRANSFORMATIONS = 100

ImageFormat = Literal["jpg", "jpeg", "png", "tiff", "webp", "gif", "avif"]
OutputFormat = Literal["auto", "jpg", "jpeg", "png", "tiff", "webp", "gif", "avif"]

_DOMAIN_RE = re.compile(
    r"^(?=.{1,253}$)[a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(\.[a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*\.[a-zA-Z]{2,}$"
)
_POSITION_RE = re.compile(r"^-?\d{1,4}p$")


class _ValueModel(BaseModel):
    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Shared value types
# ---------------------------------------------------------------------------

Byte = Annotated[int, Field(strict=True, ge=0, le=255)]
NonNegativeInt = Annotated[int, Field(strict=True, ge=0)]
PositiveInt = Annotated[int, Field(strict=True, gt=0)]


def _fill_alpha(value: tuple[Any, ...]) -> tuple[Any, ...]:
    """``[r, g, b]`` means fully opaque, same as ``[r, g, b, 1]``."""
    if len(value) == 3:
        return (*value, 1.0)
    return value


ColorTuple = Annotated[
    tuple[Byte, Byte, Byte, Annotated[float, Field(gt=0)]] | tuple[Byte, Byte, Byte],
    AfterValidator(_fill_alpha),
]
ColorName = Annotated[str, StringConstraints(min_length=3, max_length=20, pattern=r"^[a-zA-Z]+$")]
HexColor = Annotated[
    str,
    StringConstraints(pattern=r"^#([0-9a-fA-F]{3}|[0-9a-fA-F]{4}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$"),
]
Color = ColorTuple | ColorName | HexColor


class ConvolveValue(_ValueModel):
    width: PositiveInt
    height: PositiveInt
    kernel: Annotated[list[Annotated[int, Field(strict=True)]], Field(min_length=9, max_length=9)]


class ResizeValue(_ValueModel):
    width: Annotated[int, Field(strict=True, ge=1, le=4000)] | None = None
    height: Annotated[int, Field(strict=True, ge=1, le=4000)] | None = None
    fit: Literal["cover", "contain", "fill", "inside", "outside"] | None = None
    background: Color | None = None
    without_enlargement: StrictBool | None = None
    ratio: Annotated[float, Field(ge=0, le=1)] | None = None

    @model_validator(mode="after")
    def _needs_dimension(self) -> ResizeValue:
        if not (self.width or self.height or self.ratio):
            msg = "At least width or height must be provided"
            raise ValueError(msg)
        return self


class SharpenValue(_ValueModel):
    sigma: Annotated[float, Field(ge=0.000001, le=10)]
    m1: Annotated[int, Field(strict=True)] = 1
    m2: Annotated[int, Field(strict=True)] = 2
    x1: Annotated[int, Field(strict=True)] = 2
    y2: Annotated[int, Field(strict=True)] = 10
    y3: Annotated[int, Field(strict=True)] = 20


class SmartCropValue(_ValueModel):
    index: Annotated[int, Field(strict=True, ge=0, le=15)]
    padding: NonNegativeInt = 0


# ---------------------------------------------------------------------------
# Watermarks
# ---------------------------------------------------------------------------


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def _is_position(value: Any) -> bool:
    if isinstance(value, int) and not isinstance(value, bool):
        return True
    return isinstance(value, str) and len(value) <= 5 and _POSITION_RE.match(value) is not None


def _watermark_source(raw: Any) -> str:
    """Validate a watermark source; bare domains are read as https URLs."""
    if not isinstance(raw, str):
        msg = "Watermark source must be a string"
        raise ValueError(msg)
    url = raw if "://" in raw else f"https://{raw}"
    parts = urlsplit(url)
    if parts.scheme not in ("http", "https"):
        msg = "Invalid Watermark source domain protocol. Only HTTPS is supported."
        raise ValueError(msg)
    if not parts.hostname or _DOMAIN_RE.match(parts.hostname) is None:
        msg = f"Invalid watermark source domain: {raw!r}"
        raise ValueError(msg)
    return url


def _watermark_placement(raw: Any) -> list[Any]:
    """``[xOffset, yOffset, alpha?, widthRatio?, heightRatio?]``."""
    if not isinstance(raw, list | tuple) or not 2 <= len(raw) <= 5:
        msg = "Watermark placement must be [xOffset, yOffset, alpha?, widthRatio?, heightRatio?]"
        raise ValueError(msg)
    if not (_is_position(raw[0]) and _is_position(raw[1])):
        msg = "Watermark offsets must be integers or percentages like '50p'"
        raise ValueError(msg)
    for ratio in raw[2:]:
        if not _is_number(ratio) or not 0 <= ratio <= 1:
            msg = "Watermark alpha and size ratios must be numbers between 0 and 1"
            raise ValueError(msg)
    if len(raw) < 4:
        msg = "At least widthRatio or heightRatio must be provided"
        raise ValueError(msg)
    return list(raw)


def _watermark(raw: Any) -> list[Any]:
    """One ``[source, placement]`` pair, or a non-empty list of them."""
    if _is_pair(raw):
        return [_watermark_source(raw[0]), _watermark_placement(raw[1])]
    if not isinstance(raw, list | tuple):
        msg = "Watermark must be [source, placement] or a list of them"
        raise ValueError(msg)
    if not raw:
        msg = "At least one watermark required"
        raise ValueError(msg)
    if not all(_is_pair(item) for item in raw):
        msg = "Each watermark must be a [source, placement] pair"
        raise ValueError(msg)
    return [[_watermark_source(src), _watermark_placement(placement)] for src, placement in raw]


def _is_pair(item: Any) -> bool:
    return isinstance(item, list | tuple) and len(item) == 2 and isinstance(item[0], str)


# ---------------------------------------------------------------------------
# Transformations
# ---------------------------------------------------------------------------

TransformationName = Literal[
    "animated",
    "blur",
    "convolve",
    "extract",
    "normalize",
    "normalise",
    "grayscale",
    "greyscale",
    "resize",
    "format",
    "quality",
    "rotate",
    "sharpen",
    "smartCrop",
    "stripExif",
    "stripIcc",
    "flip",
    "flop",
    "tint",
    "flatten",
    "watermark",
]

_BOOL = TypeAdapter(StrictBool)
_COLOR: TypeAdapter[Any] = TypeAdapter(Color)

_VALUE_ADAPTERS: dict[str, TypeAdapter[Any]] = {
    "animated": _BOOL,
    "blur": TypeAdapter(Annotated[float, Field(ge=0.3, le=1000)]),
    "convolve": TypeAdapter(ConvolveValue),
    "extract": TypeAdapter(tuple[NonNegativeInt, NonNegativeInt, NonNegativeInt, NonNegativeInt]),
    "normalize": _BOOL,
    "normalise": _BOOL,
    "grayscale": _BOOL,
    "greyscale": _BOOL,
    "resize": TypeAdapter(ResizeValue),
    "format": TypeAdapter(ImageFormat),
    "quality": TypeAdapter(Annotated[int, Field(strict=True, ge=1, le=100)]),
    # Sign-preserving remainder: -450 rotates to -90, not 270.
    "rotate": TypeAdapter(Annotated[float, AfterValidator(lambda deg: math.fmod(deg, 360))]),
    "sharpen": TypeAdapter(StrictBool | SharpenValue),
    "smartCrop": TypeAdapter(StrictBool | SmartCropValue),
    "stripExif": _BOOL,
    "stripIcc": _BOOL,
    "flip": _BOOL,
    "flop": _BOOL,
    "tint": _COLOR,
    "flatten": _COLOR,
    "watermark": TypeAdapter(Annotated[Any, AfterValidator(_watermark)]),
}


class Condition(BaseModel):
    """Request field a transformation is conditional on."""

    model_config = ConfigDict(extra="forbid")

    field: str
    value: str | int | float | list[str | int | float]


class Transformation(BaseModel):
    """One transformation step; ``value`` is checked against its name."""

    model_config = ConfigDict(extra="forbid")

    transformation: TransformationName
    value: Any
    condition: Condition | None = None

    @model_validator(mode="after")
    def _check_value(self) -> Transformation:
        adapter = _VALUE_ADAPTERS[self.transformation]
        try:
            validated = adapter.validate_python(self.value)
        except ValidationError as exc:
            first = exc.errors()[0]
            msg = f"Invalid value for {self.transformation}: {first['msg']}"
            raise ValueError(msg) from None
        self.value = adapter.dump_python(validated, mode="json", by_alias=True, exclude_none=True)
        return self


# ---------------------------------------------------------------------------
# Outputs
# ---------------------------------------------------------------------------


def _quality_rules(raw: list[Any]) -> list[Any]:
    """``[default, [minDpr, maxDpr, quality], ...]``."""
    if not raw:
        msg = "Must have default quality"
        raise ValueError(msg)
    default = raw[0]
    if not isinstance(default, int) or isinstance(default, bool) or not 1 <= default <= 100:
        msg = "Default quality must be an integer between 1 and 100"
        raise ValueError(msg)
    for rule in raw[1:]:
        if not isinstance(rule, list | tuple) or len(rule) != 3 or not all(map(_is_number, rule)):
            msg = "Quality rules must be [minDpr, maxDpr, quality]"
            raise ValueError(msg)
        min_dpr, max_dpr, quality = rule
        if min_dpr < 0 or max_dpr < 0 or not 0 <= quality <= 1:
            msg = "Quality rule DPRs must be >= 0 and quality between 0 and 1"
            raise ValueError(msg)
    return [default, *(list(rule) for rule in raw[1:])]


class QualityOutput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: Literal["quality"]
    value: Annotated[list[Any], AfterValidator(_quality_rules)]


class FormatOutput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: Literal["format"]
    value: OutputFormat


class AutosizeOutput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: Literal["autosize"]
    value: Annotated[list[PositiveInt], Field(min_length=1)]


Output = Annotated[QualityOutput | FormatOutput | AutosizeOutput, Field(discriminator="type")]


class PolicyDocument(BaseModel):
    """Top-level ``policyJSON`` document."""

    model_config = ConfigDict(extra="forbid")

    transformations: (
        Annotated[list[Transformation], Field(min_length=1, max_length=MAX_TRANSFORMATIONS)] | None
    ) = None
    outputs: list[Output] | None = None

    @field_validator("outputs")
    @classmethod
    def _unique_outputs(cls, outputs: list[Any] | None) -> list[Any] | None:
        if outputs is not None:
            types = [output.type for output in outputs]
            if len(set(types)) != len(types):
                msg = "Each output optimization can only be defined once"
                raise ValueError(msg)
        return outputs

    @model_validator(mode="after")
    def _check_document(self) -> PolicyDocument:
        if not self.transformations and not self.outputs:
            msg = "Policy must have at least one transformation or output optimization"
            raise ValueError(msg)
        if len(json.dumps(self.to_json(), separators=(",", ":"))) > MAX_DOCUMENT_CHARS:
            msg = "Policy too large (max 10KB)"
            raise ValueError(msg)
        return self

    def to_json(self) -> dict[str, Any]:
        """Plain JSON form, as stored and returned on the wire."""
        return self.model_dump(mode="json", exclude_none=True)
