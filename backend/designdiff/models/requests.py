"""API request models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel, to_snake

Options = dict[str, float | int | bool]


class RequestModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)


class OptionsModel(RequestModel):
    """Carries DiffConfig overrides; keys may be snake_case or camelCase."""

    options: Options = Field(
        default_factory=dict,
        description="Per-request DiffConfig overrides (e.g. threshold=0.2 or minRegionSize=50)",
    )

    @field_validator("options")
    @classmethod
    def snake_case_keys(cls, v: Options) -> Options:
        return {to_snake(key): value for key, value in v.items()}


class ImagePayload(RequestModel):
    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)
    rgba: str = Field(..., description="Base64 of raw row-major RGBA bytes, 4 per pixel")


class CompareRequest(OptionsModel):
    expected: ImagePayload = Field(..., description="Design render")
    actual: ImagePayload = Field(..., description="Implementation screenshot")
    design_tree: Any = Field(
        default=None,
        description="Root node, list of root nodes, or {'nodes': [...]} document",
    )
    include_overlay: bool = False


class BatchJobRequest(RequestModel):
    name: str
    expected: ImagePayload
    actual: ImagePayload
    design_tree: Any = None


class BatchCompareRequest(OptionsModel):
    jobs: list[BatchJobRequest] = Field(..., min_length=1)
