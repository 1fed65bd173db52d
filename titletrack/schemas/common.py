from __future__ import annotations

"""Shared wire-model plumbing: camelCase JSON, `_id` → `id`, pages."""

from typing import Generic, List, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire; accepts both on input."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)


def IdField(**kwargs):
    """`id` on the wire, populated from a raw document's `_id`."""
    return Field(validation_alias=AliasChoices("_id", "id"), **kwargs)


class Page(CamelModel, Generic[T]):
    page: int
    size: int
    total_pages: int
    total_results: int
    content: List[T]


class DefaultResponse(CamelModel):
    message: str
