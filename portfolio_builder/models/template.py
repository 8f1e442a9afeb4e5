"""
Template model.

Reusable portfolio designs: styling fields, premium flag and tags. Title and
description are covered by the collection's text index.
"""

from typing import List, Literal, Optional

from pydantic import Field, field_validator

from portfolio_builder.models.base import BaseDocument, UpdateModel


TemplateStatus = Literal["active", "inactive"]

# Fields carried over when a template is duplicated
CONTENT_FIELDS = (
    "description",
    "primary_color",
    "secondary_color",
    "font",
    "thumbnail",
    "premium",
    "tags",
)


def _dedupe_tags(tags: Optional[List[str]]) -> Optional[List[str]]:
    if tags is None:
        return None
    seen = []
    for tag in tags:
        tag = tag.strip()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


class Template(BaseDocument):
    """
    Template document.

    Collection: templates

    Attributes:
        title: Display title
        description: Free text, text-indexed with the title
        primary_color / secondary_color / font: Styling
        thumbnail: Preview image reference
        premium: Only available on the premium plan
        tags: Set of labels (order kept, duplicates dropped)
        status: active | inactive
        created_by: external_id of the creating user
    """

    __collection__ = "templates"

    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    primary_color: Optional[str] = None
    secondary_color: Optional[str] = None
    font: Optional[str] = None
    thumbnail: Optional[str] = None
    premium: bool = False
    tags: List[str] = Field(default_factory=list)
    status: TemplateStatus = Field(default="active")
    created_by: Optional[str] = None

    @field_validator("tags")
    @classmethod
    def dedupe_tags(cls, v: List[str]) -> List[str]:
        return _dedupe_tags(v)


class TemplateUpdate(UpdateModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    primary_color: Optional[str] = None
    secondary_color: Optional[str] = None
    font: Optional[str] = None
    thumbnail: Optional[str] = None
    premium: Optional[bool] = None
    tags: Optional[List[str]] = None
    status: Optional[TemplateStatus] = None

    @field_validator("tags")
    @classmethod
    def dedupe_tags(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return _dedupe_tags(v)
