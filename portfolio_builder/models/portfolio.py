"""
Portfolio model.

A portfolio belongs to one user, renders with one template and is served
publicly under its slug.
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from portfolio_builder.models.base import BaseDocument, PyObjectId, UpdateModel
from portfolio_builder.models.template import Template
from portfolio_builder.utils.slug import validate_slug


PortfolioStatus = Literal["draft", "published", "archived"]


def _check_slug(value: Optional[str]) -> Optional[str]:
    if value is not None and not validate_slug(value):
        raise ValueError(
            f"{value!r} is not a valid slug (lower-case letters, digits and "
            "single hyphens, 3-50 chars)"
        )
    return value


class PortfolioProfile(BaseModel):
    """Free-text profile shown on the portfolio page; all fields searchable."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, max_length=100)
    title: Optional[str] = Field(default=None, max_length=100)
    bio: Optional[str] = Field(default=None, max_length=2000)


class Portfolio(BaseDocument):
    """
    Portfolio document.

    Collection: portfolios

    Attributes:
        user_id: Owner's external_id (see User)
        template_id: Template used to render the portfolio
        slug: Unique, URL-safe public identifier
        status: draft | published | archived
        profile: Nested name/title/bio
    """

    __collection__ = "portfolios"

    user_id: str = Field(..., min_length=1, description="Owner's external identity key")
    template_id: PyObjectId = Field(..., description="Template ObjectId")
    slug: str = Field(..., description="Unique URL-safe identifier")
    status: PortfolioStatus = Field(default="draft")
    profile: PortfolioProfile = Field(default_factory=PortfolioProfile)

    @field_validator("slug")
    @classmethod
    def check_slug(cls, v: Optional[str]) -> Optional[str]:
        return _check_slug(v)


class PortfolioUpdate(UpdateModel):
    template_id: Optional[PyObjectId] = None
    slug: Optional[str] = None
    status: Optional[PortfolioStatus] = None
    profile: Optional[PortfolioProfile] = None

    @field_validator("slug")
    @classmethod
    def check_slug(cls, v: Optional[str]) -> Optional[str]:
        return _check_slug(v)


class PortfolioWithTemplate(Portfolio):
    """Portfolio with its template reference resolved (None when dangling)."""

    template: Optional[Template] = None


class PortfolioSummary(PortfolioWithTemplate):
    """Row of the owner's portfolio listing, with its analytics record count."""

    view_count: int = 0
