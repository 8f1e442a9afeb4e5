from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from portfolio_builder.models.base import PyObjectId
from portfolio_builder.models.portfolio import PortfolioStatus
from portfolio_builder.models.template import TemplateStatus


class PortfolioFilters(BaseModel):
    """
    Filters for a user's portfolio listing.

    Attributes:
        status: Only portfolios in this status
        template_id: Only portfolios rendered with this template
        search: Case-insensitive substring over profile name/title/bio and slug
        sort_by: created_at | updated_at | view_count | name (profile name)
        sort_order: asc | desc
        page: 1-based page number
        limit: Page size (1-100)
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, str_strip_whitespace=True)

    status: Optional[PortfolioStatus] = None
    template_id: Optional[PyObjectId] = None
    search: Optional[str] = None
    sort_by: Literal["created_at", "updated_at", "view_count", "name"] = "created_at"
    sort_order: Literal["asc", "desc"] = "desc"
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)


class TemplateFilters(BaseModel):
    """
    Filters for the template catalogue.

    ``tags`` matches templates carrying any of the given tags; ``search``
    uses the collection's text index over title and description.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    status: Optional[TemplateStatus] = None
    premium: Optional[bool] = None
    tags: Optional[List[str]] = None
    created_by: Optional[str] = None
    search: Optional[str] = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)
