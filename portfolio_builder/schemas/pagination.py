"""
Pagination envelopes returned by list and search operations.
"""

import math
from typing import Generic, List, TypeVar

from pydantic import BaseModel, Field

from portfolio_builder.models.portfolio import PortfolioSummary


ItemT = TypeVar("ItemT")


def total_pages(total: int, limit: int) -> int:
    """Number of pages needed for ``total`` items at ``limit`` per page."""
    return math.ceil(total / limit)


class Page(BaseModel, Generic[ItemT]):
    """
    Generic pagination envelope.

    Attributes:
        data: Records on the requested page (at most ``limit`` of them)
        total: Records matching the filter across all pages
        page: 1-based page number that was requested
        total_pages: ceil(total / limit)
    """

    data: List[ItemT] = Field(default_factory=list)
    total: int = Field(..., ge=0)
    page: int = Field(..., ge=1)
    total_pages: int = Field(..., ge=0)


class PortfolioListing(BaseModel):
    """Envelope for a user's portfolio listing (also echoes ``limit``)."""

    portfolios: List[PortfolioSummary] = Field(default_factory=list)
    total: int = Field(..., ge=0)
    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)
    total_pages: int = Field(..., ge=0)
