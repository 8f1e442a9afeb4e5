"""Pagination envelopes and query filter schemas."""

from portfolio_builder.schemas.filters import PortfolioFilters, TemplateFilters
from portfolio_builder.schemas.pagination import Page, PortfolioListing

__all__ = ["Page", "PortfolioListing", "PortfolioFilters", "TemplateFilters"]
