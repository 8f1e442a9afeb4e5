"""
Pydantic document models for the portfolio builder.

This module exports every collection model and its partial-update model.
"""

from portfolio_builder.models.base import BaseDocument, PyObjectId, UpdateModel
from portfolio_builder.models.user import User, UserUpdate
from portfolio_builder.models.template import Template, TemplateUpdate
from portfolio_builder.models.portfolio import (
    Portfolio,
    PortfolioProfile,
    PortfolioSummary,
    PortfolioUpdate,
    PortfolioWithTemplate,
)
from portfolio_builder.models.contact import Contact, ContactUpdate
from portfolio_builder.models.analytics import ANALYTICS_COLLECTION

__all__ = [
    # Base classes
    "BaseDocument",
    "PyObjectId",
    "UpdateModel",
    # Models
    "User",
    "UserUpdate",
    "Template",
    "TemplateUpdate",
    "Portfolio",
    "PortfolioProfile",
    "PortfolioSummary",
    "PortfolioUpdate",
    "PortfolioWithTemplate",
    "Contact",
    "ContactUpdate",
    "ANALYTICS_COLLECTION",
]
