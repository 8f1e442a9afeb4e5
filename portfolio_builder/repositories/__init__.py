"""
Repository layer for data access.

Provides data access abstractions following the Repository pattern,
isolating MongoDB access from business logic.
"""

from portfolio_builder.repositories.base import BaseRepository, DeleteResult
from portfolio_builder.repositories.contact import ContactRepository
from portfolio_builder.repositories.portfolio import PortfolioRepository
from portfolio_builder.repositories.template import TemplateRepository
from portfolio_builder.repositories.user import UserRepository

__all__ = [
    "BaseRepository",
    "DeleteResult",
    "ContactRepository",
    "PortfolioRepository",
    "TemplateRepository",
    "UserRepository",
]
