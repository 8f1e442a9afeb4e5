"""
Portfolio repository.

Adds public slug lookup and the owner's filtered, searchable, paginated
listing on top of the generic CRUD surface. Both queries join the template
in with an aggregation; store failures are wrapped in RepositoryError.
"""

import logging
import re
from typing import Any, Dict, List, Optional

from pymongo import ASCENDING, DESCENDING
from pymongo.errors import PyMongoError

from portfolio_builder.core.exceptions import RepositoryError
from portfolio_builder.core.logging_config import log_with_context
from portfolio_builder.models.analytics import ANALYTICS_COLLECTION
from portfolio_builder.models.portfolio import (
    Portfolio,
    PortfolioSummary,
    PortfolioUpdate,
    PortfolioWithTemplate,
)
from portfolio_builder.models.template import Template
from portfolio_builder.repositories.base import BaseRepository, gather_reads
from portfolio_builder.schemas.filters import PortfolioFilters
from portfolio_builder.schemas.pagination import PortfolioListing, total_pages

logger = logging.getLogger(__name__)


SEARCH_FIELDS = ("profile.name", "profile.title", "profile.bio", "slug")

# sort_by values that do not map 1:1 onto a stored field
SORT_FIELD_ALIASES = {"name": "profile.name"}


def _template_join_stages() -> List[Dict[str, Any]]:
    return [
        {
            "$lookup": {
                "from": Template.collection_name(),
                "localField": "template_id",
                "foreignField": "_id",
                "as": "template",
            }
        },
        # One-to-one join; keep portfolios whose template was deleted
        {"$unwind": {"path": "$template", "preserveNullAndEmptyArrays": True}},
    ]


class PortfolioRepository(BaseRepository[Portfolio]):
    """
    Repository for portfolio data access.

    Example:
        >>> repo = PortfolioRepository(db)
        >>> portfolio = await repo.find_by_slug("jane-doe")
        >>> portfolio.template.title
        'Minimal'
    """

    model = Portfolio
    update_model = PortfolioUpdate

    async def find_by_slug(self, slug: str) -> Optional[PortfolioWithTemplate]:
        """
        Find a portfolio by slug for public viewing, with its template.

        Args:
            slug: Exact slug

        Returns:
            PortfolioWithTemplate (template None if the reference dangles),
            or None if no portfolio has this slug

        Raises:
            RepositoryError: If the query fails
        """
        pipeline = [{"$match": {"slug": slug}}, {"$limit": 1}, *_template_join_stages()]

        try:
            documents = await self.collection.aggregate(pipeline).to_list(length=1)
        except PyMongoError as e:
            log_with_context(
                logger,
                "error",
                f"Failed to load portfolio by slug {slug!r}",
                collection=self.collection.name,
                operation="find_by_slug",
                exc_info=True,
            )
            raise RepositoryError("find_by_slug", "failed to load portfolio by the slug", e) from e

        if not documents:
            return None
        return PortfolioWithTemplate.model_validate(documents[0])

    async def slug_exists(self, slug: str) -> bool:
        return await self.exists({"slug": slug})

    @staticmethod
    def build_filter(user_id: str, filters: PortfolioFilters) -> Dict[str, Any]:
        """
        Build the $match document for a user's portfolio listing.

        The search term is escaped and matched case-insensitively as a
        substring of any of SEARCH_FIELDS.
        """
        query: Dict[str, Any] = {"user_id": user_id}

        if filters.status:
            query["status"] = filters.status

        if filters.template_id is not None:
            query["template_id"] = filters.template_id

        if filters.search:
            pattern = re.escape(filters.search)
            query["$or"] = [
                {field: {"$regex": pattern, "$options": "i"}}
                for field in SEARCH_FIELDS
            ]

        return query

    @staticmethod
    def build_sort(filters: PortfolioFilters) -> Dict[str, int]:
        """
        Build the $sort document; ``_id`` breaks ties so paging is stable.
        """
        field = SORT_FIELD_ALIASES.get(filters.sort_by, filters.sort_by)
        direction = ASCENDING if filters.sort_order == "asc" else DESCENDING
        return {field: direction, "_id": direction}

    async def find_by_user_id(
        self,
        user_id: str,
        filters: Optional[PortfolioFilters] = None,
    ) -> PortfolioListing:
        """
        List a user's portfolios with filtering, search, sorting and paging.

        Each row carries its resolved template and ``view_count``, the number
        of analytics records pointing at the portfolio. The page pipeline and
        the total count run concurrently.

        Args:
            user_id: Owner's external_id
            filters: Status/template/search filters plus sort and paging

        Returns:
            PortfolioListing with portfolios, total, page, limit, total_pages

        Raises:
            RepositoryError: If any pipeline stage or the count fails
        """
        filters = filters or PortfolioFilters()
        match = self.build_filter(user_id, filters)
        skip = (filters.page - 1) * filters.limit

        pipeline = [
            {"$match": match},
            *_template_join_stages(),
            {
                "$lookup": {
                    "from": ANALYTICS_COLLECTION,
                    "localField": "_id",
                    "foreignField": "portfolio_id",
                    "as": "analytics",
                }
            },
            {"$addFields": {"view_count": {"$size": "$analytics"}}},
            {"$project": {"analytics": 0}},
            {"$sort": self.build_sort(filters)},
            {"$skip": skip},
            {"$limit": filters.limit},
        ]

        try:
            documents, total = await gather_reads(
                self.collection.aggregate(pipeline).to_list(length=None),
                self.collection.count_documents(match),
            )
        except PyMongoError as e:
            log_with_context(
                logger,
                "error",
                f"Failed to list portfolios for user {user_id!r}",
                collection=self.collection.name,
                operation="find_by_user_id",
                exc_info=True,
            )
            raise RepositoryError("find_by_user_id", "failed to fetch user portfolios", e) from e

        return PortfolioListing(
            portfolios=[PortfolioSummary.model_validate(document) for document in documents],
            total=total,
            page=filters.page,
            limit=filters.limit,
            total_pages=total_pages(total, filters.limit),
        )
