"""
Template repository.

Adds catalogue filtering (with text search) and template duplication.
"""

import logging
from typing import Any, Dict, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from portfolio_builder.core.config import Settings, get_settings
from portfolio_builder.core.exceptions import RepositoryError
from portfolio_builder.core.logging_config import log_with_context
from portfolio_builder.models.base import to_object_id
from portfolio_builder.models.template import CONTENT_FIELDS, Template, TemplateUpdate
from portfolio_builder.repositories.base import BaseRepository
from portfolio_builder.schemas.filters import TemplateFilters
from portfolio_builder.schemas.pagination import Page

logger = logging.getLogger(__name__)


def copy_title(title: str, counter: int) -> str:
    """
    Title for the ``counter``-th copy candidate of ``title``.

    Example:
        >>> copy_title("Minimal", 1)
        'Minimal (Copy)'
        >>> copy_title("Minimal", 3)
        'Minimal (Copy 3)'
    """
    if counter <= 1:
        return f"{title} (Copy)"
    return f"{title} (Copy {counter})"


class TemplateRepository(BaseRepository[Template]):
    """
    Repository for template data access.

    Attributes:
        max_duplicate_attempts: Upper bound on title candidates tried by
            duplicate_template() before giving up
    """

    model = Template
    update_model = TemplateUpdate

    def __init__(self, database: AsyncIOMotorDatabase, settings: Optional[Settings] = None):
        """
        Args:
            database: Connected AsyncIOMotorDatabase
            settings: Explicit settings; loaded from the environment if None
        """
        super().__init__(database)
        settings = settings or get_settings()
        self.max_duplicate_attempts = settings.max_duplicate_attempts

    @staticmethod
    def build_filter(filters: TemplateFilters) -> Dict[str, Any]:
        """
        Build the MongoDB filter for a catalogue query.

        Note:
            ``search`` goes through ``$text`` and therefore needs the text
            index created by MongoConnectionManager.ensure_indexes().
        """
        query: Dict[str, Any] = {}

        if filters.status:
            query["status"] = filters.status

        if filters.premium is not None:
            query["premium"] = filters.premium

        if filters.tags:
            query["tags"] = {"$in": filters.tags}

        if filters.created_by:
            query["created_by"] = filters.created_by

        if filters.search:
            query["$text"] = {"$search": filters.search}

        return query

    async def find_all_with_filters(
        self,
        filters: Optional[TemplateFilters] = None,
    ) -> Page[Template]:
        filters = filters or TemplateFilters()
        return await self.find_with_pagination(
            self.build_filter(filters),
            page=filters.page,
            limit=filters.limit,
        )

    async def duplicate_template(self, template_id: Any) -> Optional[Template]:
        """
        Duplicate a template under the first free "(Copy N)" title.

        Candidate titles are "<title> (Copy)", "<title> (Copy 2)", ... and
        are probed in order. The copy keeps the content fields (description,
        colours, font, thumbnail, premium, tags), starts inactive, and gets a
        fresh id and timestamps; the creator is not carried over.

        The probe and the insert are not atomic. When the unique title index
        is enabled, a concurrent duplicate that takes the same title makes
        the insert fail with DuplicateKeyError and the next candidate is
        tried; without it, two concurrent copies may end up sharing a title.

        Args:
            template_id: ObjectId (or hex string) of the source template

        Returns:
            The new template, or None if the source does not exist

        Raises:
            RepositoryError: If max_duplicate_attempts candidates are all taken
        """
        object_id = to_object_id(template_id)
        if object_id is None:
            return None

        # Raw document: read-only snapshot, no model instance to mutate
        original = await self.collection.find_one({"_id": object_id})
        if original is None:
            return None

        content = {field: original[field] for field in CONTENT_FIELDS if field in original}
        counter = 1

        while counter <= self.max_duplicate_attempts:
            title = copy_title(original["title"], counter)
            counter += 1

            if await self.exists({"title": title}):
                continue

            try:
                duplicate = await self.create({**content, "title": title, "status": "inactive"})
            except DuplicateKeyError:
                log_with_context(
                    logger,
                    "info",
                    f"Title {title!r} taken concurrently, trying next candidate",
                    collection=self.collection.name,
                    operation="duplicate_template",
                )
                continue

            log_with_context(
                logger,
                "info",
                f"Duplicated template {object_id} as {title!r}",
                collection=self.collection.name,
                operation="duplicate_template",
                attempts=counter - 1,
            )
            return duplicate

        raise RepositoryError(
            "duplicate_template",
            f"no free copy title for template {object_id}",
            RuntimeError(f"{self.max_duplicate_attempts} candidates already taken"),
        )
