"""
Generic repository over one MongoDB collection.

Provides the CRUD, counting and pagination surface every entity repository
inherits. Identity-targeted reads, updates and deletes report "not found"
as None; schema violations raise pydantic.ValidationError; store errors
propagate untouched.
"""

import asyncio
from typing import Any, Awaitable, Dict, Generic, List, Mapping, Optional, Sequence, Tuple, Type, TypeVar, Union

from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pydantic import BaseModel
from pymongo import DESCENDING, ReturnDocument

from portfolio_builder.models.base import BaseDocument, UpdateModel, to_object_id, utc_now
from portfolio_builder.schemas.pagination import Page, total_pages


ModelT = TypeVar("ModelT", bound=BaseDocument)

Filter = Mapping[str, Any]
SortSpec = Sequence[Tuple[str, int]]

DEFAULT_SORT: SortSpec = [("created_at", DESCENDING), ("_id", DESCENDING)]


def with_tiebreaker(sort: SortSpec) -> List[Tuple[str, int]]:
    """Append ``_id`` (in the last key's direction) unless already sorted on it."""
    keys = list(sort)
    if keys and all(field != "_id" for field, _ in keys):
        keys.append(("_id", keys[-1][1]))
    return keys


async def gather_reads(*reads: Awaitable[Any]) -> List[Any]:
    """
    Await independent reads concurrently and return their results in order.

    Every read runs to completion before the first failure is re-raised, so
    no sibling is left running with an unretrieved exception.
    """
    results = await asyncio.gather(*reads, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return results


class DeleteResult(BaseModel):
    deleted_count: int = 0


class BaseRepository(Generic[ModelT]):
    """
    Repository base class parameterized by document model.

    Subclasses set ``model`` (validates creates and parses reads),
    ``update_model`` (validates partial updates) and take the collection
    name from the model.

    Attributes:
        database: Motor database handle shared by all repositories
        collection: Collection for ``model``

    Example:
        >>> repo = TemplateRepository(db)
        >>> template = await repo.create({"title": "Minimal"})
        >>> await repo.find_by_id(str(template.id))
        Template(id=ObjectId('...'), title='Minimal')
    """

    model: Type[ModelT]
    update_model: Type[UpdateModel]

    def __init__(self, database: AsyncIOMotorDatabase):
        """
        Initialize repository with a database handle.

        Args:
            database: Connected AsyncIOMotorDatabase
        """
        self.database = database
        self.collection: AsyncIOMotorCollection = database[self.model.collection_name()]

    def _parse(self, document: Optional[Mapping[str, Any]]) -> Optional[ModelT]:
        if document is None:
            return None
        return self.model.model_validate(document)

    def _validate_update(self, data: Union[Mapping[str, Any], UpdateModel]) -> Dict[str, Any]:
        """Validate a partial update and build its ``$set`` document."""
        if isinstance(data, UpdateModel):
            fields = data.model_dump(exclude_unset=True)
        else:
            fields = self.update_model.model_validate(dict(data)).model_dump(exclude_unset=True)
        fields["updated_at"] = utc_now()
        return {"$set": fields}

    async def create(self, data: Union[Mapping[str, Any], ModelT]) -> ModelT:
        """
        Validate and insert a new document.

        Args:
            data: Field values or an unsaved model instance

        Returns:
            The persisted record, with its generated id and timestamps

        Raises:
            pydantic.ValidationError: If required fields are missing or malformed
            pymongo.errors.DuplicateKeyError: If a unique index rejects it
        """
        if isinstance(data, self.model):
            record = data.model_copy()
        else:
            record = self.model.model_validate(dict(data))

        now = utc_now()
        record.created_at = now
        record.updated_at = now

        document = record.to_document()
        result = await self.collection.insert_one(document)
        record.id = result.inserted_id
        return record

    async def find_by_id(self, id: Any) -> Optional[ModelT]:
        """
        Find a document by its ObjectId.

        Returns:
            The record, or None if not found or the id is malformed
        """
        object_id = to_object_id(id)
        if object_id is None:
            return None
        return self._parse(await self.collection.find_one({"_id": object_id}))

    async def find_one(self, filter: Filter) -> Optional[ModelT]:
        return self._parse(await self.collection.find_one(dict(filter)))

    async def find(
        self,
        filter: Optional[Filter] = None,
        *,
        sort: Optional[SortSpec] = None,
        skip: int = 0,
        limit: int = 0,
        projection: Optional[Mapping[str, Any]] = None,
    ) -> List[ModelT]:
        """
        Find all documents matching the filter.

        Args:
            filter: MongoDB filter (default: match all)
            sort: List of (field, direction) pairs
            skip: Documents to skip
            limit: Maximum documents to return (0 = no limit)
            projection: Fields to include/exclude; the model must still validate

        Returns:
            List of matching records
        """
        cursor = self.collection.find(
            dict(filter or {}),
            projection,
            sort=list(sort) if sort else None,
            skip=skip,
            limit=limit,
        )
        documents = await cursor.to_list(length=None)
        return [self.model.model_validate(document) for document in documents]

    async def find_with_pagination(
        self,
        filter: Optional[Filter] = None,
        page: int = 1,
        limit: int = 10,
        sort: Optional[SortSpec] = None,
    ) -> Page[ModelT]:
        """
        Fetch one page of matching documents plus the total count.

        The page query and the count are independent reads and run
        concurrently.

        Args:
            filter: MongoDB filter (default: match all)
            page: 1-based page number
            limit: Page size
            sort: List of (field, direction) pairs (default: newest first);
                ``_id`` is appended as a tiebreaker so pages never overlap

        Returns:
            Page with data, total, page and total_pages = ceil(total / limit)

        Raises:
            ValueError: If page or limit is below 1
        """
        if page < 1:
            raise ValueError(f"page must be >= 1, got {page}")
        if limit < 1:
            raise ValueError(f"limit must be >= 1, got {limit}")

        filter = dict(filter or {})
        data, total = await gather_reads(
            self.find(
                filter,
                sort=with_tiebreaker(sort or DEFAULT_SORT),
                skip=(page - 1) * limit,
                limit=limit,
            ),
            self.collection.count_documents(filter),
        )

        return Page[self.model](
            data=data,
            total=total,
            page=page,
            total_pages=total_pages(total, limit),
        )

    async def update(
        self,
        id: Any,
        data: Union[Mapping[str, Any], UpdateModel],
    ) -> Optional[ModelT]:
        """
        Merge a partial update into a document by id.

        Args:
            id: Document ObjectId (or its hex string)
            data: Fields to set; validated against ``update_model``

        Returns:
            The record after the update, or None if not found

        Raises:
            pydantic.ValidationError: If the update is malformed or names
                unknown fields
        """
        update = self._validate_update(data)
        object_id = to_object_id(id)
        if object_id is None:
            return None
        document = await self.collection.find_one_and_update(
            {"_id": object_id},
            update,
            return_document=ReturnDocument.AFTER,
        )
        return self._parse(document)

    async def update_one(
        self,
        filter: Filter,
        data: Union[Mapping[str, Any], UpdateModel],
    ) -> Optional[ModelT]:
        """Same as update(), applied to the first document matching ``filter``."""
        update = self._validate_update(data)
        document = await self.collection.find_one_and_update(
            dict(filter),
            update,
            return_document=ReturnDocument.AFTER,
        )
        return self._parse(document)

    async def delete(self, id: Any) -> Optional[ModelT]:
        """
        Delete a document by id.

        Returns:
            The removed record, or None if nothing matched
        """
        object_id = to_object_id(id)
        if object_id is None:
            return None
        return self._parse(await self.collection.find_one_and_delete({"_id": object_id}))

    async def delete_many(self, filter: Filter) -> DeleteResult:
        result = await self.collection.delete_many(dict(filter))
        return DeleteResult(deleted_count=result.deleted_count or 0)

    async def count(self, filter: Optional[Filter] = None) -> int:
        return await self.collection.count_documents(dict(filter or {}))

    async def exists(self, filter: Filter) -> bool:
        """
        Check whether any document matches the filter.

        Only ``_id`` is projected so no full document crosses the wire.
        """
        document = await self.collection.find_one(dict(filter), {"_id": 1})
        return document is not None
