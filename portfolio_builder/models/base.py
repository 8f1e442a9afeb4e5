"""
Base document model and shared field types.

Provides the ObjectId field type, UTC timestamp helpers and the base class
every collection model derives from.
"""

import re
from datetime import datetime, timezone
from typing import Annotated, Any, ClassVar, Optional

from bson import ObjectId
from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    WithJsonSchema,
)


EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def parse_object_id(value: Any) -> ObjectId:
    """
    Coerce a value to ObjectId.

    Raises:
        ValueError: If value is neither an ObjectId nor a 24-char hex string
    """
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    raise ValueError(f"{value!r} is not a valid ObjectId")


def to_object_id(value: Any) -> Optional[ObjectId]:
    """Like parse_object_id, but returns None for malformed ids."""
    try:
        return parse_object_id(value)
    except ValueError:
        return None


# Kept as ObjectId in python mode (what the driver writes), str in JSON mode
PyObjectId = Annotated[
    ObjectId,
    BeforeValidator(parse_object_id),
    PlainSerializer(str, return_type=str, when_used="json"),
    WithJsonSchema({"type": "string", "pattern": "^[0-9a-f]{24}$"}),
]


def normalize_email(value: Any) -> Any:
    """Trim and lower-case an email, then check its shape."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError("email must be a string")
    value = value.strip().lower()
    if not EMAIL_PATTERN.match(value):
        raise ValueError(f"{value} is not a valid email!")
    return value


Email = Annotated[str, BeforeValidator(normalize_email)]


def utc_now() -> datetime:
    """
    Current UTC time truncated to milliseconds.

    BSON dates have millisecond precision, so truncating up front keeps the
    record returned from create() equal to the one read back.
    """
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


class BaseDocument(BaseModel):
    """
    Base for all collection models.

    Attributes:
        id: Document ObjectId (``_id`` in MongoDB), None until persisted
        created_at: UTC timestamp set on insert
        updated_at: UTC timestamp refreshed on every update
    """

    __collection__: ClassVar[str]

    model_config = ConfigDict(
        populate_by_name=True,
        arbitrary_types_allowed=True,
        str_strip_whitespace=True,
    )

    id: Optional[PyObjectId] = Field(default=None, alias="_id")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def collection_name(cls) -> str:
        return cls.__collection__

    def to_document(self) -> dict[str, Any]:
        """
        Serialize for insertion.

        Drops ``_id`` when unset so MongoDB generates one.
        """
        document = self.model_dump(by_alias=True)
        if document.get("_id") is None:
            document.pop("_id", None)
        return document

    def __repr__(self) -> str:
        attrs = ", ".join(
            f"{key}={value!r}"
            for key, value in self.model_dump().items()
            if key in ["id", "title", "slug", "external_id", "email"]
        )
        return f"{self.__class__.__name__}({attrs})"


class UpdateModel(BaseModel):
    """Base for partial-update models: every field optional, unknown keys rejected."""

    model_config = ConfigDict(
        extra="forbid",
        arbitrary_types_allowed=True,
        str_strip_whitespace=True,
    )
