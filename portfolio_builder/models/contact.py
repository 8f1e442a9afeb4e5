"""
Contact model.

Messages sent to a portfolio owner through the public contact form.
"""

from typing import Optional

from pydantic import Field

from portfolio_builder.models.base import BaseDocument, Email, PyObjectId, UpdateModel


class Contact(BaseDocument):
    """
    Contact document.

    Collection: contacts

    Attributes:
        portfolio_id: Portfolio the message was sent to
        name: Sender name (optional)
        email: Sender email, trimmed and lower-cased
        message: Message body

    Note:
        One message per (portfolio_id, email) pair is enforced by a unique
        index (see MongoConnectionManager.ensure_indexes).
    """

    __collection__ = "contacts"

    portfolio_id: PyObjectId = Field(..., description="Portfolio ObjectId")
    name: Optional[str] = Field(default=None, max_length=100)
    email: Email = Field(..., description="Sender email")
    message: str = Field(..., min_length=1, max_length=5000)


class ContactUpdate(UpdateModel):
    name: Optional[str] = Field(default=None, max_length=100)
    message: Optional[str] = Field(default=None, min_length=1, max_length=5000)
