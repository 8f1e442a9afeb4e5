"""
Contact repository.

Stores contact-form messages and gates repeat submissions per
(portfolio, sender email) pair.
"""

import logging
from typing import Any, Mapping, Optional

from pymongo.errors import DuplicateKeyError

from portfolio_builder.core.logging_config import log_with_context
from portfolio_builder.models.base import normalize_email, to_object_id
from portfolio_builder.models.contact import Contact, ContactUpdate
from portfolio_builder.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class ContactRepository(BaseRepository[Contact]):
    """Repository for contact messages."""

    model = Contact
    update_model = ContactUpdate

    async def exists_for_portfolio_email(self, portfolio_id: Any, email: str) -> bool:
        """
        Check if a message from ``email`` was already sent to the portfolio.

        A single existence probe; on its own it does not stop two concurrent
        submissions from both passing (use submit() for that).

        Returns:
            True if a matching message exists; False otherwise, including for
            a malformed portfolio id or email
        """
        object_id = to_object_id(portfolio_id)
        if object_id is None:
            return False
        try:
            email = normalize_email(email)
        except ValueError:
            return False
        return await self.exists({"portfolio_id": object_id, "email": email})

    async def submit(self, data: Mapping[str, Any]) -> Optional[Contact]:
        """
        Store a contact message unless the sender already wrote to this portfolio.

        Checks first, then inserts; the unique (portfolio_id, email) index
        turns a concurrent duplicate insert into DuplicateKeyError, which is
        reported the same way as a duplicate found by the check.

        Args:
            data: Contact fields (portfolio_id, email, message, optional name)

        Returns:
            The stored Contact, or None if it is a duplicate

        Raises:
            pydantic.ValidationError: If the message fails validation
        """
        contact = Contact.model_validate(dict(data))

        if await self.exists_for_portfolio_email(contact.portfolio_id, contact.email):
            return None

        try:
            return await self.create(contact)
        except DuplicateKeyError:
            log_with_context(
                logger,
                "info",
                "Duplicate contact submission rejected by unique index",
                collection=self.collection.name,
                operation="submit",
            )
            return None
