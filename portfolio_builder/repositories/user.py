"""
User repository.
"""

from typing import Optional

from portfolio_builder.models.user import User, UserUpdate
from portfolio_builder.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for users keyed by their identity-provider id."""

    model = User
    update_model = UserUpdate

    async def find_by_external_id(self, external_id: str) -> Optional[User]:
        return await self.find_one({"external_id": external_id})
