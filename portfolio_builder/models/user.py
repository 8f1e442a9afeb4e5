"""
User model.

Accounts live in an external identity provider; this collection keeps the
provider's user key plus the app-level role, plan and account status.
"""

from typing import Literal, Optional

from pydantic import Field

from portfolio_builder.models.base import BaseDocument, Email, UpdateModel


UserRole = Literal["admin", "user"]
UserPlan = Literal["free", "premium"]
UserStatus = Literal["active", "banned", "suspended"]


class User(BaseDocument):
    """
    User document.

    Collection: users

    Attributes:
        external_id: Identity-provider user key (unique)
        email: Optional email, trimmed and lower-cased
        name: Optional display name (2-50 chars)
        role: admin | user
        plan: free | premium (subscription)
        status: active | banned | suspended
    """

    __collection__ = "users"

    external_id: str = Field(..., min_length=1, description="Identity-provider user key")
    email: Optional[Email] = Field(default=None, description="Contact email")
    name: Optional[str] = Field(default=None, min_length=2, max_length=50)
    role: UserRole = Field(default="user")
    plan: UserPlan = Field(default="free")
    status: UserStatus = Field(default="active")


class UserUpdate(UpdateModel):
    email: Optional[Email] = None
    name: Optional[str] = Field(default=None, min_length=2, max_length=50)
    role: Optional[UserRole] = None
    plan: Optional[UserPlan] = None
    status: Optional[UserStatus] = None
