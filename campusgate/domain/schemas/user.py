"""
User and session schemas.
"""
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class Role(str, Enum):
    """Coarse role assigned by the identity provider."""
    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"
    PARENT = "parent"


class User(BaseModel):
    """Authenticated user as issued by the identity provider.

    Read-only to the access-control layer.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    email: EmailStr
    full_name: str = ""
    role: Role
    tenant_id: str = Field(..., min_length=1)
    student_id: Optional[str] = None


class Session(BaseModel):
    """Snapshot of the identity provider's session."""
    model_config = ConfigDict(frozen=True)

    user: Optional[User] = None
    is_loading: bool = False

    @classmethod
    def loading(cls) -> "Session":
        return cls(user=None, is_loading=True)

    @classmethod
    def anonymous(cls) -> "Session":
        return cls(user=None, is_loading=False)

    @classmethod
    def for_user(cls, user: User) -> "Session":
        return cls(user=user, is_loading=False)

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None and not self.is_loading

    @property
    def id(self) -> Optional[str]:
        return self.user.id if self.user else None

    @property
    def email(self) -> Optional[str]:
        return self.user.email if self.user else None

    @property
    def role(self) -> Optional[Role]:
        return self.user.role if self.user else None
