"""
Access-control response schemas.
"""
from typing import List

from pydantic import BaseModel, Field

from .user import Role


class AccessSummary(BaseModel):
    """What the current user may use, as seen by the view layer."""
    user_id: str
    tenant_id: str
    role: Role
    is_admin: bool
    is_teacher: bool
    is_student: bool
    is_parent: bool
    features: List[str] = Field(default_factory=list)
    modules: List[str] = Field(default_factory=list)


class ModuleAccessResponse(BaseModel):
    module: str
    allowed: bool


class PermissionCheckResponse(BaseModel):
    feature: str
    allowed: bool
