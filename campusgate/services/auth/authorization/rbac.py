"""
Role-Permission Table for CampusGate.

Static, process-wide mapping from each school role to the feature names it is
entitled to use. The literal wildcard ``"all"`` grants every feature, but it
never bypasses a tenant's own feature flags; that conjunction is applied by
the authorization evaluator.
"""

from __future__ import annotations

from typing import Dict, FrozenSet, Iterable, List, Optional, Union

import structlog
from pydantic import BaseModel, ConfigDict, Field

from campusgate.domain.schemas.tenant import Feature
from campusgate.domain.schemas.user import Role

logger = structlog.get_logger(__name__)

ALL_PERMISSIONS = "all"


class RoleDefinition(BaseModel):
    """A role and the permission names it holds."""
    model_config = ConfigDict(frozen=True)

    role: Role
    display_name: str
    description: Optional[str] = None
    permissions: FrozenSet[str] = Field(default_factory=frozenset)

    @property
    def is_wildcard(self) -> bool:
        return ALL_PERMISSIONS in self.permissions

    def grants(self, permission: str) -> bool:
        """Check if role grants a permission, honouring the wildcard."""
        return self.is_wildcard or permission in self.permissions


def _default_roles() -> List[RoleDefinition]:
    return [
        RoleDefinition(
            role=Role.ADMIN,
            display_name="Administrator",
            description="School administrator with access to every feature",
            permissions=frozenset({ALL_PERMISSIONS}),
        ),
        RoleDefinition(
            role=Role.TEACHER,
            display_name="Teacher",
            description="Teaching staff",
            permissions=frozenset({
                Feature.ATTENDANCE_MANAGEMENT.value,
                Feature.ONLINE_EXAMS.value,
                Feature.STUDENT_PORTAL.value,
                Feature.TEACHER_PORTAL.value,
                Feature.MESSAGING_SYSTEM.value,
                Feature.REPORT_CARDS.value,
            }),
        ),
        RoleDefinition(
            role=Role.STUDENT,
            display_name="Student",
            description="Enrolled student",
            permissions=frozenset({
                Feature.STUDENT_PORTAL.value,
                Feature.ONLINE_EXAMS.value,
                Feature.MESSAGING_SYSTEM.value,
            }),
        ),
        RoleDefinition(
            role=Role.PARENT,
            display_name="Parent",
            description="Parent or guardian of a student",
            permissions=frozenset({
                Feature.PARENT_PORTAL.value,
                Feature.MESSAGING_SYSTEM.value,
                Feature.REPORT_CARDS.value,
            }),
        ),
    ]


class RolePermissionTable:
    """Read-only role -> permission mapping, identical across tenants."""

    def __init__(self, roles: Optional[Iterable[RoleDefinition]] = None):
        definitions = list(roles) if roles is not None else _default_roles()
        self._roles: Dict[Role, RoleDefinition] = {
            definition.role: definition for definition in definitions
        }
        logger.debug("role_table_loaded", roles=[role.value for role in self._roles])

    @staticmethod
    def _parse_role(role: Union[Role, str, None]) -> Optional[Role]:
        if isinstance(role, Role):
            return role
        try:
            return Role(role)
        except ValueError:
            return None

    def get_role(self, role: Union[Role, str, None]) -> Optional[RoleDefinition]:
        """Get role definition, None for unrecognized roles."""
        parsed = self._parse_role(role)
        if parsed is None:
            return None
        return self._roles.get(parsed)

    def get_all_roles(self) -> List[RoleDefinition]:
        return list(self._roles.values())

    def permissions_for(self, role: Union[Role, str, None]) -> FrozenSet[str]:
        """
        Permission names held by ``role``.

        Args:
            role: Role enum member or raw role tag

        Returns:
            The role's permission set; empty for unrecognized roles
        """
        definition = self.get_role(role)
        if definition is None:
            return frozenset()
        return definition.permissions

    def grants(self, role: Union[Role, str, None], permission: Union[Feature, str]) -> bool:
        """Role-side half of a permission check (wildcard or membership)."""
        name = permission.value if isinstance(permission, Feature) else permission
        permissions = self.permissions_for(role)
        return ALL_PERMISSIONS in permissions or name in permissions


# Global role table instance
role_permission_table = RolePermissionTable()
