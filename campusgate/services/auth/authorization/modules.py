"""
Module -> feature mapping.

Each dashboard module is gated by exactly one feature flag, except ``blog``
(open to every authenticated user) and ``settings`` (admin role only, no flag).
"""

from enum import Enum
from typing import Dict, List, Mapping, Optional, Union

from campusgate.domain.schemas.tenant import Feature

from .rbac import ALL_PERMISSIONS


class Module(str, Enum):
    """User-facing functional areas."""
    STUDENTS = "students"
    TEACHERS = "teachers"
    ATTENDANCE = "attendance"
    EXAMINATIONS = "examinations"
    FEES = "fees"
    COMMUNICATIONS = "communications"
    CLASSES = "classes"
    BLOG = "blog"
    SETTINGS = "settings"

    @classmethod
    def parse(cls, name: Union["Module", str]) -> Optional["Module"]:
        if isinstance(name, cls):
            return name
        try:
            return cls(name)
        except ValueError:
            return None


DEFAULT_MODULE_FEATURES: Dict[Module, str] = {
    Module.STUDENTS: Feature.STUDENT_PORTAL.value,
    Module.TEACHERS: Feature.TEACHER_PORTAL.value,
    Module.ATTENDANCE: Feature.ATTENDANCE_MANAGEMENT.value,
    Module.EXAMINATIONS: Feature.ONLINE_EXAMS.value,
    Module.FEES: Feature.FEE_MANAGEMENT.value,
    Module.COMMUNICATIONS: Feature.MESSAGING_SYSTEM.value,
    # Classes share the basic student portal flag
    Module.CLASSES: Feature.STUDENT_PORTAL.value,
    Module.BLOG: ALL_PERMISSIONS,
    # Role-only; the evaluator never consults a flag for settings
    Module.SETTINGS: ALL_PERMISSIONS,
}


class ModuleFeatureMap:
    """Static lookup of the feature gating each module."""

    def __init__(self, mapping: Optional[Mapping[Module, str]] = None):
        self._mapping: Dict[Module, str] = dict(
            mapping if mapping is not None else DEFAULT_MODULE_FEATURES
        )

    def feature_for(self, module: Union[Module, str]) -> Optional[str]:
        """Feature name gating ``module``, or None if the module is unmapped."""
        parsed = Module.parse(module)
        if parsed is None:
            return None
        return self._mapping.get(parsed)

    def modules(self) -> List[Module]:
        return list(self._mapping)


module_feature_map = ModuleFeatureMap()
