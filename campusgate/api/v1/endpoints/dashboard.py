"""
Guarded dashboard views.

Each route declares its guard requirements; the views themselves are rendered
elsewhere, so the payload only names the view that was authorized.
"""
from typing import Any, Dict

from fastapi import APIRouter, Depends

from campusgate.domain.schemas.user import Role
from campusgate.services.auth.authorization.authorization import AccessContext
from campusgate.services.auth.authorization.decorators import require_access
from campusgate.services.auth.authorization.modules import Module

router = APIRouter()


def _view(name: str, access: AccessContext) -> Dict[str, Any]:
    return {
        "view": name,
        "user_id": access.user.id,
        "role": access.user.role.value,
    }


@router.get("")
async def dashboard_home(access: AccessContext = Depends(require_access())) -> Dict[str, Any]:
    return _view("dashboard", access)


@router.get("/students")
async def students_view(
    access: AccessContext = Depends(require_access(required_module=Module.STUDENTS)),
) -> Dict[str, Any]:
    return _view("students", access)


@router.get("/teachers")
async def teachers_view(
    access: AccessContext = Depends(require_access(required_role=Role.ADMIN)),
) -> Dict[str, Any]:
    return _view("teachers", access)


@router.get("/attendance")
async def attendance_view(
    access: AccessContext = Depends(require_access(required_module=Module.ATTENDANCE)),
) -> Dict[str, Any]:
    return _view("attendance", access)


@router.get("/examinations")
async def examinations_view(
    access: AccessContext = Depends(require_access(required_module=Module.EXAMINATIONS)),
) -> Dict[str, Any]:
    return _view("examinations", access)


@router.get("/fees")
async def fees_view(
    access: AccessContext = Depends(require_access(required_module=Module.FEES)),
) -> Dict[str, Any]:
    return _view("fees", access)


@router.get("/classes")
async def classes_view(
    access: AccessContext = Depends(require_access(required_role=Role.TEACHER)),
) -> Dict[str, Any]:
    return _view("classes", access)


@router.get("/communications")
async def communications_view(
    access: AccessContext = Depends(require_access(required_module=Module.COMMUNICATIONS)),
) -> Dict[str, Any]:
    return _view("communications", access)


@router.get("/blog")
async def blog_view(
    access: AccessContext = Depends(require_access(required_module=Module.BLOG)),
) -> Dict[str, Any]:
    return _view("blog", access)


@router.get("/admin")
async def admin_view(
    access: AccessContext = Depends(require_access(required_role=Role.ADMIN)),
) -> Dict[str, Any]:
    return _view("admin", access)


@router.get("/settings")
async def settings_view(
    access: AccessContext = Depends(require_access(required_module=Module.SETTINGS)),
) -> Dict[str, Any]:
    return _view("settings", access)
