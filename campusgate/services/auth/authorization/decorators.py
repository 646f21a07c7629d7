"""
Authorization dependencies for FastAPI endpoints.

``require_access`` guards server-rendered dashboard routes: a denied request
is redirected (public entry route when unauthenticated, dashboard otherwise).
``get_access_context`` and ``require_module_api`` serve JSON endpoints and
answer with 401/403 instead.
"""

from typing import Callable, Optional, Union

import structlog
from fastapi import Depends, Request

from campusgate.core.exceptions import AuthenticationError, AuthorizationError
from campusgate.domain.schemas.tenant import Feature
from campusgate.domain.schemas.user import Role, Session, User
from campusgate.services.auth.identity import IdentityProvider, identity_provider
from campusgate.services.tenant.features import TenantFeatureRegistry

from .authorization import AccessContext
from .guard import GuardDecision, GuardRequirements, RouteGuard
from .modules import Module

logger = structlog.get_logger(__name__)


class GuardRedirect(Exception):
    """Raised by a guarded route to send the caller elsewhere."""

    def __init__(self, decision: GuardDecision, location: str):
        self.decision = decision
        self.location = location
        super().__init__(f"Redirect to {location}")


def get_tenant_registry(request: Request) -> TenantFeatureRegistry:
    """Registry attached to the application at startup."""
    return request.app.state.tenant_registry


def get_identity_provider(request: Request) -> IdentityProvider:
    return getattr(request.app.state, "identity_provider", identity_provider)


async def get_session(
    request: Request,
    provider: IdentityProvider = Depends(get_identity_provider),
) -> Session:
    """Resolve the caller's session, bounded by the guard timeout."""
    return await RouteGuard().resolve_session(provider.resolve_session(request))


def evaluator_factory(registry: TenantFeatureRegistry) -> Callable:
    return lambda user: registry.evaluator_for(user.tenant_id)


def require_access(
    required_role: Optional[Role] = None,
    required_permission: Optional[Union[Feature, str]] = None,
    required_module: Optional[Union[Module, str]] = None,
) -> Callable:
    """
    Guard a dashboard route.

    Args:
        required_role: Exact role the user must hold
        required_permission: Feature the user must be permitted to use
        required_module: Module the user must be able to enter

    Omitting all three means authenticated-only; several must all pass.

    Usage:
        @router.get("/fees")
        async def fees(access: AccessContext = Depends(require_access(required_module=Module.FEES))):
            ...
    """
    guard = RouteGuard(
        GuardRequirements(
            required_role=required_role,
            required_permission=required_permission,
            required_module=required_module,
        )
    )

    async def access_checker(
        request: Request,
        registry: TenantFeatureRegistry = Depends(get_tenant_registry),
        provider: IdentityProvider = Depends(get_identity_provider),
    ) -> AccessContext:
        session = await guard.resolve_session(provider.resolve_session(request))
        decision = guard.evaluate(session, evaluator_factory(registry))

        if not decision.authorized:
            location = decision.redirect_to or guard.public_route
            raise GuardRedirect(decision, location)

        return registry.evaluator_for(session.user.tenant_id).for_user(session.user)

    return access_checker


async def get_access_context(
    session: Session = Depends(get_session),
    registry: TenantFeatureRegistry = Depends(get_tenant_registry),
) -> AccessContext:
    """Access context for JSON endpoints; 401 when unauthenticated."""
    if not session.is_authenticated:
        raise AuthenticationError()
    return registry.evaluator_for(session.user.tenant_id).for_user(session.user)


async def get_current_user(access: AccessContext = Depends(get_access_context)) -> User:
    return access.user


def require_module_api(module: Union[Module, str]) -> Callable:
    """JSON counterpart of ``require_access(required_module=...)``."""

    async def module_checker(access: AccessContext = Depends(get_access_context)) -> AccessContext:
        if not access.can_access_module(module):
            logger.warning(
                "module_access_denied",
                user_id=access.user.id,
                module=module.value if isinstance(module, Module) else module,
            )
            raise AuthorizationError()
        return access

    return module_checker


def require_admin() -> Callable:
    """Shortcut for the admin-only settings module."""
    return require_module_api(Module.SETTINGS)


__all__ = [
    "GuardRedirect",
    "get_tenant_registry",
    "get_identity_provider",
    "get_session",
    "get_access_context",
    "get_current_user",
    "require_access",
    "require_module_api",
    "require_admin",
]
