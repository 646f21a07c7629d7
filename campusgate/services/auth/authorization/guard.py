"""
Route guard for protected views.

The guard is a three-state machine (loading, authorized, unauthorized). Checks
run in a fixed order, first failure wins:

1. session still resolving       -> LOADING
2. no authenticated user         -> UNAUTHORIZED, redirect to public entry route
3. required role mismatch        -> UNAUTHORIZED, redirect to dashboard
4. required permission denied    -> UNAUTHORIZED, redirect to dashboard
5. required module denied        -> UNAUTHORIZED, redirect to dashboard

Unauthenticated callers go to the public route and authenticated-but-denied
callers to the dashboard, so a valid session is never bounced into a login
loop.
"""

import asyncio
from enum import Enum
from typing import Awaitable, Callable, Optional, Union

import structlog
from pydantic import BaseModel

from campusgate.core.config import settings
from campusgate.domain.schemas.tenant import Feature
from campusgate.domain.schemas.user import Role, Session, User

from .authorization import AuthorizationEvaluator, DenialReason
from .modules import Module

logger = structlog.get_logger(__name__)

EvaluatorFactory = Callable[[User], AuthorizationEvaluator]


class GuardState(str, Enum):
    LOADING = "loading"
    AUTHORIZED = "authorized"
    UNAUTHORIZED = "unauthorized"


class GuardRequirements(BaseModel):
    """Constraints a protected view declares. All given constraints must pass."""
    required_role: Optional[Role] = None
    required_permission: Optional[Union[Feature, str]] = None
    required_module: Optional[Union[Module, str]] = None

    @property
    def is_authenticated_only(self) -> bool:
        return (
            self.required_role is None
            and self.required_permission is None
            and self.required_module is None
        )


class GuardDecision(BaseModel):
    state: GuardState
    redirect_to: Optional[str] = None
    reason: Optional[DenialReason] = None

    @property
    def authorized(self) -> bool:
        return self.state == GuardState.AUTHORIZED


class RouteGuard:
    """Decides whether to render, keep loading, or redirect."""

    def __init__(
        self,
        requirements: Optional[GuardRequirements] = None,
        public_route: Optional[str] = None,
        dashboard_route: Optional[str] = None,
        session_timeout: Optional[float] = None,
    ):
        self.requirements = requirements or GuardRequirements()
        self.public_route = public_route or settings.PUBLIC_ENTRY_ROUTE
        self.dashboard_route = dashboard_route or settings.DASHBOARD_ROUTE
        self.session_timeout = (
            session_timeout if session_timeout is not None
            else settings.GUARD_SESSION_TIMEOUT_SECONDS
        )

    def evaluate(self, session: Session, evaluator_factory: EvaluatorFactory) -> GuardDecision:
        """
        Evaluate a resolved (or still loading) session.

        Args:
            session: Current identity-provider session snapshot
            evaluator_factory: Builds the evaluator for the user's tenant

        Returns:
            GuardDecision for the view
        """
        if session.is_loading:
            return GuardDecision(state=GuardState.LOADING)

        if not session.is_authenticated:
            return self._deny(DenialReason.UNAUTHENTICATED, self.public_route, session)

        user = session.user
        req = self.requirements

        if req.required_role is not None and user.role != req.required_role:
            return self._deny(DenialReason.INSUFFICIENT_ROLE, self.dashboard_route, session)

        if req.required_permission is None and req.required_module is None:
            return GuardDecision(state=GuardState.AUTHORIZED)

        evaluator = evaluator_factory(user)

        if req.required_permission is not None:
            decision = evaluator.check_permission(user, req.required_permission)
            if decision.denied:
                return self._deny(decision.reason, self.dashboard_route, session)

        if req.required_module is not None:
            decision = evaluator.check_module(user, req.required_module)
            if decision.denied:
                return self._deny(decision.reason, self.dashboard_route, session)

        return GuardDecision(state=GuardState.AUTHORIZED)

    async def resolve_session(self, session_check: Awaitable[Session]) -> Session:
        """
        Await the identity check, bounded by ``session_timeout``.

        An identity check that never answers, or fails, is treated as no
        session at all.
        """
        try:
            return await asyncio.wait_for(session_check, timeout=self.session_timeout)
        except asyncio.TimeoutError:
            logger.warning("guard_session_timeout", timeout=self.session_timeout)
            return Session.anonymous()
        except Exception as e:
            logger.error("guard_session_check_failed", error=str(e), error_type=type(e).__name__)
            return Session.anonymous()

    async def resolve(
        self,
        session_check: Awaitable[Session],
        evaluator_factory: EvaluatorFactory,
    ) -> GuardDecision:
        """Await the identity check, then evaluate."""
        session = await self.resolve_session(session_check)
        return self.evaluate(session, evaluator_factory)

    def _deny(
        self,
        reason: Optional[DenialReason],
        redirect_to: str,
        session: Session,
    ) -> GuardDecision:
        logger.info(
            "guard_redirect",
            user_id=session.id,
            reason=reason.value if reason else None,
            redirect_to=redirect_to,
        )
        return GuardDecision(
            state=GuardState.UNAUTHORIZED,
            redirect_to=redirect_to,
            reason=reason,
        )


class GuardedView:
    """
    Mount/unmount lifecycle around a ``RouteGuard``.

    ``mount`` starts the outstanding identity check and reports LOADING until
    it resolves, at most ``session_timeout`` seconds; the same bound applies
    when a session change reports loading again. Session changes re-evaluate
    immediately. Once unmounted, the
    pending check is cancelled and any late result is discarded so a replaced
    view is never authorized or redirected by a stale answer.
    """

    def __init__(
        self,
        guard: RouteGuard,
        evaluator_factory: EvaluatorFactory,
        on_change: Optional[Callable[[GuardDecision], None]] = None,
    ):
        self.guard = guard
        self.evaluator_factory = evaluator_factory
        self.on_change = on_change
        self._decision = GuardDecision(state=GuardState.LOADING)
        self._mounted = False
        self._pending: Optional[asyncio.Task] = None

    @property
    def decision(self) -> GuardDecision:
        return self._decision

    @property
    def mounted(self) -> bool:
        return self._mounted

    def mount(self, session_check: Awaitable[Session]) -> GuardDecision:
        """Start the identity check. Must be called from a running event loop."""
        self._mounted = True
        self._apply(GuardDecision(state=GuardState.LOADING))
        self._pending = asyncio.ensure_future(self._resolve(session_check))
        return self._decision

    def session_changed(self, session: Session) -> GuardDecision:
        """Re-evaluate after the identity provider pushed a new session."""
        if not self._mounted:
            return self._decision
        # A newer session supersedes the outstanding check
        self._cancel_pending()
        self._apply(self.guard.evaluate(session, self.evaluator_factory))
        if session.is_loading:
            # Still bounded: expire to unauthenticated unless a resolved session arrives
            self._pending = asyncio.ensure_future(self._expire_loading())
        return self._decision

    def unmount(self) -> None:
        self._mounted = False
        self._cancel_pending()

    async def wait(self) -> GuardDecision:
        """Wait for the outstanding identity check, if any."""
        pending = self._pending
        if pending is not None:
            await asyncio.wait({pending})
        return self._decision

    async def _resolve(self, session_check: Awaitable[Session]) -> None:
        decision = await self.guard.resolve(session_check, self.evaluator_factory)
        self._apply(decision)
        if decision.state == GuardState.LOADING:
            await self._expire_loading()

    async def _expire_loading(self) -> None:
        await asyncio.sleep(self.guard.session_timeout)
        logger.warning("guard_session_timeout", timeout=self.guard.session_timeout)
        self._apply(self.guard.evaluate(Session.anonymous(), self.evaluator_factory))

    def _apply(self, decision: GuardDecision) -> None:
        if not self._mounted:
            logger.debug("stale_guard_result_discarded", state=decision.state.value)
            return
        changed = decision != self._decision
        self._decision = decision
        if changed and self.on_change is not None:
            self.on_change(decision)

    def _cancel_pending(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None
