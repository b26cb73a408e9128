"""
Route guard

Pure decision logic for page access: who may see which dashboard area,
where to send them otherwise, and which mutations each role may run.
"""

import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Tuple
from urllib.parse import quote

from exceptions import PermissionDeniedException
from models import AuthSnapshot, GuardDecision, GuardState, UserRole

logger = logging.getLogger(__name__)

ROLE_LANDING_ROUTES: Dict[UserRole, str] = {
    UserRole.GUEST: "/dashboard/guest",
    UserRole.EMPLOYEE: "/dashboard/employee",
    UserRole.MANAGER: "/dashboard/manager",
    UserRole.HR_MANAGER: "/dashboard/hr",
    UserRole.ADMIN: "/dashboard/admin",
}

STAFF_ROLES = frozenset({UserRole.EMPLOYEE, UserRole.MANAGER, UserRole.HR_MANAGER, UserRole.ADMIN})


@dataclass(frozen=True)
class RouteRule:
    """Access rule for every path under ``prefix``

    ``allowed_roles`` of None means any authenticated role.
    """
    prefix: str
    allowed_roles: Optional[FrozenSet[UserRole]] = None
    public: bool = False
    anonymous_only: bool = False

    def matches(self, path: str) -> bool:
        return path == self.prefix or path.startswith(self.prefix.rstrip('/') + '/')


ROUTE_RULES: Tuple[RouteRule, ...] = (
    RouteRule("/dashboard/admin", frozenset({UserRole.ADMIN})),
    RouteRule("/dashboard/hr", frozenset({UserRole.HR_MANAGER})),
    RouteRule("/dashboard/manager", frozenset({UserRole.MANAGER})),
    RouteRule("/dashboard/employee", STAFF_ROLES),
    RouteRule("/dashboard/guest"),
    RouteRule("/dashboard"),
    RouteRule("/login", anonymous_only=True),
    RouteRule("/register", anonymous_only=True),
    RouteRule("/forgot-password", anonymous_only=True),
    RouteRule("/reset-password", anonymous_only=True),
    RouteRule("/logout"),
    RouteRule("/health", public=True),
    RouteRule("/api/v1/info", public=True),
    RouteRule("/api/v1"),
)

AREA_RESOURCES: Dict[str, Tuple[str, ...]] = {
    "admin": (
        "users", "audit-logs", "employees", "departments", "leave-requests", "leave-types",
        "attendance", "fingerprints", "salaries", "bonuses", "benefits",
        "job-postings", "applications", "interviews", "onboarding", "onboarding-tasks", "documents",
    ),
    "hr": (
        "employees", "departments", "leave-requests", "leave-types",
        "attendance", "fingerprints", "salaries", "bonuses", "benefits",
        "job-postings", "applications", "interviews", "onboarding", "onboarding-tasks", "documents",
    ),
    "manager": (
        "employees", "departments", "leave-requests", "my-leave-requests", "leave-balances",
        "attendance", "applications", "interviews", "onboarding", "onboarding-tasks",
    ),
    "employee": (
        "my-leave-requests", "leave-balances", "leave-types", "attendance", "benefits",
        "onboarding-tasks", "documents",
    ),
    "guest": (
        "job-postings", "applications",
    ),
}

ALL_ACTIONS = "*"
READ = ("read",)

ROLE_PERMISSIONS: Dict[UserRole, Dict[str, Tuple[str, ...]]] = {
    UserRole.ADMIN: {
        ALL_ACTIONS: (ALL_ACTIONS,),
    },
    UserRole.HR_MANAGER: {
        "users": READ,
        ALL_ACTIONS: (ALL_ACTIONS,),
    },
    UserRole.MANAGER: {
        "leave-requests": ("read", "approve", "reject"),
        "my-leave-requests": ("read", "create", "update", "cancel"),
        "leave-balances": READ,
        "documents": READ,
        "employees": READ,
        "departments": READ,
        "attendance": READ,
        "applications": READ,
        "interviews": ("read", "update"),
        "onboarding": READ,
        "onboarding-tasks": ("read", "status"),
    },
    UserRole.EMPLOYEE: {
        "my-leave-requests": ("read", "create", "update", "cancel"),
        "leave-balances": READ,
        "documents": READ,
        "leave-types": READ,
        "attendance": READ,
        "benefits": READ,
        "onboarding-tasks": ("read", "status"),
    },
    UserRole.GUEST: {
        "job-postings": READ,
        "applications": ("read", "create"),
    },
}


def landing_route(role: Optional[UserRole]) -> str:
    return ROLE_LANDING_ROUTES.get(role, ROLE_LANDING_ROUTES[UserRole.GUEST])


def allowed_actions(role: Optional[UserRole], resource: str) -> List[str]:
    permissions = ROLE_PERMISSIONS.get(role, {})
    actions = permissions.get(resource, permissions.get(ALL_ACTIONS, ()))
    return list(actions)


def has_permission(role: Optional[UserRole], resource: str, action: str) -> bool:
    actions = allowed_actions(role, resource)
    return ALL_ACTIONS in actions or action in actions


def check_permission(role: Optional[UserRole], resource: str, action: str) -> None:
    if not has_permission(role, resource, action):
        role_name = role.value if role else "ANONYMOUS"
        raise PermissionDeniedException(role_name, resource, action)


def area_resources(area: str) -> Tuple[str, ...]:
    return AREA_RESOURCES.get(area, ())


class RouteGuard:
    """Evaluate page access for a path and the caller's auth state"""

    def __init__(self, rules: Tuple[RouteRule, ...] = ROUTE_RULES, login_path: str = "/login"):
        # longest prefix wins
        self.rules = tuple(sorted(rules, key=lambda r: len(r.prefix), reverse=True))
        self.login_path = login_path

    def rule_for(self, path: str) -> Optional[RouteRule]:
        for rule in self.rules:
            if rule.matches(path):
                return rule
        return None

    def login_redirect(self, target: str) -> str:
        return f"{self.login_path}?redirect={quote(target, safe='/')}"

    def evaluate(self, path: str, auth: AuthSnapshot, target: Optional[str] = None) -> GuardDecision:
        """Decide access for ``path``.

        Args:
            path: request path without query string
            auth: what is known about the caller
            target: where to return after login, defaults to ``path``

        Returns:
            GuardDecision: ``render`` is True only for the loading placeholder
        """
        rule = self.rule_for(path)
        if rule is None or rule.public:
            return GuardDecision(GuardState.AUTHORIZED)

        if auth.is_loading:
            return GuardDecision(GuardState.CHECKING, render=True)

        if rule.anonymous_only:
            if auth.is_authenticated:
                return GuardDecision(GuardState.ANONYMOUS_ONLY, redirect_to=landing_route(auth.role))
            return GuardDecision(GuardState.AUTHORIZED)

        if not auth.is_authenticated:
            return GuardDecision(GuardState.UNAUTHORIZED, redirect_to=self.login_redirect(target or path))

        if rule.allowed_roles is not None and auth.role not in rule.allowed_roles:
            logger.info(f"Role {auth.role.value if auth.role else None} not allowed on {path}")
            return GuardDecision(GuardState.WRONG_ROLE, redirect_to=landing_route(auth.role))

        return GuardDecision(GuardState.AUTHORIZED)
