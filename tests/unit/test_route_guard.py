import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

import pytest

from exceptions import PermissionDeniedException
from models import AuthSnapshot, GuardState, UserProfile, UserRole
from route_guard import (
    ROLE_LANDING_ROUTES,
    RouteGuard,
    check_permission,
    has_permission,
    landing_route,
)


def _auth(role=None, loading=False):
    if role is None:
        return AuthSnapshot(is_loading=loading)
    user = UserProfile(id="u1", email="u1@corp.io", role=role)
    return AuthSnapshot(is_loading=loading, is_authenticated=True, user=user)


@pytest.fixture
def guard():
    return RouteGuard()


def test_loading_renders_placeholder_without_redirect(guard):
    decision = guard.evaluate("/dashboard/admin", _auth(loading=True))
    assert decision.state == GuardState.CHECKING
    assert decision.render is True
    assert decision.redirect_to is None


def test_anonymous_is_sent_to_login_with_return_target(guard):
    decision = guard.evaluate("/dashboard/admin/departments", _auth())
    assert decision.state == GuardState.UNAUTHORIZED
    assert decision.redirect_to == "/login?redirect=/dashboard/admin/departments"


def test_return_target_keeps_query_string_encoded(guard):
    decision = guard.evaluate("/dashboard/hr/employees", _auth(),
                              target="/dashboard/hr/employees?page=2&search=ana")
    assert decision.redirect_to == "/login?redirect=/dashboard/hr/employees%3Fpage%3D2%26search%3Dana"


def test_wrong_role_goes_to_own_landing(guard):
    decision = guard.evaluate("/dashboard/admin/users", _auth(UserRole.EMPLOYEE))
    assert decision.state == GuardState.WRONG_ROLE
    assert decision.redirect_to == "/dashboard/employee"


def test_admin_is_kept_out_of_hr_area(guard):
    decision = guard.evaluate("/dashboard/hr", _auth(UserRole.ADMIN))
    assert decision.redirect_to == "/dashboard/admin"


@pytest.mark.parametrize("role", [UserRole.EMPLOYEE, UserRole.MANAGER, UserRole.HR_MANAGER, UserRole.ADMIN])
def test_employee_area_admits_all_staff(guard, role):
    assert guard.evaluate("/dashboard/employee/my-leave-requests", _auth(role)).state == GuardState.AUTHORIZED


def test_guest_cannot_enter_employee_area(guard):
    decision = guard.evaluate("/dashboard/employee", _auth(UserRole.GUEST))
    assert decision.redirect_to == "/dashboard/guest"


@pytest.mark.parametrize("role", list(UserRole))
def test_guest_area_admits_any_authenticated_role(guard, role):
    assert guard.evaluate("/dashboard/guest", _auth(role)).state == GuardState.AUTHORIZED


def test_login_is_anonymous_only(guard):
    assert guard.evaluate("/login", _auth()).state == GuardState.AUTHORIZED
    decision = guard.evaluate("/login", _auth(UserRole.MANAGER))
    assert decision.state == GuardState.ANONYMOUS_ONLY
    assert decision.redirect_to == "/dashboard/manager"


def test_public_routes_need_no_session(guard):
    assert guard.evaluate("/health", _auth()).state == GuardState.AUTHORIZED
    assert guard.evaluate("/api/v1/info", _auth(loading=True)).state == GuardState.AUTHORIZED


def test_prefix_match_respects_segment_boundaries(guard):
    assert guard.rule_for("/dashboard/administrator").prefix == "/dashboard"


def test_every_role_has_a_landing_route():
    for role in UserRole:
        assert landing_route(role) == ROLE_LANDING_ROUTES[role]
    assert landing_route(None) == "/dashboard/guest"


def test_permissions():
    assert has_permission(UserRole.ADMIN, "users", "delete")
    assert has_permission(UserRole.HR_MANAGER, "departments", "delete")
    assert not has_permission(UserRole.HR_MANAGER, "users", "delete")
    assert has_permission(UserRole.MANAGER, "leave-requests", "approve")
    assert not has_permission(UserRole.MANAGER, "leave-requests", "delete")
    assert not has_permission(UserRole.EMPLOYEE, "departments", "read")


def test_check_permission_raises():
    with pytest.raises(PermissionDeniedException) as exc_info:
        check_permission(UserRole.EMPLOYEE, "salaries", "update")
    assert exc_info.value.role == "EMPLOYEE"
