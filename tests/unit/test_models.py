import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

import pytest

from models import QueryState, SortOrder, UserProfile, UserRole


def test_search_and_filter_changes_reset_page():
    query = QueryState(current_page=4)
    assert query.with_search("eng").current_page == 1
    assert query.with_filters(status="PENDING").current_page == 1
    assert query.with_filters(status="PENDING").filters == {"status": "PENDING"}


def test_sort_change_keeps_page():
    query = QueryState(current_page=3).with_sort("name", "desc")
    assert query.current_page == 3
    assert query.sort_order == SortOrder.DESC


def test_sort_order_members_pass_through_parsing():
    assert SortOrder.parse(SortOrder.DESC) == SortOrder.DESC
    assert QueryState(sort_order=SortOrder.DESC).sort_order == SortOrder.DESC
    assert QueryState(sort_order="DESC").with_page(2).sort_order == SortOrder.DESC


def test_items_per_page_must_be_positive():
    with pytest.raises(ValueError):
        QueryState(items_per_page=0)


def test_from_params_is_tolerant():
    query = QueryState.from_params(
        {"page": "abc", "per_page": "-3", "sort_order": "sideways", "search": "  eng ",
         "filter.status": "PENDING", "filter.kind": ""},
        items_per_page=10,
        default_sort="name",
    )
    assert query.current_page == 1
    assert query.items_per_page == 10
    assert query.sort_order == SortOrder.ASC
    assert query.sort_by == "name"
    assert query.search_term == "eng"
    assert query.filters == {"status": "PENDING"}


def test_from_params_caps_page_size():
    query = QueryState.from_params({"per_page": "5000"}, max_items_per_page=100)
    assert query.items_per_page == 100


@pytest.mark.parametrize("raw, expected", [
    ("ADMIN", UserRole.ADMIN),
    ("ROLE_ADMIN", UserRole.ADMIN),
    ("hr_manager", UserRole.HR_MANAGER),
    ("ROLE_STAFF", UserRole.EMPLOYEE),
    ("something", UserRole.GUEST),
    (None, UserRole.GUEST),
])
def test_role_parsing(raw, expected):
    assert UserRole.parse(raw) == expected


def test_user_profile_from_backend_payload():
    user = UserProfile.from_payload({"id": 5, "email": "a@b.io", "role": "MANAGER",
                                     "firstName": "Ana", "lastName": "Ruiz"})
    assert user.id == "5"
    assert user.role == UserRole.MANAGER
    assert user.display_name == "Ana Ruiz"
