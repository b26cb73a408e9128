"""
HR console data models

Query state, derived views, fetch and mutation outcomes, guard decisions
and the session profile shared between the console components.
"""

from dataclasses import dataclass, field, replace
from typing import Dict, List, Any, Mapping, Optional
from datetime import datetime
from enum import Enum


class UserRole(Enum):
    """Dashboard roles"""
    GUEST = "GUEST"
    EMPLOYEE = "EMPLOYEE"
    MANAGER = "MANAGER"
    HR_MANAGER = "HR_MANAGER"
    ADMIN = "ADMIN"

    @classmethod
    def parse(cls, value: Any) -> "UserRole":
        """Accept enum members, names and legacy ``ROLE_*`` spellings.

        Unknown values fall back to GUEST.
        """
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().upper()
        if text.startswith("ROLE_"):
            text = text[5:]
        if text == "HR":
            text = "HR_MANAGER"
        if text == "STAFF":
            text = "EMPLOYEE"
        try:
            return cls(text)
        except ValueError:
            return cls.GUEST


class SortOrder(Enum):
    ASC = "asc"
    DESC = "desc"

    @classmethod
    def parse(cls, value: Any, default: "SortOrder" = None) -> "SortOrder":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return default or cls.ASC


class ErrorKind(Enum):
    """Error taxonomy surfaced by views"""
    TRANSPORT = "transport"
    SHAPE = "shape"
    VALIDATION = "validation"
    BUSINESS = "business"


class ViewState(Enum):
    LOADING = "loading"
    READY = "ready"
    EMPTY = "empty"
    ERROR = "error"
    NOT_FOUND = "not_found"


class GuardState(Enum):
    """Route guard outcomes"""
    CHECKING = "checking"
    AUTHORIZED = "authorized"
    UNAUTHORIZED = "unauthorized"
    WRONG_ROLE = "wrong_role"
    ANONYMOUS_ONLY = "anonymous_only"


class MutationStatus(Enum):
    IDLE = "idle"
    IN_FLIGHT = "in_flight"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class NotificationLevel(Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"
    WARNING = "warning"


@dataclass
class QueryState:
    """Search, filter, sort and page selection of one list view"""
    search_term: str = ""
    sort_by: Optional[str] = None
    sort_order: SortOrder = SortOrder.ASC
    current_page: int = 1
    items_per_page: int = 10
    filters: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.items_per_page <= 0:
            raise ValueError("items_per_page must be positive")
        if self.current_page < 1:
            self.current_page = 1
        self.sort_order = SortOrder.parse(self.sort_order)

    def with_search(self, term: str) -> "QueryState":
        return replace(self, search_term=term or "", current_page=1)

    def with_filters(self, **filters: Any) -> "QueryState":
        merged = dict(self.filters)
        merged.update(filters)
        return replace(self, filters=merged, current_page=1)

    def with_sort(self, sort_by: Optional[str], sort_order: Any = None) -> "QueryState":
        order = SortOrder.parse(sort_order, self.sort_order) if sort_order is not None else self.sort_order
        return replace(self, sort_by=sort_by, sort_order=order)

    def with_page(self, page: int) -> "QueryState":
        return replace(self, current_page=max(int(page), 1))

    @classmethod
    def from_params(cls, params: Mapping[str, Any], *, items_per_page: int = 10,
                    max_items_per_page: int = 100, default_sort: Optional[str] = None,
                    default_order: str = "asc") -> "QueryState":
        """Parse query-string values; malformed numbers fall back to defaults.

        Recognised keys: ``search``, ``sort_by``, ``sort_order``, ``page``,
        ``per_page`` and ``filter.<field>``.
        """
        def _int(raw: Any, default: int) -> int:
            try:
                return int(raw)
            except (TypeError, ValueError):
                return default

        per_page = _int(params.get("per_page"), items_per_page)
        if per_page <= 0:
            per_page = items_per_page
        per_page = min(per_page, max_items_per_page)

        filters = {
            key[len("filter."):]: value
            for key, value in params.items()
            if key.startswith("filter.") and value not in (None, "")
        }

        return cls(
            search_term=str(params.get("search") or "").strip(),
            sort_by=params.get("sort_by") or default_sort,
            sort_order=SortOrder.parse(params.get("sort_order") or default_order),
            current_page=max(_int(params.get("page"), 1), 1),
            items_per_page=per_page,
            filters=filters,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'search': self.search_term,
            'sort_by': self.sort_by,
            'sort_order': self.sort_order.value,
            'page': self.current_page,
            'per_page': self.items_per_page,
            'filters': dict(self.filters),
        }


@dataclass
class DerivedView:
    """Visible slice of a collection after filter, sort and paginate"""
    visible: List[Any]
    total_pages: int
    total_count: int
    filtered_count: int
    query: QueryState

    def to_dict(self) -> Dict[str, Any]:
        return {
            'items': self.visible,
            'total_pages': self.total_pages,
            'total_count': self.total_count,
            'filtered_count': self.filtered_count,
            'query': self.query.to_dict(),
        }


@dataclass
class FetchResult:
    """Outcome of one fetch"""
    data: Any = None
    error: Optional[ErrorKind] = None
    message: Optional[str] = None
    stale: bool = False
    skipped: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and not self.stale and not self.skipped


@dataclass
class MutationOutcome:
    """Outcome of one create/update/delete/transition"""
    action: str
    target: Optional[str]
    status: MutationStatus
    message: str
    data: Any = None
    redirect_to: Optional[str] = None
    retryable: bool = False
    error: Optional[ErrorKind] = None
    field_errors: List[Dict[str, str]] = field(default_factory=list)
    http_status: Optional[int] = None

    @property
    def success(self) -> bool:
        return self.status == MutationStatus.SUCCEEDED

    def to_dict(self) -> Dict[str, Any]:
        return {
            'action': self.action,
            'target': self.target,
            'status': self.status.value,
            'message': self.message,
            'data': self.data,
            'redirect_to': self.redirect_to,
            'retryable': self.retryable,
            'error': self.error.value if self.error else None,
            'field_errors': self.field_errors,
            'http_status': self.http_status,
        }


@dataclass
class Notification:
    level: NotificationLevel
    message: str
    created_at: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'level': self.level.value,
            'message': self.message,
            'created_at': self.created_at.isoformat() + 'Z',
        }


@dataclass
class UserProfile:
    """Authenticated user as reported by ``/auth/me``"""
    id: str
    email: str
    role: UserRole
    first_name: str = ""
    last_name: str = ""
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "UserProfile":
        return cls(
            id=str(payload.get("id") or ""),
            email=str(payload.get("email") or ""),
            role=UserRole.parse(payload.get("role")),
            first_name=str(payload.get("firstName") or payload.get("first_name") or ""),
            last_name=str(payload.get("lastName") or payload.get("last_name") or ""),
            raw=dict(payload),
        )

    @property
    def display_name(self) -> str:
        name = f"{self.first_name} {self.last_name}".strip()
        return name or self.email

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'email': self.email,
            'role': self.role.value,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'display_name': self.display_name,
        }


@dataclass
class AuthSnapshot:
    """What the route guard knows about the caller"""
    is_loading: bool = False
    is_authenticated: bool = False
    user: Optional[UserProfile] = None

    @property
    def role(self) -> Optional[UserRole]:
        return self.user.role if self.user else None


@dataclass
class GuardDecision:
    state: GuardState
    redirect_to: Optional[str] = None
    render: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'state': self.state.value,
            'redirect_to': self.redirect_to,
            'render': self.render,
        }


@dataclass
class PendingDeletion:
    """Open delete confirmation dialog"""
    resource: str
    target_id: str
    opened_at: datetime = field(default_factory=datetime.utcnow)
