"""
HR resource registry and REST client

Every entity family the dashboard manages is declared once as a
``ResourceSpec``: backend paths, searchable and sortable fields, exact
match filters, domain transitions and required create fields. The
``ResourceClient`` turns a spec into REST calls and returns the raw,
un-normalized payloads.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple
from urllib.parse import quote

from adapters.http_client import HttpClient
from exceptions import UnsupportedOperationException
from interfaces import IResourceGateway


@dataclass(frozen=True)
class SortField:
    """Sortable attribute; ``kind`` is string, number, date or count"""
    path: str
    kind: str = "string"


@dataclass(frozen=True)
class TransitionSpec:
    """Domain transition exposed as a sub-resource"""
    name: str
    method: str = "POST"
    path_template: Optional[str] = None
    past_tense: Optional[str] = None

    @property
    def done_label(self) -> str:
        return self.past_tense or f"{self.name.replace('-', ' ')}ed"


@dataclass(frozen=True)
class ResourceSpec:
    key: str
    label: str
    path: str
    search_fields: Tuple[str, ...] = ()
    sort_fields: Mapping[str, SortField] = field(default_factory=dict)
    default_sort: Optional[str] = None
    default_order: Optional[str] = None
    filter_fields: Tuple[str, ...] = ()
    transitions: Tuple[TransitionSpec, ...] = ()
    required_fields: Tuple[str, ...] = ()
    list_path: Optional[str] = None
    list_params: Mapping[str, Any] = field(default_factory=dict)
    list_scope: Tuple[str, ...] = ()
    detail_path: Optional[str] = None
    delete_path: Optional[str] = None
    can_list: bool = True
    can_get: bool = True
    can_create: bool = True
    can_update: bool = True
    can_delete: bool = False
    update_method: str = "PUT"
    delete_verb: str = "deleted"

    @property
    def title(self) -> str:
        return self.label[:1].upper() + self.label[1:]

    @property
    def plural(self) -> str:
        if self.label.endswith("y") and not self.label.endswith("ey"):
            return self.label[:-1] + "ies"
        if self.label.endswith("s"):
            return self.label + "es"
        return self.label + "s"

    def collection_path(self, scope: Optional[Mapping[str, Any]] = None) -> str:
        template = self.list_path or self.path
        if not self.list_scope:
            return template
        scope = scope or {}
        missing = [name for name in self.list_scope if scope.get(name) in (None, "")]
        if missing:
            raise ValueError(f"{self.plural} are listed per {', '.join(missing)}")
        return template.format(**{name: quote(str(scope[name]), safe="") for name in self.list_scope})

    def entity_path(self, entity_id: str) -> str:
        template = self.detail_path or f"{self.path}/{{id}}"
        return template.format(id=entity_id)

    def deletion_path(self, entity_id: str) -> str:
        template = self.delete_path or f"{self.path}/{{id}}"
        return template.format(id=entity_id)

    def get_transition(self, name: str) -> Optional[TransitionSpec]:
        for transition in self.transitions:
            if transition.name == name:
                return transition
        return None

    def transition_path(self, transition: TransitionSpec, entity_id: str) -> str:
        template = transition.path_template or f"{self.path}/{{id}}/{transition.name}"
        return template.format(id=entity_id)

    def supports(self, operation: str) -> bool:
        return {
            'list': self.can_list,
            'get': self.can_get,
            'create': self.can_create,
            'update': self.can_update,
            'delete': self.can_delete,
        }.get(operation, self.get_transition(operation) is not None)


_EMPLOYEE_NAME_FIELDS = ("employee.firstName", "employee.lastName", "employee.email", "employee.position")

RESOURCES: Dict[str, ResourceSpec] = {
    spec.key: spec for spec in (
        ResourceSpec(
            key="employees",
            label="employee",
            path="/employees",
            search_fields=("firstName", "lastName", "position", "user.email", "department.name"),
            sort_fields={
                "name": SortField("firstName"),
                "email": SortField("user.email"),
                "department": SortField("department.name"),
                "hireDate": SortField("hireDate", "date"),
            },
            default_sort="hireDate",
            default_order="desc",
            filter_fields=("status", "department.id"),
            required_fields=("firstName", "lastName", "position"),
        ),
        ResourceSpec(
            key="departments",
            label="department",
            path="/departments",
            search_fields=("name", "description"),
            sort_fields={
                "name": SortField("name"),
                "employeeCount": SortField("employees", "count"),
                "createdAt": SortField("createdAt", "date"),
            },
            default_sort="name",
            required_fields=("name",),
            can_delete=True,
        ),
        ResourceSpec(
            key="salaries",
            label="salary",
            path="/compensation/salaries",
            search_fields=_EMPLOYEE_NAME_FIELDS,
            sort_fields={
                "employee": SortField("employee.firstName"),
                "amount": SortField("amount", "number"),
                "effectiveDate": SortField("effectiveDate", "date"),
            },
            default_sort="effectiveDate",
            default_order="desc",
            required_fields=("employeeId", "amount"),
        ),
        ResourceSpec(
            key="bonuses",
            label="bonus",
            path="/compensation/bonuses",
            search_fields=_EMPLOYEE_NAME_FIELDS + ("bonusType", "reason"),
            sort_fields={
                "employee": SortField("employee.firstName"),
                "amount": SortField("amount", "number"),
                "createdAt": SortField("createdAt", "date"),
            },
            default_sort="createdAt",
            default_order="desc",
            filter_fields=("bonusType",),
            required_fields=("employeeId", "amount"),
        ),
        ResourceSpec(
            key="benefits",
            label="benefit",
            path="/compensation/benefits",
            search_fields=("name", "description", "benefitType"),
            sort_fields={
                "name": SortField("name"),
                "cost": SortField("cost", "number"),
            },
            default_sort="name",
            filter_fields=("benefitType",),
            required_fields=("name",),
        ),
        ResourceSpec(
            key="leave-requests",
            label="leave request",
            path="/leave-requests",
            search_fields=(
                "employee.user.firstName", "employee.user.lastName", "employee.user.email",
                "employee.department.name", "leaveType.name", "reason",
            ),
            sort_fields={
                "startDate": SortField("startDate", "date"),
                "createdAt": SortField("createdAt", "date"),
                "days": SortField("numberOfDays", "number"),
            },
            default_sort="createdAt",
            default_order="desc",
            filter_fields=("status", "leaveType.id"),
            transitions=(
                TransitionSpec("approve", past_tense="approved"),
                TransitionSpec("reject", past_tense="rejected"),
                TransitionSpec("cancel", past_tense="cancelled"),
            ),
            required_fields=("leaveTypeId", "startDate", "endDate"),
        ),
        ResourceSpec(
            key="my-leave-requests",
            label="leave request",
            path="/leave-requests",
            list_path="/leave-requests/my-leaves",
            search_fields=("leaveType.name", "reason", "status"),
            sort_fields={
                "startDate": SortField("startDate", "date"),
                "createdAt": SortField("createdAt", "date"),
            },
            default_sort="createdAt",
            default_order="desc",
            filter_fields=("status",),
            transitions=(TransitionSpec("cancel", past_tense="cancelled"),),
            required_fields=("leaveTypeId", "startDate", "endDate"),
        ),
        ResourceSpec(
            key="leave-types",
            label="leave type",
            path="/leave-types",
            search_fields=("name", "description"),
            sort_fields={
                "name": SortField("name"),
                "maxDays": SortField("defaultDays", "number"),
            },
            default_sort="name",
            required_fields=("name",),
            can_delete=True,
        ),
        ResourceSpec(
            key="onboarding",
            label="onboarding process",
            path="/onboarding",
            search_fields=(
                "employee.firstName", "employee.lastName", "employee.email",
                "employee.position", "employee.department.name",
            ),
            sort_fields={
                "startDate": SortField("startDate", "date"),
                "createdAt": SortField("createdAt", "date"),
                "progress": SortField("progress", "number"),
            },
            default_sort="startDate",
            filter_fields=("status", "currentPhase"),
            transitions=(TransitionSpec("advance-phase", past_tense="advanced"),),
            required_fields=("employeeId", "startDate"),
        ),
        ResourceSpec(
            key="onboarding-tasks",
            label="onboarding task",
            path="/onboarding/tasks",
            can_list=False,
            transitions=(TransitionSpec("status", method="PUT", past_tense="updated"),),
            required_fields=("onboardingId", "title"),
        ),
        ResourceSpec(
            key="job-postings",
            label="job posting",
            path="/recruitment/job-postings",
            search_fields=("title", "location", "department.name"),
            sort_fields={
                "title": SortField("title"),
                "createdAt": SortField("createdAt", "date"),
                "applications": SortField("applications", "count"),
            },
            default_sort="createdAt",
            default_order="desc",
            filter_fields=("status", "employmentType"),
            transitions=(TransitionSpec("publish", past_tense="published"),),
            required_fields=("title", "departmentId"),
        ),
        ResourceSpec(
            key="applications",
            label="application",
            path="/recruitment/applications",
            search_fields=("firstName", "lastName", "email", "jobPosting.title"),
            sort_fields={
                "name": SortField("firstName"),
                "createdAt": SortField("createdAt", "date"),
            },
            default_sort="createdAt",
            default_order="desc",
            filter_fields=("status", "jobPostingId"),
            required_fields=("jobPostingId", "email"),
        ),
        ResourceSpec(
            key="interviews",
            label="interview",
            path="/recruitment/interviews",
            search_fields=("application.firstName", "application.lastName", "application.email", "interviewType"),
            sort_fields={
                "scheduledAt": SortField("scheduledAt", "date"),
            },
            default_sort="scheduledAt",
            filter_fields=("status", "interviewType"),
            required_fields=("applicationId", "scheduledAt"),
        ),
        ResourceSpec(
            key="attendance",
            label="attendance record",
            path="/attendance",
            search_fields=("employee.user.email", "employee.position", "employee.department.name"),
            sort_fields={
                "date": SortField("date", "date"),
                "employee": SortField("employee.user.email"),
            },
            default_sort="date",
            default_order="desc",
            filter_fields=("status", "method"),
            required_fields=("employeeId",),
        ),
        ResourceSpec(
            key="fingerprints",
            label="fingerprint",
            path="/attendance/fingerprint",
            list_path="/attendance/fingerprint/status",
            delete_path="/attendance/fingerprint/remove/{id}",
            search_fields=("employeeName", "employeeId", "email"),
            sort_fields={
                "employee": SortField("employeeName"),
                "enrolledAt": SortField("enrolledAt", "date"),
            },
            default_sort="employee",
            filter_fields=("enrolled",),
            transitions=(
                TransitionSpec("enroll", path_template="/attendance/fingerprint/enroll/{id}",
                               past_tense="enrolled"),
                TransitionSpec("update", method="PUT", path_template="/attendance/fingerprint/update/{id}",
                               past_tense="updated"),
            ),
            can_get=False,
            can_create=False,
            can_update=False,
            can_delete=True,
            delete_verb="removed",
        ),
        ResourceSpec(
            key="users",
            label="user",
            path="/auth/users",
            search_fields=("firstName", "lastName", "email"),
            sort_fields={
                "name": SortField("firstName"),
                "email": SortField("email"),
                "createdAt": SortField("createdAt", "date"),
            },
            default_sort="createdAt",
            default_order="desc",
            filter_fields=("role", "status"),
            transitions=(
                TransitionSpec("roles", method="PUT", past_tense="updated"),
                TransitionSpec("status", method="PUT", past_tense="updated"),
            ),
            can_get=False,
            can_create=False,
            can_update=False,
            can_delete=True,
        ),
        ResourceSpec(
            key="leave-balances",
            label="leave balance",
            path="/leave-balances",
            list_path="/leave-balances/my-balances",
            search_fields=("leaveType.name",),
            sort_fields={
                "leaveType": SortField("leaveType.name"),
                "available": SortField("available", "number"),
                "used": SortField("used", "number"),
            },
            default_sort="leaveType",
            can_get=False,
            can_create=False,
            can_update=False,
        ),
        ResourceSpec(
            key="audit-logs",
            label="audit log",
            path="/audit",
            list_path="/audit/security-events",
            list_params={"limit": 500},
            search_fields=("userId", "description", "entityId", "ipAddress"),
            sort_fields={
                "timestamp": SortField("timestamp", "date"),
                "action": SortField("action"),
            },
            default_sort="timestamp",
            default_order="desc",
            filter_fields=("action", "entityType"),
            can_get=False,
            can_create=False,
            can_update=False,
        ),
        ResourceSpec(
            key="documents",
            label="document",
            path="/documents",
            list_path="/documents/leave-request/{leaveRequestId}",
            list_scope=("leaveRequestId",),
            search_fields=("cloudinaryUrl",),
            sort_fields={"createdAt": SortField("createdAt", "date")},
            default_sort="createdAt",
            default_order="desc",
            can_create=False,
            can_update=False,
            can_delete=True,
        ),
    )
}


def get_resource(key: str) -> Optional[ResourceSpec]:
    return RESOURCES.get(key)


class ResourceClient(IResourceGateway):
    """REST calls for one resource family, on behalf of one caller"""

    def __init__(self, http: HttpClient, spec: ResourceSpec, token: Optional[str] = None):
        self.http = http
        self.spec = spec
        self.token = token

    def _require(self, operation: str) -> None:
        if not self.spec.supports(operation):
            raise UnsupportedOperationException(self.spec.key, operation)

    async def list(self, params: Optional[Dict[str, Any]] = None) -> Any:
        self._require('list')
        query = dict(self.spec.list_params)
        query.update(params or {})
        scope = {name: query.pop(name, None) for name in self.spec.list_scope}
        return await self.http.get(self.spec.collection_path(scope), params=query or None, token=self.token)

    async def get(self, entity_id: str) -> Any:
        self._require('get')
        return await self.http.get(self.spec.entity_path(entity_id), token=self.token)

    async def create(self, payload: Dict[str, Any]) -> Any:
        self._require('create')
        return await self.http.post(self.spec.path, payload, token=self.token)

    async def update(self, entity_id: str, payload: Dict[str, Any]) -> Any:
        self._require('update')
        return await self.http.request(
            self.spec.update_method, self.spec.entity_path(entity_id), payload, token=self.token
        )

    async def delete(self, entity_id: str) -> Any:
        self._require('delete')
        return await self.http.delete(self.spec.deletion_path(entity_id), token=self.token)

    async def transition(self, entity_id: str, name: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        transition = self.spec.get_transition(name)
        if transition is None:
            raise UnsupportedOperationException(self.spec.key, name)
        return await self.http.request(
            transition.method, self.spec.transition_path(transition, entity_id), payload, token=self.token
        )
