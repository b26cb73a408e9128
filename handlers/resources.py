"""
Dashboard resource handlers

Landing, list, detail, create, update, two-step delete and transition
endpoints under ``/dashboard/{area}/{resource}``. Each request builds its
own view controller or mutation coordinator; nothing is cached between
requests.
"""

from typing import Any, Dict, Optional, Tuple

from aiohttp import web

from adapters.resource_client import RESOURCES, ResourceClient, ResourceSpec
from adapters.response_unwrapper import unwrap_collection
from coordinators.mutation_coordinator import MutationCoordinator
from coordinators.view_controller import DetailViewController, ListViewController, describe_resource
from exceptions import (
    ConfirmationRequiredException,
    MutationInFlightException,
    PermissionDeniedException,
    UnsupportedOperationException,
    ValidationException,
)
from handlers.base import BaseHandler
from models import ErrorKind, MutationOutcome, QueryState, ViewState
from route_guard import AREA_RESOURCES, allowed_actions, check_permission, has_permission
from utils.async_utils import gather_with_concurrency
from validators.payload_validator import PayloadValidator

REJECTIONS = (
    ValidationException,
    PermissionDeniedException,
    MutationInFlightException,
    ConfirmationRequiredException,
    UnsupportedOperationException,
)


class ResourceHandler(BaseHandler):
    """Pages and mutations of every dashboard resource"""

    def _area(self, request: web.Request) -> str:
        area = request.match_info['area']
        if area not in AREA_RESOURCES:
            raise web.HTTPNotFound(text=f"Unknown dashboard area: {area}")
        return area

    def _resolve(self, request: web.Request) -> Tuple[str, ResourceSpec]:
        area = self._area(request)
        key = request.match_info['resource']
        spec = RESOURCES.get(key)
        if spec is None or key not in AREA_RESOURCES[area]:
            raise web.HTTPNotFound(text=f"Unknown resource: {key}")
        return area, spec

    def _client(self, request: web.Request, spec: ResourceSpec) -> ResourceClient:
        session = self.get_session(request)
        return ResourceClient(self.get_app_component(request, 'http_client'), spec, token=session.token)

    def _list_controller(self, request: web.Request, spec: ResourceSpec,
                         client: ResourceClient) -> ListViewController:
        config = self.get_app_component(request, 'config')
        query = QueryState.from_params(
            request.query,
            items_per_page=config.query.items_per_page,
            max_items_per_page=config.query.max_items_per_page,
            default_sort=spec.default_sort,
            default_order=spec.default_order or config.query.default_sort_order,
        )
        scope = {name: request.query.get(name) for name in spec.list_scope}
        return ListViewController(spec, client, self.get_session(request).notifications, query, config,
                                  scope=scope)

    def _coordinator(self, request: web.Request, spec: ResourceSpec,
                     client: ResourceClient) -> MutationCoordinator:
        session = self.get_session(request)
        return MutationCoordinator(
            client,
            session.notifications,
            label=spec.label,
            resource=spec.key,
            validator=PayloadValidator(spec),
            in_flight=session.in_flight,
            pending_deletions=session.pending_deletions,
        )

    def _authorize(self, request: web.Request, spec: ResourceSpec, action: str):
        session = self.get_session(request)
        try:
            check_permission(session.user.role, spec.key, action)
        except PermissionDeniedException:
            session.notifications.error(f"You do not have permission to {action} {spec.plural}")
            raise

    def _rejected(self, request: web.Request, exc) -> web.Response:
        session = request.get('session')
        if session is not None and not isinstance(exc, PermissionDeniedException):
            session.notifications.error(exc.message)
        return self.exception_response(request, exc)

    def _outcome_response(self, request: web.Request, outcome: MutationOutcome,
                          extra: Optional[Dict[str, Any]] = None, success_status: int = 200) -> web.Response:
        data = outcome.to_dict()
        if extra:
            data.update(extra)
        notifications = self.drain_notifications(request)
        if outcome.success:
            return self.success_response(data, outcome.message, status=success_status,
                                         notifications=notifications)
        if outcome.http_status and 400 <= outcome.http_status < 500:
            status = outcome.http_status
        else:
            status = 400 if outcome.error == ErrorKind.BUSINESS else 502
        return self.error_response(outcome.message, status, 'MUTATION_FAILED',
                                   notifications=notifications, data=data)

    def _list_url(self, area: str, spec: ResourceSpec) -> str:
        return f"/dashboard/{area}/{spec.key}"

    async def landing(self, request: web.Request) -> web.Response:
        """Area summary: visible resources, allowed actions and record counts."""
        area = self._area(request)
        session = self.get_session(request)
        http_client = self.get_app_component(request, 'http_client')
        role = session.user.role

        specs = [
            RESOURCES[key] for key in AREA_RESOURCES[area]
            if key in RESOURCES and has_permission(role, key, 'read')
        ]
        # scoped collections have no area-wide count
        listable = [spec for spec in specs if spec.can_list and not spec.list_scope]

        results = await gather_with_concurrency(
            *[ResourceClient(http_client, spec, token=session.token).list() for spec in listable],
            max_concurrency=5,
        )
        counts = {}
        for spec, raw in zip(listable, results):
            if isinstance(raw, BaseException):
                self.logger.warning(f"Count for {spec.key} unavailable: {raw}")
                counts[spec.key] = None
                continue
            collection = unwrap_collection(raw)
            counts[spec.key] = len(collection) if collection is not None else None

        resources = []
        for spec in specs:
            entry = describe_resource(spec)
            entry['url'] = self._list_url(area, spec)
            entry['allowed_actions'] = allowed_actions(role, spec.key)
            entry['count'] = counts.get(spec.key)
            resources.append(entry)

        return self.success_response(
            {'area': area, 'user': session.user.to_dict(), 'resources': resources},
            notifications=self.drain_notifications(request),
        )

    async def list_view(self, request: web.Request) -> web.Response:
        area, spec = self._resolve(request)
        try:
            self._authorize(request, spec, 'read')
        except PermissionDeniedException as exc:
            return self._rejected(request, exc)

        controller = self._list_controller(request, spec, self._client(request, spec))
        try:
            await controller.load()
            snapshot = controller.snapshot()
        finally:
            controller.close()

        snapshot['url'] = self._list_url(area, spec)
        return self.success_response(snapshot, notifications=self.drain_notifications(request))

    async def detail_view(self, request: web.Request) -> web.Response:
        area, spec = self._resolve(request)
        try:
            self._authorize(request, spec, 'read')
        except PermissionDeniedException as exc:
            return self._rejected(request, exc)

        config = self.get_app_component(request, 'config')
        controller = DetailViewController(
            spec, self._client(request, spec), self.get_session(request).notifications,
            request.match_info.get('entity_id'), config,
        )
        try:
            await controller.load()
            snapshot = controller.snapshot()
        finally:
            controller.close()

        snapshot['back_url'] = self._list_url(area, spec)
        notifications = self.drain_notifications(request)
        if controller.state == ViewState.NOT_FOUND:
            return self.error_response(f"{spec.title} not found", 404, 'NOT_FOUND',
                                       notifications=notifications, data=snapshot)
        return self.success_response(snapshot, notifications=notifications)

    async def create(self, request: web.Request) -> web.Response:
        area, spec = self._resolve(request)
        payload = await self.get_request_json(request)
        try:
            if not spec.can_create:
                raise UnsupportedOperationException(spec.key, 'create')
            self._authorize(request, spec, 'create')
            coordinator = self._coordinator(request, spec, self._client(request, spec))
            outcome = await coordinator.create(
                payload, redirect_to=lambda data: self._list_url(area, spec),
            )
        except REJECTIONS as exc:
            return self._rejected(request, exc)
        return self._outcome_response(request, outcome, success_status=201)

    async def update(self, request: web.Request) -> web.Response:
        area, spec = self._resolve(request)
        entity_id = request.match_info['entity_id']
        payload = await self.get_request_json(request)
        try:
            if not spec.can_update:
                raise UnsupportedOperationException(spec.key, 'update')
            self._authorize(request, spec, 'update')
            coordinator = self._coordinator(request, spec, self._client(request, spec))
            outcome = await coordinator.update(
                entity_id, payload, redirect_to=lambda data: self._list_url(area, spec),
            )
        except REJECTIONS as exc:
            return self._rejected(request, exc)
        return self._outcome_response(request, outcome)

    async def transition(self, request: web.Request) -> web.Response:
        area, spec = self._resolve(request)
        entity_id = request.match_info['entity_id']
        action = request.match_info['action']
        transition = spec.get_transition(action)
        if transition is None:
            raise web.HTTPNotFound(text=f"Unknown action for {spec.key}: {action}")

        payload = await self.get_request_json(request)
        client = self._client(request, spec)
        controller = self._list_controller(request, spec, client) if spec.can_list else None
        try:
            self._authorize(request, spec, action)
            coordinator = self._coordinator(request, spec, client)
            outcome = await coordinator.transition(
                entity_id, action, payload,
                done_label=transition.done_label,
                on_success=controller.load if controller else None,
            )
        except REJECTIONS as exc:
            return self._rejected(request, exc)
        finally:
            if controller:
                controller.close()

        extra = {'view': controller.snapshot()} if controller and outcome.success else None
        return self._outcome_response(request, outcome, extra)

    async def request_delete(self, request: web.Request) -> web.Response:
        area, spec = self._resolve(request)
        entity_id = request.match_info['entity_id']
        try:
            if not spec.can_delete:
                raise UnsupportedOperationException(spec.key, 'delete')
            self._authorize(request, spec, 'delete')
        except REJECTIONS as exc:
            return self._rejected(request, exc)

        coordinator = self._coordinator(request, spec, self._client(request, spec))
        pending = coordinator.request_delete(entity_id)
        base = f"{self._list_url(area, spec)}/{entity_id}/delete"
        return self.success_response(
            {
                'resource': spec.key,
                'target': pending.target_id,
                'opened_at': pending.opened_at.isoformat() + 'Z',
                'confirm_url': f"{base}/confirm",
                'cancel_url': f"{base}/cancel",
                'prompt': f"Are you sure you want to delete this {spec.label}?",
            },
            "Confirmation required",
            notifications=self.drain_notifications(request),
        )

    async def cancel_delete(self, request: web.Request) -> web.Response:
        area, spec = self._resolve(request)
        entity_id = request.match_info['entity_id']
        try:
            self._authorize(request, spec, 'delete')
        except PermissionDeniedException as exc:
            return self._rejected(request, exc)

        coordinator = self._coordinator(request, spec, self._client(request, spec))
        cancelled = coordinator.cancel_delete(entity_id)
        return self.success_response(
            {'resource': spec.key, 'target': entity_id, 'cancelled': cancelled},
            "Deletion cancelled" if cancelled else "No deletion pending",
            notifications=self.drain_notifications(request),
        )

    async def confirm_delete(self, request: web.Request) -> web.Response:
        area, spec = self._resolve(request)
        entity_id = request.match_info['entity_id']
        client = self._client(request, spec)
        controller = self._list_controller(request, spec, client) if spec.can_list else None
        try:
            self._authorize(request, spec, 'delete')
            coordinator = self._coordinator(request, spec, client)
            outcome = await coordinator.confirm_delete(
                entity_id, verb=spec.delete_verb,
                on_success=controller.load if controller else None,
            )
        except REJECTIONS as exc:
            return self._rejected(request, exc)
        finally:
            if controller:
                controller.close()

        extra = {'view': controller.snapshot()} if controller and outcome.success else None
        return self._outcome_response(request, outcome, extra)
