"""
View controllers

One controller per page render. A list controller owns an entity fetcher
and a query engine; a detail controller owns a single-entity fetcher keyed
by the route's entity id.
"""

import logging
from typing import Any, Dict, Mapping, Optional

from adapters.resource_client import ResourceSpec
from adapters.response_unwrapper import unwrap_collection
from config import ConsoleConfig
from interfaces import INotifier, IResourceGateway
from managers.entity_fetcher import EntityFetcher
from managers.query_engine import QueryEngine
from models import DerivedView, ErrorKind, FetchResult, QueryState, ViewState


def describe_resource(spec: ResourceSpec) -> Dict[str, Any]:
    return {
        'key': spec.key,
        'label': spec.label,
        'searchable': bool(spec.search_fields),
        'sort_fields': list(spec.sort_fields),
        'default_sort': spec.default_sort,
        'default_order': spec.default_order,
        'filter_fields': list(spec.filter_fields),
        'scope': list(spec.list_scope),
        'transitions': [t.name for t in spec.transitions],
        'can_create': spec.can_create,
        'can_update': spec.can_update,
        'can_delete': spec.can_delete,
    }


class ListViewController:
    """List page: fetch the collection, then derive the visible slice"""

    def __init__(self, spec: ResourceSpec, client: IResourceGateway, notifier: INotifier,
                 query: QueryState, config: ConsoleConfig, scope: Optional[Mapping[str, Any]] = None):
        self.spec = spec
        self.client = client
        self.notifier = notifier
        self.query = query
        # parent ids a scoped collection is listed under, e.g. a leave request
        self.scope = dict(scope or {})
        self.config = config
        self.logger = logging.getLogger(self.__class__.__name__)
        self.engine = QueryEngine.for_resource(spec)
        self.fetcher = EntityFetcher(
            self._load,
            notifier,
            label=spec.plural,
            required_params=spec.list_scope,
            fetch_timeout=config.backend.fetch_timeout,
            clear_on_error=config.query.clear_on_error,
        )
        self.view: Optional[DerivedView] = None

    async def _load(self, **params) -> Any:
        return await self.client.list(params or None)

    def _derive(self) -> DerivedView:
        self.view = self.engine.derive(self.fetcher.data, self.query)
        # keep the page in range after every derivation
        self.query = self.view.query
        return self.view

    async def load(self, **params) -> FetchResult:
        result = await self.fetcher.fetch(**{**self.scope, **params})
        self._derive()
        return result

    async def refetch(self) -> FetchResult:
        result = await self.fetcher.refetch()
        self._derive()
        return result

    def set_search(self, term: str) -> DerivedView:
        self.query = self.query.with_search(term)
        return self._derive()

    def set_filters(self, **filters) -> DerivedView:
        self.query = self.query.with_filters(**filters)
        return self._derive()

    def set_sort(self, sort_by: Optional[str], sort_order: Any = None) -> DerivedView:
        self.query = self.query.with_sort(sort_by, sort_order)
        return self._derive()

    def set_page(self, page: int) -> DerivedView:
        self.query = self.query.with_page(page)
        return self._derive()

    def close(self):
        self.fetcher.close()

    @property
    def state(self) -> ViewState:
        if self.fetcher.loading:
            return ViewState.LOADING
        if self.fetcher.error is not None and not self.fetcher.data:
            return ViewState.ERROR
        view = self.view or self._derive()
        return ViewState.READY if view.filtered_count else ViewState.EMPTY

    def snapshot(self) -> Dict[str, Any]:
        view = self.view or self._derive()
        error = None
        if self.fetcher.error is not None:
            error = {'kind': self.fetcher.error.value, 'message': self.fetcher.message}
        payload = {
            'state': self.state.value,
            'resource': describe_resource(self.spec),
            'stale': error is not None and bool(self.fetcher.data),
            'error': error,
        }
        payload.update(view.to_dict())
        return payload


class DetailViewController:
    """Detail page for one entity

    Resources without a detail endpoint are looked up in their collection.
    """

    def __init__(self, spec: ResourceSpec, client: IResourceGateway, notifier: INotifier,
                 entity_id: Optional[str], config: ConsoleConfig):
        self.spec = spec
        self.client = client
        self.entity_id = entity_id
        self.fetcher = EntityFetcher(
            self._load,
            notifier,
            label=spec.label,
            required_params=('entity_id',),
            fetch_timeout=config.backend.fetch_timeout,
            single=True,
        )

    async def _load(self, entity_id: str) -> Any:
        if self.spec.can_get:
            return await self.client.get(entity_id)
        collection = unwrap_collection(await self.client.list()) or []
        for entity in collection:
            if not isinstance(entity, dict):
                continue
            if str(entity.get('id')) == entity_id or str(entity.get('employeeId')) == entity_id:
                # rows keyed by employeeId carry no id of their own
                return {"success": True, "data": entity}
        return None

    async def load(self) -> FetchResult:
        return await self.fetcher.fetch(entity_id=self.entity_id)

    async def refetch(self) -> FetchResult:
        return await self.fetcher.refetch()

    def close(self):
        self.fetcher.close()

    @property
    def entity(self) -> Optional[Dict[str, Any]]:
        return self.fetcher.data

    @property
    def state(self) -> ViewState:
        if self.fetcher.loading:
            return ViewState.LOADING
        if self.fetcher.error == ErrorKind.SHAPE or (self.fetcher.error is None and self.entity is None):
            return ViewState.NOT_FOUND
        if self.fetcher.error is not None and self.entity is None:
            return ViewState.ERROR
        return ViewState.READY

    def snapshot(self) -> Dict[str, Any]:
        error = None
        if self.fetcher.error is not None:
            error = {'kind': self.fetcher.error.value, 'message': self.fetcher.message}
        return {
            'state': self.state.value,
            'resource': describe_resource(self.spec),
            'entity': self.entity,
            'error': error,
        }
