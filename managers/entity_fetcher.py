"""
Entity fetcher

Loads one collection or one entity for a view, with a loading flag, the
error taxonomy, stale-response rejection and a hard timeout.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Sequence

from adapters.response_unwrapper import (
    extract_message,
    is_business_failure,
    unwrap_collection,
    unwrap_entity,
)
from exceptions import HTTPStatusException, RequestTimeoutException, TransportException
from interfaces import INotifier
from models import ErrorKind, FetchResult
from utils.async_utils import AsyncTimer

Loader = Callable[..., Awaitable[Any]]


class EntityFetcher:
    """Fetch state of one view

    ``data`` starts as ``[]`` for collections and ``None`` for single
    entities. Every fetch captures a generation number; a completion is
    applied only while its generation is still the latest and the view
    has not been closed.
    """

    def __init__(self, loader: Loader, notifier: INotifier, *, label: str,
                 required_params: Sequence[str] = (), fetch_timeout: float = 30.0,
                 clear_on_error: bool = False, single: bool = False):
        self.loader = loader
        self.notifier = notifier
        self.label = label
        self.required_params = tuple(required_params)
        self.fetch_timeout = fetch_timeout
        self.clear_on_error = clear_on_error
        self.single = single
        self.logger = logging.getLogger(self.__class__.__name__)

        self.data: Any = None if single else []
        self.loading = False
        self.error: Optional[ErrorKind] = None
        self.message: Optional[str] = None

        self._generation = 0
        self._closed = False
        self._last_params: Optional[Dict[str, Any]] = None

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def generation(self) -> int:
        return self._generation

    def close(self):
        """Mark the view unmounted; in-flight completions are discarded."""
        self._closed = True

    def _is_current(self, generation: int) -> bool:
        return not self._closed and generation == self._generation

    def _missing_params(self, params: Dict[str, Any]) -> Sequence[str]:
        missing = []
        for name in self.required_params:
            value = params.get(name)
            if value is None or (isinstance(value, str) and not value.strip()):
                missing.append(name)
        return missing

    def _empty(self) -> Any:
        return None if self.single else []

    def _title(self) -> str:
        return self.label[:1].upper() + self.label[1:]

    def _fail(self, kind: ErrorKind, message: str, clear: bool) -> FetchResult:
        self.error = kind
        self.message = message
        if clear:
            self.data = self._empty()
        self.notifier.error(message)
        return FetchResult(data=self.data, error=kind, message=message)

    async def fetch(self, **params) -> FetchResult:
        """Load with ``params`` and apply the result if still current."""
        if self._closed:
            return FetchResult(data=self.data, stale=True)

        missing = self._missing_params(params)
        if missing:
            self.logger.debug(f"Skipping {self.label} fetch, missing {', '.join(missing)}")
            return FetchResult(data=self.data, skipped=True)

        self._generation += 1
        generation = self._generation
        self._last_params = dict(params)
        self.loading = True

        try:
            try:
                async with AsyncTimer() as timer:
                    raw = await asyncio.wait_for(self.loader(**params), timeout=self.fetch_timeout)
            except asyncio.TimeoutError:
                raise RequestTimeoutException('GET', self.label, self.fetch_timeout)

            if not self._is_current(generation):
                self.logger.debug(f"Discarding stale {self.label} response (generation {generation})")
                return FetchResult(data=self.data, stale=True)

            self.logger.debug(f"Loaded {self.label} in {timer.elapsed_seconds:.3f}s")

            if is_business_failure(raw):
                message = extract_message(raw, f"Failed to load {self.label}")
                return self._fail(ErrorKind.BUSINESS, message, self.clear_on_error)

            data = unwrap_entity(raw) if self.single else unwrap_collection(raw)
            if data is None:
                self.logger.warning(f"Unrecognised {self.label} payload: {type(raw).__name__}")
                message = f"{self._title()} not found" if self.single else f"Failed to load {self.label}"
                return self._fail(ErrorKind.SHAPE, message, clear=True)

            self.data = data
            self.error = None
            self.message = None
            return FetchResult(data=data)

        except TransportException as e:
            if not self._is_current(generation):
                return FetchResult(data=self.data, stale=True)

            self.logger.error(f"Failed to load {self.label}: {e.message}", extra={'details': e.details})
            if self.single and isinstance(e, HTTPStatusException) and e.status == 404:
                return self._fail(ErrorKind.SHAPE, f"{self._title()} not found", clear=True)
            return self._fail(ErrorKind.TRANSPORT, f"Failed to load {self.label}", self.clear_on_error)

        finally:
            if generation == self._generation:
                self.loading = False

    async def refetch(self) -> FetchResult:
        """Repeat the last fetch with its parameters."""
        return await self.fetch(**(self._last_params or {}))
