"""
Mutation coordinator

Runs create, update, delete and transition calls for one resource family,
with a per-target in-flight guard, a two-step delete confirmation and
success/failure notifications. After a success the caller resynchronizes
through ``on_success`` (usually a refetch) or follows ``redirect_to``;
collections are never patched in place.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Set, Tuple

from adapters.response_unwrapper import extract_message, is_business_failure, unwrap
from exceptions import (
    ConfirmationRequiredException,
    HTTPStatusException,
    MutationInFlightException,
    TransportException,
    user_message,
)
from interfaces import INotifier, IResourceGateway
from models import ErrorKind, MutationOutcome, MutationStatus, PendingDeletion
from validators.payload_validator import PayloadValidator

OnSuccess = Optional[Callable[[], Awaitable[Any]]]
RedirectTo = Optional[Callable[[Any], Optional[str]]]


class MutationCoordinator:
    """Write path of one resource family

    ``in_flight`` and ``pending_deletions`` may be shared with the caller's
    session so the guards hold across requests.
    """

    def __init__(self, client: IResourceGateway, notifier: INotifier, *, label: str,
                 resource: str = "", validator: Optional[PayloadValidator] = None,
                 in_flight: Optional[Set[Tuple[str, str, str]]] = None,
                 pending_deletions: Optional[Dict[Tuple[str, str], PendingDeletion]] = None):
        self.client = client
        self.notifier = notifier
        self.label = label
        self.resource = resource or label
        self.validator = validator
        self.logger = logging.getLogger(self.__class__.__name__)
        self._in_flight = in_flight if in_flight is not None else set()
        self._pending = pending_deletions if pending_deletions is not None else {}

    @property
    def title(self) -> str:
        return self.label[:1].upper() + self.label[1:]

    def status(self, action: str, target: Optional[str] = None) -> MutationStatus:
        key = (self.resource, action, target or "")
        return MutationStatus.IN_FLIGHT if key in self._in_flight else MutationStatus.IDLE

    async def _run(self, action: str, target: Optional[str], call: Callable[[], Awaitable[Any]],
                   success_message: str, failure_message: str,
                   on_success: OnSuccess = None, redirect_to: RedirectTo = None) -> MutationOutcome:
        key = (self.resource, action, target or "")
        if key in self._in_flight:
            raise MutationInFlightException(action, target)

        self._in_flight.add(key)
        try:
            try:
                raw = await call()
            except TransportException as e:
                self.logger.error(f"{action} {self.resource} {target or ''} failed: {e.message}",
                                  extra={'details': e.details})
                message = user_message(e, failure_message)
                self.notifier.error(message)
                return MutationOutcome(
                    action=action, target=target, status=MutationStatus.FAILED,
                    message=message, retryable=True, error=ErrorKind.TRANSPORT,
                    http_status=e.status if isinstance(e, HTTPStatusException) else None,
                )

            if is_business_failure(raw):
                message = extract_message(raw, failure_message)
                self.logger.warning(f"{action} {self.resource} {target or ''} rejected: {message}")
                self.notifier.error(message)
                return MutationOutcome(
                    action=action, target=target, status=MutationStatus.FAILED,
                    message=message, retryable=True, error=ErrorKind.BUSINESS,
                )

            data = unwrap(raw)
            self.notifier.success(success_message)
            self.logger.info(f"{action} {self.resource} {target or ''} succeeded")

            redirect = redirect_to(data) if redirect_to is not None else None
            if redirect is None and on_success is not None:
                await on_success()

            return MutationOutcome(
                action=action, target=target, status=MutationStatus.SUCCEEDED,
                message=success_message, data=data, redirect_to=redirect,
            )
        finally:
            self._in_flight.discard(key)

    async def create(self, payload: Dict[str, Any], *, on_success: OnSuccess = None,
                     redirect_to: RedirectTo = None) -> MutationOutcome:
        if self.validator is not None:
            payload = self.validator.validate_create(payload)
        return await self._run(
            'create', None, lambda: self.client.create(payload),
            f"{self.title} created successfully", f"Failed to create {self.label}",
            on_success=on_success, redirect_to=redirect_to,
        )

    async def update(self, entity_id: str, payload: Dict[str, Any], *, on_success: OnSuccess = None,
                     redirect_to: RedirectTo = None) -> MutationOutcome:
        if self.validator is not None:
            payload = self.validator.validate_update(payload)
        return await self._run(
            'update', entity_id, lambda: self.client.update(entity_id, payload),
            f"{self.title} updated successfully", f"Failed to update {self.label}",
            on_success=on_success, redirect_to=redirect_to,
        )

    async def transition(self, entity_id: str, action: str, payload: Optional[Dict[str, Any]] = None, *,
                         done_label: Optional[str] = None, on_success: OnSuccess = None,
                         redirect_to: RedirectTo = None) -> MutationOutcome:
        if self.validator is not None:
            payload = self.validator.validate_transition(action, payload)
        verb = done_label or f"{action}ed"
        return await self._run(
            action, entity_id, lambda: self.client.transition(entity_id, action, payload),
            f"{self.title} {verb} successfully", f"Failed to {action.replace('-', ' ')} {self.label}",
            on_success=on_success, redirect_to=redirect_to,
        )

    def request_delete(self, entity_id: str) -> PendingDeletion:
        """Open the confirmation dialog for ``entity_id``."""
        pending = PendingDeletion(resource=self.resource, target_id=entity_id)
        self._pending[(self.resource, entity_id)] = pending
        return pending

    def cancel_delete(self, entity_id: str) -> bool:
        """Close the dialog without any backend call."""
        return self._pending.pop((self.resource, entity_id), None) is not None

    def pending_delete(self, entity_id: str) -> Optional[PendingDeletion]:
        return self._pending.get((self.resource, entity_id))

    async def confirm_delete(self, entity_id: str, *, verb: str = "deleted", on_success: OnSuccess = None,
                             redirect_to: RedirectTo = None) -> MutationOutcome:
        """Issue the DELETE for an open dialog.

        The dialog closes on success and stays open after a failure so the
        user can retry.
        """
        if (self.resource, entity_id) not in self._pending:
            raise ConfirmationRequiredException('delete', entity_id)

        outcome = await self._run(
            'delete', entity_id, lambda: self.client.delete(entity_id),
            f"{self.title} {verb} successfully", f"Failed to delete {self.label}",
            on_success=on_success, redirect_to=redirect_to,
        )
        if outcome.success:
            self._pending.pop((self.resource, entity_id), None)
        return outcome
