import asyncio
import sys
from pathlib import Path
from unittest.mock import AsyncMock

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

import pytest

from adapters.resource_client import RESOURCES
from coordinators.mutation_coordinator import MutationCoordinator
from exceptions import (
    ConfirmationRequiredException,
    ConnectionException,
    HTTPStatusException,
    MutationInFlightException,
    ValidationException,
)
from models import ErrorKind, MutationStatus, NotificationLevel
from validators.payload_validator import PayloadValidator


def _coordinator(gateway, notifier, validate=False):
    spec = RESOURCES["departments"]
    return MutationCoordinator(
        gateway, notifier,
        label=spec.label,
        resource=spec.key,
        validator=PayloadValidator(spec) if validate else None,
    )


@pytest.mark.asyncio
async def test_cancelled_delete_issues_no_request(gateway_factory, notifier):
    gateway = gateway_factory()
    coordinator = _coordinator(gateway, notifier)

    coordinator.request_delete("d1")
    assert coordinator.pending_delete("d1") is not None
    assert coordinator.cancel_delete("d1") is True

    assert gateway.calls == []
    assert coordinator.pending_delete("d1") is None


@pytest.mark.asyncio
async def test_confirm_without_open_dialog_is_rejected(gateway_factory, notifier):
    gateway = gateway_factory()
    coordinator = _coordinator(gateway, notifier)

    with pytest.raises(ConfirmationRequiredException):
        await coordinator.confirm_delete("d1")
    assert gateway.calls == []


@pytest.mark.asyncio
async def test_confirmed_delete_resynchronizes(gateway_factory, notifier):
    gateway = gateway_factory({"delete": None})
    coordinator = _coordinator(gateway, notifier)
    refetch = AsyncMock()

    coordinator.request_delete("d1")
    outcome = await coordinator.confirm_delete("d1", on_success=refetch)

    assert outcome.success
    assert gateway.calls == [("delete", "d1")]
    refetch.assert_awaited_once()
    assert coordinator.pending_delete("d1") is None
    assert notifier.peek()[-1].message == "Department deleted successfully"


@pytest.mark.asyncio
async def test_failed_delete_keeps_dialog_open(gateway_factory, notifier):
    gateway = gateway_factory({"delete": ConnectionException("http://backend", "refused")})
    coordinator = _coordinator(gateway, notifier)

    coordinator.request_delete("d1")
    outcome = await coordinator.confirm_delete("d1")

    assert outcome.status == MutationStatus.FAILED
    assert outcome.retryable
    assert coordinator.pending_delete("d1") is not None


@pytest.mark.asyncio
async def test_failed_update_shows_server_message_without_redirect(gateway_factory, notifier):
    error = HTTPStatusException(
        "PUT", "/departments/d1", 409,
        payload={"success": False, "message": "Name already taken"},
        message="Name already taken",
    )
    gateway = gateway_factory({"update": error})
    coordinator = _coordinator(gateway, notifier)
    refetch = AsyncMock()

    outcome = await coordinator.update(
        "d1", {"name": "Ops"},
        on_success=refetch,
        redirect_to=lambda data: "/dashboard/admin/departments",
    )

    assert not outcome.success
    assert outcome.message == "Name already taken"
    assert outcome.redirect_to is None
    assert outcome.retryable
    assert outcome.http_status == 409
    refetch.assert_not_awaited()
    last = notifier.peek()[-1]
    assert last.level == NotificationLevel.ERROR
    assert last.message == "Name already taken"


@pytest.mark.asyncio
async def test_business_envelope_failure_uses_server_message(gateway_factory, notifier):
    gateway = gateway_factory({"update": {"success": False, "message": "Name already taken"}})
    coordinator = _coordinator(gateway, notifier)

    outcome = await coordinator.update("d1", {"name": "Ops"})

    assert outcome.error == ErrorKind.BUSINESS
    assert outcome.message == "Name already taken"


@pytest.mark.asyncio
async def test_failure_without_server_message_uses_fallback(gateway_factory, notifier):
    gateway = gateway_factory({"update": ConnectionException("http://backend", "refused")})
    coordinator = _coordinator(gateway, notifier)

    outcome = await coordinator.update("d1", {"name": "Ops"})

    assert outcome.message == "Failed to update department"


@pytest.mark.asyncio
async def test_successful_create_redirects(gateway_factory, notifier):
    gateway = gateway_factory({"create": {"success": True, "data": {"id": "d9", "name": "Legal"}}})
    coordinator = _coordinator(gateway, notifier)
    refetch = AsyncMock()

    outcome = await coordinator.create(
        {"name": "Legal"},
        on_success=refetch,
        redirect_to=lambda data: f"/dashboard/admin/departments/{data['id']}",
    )

    assert outcome.success
    assert outcome.redirect_to == "/dashboard/admin/departments/d9"
    assert outcome.data == {"id": "d9", "name": "Legal"}
    refetch.assert_not_awaited()
    assert notifier.peek()[-1].message == "Department created successfully"


@pytest.mark.asyncio
async def test_duplicate_in_flight_mutation_is_rejected(gateway_factory, notifier):
    gate = asyncio.Event()

    async def slow_update(entity_id, payload):
        await gate.wait()
        return {"success": True, "data": {"id": entity_id}}

    gateway = gateway_factory({"update": slow_update})
    coordinator = _coordinator(gateway, notifier)

    first = asyncio.create_task(coordinator.update("d1", {"name": "Eng"}))
    await asyncio.sleep(0)
    assert coordinator.status("update", "d1") == MutationStatus.IN_FLIGHT

    with pytest.raises(MutationInFlightException):
        await coordinator.update("d1", {"name": "Eng"})

    gate.set()
    outcome = await first
    assert outcome.success
    assert coordinator.status("update", "d1") == MutationStatus.IDLE
    assert len(gateway.calls) == 1


@pytest.mark.asyncio
async def test_in_flight_flag_released_after_failure(gateway_factory, notifier):
    gateway = gateway_factory({"update": ConnectionException("http://backend", "refused")})
    coordinator = _coordinator(gateway, notifier)

    await coordinator.update("d1", {"name": "Eng"})

    assert coordinator.status("update", "d1") == MutationStatus.IDLE


@pytest.mark.asyncio
async def test_invalid_payload_issues_no_request(gateway_factory, notifier):
    gateway = gateway_factory()
    coordinator = _coordinator(gateway, notifier, validate=True)

    with pytest.raises(ValidationException) as exc_info:
        await coordinator.create({"name": "E"})

    assert exc_info.value.field_errors == {"name": "Department name must be at least 2 characters"}
    assert gateway.calls == []


@pytest.mark.asyncio
async def test_transition_with_empty_payload(gateway_factory, notifier):
    gateway = gateway_factory({"transition": {"success": True, "data": {"id": "l1", "status": "APPROVED"}}})
    coordinator = MutationCoordinator(gateway, notifier, label="leave request", resource="leave-requests")

    outcome = await coordinator.transition("l1", "approve", None, done_label="approved")

    assert outcome.success
    assert gateway.calls == [("transition", "l1", "approve", None)]
    assert notifier.peek()[-1].message == "Leave request approved successfully"
