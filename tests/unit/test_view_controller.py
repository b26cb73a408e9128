import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

import pytest

from adapters.resource_client import RESOURCES
from coordinators.view_controller import DetailViewController, ListViewController
from exceptions import ConnectionException
from models import QueryState, ViewState


def _departments(count):
    return [{"id": f"d{i}", "name": f"Dept {i:02d}"} for i in range(count)]


def _list_controller(spec_key, gateway, notifier, config, params=None, scope=None):
    spec = RESOURCES[spec_key]
    query = QueryState.from_params(params or {}, items_per_page=10, default_sort=spec.default_sort)
    return ListViewController(spec, gateway, notifier, query, config, scope=scope)


@pytest.mark.asyncio
async def test_page_is_clamped_after_refetch_shrinks_collection(gateway_factory, notifier, console_config):
    answers = [{"success": True, "data": _departments(25)}, {"success": True, "data": _departments(5)}]
    gateway = gateway_factory({'list': lambda params: answers.pop(0)})
    controller = _list_controller("departments", gateway, notifier, console_config, {"page": "3"})

    await controller.load()
    assert controller.query.current_page == 3
    assert len(controller.view.visible) == 5

    await controller.refetch()
    assert controller.query.current_page == 1
    assert controller.view.total_pages == 1
    assert [d["id"] for d in controller.view.visible] == [f"d{i}" for i in range(5)]


@pytest.mark.asyncio
async def test_snapshot_reports_ready_and_empty(gateway_factory, notifier, console_config):
    ready = _list_controller(
        "departments", gateway_factory({'list': {"success": True, "data": _departments(2)}}),
        notifier, console_config,
    )
    await ready.load()
    snapshot = ready.snapshot()
    assert snapshot['state'] == ViewState.READY.value
    assert snapshot['total_count'] == 2
    assert snapshot['error'] is None

    empty = _list_controller(
        "departments", gateway_factory({'list': {"success": True, "data": []}}),
        notifier, console_config, {"search": "nothing"},
    )
    await empty.load()
    assert empty.snapshot()['state'] == ViewState.EMPTY.value


@pytest.mark.asyncio
async def test_snapshot_reports_transport_error(gateway_factory, notifier, console_config):
    gateway = gateway_factory({'list': ConnectionException("backend", "refused")})
    controller = _list_controller("departments", gateway, notifier, console_config)

    await controller.load()
    snapshot = controller.snapshot()

    assert snapshot['state'] == ViewState.ERROR.value
    assert snapshot['error']['kind'] == "transport"
    assert snapshot['stale'] is False
    assert snapshot['items'] == []
    assert [n['message'] for n in notifier.drain()] == ["Failed to load departments"]


@pytest.mark.asyncio
async def test_scoped_list_passes_parent_id_to_gateway(gateway_factory, notifier, console_config):
    gateway = gateway_factory({'list': {"success": True, "data": []}})
    controller = _list_controller("documents", gateway, notifier, console_config, scope={"leaveRequestId": "lr-1"})

    await controller.load()

    assert gateway.calls == [('list', {"leaveRequestId": "lr-1"})]


@pytest.mark.asyncio
async def test_scoped_list_without_parent_id_is_skipped(gateway_factory, notifier, console_config):
    gateway = gateway_factory({'list': {"success": True, "data": []}})
    controller = _list_controller("documents", gateway, notifier, console_config)

    result = await controller.load()

    assert result.skipped
    assert gateway.calls == []


@pytest.mark.asyncio
async def test_detail_falls_back_to_collection_by_employee_id(gateway_factory, notifier, console_config):
    gateway = gateway_factory({'list': {"success": True, "data": [
        {"employeeId": "e1", "employeeName": "Ada"},
        {"employeeId": "e9", "employeeName": "Bo"},
    ]}})
    controller = DetailViewController(RESOURCES["fingerprints"], gateway, notifier, "e9", console_config)

    await controller.load()

    assert controller.state == ViewState.READY
    assert controller.entity["employeeName"] == "Bo"
    assert [call[0] for call in gateway.calls] == ['list']


@pytest.mark.asyncio
async def test_detail_falls_back_to_collection_by_id(gateway_factory, notifier, console_config):
    gateway = gateway_factory({'list': {"success": True, "data": [{"id": "u1"}, {"id": "u3", "email": "c@x.io"}]}})
    controller = DetailViewController(RESOURCES["users"], gateway, notifier, "u3", console_config)

    await controller.load()

    assert controller.entity == {"id": "u3", "email": "c@x.io"}


@pytest.mark.asyncio
async def test_detail_missing_from_collection_is_not_found(gateway_factory, notifier, console_config):
    gateway = gateway_factory({'list': {"success": True, "data": [{"id": "u1"}]}})
    controller = DetailViewController(RESOURCES["users"], gateway, notifier, "u404", console_config)

    await controller.load()

    assert controller.state == ViewState.NOT_FOUND
    assert controller.snapshot()['entity'] is None
