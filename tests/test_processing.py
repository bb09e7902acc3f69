import asyncio
import time

import pytest

from backend.application import get_execution_service
from backend.core.schema import ExecutionCreate, Material
from backend.core.validation import ConflictError, NotFoundError
from backend.infrastructure import RandomOutreachSimulator, configure_outreach_simulator
from backend.workers.processing import ProcessingWorker

from conftest import FixedOutreachSimulator


def _execution_with(*names):
    service = get_execution_service()
    materials = [Material(name=name, quantity=10 * (index + 1), rate=20) for index, name in enumerate(names)]
    return service.create_execution(ExecutionCreate(name="Quarterly restock", materials=materials))


def test_processing_run_completes_every_material(simulator):
    execution = _execution_with("Sugar", "Salt", "Flour")
    worker = ProcessingWorker(delay=0)

    async def scenario():
        started = await worker.start(execution.id)
        assert started.status == "processing"
        assert started.processing_status.is_processing is True
        assert started.processing_status.results == []
        assert started.processing_status.total_count == 3
        await worker.wait(execution.id)

    asyncio.run(scenario())

    done = get_execution_service().get_execution(execution.id)
    assert done.status == "email_sent"
    assert done.processing_status.is_processing is False
    assert done.processing_status.processed_count == 3
    assert done.processing_status.current_material == "Flour"
    assert [result.material for result in done.processing_status.results] == ["Sugar", "Salt", "Flour"]
    assert len(done.vendors) == 5
    assert done.vendors_contacted == 5
    assert simulator.calls == ["Sugar", "Salt", "Flour"]
    assert not worker.is_running(execution.id)

    activity = get_execution_service().list_activity()
    assert activity[0].activity_type == "email_sent"
    assert activity[0].details == "5 vendors contacted"


def test_random_results_stay_in_reference_ranges():
    configure_outreach_simulator(RandomOutreachSimulator(seed=3))
    execution = _execution_with("Sugar", "Salt", "Flour", "Rice")

    asyncio.run(_run_to_completion(ProcessingWorker(delay=0), execution.id))

    done = get_execution_service().get_execution(execution.id)
    assert len(done.processing_status.results) == 4
    for result in done.processing_status.results:
        assert result.success is True
        assert 1 <= result.vendor_count <= 5
        assert 16 <= result.best_price < 24
        assert 1 <= result.fastest_delivery <= 7
    for vendor in done.vendors:
        assert 16 <= vendor.price < 24
        assert 1 <= vendor.delivery_time <= 7


async def _run_to_completion(worker, execution_id):
    await worker.start(execution_id)
    await worker.wait(execution_id)


def test_failed_material_is_recorded_and_run_continues():
    configure_outreach_simulator(FixedOutreachSimulator(fail_for={"Salt"}))
    execution = _execution_with("Sugar", "Salt", "Flour")

    asyncio.run(_run_to_completion(ProcessingWorker(delay=0), execution.id))

    done = get_execution_service().get_execution(execution.id)
    assert done.status == "email_sent"
    results = done.processing_status.results
    assert [result.success for result in results] == [True, False, True]
    assert results[1].material == "Salt"
    assert results[1].error == "mailbox unavailable for Salt"


def test_run_failure_reverts_to_draft():
    configure_outreach_simulator(FixedOutreachSimulator(fail_vendors=True))
    execution = _execution_with("Sugar")

    asyncio.run(_run_to_completion(ProcessingWorker(delay=0), execution.id))

    reverted = get_execution_service().get_execution(execution.id)
    assert reverted.status == "draft"
    assert reverted.processing_status.is_processing is False
    assert reverted.vendors == []


def test_cancel_freezes_progress():
    execution = _execution_with("Sugar", "Salt", "Flour")
    worker = ProcessingWorker(delay=0.2)

    async def scenario():
        await worker.start(execution.id)
        await asyncio.sleep(0.02)
        cancelled = worker.cancel(execution.id)
        assert cancelled.status == "draft"
        assert cancelled.processing_status.is_processing is False
        await worker.wait(execution.id)

    asyncio.run(scenario())

    stopped = get_execution_service().get_execution(execution.id)
    assert stopped.status == "draft"
    assert stopped.processing_status.is_processing is False
    assert stopped.processing_status.processed_count == 0
    assert stopped.processing_status.current_material == "Sugar"
    assert len(stopped.processing_status.results) == 1
    assert stopped.vendors == []


def test_second_start_while_processing_is_rejected():
    execution = _execution_with("Sugar", "Salt")
    worker = ProcessingWorker(delay=0.05)

    async def scenario():
        await worker.start(execution.id)
        with pytest.raises(ConflictError):
            await worker.start(execution.id)
        await worker.wait(execution.id)

    asyncio.run(scenario())
    assert get_execution_service().get_execution(execution.id).status == "email_sent"


def test_restart_after_cancel_resets_progress():
    execution = _execution_with("Sugar", "Salt")
    worker = ProcessingWorker(delay=0.1)

    async def scenario():
        await worker.start(execution.id)
        await asyncio.sleep(0.02)
        worker.cancel(execution.id)
        restarted = await worker.start(execution.id)
        assert restarted.processing_status.results == []
        assert restarted.processing_status.processed_count == 0
        await worker.wait(execution.id)

    asyncio.run(scenario())

    done = get_execution_service().get_execution(execution.id)
    assert done.status == "email_sent"
    assert [result.material for result in done.processing_status.results] == ["Sugar", "Salt"]


def test_deleting_execution_mid_run_stops_quietly():
    execution = _execution_with("Sugar", "Salt")
    worker = ProcessingWorker(delay=0.05)

    async def scenario():
        await worker.start(execution.id)
        await asyncio.sleep(0.01)
        get_execution_service().delete_execution(execution.id)
        await worker.wait(execution.id)

    asyncio.run(scenario())
    assert not worker.is_running(execution.id)
    with pytest.raises(NotFoundError):
        get_execution_service().get_execution(execution.id)


def test_start_unknown_execution_raises():
    worker = ProcessingWorker(delay=0)
    with pytest.raises(NotFoundError):
        asyncio.run(worker.start("missing"))


def test_shutdown_cancels_outstanding_runs():
    execution = _execution_with("Sugar", "Salt")
    worker = ProcessingWorker(delay=5)

    async def scenario():
        await worker.start(execution.id)
        await asyncio.sleep(0.01)
        await worker.shutdown()

    asyncio.run(scenario())
    assert not worker.is_running(execution.id)


def _poll_status(client, execution_id, expected, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        body = client.get(f"/api/process-materials/{execution_id}/status").json()
        if body["status"] == expected:
            return body
        time.sleep(0.01)
    raise AssertionError(f"execution {execution_id} never reached {expected}")


def test_processing_endpoints(client):
    created = client.post(
        "/api/executions",
        json={
            "name": "API run",
            "materials": [{"name": "Sugar", "quantity": 10, "rate": 50}, {"name": "Salt", "quantity": 5, "rate": 12}],
            "guardrails": {"certifications": ["FSSAI"]},
        },
    ).json()["execution"]

    response = client.post(f"/api/process-materials/{created['id']}")
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["execution"]["status"] == "processing"
    assert body["execution"]["processingStatus"]["isProcessing"] is True

    body = _poll_status(client, created["id"], "email_sent")
    assert body["success"] is True
    assert body["processingStatus"]["processedCount"] == 2
    assert body["processingStatus"]["totalCount"] == 2
    assert body["processingStatus"]["isProcessing"] is False
    assert [item["material"] for item in body["processingStatus"]["results"]] == ["Sugar", "Salt"]
    assert body["processingStatus"]["results"][0]["vendorCount"] == 3

    execution = client.get(f"/api/executions/{created['id']}").json()["execution"]
    assert execution["vendorsContacted"] == 5


def test_cancel_endpoint_reverts_to_draft(client):
    created = client.post("/api/executions", json={"name": "Idle", "materials": []}).json()["execution"]

    response = client.post(f"/api/process-materials/{created['id']}/cancel")
    assert response.status_code == 200
    assert response.json()["execution"]["status"] == "draft"
    assert response.json()["execution"]["processingStatus"]["isProcessing"] is False


def test_processing_endpoints_unknown_execution(client):
    for method, path in [
        ("post", "/api/process-materials/missing"),
        ("get", "/api/process-materials/missing/status"),
        ("post", "/api/process-materials/missing/cancel"),
    ]:
        response = getattr(client, method)(path)
        assert response.status_code == 404
        assert response.json()["success"] is False


def test_status_reports_progress_mid_run(client, monkeypatch):
    monkeypatch.setenv("PROCESSING_DELAY_SECONDS", "0.2")
    created = client.post(
        "/api/executions",
        json={
            "name": "Slow run",
            "materials": [
                {"name": "Sugar", "quantity": 10, "rate": 50},
                {"name": "Salt", "quantity": 5, "rate": 12},
                {"name": "Flour", "quantity": 8, "rate": 30},
            ],
        },
    ).json()["execution"]
    client.post(f"/api/process-materials/{created['id']}")

    deadline = time.monotonic() + 5.0
    while True:
        body = client.get(f"/api/process-materials/{created['id']}/status").json()
        if body["processingStatus"]["currentMaterial"]:
            break
        assert time.monotonic() < deadline, "processing never reached the first material"
        time.sleep(0.01)

    progress = body["processingStatus"]
    assert body["status"] == "processing"
    assert progress["isProcessing"] is True
    assert progress["currentMaterial"] in {"Sugar", "Salt", "Flour"}
    assert 0 <= progress["processedCount"] <= progress["totalCount"] == 3

    client.post(f"/api/process-materials/{created['id']}/cancel")
