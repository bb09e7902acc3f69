import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

sys.path.append(str(Path(__file__).resolve().parents[1]))

from backend.application import reset_execution_state
from backend.core.schema import Execution, Material, ProcessingResult, Vendor
from backend.infrastructure import RandomOutreachSimulator, configure_outreach_simulator


class FixedOutreachSimulator:
    """Deterministic outreach results; optionally fails for named materials."""

    def __init__(self, fail_for: set[str] | None = None, fail_vendors: bool = False) -> None:
        self.fail_for = fail_for or set()
        self.fail_vendors = fail_vendors
        self.calls: list[str] = []

    def contact_vendors(self, material: Material) -> ProcessingResult:
        self.calls.append(material.name)
        if material.name in self.fail_for:
            raise RuntimeError(f"mailbox unavailable for {material.name}")
        return ProcessingResult(
            material=material.name,
            vendor_count=3,
            best_price=material.rate * 0.9,
            fastest_delivery=2,
        )

    def generate_vendors(self, execution: Execution) -> list[Vendor]:
        if self.fail_vendors:
            raise RuntimeError("vendor directory offline")
        return RandomOutreachSimulator(seed=7).generate_vendors(execution)


@pytest.fixture(autouse=True)
def reset_state():
    reset_execution_state()
    yield
    reset_execution_state()


@pytest.fixture(autouse=True)
def simulator():
    fixed = FixedOutreachSimulator()
    configure_outreach_simulator(fixed)
    yield fixed
    configure_outreach_simulator(RandomOutreachSimulator())


@pytest.fixture()
def uploads_dir(tmp_path, monkeypatch):
    root = tmp_path / "uploads"
    monkeypatch.setenv("UPLOADS_ROOT", str(root))
    return root


@pytest.fixture()
def client(uploads_dir, monkeypatch):
    monkeypatch.setenv("PROCESSING_DELAY_SECONDS", "0")
    monkeypatch.setenv("RESEARCH_DELAY_SECONDS", "0")
    from backend.app import create_app

    app = create_app()
    with TestClient(app) as test_client:
        yield test_client
