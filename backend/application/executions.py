"""Application service layer for procurement executions."""
from __future__ import annotations

import logging
import uuid
from typing import Iterable

from backend.core.schema import (
    ActivityEntry,
    Execution,
    ExecutionCreate,
    ExecutionUpdate,
    Guardrails,
    Material,
    ProcessingStatus,
    utcnow,
)
from backend.core.validation import ConflictError, NotFoundError
from backend.infrastructure import (
    ExecutionRepository,
    InMemoryExecutionRepository,
    get_outreach_simulator,
)
from backend.infrastructure.executions import ExecutionMutator

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return uuid.uuid4().hex


def price_materials(materials: Iterable[Material]) -> list[Material]:
    """Recompute every line total and fill in missing material ids."""

    priced: list[Material] = []
    for index, material in enumerate(materials, start=1):
        item = material.priced()
        if item.id is None:
            item.id = index
        priced.append(item)
    return priced


class ExecutionService:
    """Coordinates execution use cases and records their activity."""

    ACTIVITY_DETAILS: dict[str, str] = {
        "created": "Execution created",
        "updated": "Execution updated",
        "email_sent": "{vendors_contacted} vendors contacted",
        "vendor_response": "{vendors_responded} vendors responded",
        "conversation_started": "{active_conversations} active conversations",
    }

    def __init__(self, repository: ExecutionRepository) -> None:
        self._repository = repository

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    def mutate(self, execution_id: str, mutator: ExecutionMutator) -> Execution:
        updated = self._repository.update(execution_id, mutator)
        if updated is None:
            raise NotFoundError("Execution not found")
        return updated

    def record_activity(self, execution: Execution, activity_type: str) -> ActivityEntry:
        template = self.ACTIVITY_DETAILS.get(activity_type, "")
        entry = ActivityEntry(
            id=_new_id(),
            execution_name=execution.name,
            activity_type=activity_type,  # type: ignore[arg-type]
            details=template.format(
                vendors_contacted=execution.vendors_contacted,
                vendors_responded=execution.vendors_responded,
                active_conversations=execution.active_conversations,
            ),
        )
        self._repository.add_activity(entry)
        return entry

    def list_activity(self) -> list[ActivityEntry]:
        return self._repository.list_activity()

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------
    def create_execution(self, payload: ExecutionCreate) -> Execution:
        materials = price_materials(payload.materials)
        execution = Execution(
            id=_new_id(),
            name=payload.name,
            materials=materials,
            guardrails=payload.guardrails or Guardrails(),
            processing_status=ProcessingStatus(total_count=len(materials)),
        )
        created = self._repository.add(execution)
        self.record_activity(created, "created")
        logger.info("Created execution %s (%s) with %d materials", created.id, created.name, len(materials))
        return created

    def get_execution(self, execution_id: str) -> Execution:
        execution = self._repository.get(execution_id)
        if execution is None:
            raise NotFoundError("Execution not found")
        return execution

    def list_executions(self, status: str | None = None) -> list[Execution]:
        return self._repository.list(status)

    def update_execution(self, execution_id: str, payload: ExecutionUpdate) -> Execution:
        fields = payload.model_fields_set

        def apply(execution: Execution) -> None:
            if "name" in fields and payload.name:
                execution.name = payload.name
            if "materials" in fields and payload.materials is not None:
                execution.materials = price_materials(payload.materials)
                if not execution.processing_status.is_processing:
                    execution.processing_status.total_count = len(execution.materials)
            if "guardrails" in fields and payload.guardrails is not None:
                execution.guardrails = payload.guardrails
            if "status" in fields and payload.status is not None:
                execution.status = payload.status
            execution.updated_at = utcnow()

        updated = self.mutate(execution_id, apply)
        self.record_activity(updated, "updated")
        return updated

    def delete_execution(self, execution_id: str) -> None:
        if not self._repository.delete(execution_id):
            raise NotFoundError("Execution not found")
        logger.info("Deleted execution %s", execution_id)

    # ------------------------------------------------------------------
    # processing transitions
    # ------------------------------------------------------------------
    def begin_processing(self, execution_id: str) -> Execution:
        def apply(execution: Execution) -> None:
            if execution.processing_status.is_processing:
                raise ConflictError("Execution is already processing")
            execution.status = "processing"
            execution.processing_status = ProcessingStatus(
                total_count=len(execution.materials),
                is_processing=True,
            )
            execution.updated_at = utcnow()

        return self.mutate(execution_id, apply)

    def complete_processing(self, execution_id: str) -> Execution:
        simulator = get_outreach_simulator()

        def apply(execution: Execution) -> None:
            execution.status = "email_sent"
            execution.processing_status.is_processing = False
            execution.processing_status.processed_count = execution.processing_status.total_count
            execution.vendors = simulator.generate_vendors(execution)
            execution.vendors_contacted = len(execution.vendors)
            execution.updated_at = utcnow()

        completed = self.mutate(execution_id, apply)
        self.record_activity(completed, "email_sent")
        return completed

    def stop_processing(self, execution_id: str) -> Execution:
        """Return an execution to draft; used for cancel and failed runs."""

        def apply(execution: Execution) -> None:
            execution.status = "draft"
            execution.processing_status.is_processing = False
            execution.updated_at = utcnow()

        return self.mutate(execution_id, apply)

    # ------------------------------------------------------------------
    # vendors
    # ------------------------------------------------------------------
    def trigger_research(self, execution_id: str) -> Execution:
        simulator = get_outreach_simulator()

        def apply(execution: Execution) -> None:
            execution.vendors = simulator.generate_vendors(execution)
            execution.status = "email_sent"
            execution.vendors_contacted = len(execution.vendors)
            execution.updated_at = utcnow()

        updated = self.mutate(execution_id, apply)
        self.record_activity(updated, "email_sent")
        return updated

    def update_vendor_status(
        self,
        execution_id: str,
        vendor_index: int,
        status: str,
        *,
        notes: str | None = None,
    ) -> Execution:
        transitions: list[str] = []

        def apply(execution: Execution) -> None:
            if vendor_index < 0 or vendor_index >= len(execution.vendors):
                raise NotFoundError("Vendor not found")
            vendor = execution.vendors[vendor_index]
            vendor.status = status  # type: ignore[assignment]
            if notes:
                vendor.notes = notes

            if status == "responded":
                vendor.response_date = utcnow()
                execution.vendors_responded += 1
                if execution.status == "email_sent":
                    execution.status = "vendor_responded"
                    transitions.append("vendor_response")
            elif status == "conversation":
                execution.active_conversations += 1
                if execution.status == "vendor_responded":
                    execution.status = "agent_conversation"
                    transitions.append("conversation_started")
            execution.updated_at = utcnow()

        updated = self.mutate(execution_id, apply)
        for activity_type in transitions:
            self.record_activity(updated, activity_type)
        return updated

    # ------------------------------------------------------------------
    # testing helpers
    # ------------------------------------------------------------------
    def reset(self) -> None:
        self._repository.reset()


_repository = InMemoryExecutionRepository()
_service = ExecutionService(_repository)


def get_execution_service() -> ExecutionService:
    """Return the singleton execution service for the process."""

    return _service


def reset_execution_state() -> None:
    """Reset the in-memory store (used in tests)."""

    _service.reset()
