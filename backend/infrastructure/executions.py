"""Infrastructure layer for execution persistence."""
from __future__ import annotations

import threading
from collections import deque
from typing import Callable, Protocol

from backend.core.schema import ActivityEntry, Execution

ACTIVITY_LIMIT = 20

ExecutionMutator = Callable[[Execution], None]


class ExecutionRepository(Protocol):
    """Persistence contract for executions and the recent-activity log."""

    def add(self, execution: Execution) -> Execution: ...

    def get(self, execution_id: str) -> Execution | None: ...

    def list(self, status: str | None = None) -> list[Execution]: ...

    def update(self, execution_id: str, mutator: ExecutionMutator) -> Execution | None: ...

    def delete(self, execution_id: str) -> bool: ...

    def add_activity(self, entry: ActivityEntry) -> None: ...

    def list_activity(self) -> list[ActivityEntry]: ...

    def reset(self) -> None: ...


class InMemoryExecutionRepository:
    """In-memory repository with per-execution locks.

    Callers always receive copies; the only way to change a stored execution
    is :meth:`update`, which applies the mutator under that record's lock.
    """

    def __init__(self, activity_limit: int = ACTIVITY_LIMIT) -> None:
        self._executions: dict[str, Execution] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()
        self._activity: deque[ActivityEntry] = deque(maxlen=activity_limit)
        self._activity_lock = threading.Lock()

    # ------------------------------------------------------------------
    # internal helpers
    # ------------------------------------------------------------------
    def _lock_for(self, execution_id: str) -> threading.Lock | None:
        with self._registry_lock:
            return self._locks.get(execution_id)

    # ------------------------------------------------------------------
    # CRUD operations
    # ------------------------------------------------------------------
    def add(self, execution: Execution) -> Execution:
        with self._registry_lock:
            self._executions[execution.id] = execution.model_copy(deep=True)
            self._locks[execution.id] = threading.Lock()
        return execution.model_copy(deep=True)

    def get(self, execution_id: str) -> Execution | None:
        lock = self._lock_for(execution_id)
        if lock is None:
            return None
        with lock:
            execution = self._executions.get(execution_id)
            return execution.model_copy(deep=True) if execution else None

    def list(self, status: str | None = None) -> list[Execution]:
        with self._registry_lock:
            ids = list(reversed(self._executions))
        items: list[Execution] = []
        for execution_id in ids:
            execution = self.get(execution_id)
            if execution is None:
                continue
            if status is None or execution.status == status:
                items.append(execution)
        items.sort(key=lambda item: item.updated_at, reverse=True)
        return items

    def update(self, execution_id: str, mutator: ExecutionMutator) -> Execution | None:
        lock = self._lock_for(execution_id)
        if lock is None:
            return None
        with lock:
            current = self._executions.get(execution_id)
            if current is None:
                return None
            working = current.model_copy(deep=True)
            mutator(working)
            self._executions[execution_id] = working
            return working.model_copy(deep=True)

    def delete(self, execution_id: str) -> bool:
        with self._registry_lock:
            removed = self._executions.pop(execution_id, None)
            self._locks.pop(execution_id, None)
        return removed is not None

    # ------------------------------------------------------------------
    # recent activity
    # ------------------------------------------------------------------
    def add_activity(self, entry: ActivityEntry) -> None:
        # deque(maxlen) drops the oldest entry in the same step as the append
        with self._activity_lock:
            self._activity.append(entry)

    def list_activity(self) -> list[ActivityEntry]:
        with self._activity_lock:
            return list(reversed(self._activity))

    def reset(self) -> None:
        with self._registry_lock:
            self._executions.clear()
            self._locks.clear()
        with self._activity_lock:
            self._activity.clear()
