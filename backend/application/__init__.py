"""Application services."""

from .executions import ExecutionService, get_execution_service, price_materials, reset_execution_state

__all__ = [
    "ExecutionService",
    "get_execution_service",
    "price_materials",
    "reset_execution_state",
]
