"""Infrastructure layer exports."""

from .executions import ACTIVITY_LIMIT, ExecutionRepository, InMemoryExecutionRepository
from .outreach import (
    OutreachSimulator,
    RandomOutreachSimulator,
    configure_outreach_simulator,
    get_outreach_simulator,
)

__all__ = [
    "ACTIVITY_LIMIT",
    "ExecutionRepository",
    "InMemoryExecutionRepository",
    "OutreachSimulator",
    "RandomOutreachSimulator",
    "configure_outreach_simulator",
    "get_outreach_simulator",
]
