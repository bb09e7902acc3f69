from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

ExecutionStatus = Literal[
    "draft",
    "processing",
    "email_sent",
    "vendor_responded",
    "agent_conversation",
    "completed",
]

VendorStatus = Literal[
    "pending",
    "contacted",
    "responded",
    "conversation",
    "shortlisted",
    "rejected",
]

ActivityType = Literal[
    "created",
    "updated",
    "email_sent",
    "vendor_response",
    "conversation_started",
]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Base model exchanging camelCase JSON with the browser client."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class Material(CamelModel):
    id: int | str | None = None
    name: str = ""
    quantity: float = 0
    rate: float = 0
    total_cost: float = 0

    def priced(self) -> "Material":
        return self.model_copy(update={"total_cost": self.quantity * self.rate})


class Guardrails(CamelModel):
    max_price_per_kg: float | None = None
    delivery_timeline: str | int | None = None
    certifications: list[str] = Field(default_factory=list)

    @field_validator("max_price_per_kg", "delivery_timeline", mode="before")
    @classmethod
    def _blank_as_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class ProcessingResult(CamelModel):
    material: str
    success: bool = True
    vendor_count: int | None = None
    best_price: float | None = None
    fastest_delivery: int | None = None
    error: str | None = None


class ProcessingStatus(CamelModel):
    current_material: str = ""
    processed_count: int = 0
    total_count: int = 0
    is_processing: bool = False
    results: list[ProcessingResult] = Field(default_factory=list)


class Vendor(CamelModel):
    id: str
    name: str
    email: str | None = None
    phone: str | None = None
    website: str | None = None
    price: float | None = None
    delivery_time: int | None = None
    certifications: list[str] = Field(default_factory=list)
    status: VendorStatus = "contacted"
    response_date: datetime | None = None
    notes: str = ""


class Execution(CamelModel):
    id: str
    name: str
    materials: list[Material] = Field(default_factory=list)
    guardrails: Guardrails = Field(default_factory=Guardrails)
    status: ExecutionStatus = "draft"
    processing_status: ProcessingStatus = Field(default_factory=ProcessingStatus)
    vendors: list[Vendor] = Field(default_factory=list)
    vendors_contacted: int = 0
    vendors_responded: int = 0
    active_conversations: int = 0
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class ActivityEntry(CamelModel):
    id: str
    execution_name: str
    activity_type: ActivityType
    details: str = ""
    timestamp: datetime = Field(default_factory=utcnow)


class ExecutionCreate(CamelModel):
    name: str = Field(min_length=1)
    materials: list[Material] = Field(default_factory=list)
    guardrails: Guardrails | None = None


class ExecutionUpdate(CamelModel):
    name: str | None = None
    materials: list[Material] | None = None
    guardrails: Guardrails | None = None
    status: ExecutionStatus | None = None


class VendorStatusUpdate(CamelModel):
    status: VendorStatus
    notes: str | None = None
