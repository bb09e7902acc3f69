"""Mock vendor outreach hooks.

The project does not talk to real vendors yet. This module defines the
capability the processing engine and research trigger call, with a random
implementation used at runtime. Tests install deterministic simulators via
``configure_outreach_simulator``.
"""
from __future__ import annotations

import random
import uuid
from typing import Protocol

from backend.core.schema import Execution, Material, ProcessingResult, Vendor

MOCK_VENDOR_COUNT = 5


class OutreachSimulator(Protocol):
    """Contract for outreach integrations."""

    def contact_vendors(self, material: Material) -> ProcessingResult:
        """Return the outcome of contacting vendors for one material."""

    def generate_vendors(self, execution: Execution) -> list[Vendor]:
        """Return the vendors that were contacted for an execution."""


class RandomOutreachSimulator:
    """Produces plausible random outreach results.

    Vendor count is drawn from [1, 5], prices from ``rate * [0.8, 1.2)`` and
    delivery times from [1, 7] days.
    """

    def __init__(self, seed: int | None = None, vendor_count: int = MOCK_VENDOR_COUNT) -> None:
        self._random = random.Random(seed)
        self._vendor_count = vendor_count

    def _price(self, rate: float) -> float:
        return rate * (0.8 + self._random.random() * 0.4)

    def contact_vendors(self, material: Material) -> ProcessingResult:
        return ProcessingResult(
            material=material.name,
            vendor_count=self._random.randint(1, 5),
            best_price=self._price(material.rate),
            fastest_delivery=self._random.randint(1, 7),
        )

    def generate_vendors(self, execution: Execution) -> list[Vendor]:
        first = execution.materials[0] if execution.materials else None
        vendors: list[Vendor] = []
        for index in range(self._vendor_count):
            letter = chr(ord("a") + index)
            vendors.append(
                Vendor(
                    id=uuid.uuid4().hex,
                    name=f"Vendor {letter.upper()}",
                    email=f"vendor{letter}@example.com",
                    phone=f"+91 98765432{index}0",
                    website=f"https://vendor{letter}.com",
                    price=self._price(first.rate) if first else None,
                    delivery_time=self._random.randint(1, 7),
                    certifications=["FSSAI"],
                    status="contacted",
                )
            )
        return vendors


_simulator: OutreachSimulator = RandomOutreachSimulator()


def configure_outreach_simulator(simulator: OutreachSimulator) -> None:
    """Install the simulator used by processing and research."""

    global _simulator
    _simulator = simulator


def get_outreach_simulator() -> OutreachSimulator:
    """Return the currently configured outreach simulator."""

    return _simulator
