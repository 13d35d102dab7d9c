"""Print job submission: validate, encode once, deliver."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Sequence

from .core import InvalidOrderError, parse_order
from .printer import DeliveryResult
from .receipt import ReceiptEncoder, ReceiptMode


class JobStatus(str, Enum):
    DELIVERED = "delivered"
    INVALID_INPUT = "invalid_input"
    DELIVERY_FAILED = "delivery_failed"


@dataclass(frozen=True)
class JobOutcome:
    status: JobStatus
    error: Optional[str] = None
    method: Optional[str] = None
    destination: Optional[str] = None
    attempts: List[DeliveryResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status is JobStatus.DELIVERED


def submit_print_job(
    payload: Any,
    destinations: Sequence[str],
    mode: ReceiptMode,
    encoder: ReceiptEncoder,
    delivery,
) -> JobOutcome:
    """Run one print job and report exactly one outcome.

    ``destinations`` are tried in the given order until one accepts the
    stream; pass a single destination for no fallback. Invalid input is
    rejected before anything is encoded or sent.
    """
    try:
        order = parse_order(payload)
        data = encoder.encode(order, mode)
    except InvalidOrderError as exc:
        return JobOutcome(status=JobStatus.INVALID_INPUT, error=str(exc))

    attempts: List[DeliveryResult] = []
    for destination in destinations:
        result = delivery.deliver(data, destination)
        attempts.append(result)
        if result.ok:
            return JobOutcome(
                status=JobStatus.DELIVERED,
                method=result.method,
                destination=destination,
                attempts=attempts,
            )

    last_error = attempts[-1].error if attempts else "No printer destination configured"
    return JobOutcome(status=JobStatus.DELIVERY_FAILED, error=last_error, attempts=attempts)
