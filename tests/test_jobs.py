from __future__ import annotations

from escpos.constants import PAPER_FULL_CUT

from receipt_print.jobs import JobStatus, submit_print_job
from receipt_print.printer import DeliveryResult
from receipt_print.receipt import ReceiptEncoder, ReceiptMode


class RecordingDelivery:
    method = "fake"

    def __init__(self, failing=()):
        self.failing = set(failing)
        self.sent = []

    def deliver(self, data, destination):
        self.sent.append((destination, data))
        if destination in self.failing:
            return DeliveryResult(ok=False, destination=destination, method=self.method, error=f"{destination} is busy")
        return DeliveryResult(ok=True, destination=destination, method=self.method)


def test_delivered(order_payload):
    delivery = RecordingDelivery()
    outcome = submit_print_job(order_payload, ["/dev/usb/lp0"], ReceiptMode.FULL, ReceiptEncoder(), delivery)

    assert outcome.ok
    assert outcome.status is JobStatus.DELIVERED
    assert outcome.method == "fake"
    assert outcome.destination == "/dev/usb/lp0"
    assert len(delivery.sent) == 1
    assert delivery.sent[0][1].endswith(PAPER_FULL_CUT + b"\n" * 3)


def test_invalid_input_sends_nothing(order_payload):
    del order_payload["total"]
    delivery = RecordingDelivery()
    outcome = submit_print_job(order_payload, ["/dev/usb/lp0"], ReceiptMode.FULL, ReceiptEncoder(), delivery)

    assert outcome.status is JobStatus.INVALID_INPUT
    assert "'total' is required" in outcome.error
    assert delivery.sent == []


def test_explicit_fallback_stops_at_first_success(order_payload):
    delivery = RecordingDelivery(failing={"/dev/usb/lp0"})
    outcome = submit_print_job(
        order_payload, ["/dev/usb/lp0", "/dev/usb/lp1", "/dev/usb/lp2"], ReceiptMode.FULL, ReceiptEncoder(), delivery
    )

    assert outcome.status is JobStatus.DELIVERED
    assert outcome.destination == "/dev/usb/lp1"
    assert [dest for dest, _ in delivery.sent] == ["/dev/usb/lp0", "/dev/usb/lp1"]
    # The same bytes go to every attempt
    assert delivery.sent[0][1] == delivery.sent[1][1]
    assert [attempt.ok for attempt in outcome.attempts] == [False, True]


def test_all_destinations_failed_reports_last_error(order_payload):
    delivery = RecordingDelivery(failing={"/dev/usb/lp0", "/dev/usb/lp1"})
    outcome = submit_print_job(order_payload, ["/dev/usb/lp0", "/dev/usb/lp1"], ReceiptMode.FULL, ReceiptEncoder(), delivery)

    assert outcome.status is JobStatus.DELIVERY_FAILED
    assert outcome.error == "/dev/usb/lp1 is busy"
    assert len(outcome.attempts) == 2


def test_no_destination(order_payload):
    outcome = submit_print_job(order_payload, [], ReceiptMode.CHECKER, ReceiptEncoder(), RecordingDelivery())
    assert outcome.status is JobStatus.DELIVERY_FAILED
    assert outcome.error == "No printer destination configured"
