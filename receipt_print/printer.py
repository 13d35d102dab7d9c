"""Delivery of finished ESC/POS streams to a printer.

Two strategies: write straight to a character device (``/dev/usb/lp0``,
``LPT1``, a USB printer share) or pipe the stream into a spooler process
such as CUPS ``lp``. Each one performs a single blocking attempt; retrying
elsewhere is up to the caller.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from dataclasses import dataclass
from typing import Optional, Sequence, Union

logger = logging.getLogger(__name__)

DEFAULT_SPOOLER_COMMAND = "lp -d {destination} -o raw"


class DeliveryError(Exception):
    """The destination did not accept the whole stream."""


@dataclass(frozen=True)
class DeliveryResult:
    ok: bool
    destination: str
    method: str
    error: Optional[str] = None


class _Delivery:
    method = ""

    def send(self, data: bytes, destination: str) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def deliver(self, data: bytes, destination: str) -> DeliveryResult:
        """Send ``data`` and report the outcome instead of raising."""
        try:
            self.send(data, destination)
        except DeliveryError as exc:
            logger.warning("Failed on %s: %s", destination, exc)
            return DeliveryResult(ok=False, destination=destination, method=self.method, error=str(exc))
        logger.info("Printed %d bytes to %s via %s", len(data), destination, self.method)
        return DeliveryResult(ok=True, destination=destination, method=self.method)


class DeviceFileDelivery(_Delivery):
    method = "raw ESC/POS"

    def send(self, data: bytes, destination: str) -> None:
        if not destination:
            raise DeliveryError("No device path given")
        try:
            with open(destination, "wb") as device:
                written = device.write(data)
                device.flush()
        except (OSError, ValueError) as exc:
            # ValueError: an embedded NUL in the path
            raise DeliveryError(f"Print failed: {exc}") from exc
        if written != len(data):
            raise DeliveryError(f"Print failed: wrote {written} of {len(data)} bytes to {destination}")


class SpoolerDelivery(_Delivery):
    """Hand the stream to a spooler command on its standard input.

    ``command`` is an argument list or a shell-style string; ``{destination}``
    in any argument is replaced with the printer name.
    """

    method = "spooler"

    def __init__(self, command: Union[str, Sequence[str]] = DEFAULT_SPOOLER_COMMAND, timeout: float = 30.0) -> None:
        args = shlex.split(command) if isinstance(command, str) else list(command)
        if not args:
            raise ValueError("Spooler command must not be empty")
        self.command = args
        self.timeout = timeout

    def build_args(self, destination: str) -> list:
        return [arg.replace("{destination}", destination) for arg in self.command]

    def send(self, data: bytes, destination: str) -> None:
        if not destination:
            raise DeliveryError("No printer name given")
        args = self.build_args(destination)
        try:
            proc = subprocess.run(args, input=data, capture_output=True, timeout=self.timeout)
        except subprocess.TimeoutExpired:
            raise DeliveryError(f"Spooler '{args[0]}' did not finish within {self.timeout:g}s")
        except (OSError, ValueError) as exc:
            raise DeliveryError(f"Spooler '{args[0]}' could not be started: {exc}") from exc
        if proc.returncode != 0:
            detail = proc.stderr.decode("utf-8", errors="replace").strip() or "no error output"
            raise DeliveryError(f"Spooler '{args[0]}' exited with status {proc.returncode}: {detail}")


def make_delivery(settings) -> _Delivery:
    """Build the delivery strategy named by ``settings.delivery``."""
    if settings.delivery == "spooler":
        return SpoolerDelivery(settings.spooler_command, timeout=settings.spooler_timeout)
    return DeviceFileDelivery()
