"""Runtime configuration read from the environment.

Entry points call ``load_dotenv()`` first so a ``.env`` file next to the
service works the same as exported variables. Nothing in the request path
reads the environment; components get these values through constructors.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .printer import DEFAULT_SPOOLER_COMMAND
from .receipt import MoneyFormat, ReceiptEncoder

DELIVERY_METHODS = ("device", "spooler")


def _int(environ: Mapping[str, str], key: str, default: int) -> int:
    raw = (environ.get(key) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{key} must be an integer, got {raw!r}")


def _float(environ: Mapping[str, str], key: str, default: float) -> float:
    raw = (environ.get(key) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{key} must be a number, got {raw!r}")


@dataclass(frozen=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = 3003
    delivery: str = "device"
    device_path: str = "/dev/usb/lp0"
    printer_name: str = ""
    spooler_command: str = DEFAULT_SPOOLER_COMMAND
    spooler_timeout: float = 30.0
    columns: int = 32
    code_page: str = "cp437"
    feed_lines: int = 3
    decimals: int = 0
    thousands_sep: str = "."
    decimal_sep: str = ","
    currency: str = ""
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        delivery = (env.get("PRINTER_DELIVERY") or "device").strip().lower()
        if delivery not in DELIVERY_METHODS:
            raise ValueError(f"PRINTER_DELIVERY must be one of {', '.join(DELIVERY_METHODS)}")
        return cls(
            host=env.get("HOST", "0.0.0.0"),
            port=_int(env, "PORT", 3003),
            delivery=delivery,
            device_path=env.get("PRINTER_DEVICE_PATH", "/dev/usb/lp0"),
            printer_name=env.get("PRINTER_NAME", ""),
            spooler_command=env.get("PRINTER_SPOOLER_COMMAND") or DEFAULT_SPOOLER_COMMAND,
            spooler_timeout=_float(env, "PRINTER_SPOOLER_TIMEOUT", 30.0),
            columns=_int(env, "PRINTER_COLUMNS", 32),
            code_page=(env.get("PRINTER_CODE_PAGE") or "cp437").strip().lower(),
            feed_lines=_int(env, "PRINTER_FEED_LINES", 3),
            decimals=_int(env, "RECEIPT_DECIMALS", 0),
            thousands_sep=env.get("RECEIPT_THOUSANDS_SEP", "."),
            decimal_sep=env.get("RECEIPT_DECIMAL_SEP", ","),
            currency=env.get("RECEIPT_CURRENCY", ""),
            log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
        )

    @property
    def default_destination(self) -> str:
        return self.printer_name if self.delivery == "spooler" else self.device_path

    def money_format(self) -> MoneyFormat:
        return MoneyFormat(
            decimals=self.decimals,
            thousands_sep=self.thousands_sep,
            decimal_sep=self.decimal_sep,
            symbol=self.currency,
        )

    def make_encoder(self) -> ReceiptEncoder:
        return ReceiptEncoder(
            columns=self.columns,
            code_page=self.code_page,
            feed_lines=self.feed_lines,
            money=self.money_format(),
        )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
