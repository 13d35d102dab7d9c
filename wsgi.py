"""Production WSGI entrypoint using Waitress.

Run with:
  - python wsgi.py
  - Or specify host/port and printer: HOST=0.0.0.0 PORT=3003 PRINTER_DEVICE_PATH=/dev/usb/lp0 python wsgi.py
Variables may also live in a .env file next to the service.
"""

from __future__ import annotations

import logging

from dotenv import load_dotenv
from waitress import serve

from receipt_print.config import Settings, configure_logging
from receipt_print.webapp import create_app

logger = logging.getLogger("receipt_print")


def main() -> None:
    load_dotenv()
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    app = create_app(settings)
    logger.info(
        "Receipt print server running on port %d (%s -> %s)",
        settings.port,
        settings.delivery,
        settings.default_destination or "no default destination",
    )
    serve(app, listen=f"{settings.host}:{settings.port}")


if __name__ == "__main__":
    main()
