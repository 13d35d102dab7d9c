from __future__ import annotations

import argparse
import json
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .config import Settings, configure_logging
from .core import InvalidOrderError, parse_order
from .printer import make_delivery
from .receipt import ReceiptMode


def parse_columns(value: str) -> int:
    try:
        num = int(value)
    except Exception:
        raise argparse.ArgumentTypeError("Columns must be an integer")
    if num < 16:
        raise argparse.ArgumentTypeError("Columns must be >= 16")
    return num


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Encode a receipt as ESC/POS and print it")
    p.add_argument("order", help="Order JSON file (the 'data' object of a print request), or - for stdin")
    p.add_argument("--checker", action="store_true", help="Kitchen/checker copy: items only, no prices")
    p.add_argument("--columns", type=parse_columns, default=None, help="Paper width in characters")
    target = p.add_mutually_exclusive_group()
    target.add_argument("--preview", action="store_true", help="Print a plain-text preview and exit")
    target.add_argument("--output", help="Write the ESC/POS bytes to this file")
    target.add_argument("--device", help="Write to this printer device path")
    target.add_argument("--printer", help="Send to this spooler printer name")
    return p


def load_order_json(source: str):
    text = sys.stdin.read() if source == "-" else Path(source).read_text(encoding="utf-8")
    return json.loads(text)


def main(argv: Optional[list[str]] = None) -> int:
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = Settings.from_env()
    except ValueError as e:
        parser.error(str(e))
    configure_logging(settings.log_level)

    try:
        payload = load_order_json(args.order)
        order = parse_order(payload)
    except OSError as e:
        parser.error(f"Cannot read order file: {e}")
    except json.JSONDecodeError as e:
        parser.error(f"Order file is not valid JSON: {e}")
    except InvalidOrderError as e:
        parser.error(str(e))

    if args.columns:
        settings = replace(settings, columns=args.columns)
    if args.printer:
        settings = replace(settings, delivery="spooler", printer_name=args.printer)
    elif args.device:
        settings = replace(settings, delivery="device", device_path=args.device)

    try:
        encoder = settings.make_encoder()
    except ValueError as e:
        parser.error(str(e))
    mode = ReceiptMode.CHECKER if args.checker else ReceiptMode.FULL

    if args.preview:
        print(encoder.preview(order, mode))
        return 0

    data = encoder.encode(order, mode)
    if args.output:
        Path(args.output).write_bytes(data)
        return 0

    result = make_delivery(settings).deliver(data, settings.default_destination)
    if not result.ok:
        print(result.error, file=sys.stderr)
        return 1
    print(f"Printed to {result.destination} ({result.method})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
