#!/usr/bin/env python3
"""
Inspect and repair the local booking overlay and cache.

Usage:
  python3 scripts/overlay_admin.py stats
  python3 scripts/overlay_admin.py list
  python3 scripts/overlay_admin.py cleanup
  python3 scripts/overlay_admin.py clear
  python3 scripts/overlay_admin.py clear-cache

Operates on the same key-value store the API uses (STATE_BACKEND / STATE_DATA_DIR).
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from booking_admin.application.utils.booking_presenter import present_booking
from booking_admin.wiring.dependencies import get_booking_cache, get_overlay_store


def cmd_stats() -> int:
    stats = get_overlay_store().stats()
    cache = get_booking_cache()
    print(f"overlay records: {stats.total}")
    print(f"  cancelled: {stats.cancelled}")
    print(f"  tentative: {stats.tentative}")
    print(f"  confirmed: {stats.confirmed}")
    print(f"cache: {cache.state.value}")
    return 0


def cmd_list() -> int:
    for record in get_overlay_store().list():
        row = present_booking(record)
        if row is None:
            continue
        print(f"{row['id']}\t{row['status']}\t{row['date']} {row['time_range']}\t{row['customer_name']}")
    return 0


def cmd_cleanup() -> int:
    removed = get_overlay_store().cleanup()
    print(f"removed {removed} corrupted record(s)")
    return 0


def cmd_clear() -> int:
    get_overlay_store().clear()
    print("overlay cleared")
    return 0


def cmd_clear_cache() -> int:
    get_booking_cache().clear()
    print("bookings cache cleared")
    return 0


COMMANDS = {
    "stats": cmd_stats,
    "list": cmd_list,
    "cleanup": cmd_cleanup,
    "clear": cmd_clear,
    "clear-cache": cmd_clear_cache,
}


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Booking overlay maintenance")
    parser.add_argument("command", choices=sorted(COMMANDS))
    args = parser.parse_args(argv)
    return COMMANDS[args.command]()


if __name__ == "__main__":
    raise SystemExit(main())
