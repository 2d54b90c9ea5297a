"""Print one day's agenda with check-in state and counts (read-only).

Usage: python scripts/agenda_report.py "Day 1"
"""

from __future__ import annotations

import sys

from event_agenda.main import bootstrap


def format_row(item, count: int) -> str:
    track = "parallel" if item.is_parallel else "main"
    state = "active" if item.is_active else "inactive"
    if not item.requires_check_in:
        checkin = "-"
    elif item.check_in_limit is None:
        checkin = f"{count}"
    else:
        checkin = f"{count}/{item.check_in_limit}"
    return f"{item.item_index:>3} {track:<8} {item.time:<12} {state:<8} {checkin:>8}  {item.title}"


def main(argv: list[str]) -> int:
    if len(argv) != 2:
        print(__doc__.strip().splitlines()[-1], file=sys.stderr)
        return 2

    day = argv[1]
    container = bootstrap()
    counts = {c.slot: c.count for c in container.ledger.slot_counts(day)}
    items = container.catalog.list_day(day)

    print(f"{day}: {len(items)} agenda items")
    for item in items:
        print(format_row(item, counts.get(item.slot, 0)))
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv))
