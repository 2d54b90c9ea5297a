"""Example: drive the service layer directly (no HTTP layer).

Creates a capped workshop slot if missing, then checks the same attendee in
twice to show the idempotent second answer.
"""

from event_agenda.core.exceptions import DuplicateSlotError
from event_agenda.main import bootstrap


def main():
    container = bootstrap()
    catalog, ledger = container.catalog, container.ledger

    try:
        catalog.create_item(
            day="Day 2",
            item_index=1,
            time="09:00-10:00",
            title="Yoga",
            requires_check_in=True,
            check_in_limit=30,
        )
    except DuplicateSlotError:
        pass

    for _ in range(2):
        result = ledger.check_in("demo-user", "Day 2", 1, False)
        if result.is_checked_in:
            print(result.outcome.value, result.record.checked_in_at)
        else:
            print(result.outcome.value, result.message)

    print([(c.title, c.count) for c in ledger.slot_counts("Day 2")])

    summary = ledger.summary()
    print(f"{summary.total_check_ins} check-ins by {summary.unique_users} attendees")
    for record in ledger.list_for_slot("Day 2", 1, limit=5).records:
        print(record.user_id, record.checked_in_at)


if __name__ == "__main__":
    main()
