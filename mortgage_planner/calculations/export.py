"""
Schedule Export

Flattens a schedule into CSV text and a capped table preview.
"""

import csv
import io
import re
from typing import List, Dict

from mortgage_planner.calculations.amortization import Schedule

CSV_HEADER = ["Payment #", "Date", "Payment", "Principal", "Interest", "Remaining Balance"]
DEFAULT_PREVIEW_ROWS = 50


def schedule_rows(schedule: Schedule) -> List[List[str]]:
    """One row per payment with ISO dates and two-decimal amounts."""
    return [
        [
            str(line.payment_number),
            line.payment_date.isoformat(),
            f"{line.payment_amount:.2f}",
            f"{line.principal_portion:.2f}",
            f"{line.interest_portion:.2f}",
            f"{line.remaining_balance:.2f}",
        ]
        for line in schedule.lines
    ]


def schedule_to_csv(schedule: Schedule) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    writer.writerows(schedule_rows(schedule))
    return buffer.getvalue()


def csv_filename(name: str) -> str:
    """Download filename with anything but letters and digits replaced."""
    return f"{re.sub(r'[^a-zA-Z0-9]', '_', name)}_amortization_schedule.csv"


def schedule_preview(schedule: Schedule, max_rows: int = DEFAULT_PREVIEW_ROWS) -> Dict:
    """
    First max_rows payments for on-screen or printed tables.

    A note is attached whenever rows were cut.
    """
    rows = [line.to_dict() for line in schedule.lines[:max_rows]]
    truncated = schedule.total_payments > max_rows
    note = None
    if truncated:
        note = (
            f"Showing the first {max_rows} of {schedule.total_payments} payments. "
            "The full schedule is available via CSV export."
        )
    return {
        "columns": CSV_HEADER,
        "rows": rows,
        "total_payments": schedule.total_payments,
        "truncated": truncated,
        "note": note,
    }
