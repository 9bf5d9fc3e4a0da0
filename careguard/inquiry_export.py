"""
Inquiry CSV export for the admin console.

One header line plus one line per inquiry. Only the message column is quoted
(embedded quotes doubled); line breaks in any field are flattened to spaces so
the row count always matches the inquiry count.
"""

from datetime import datetime, timezone
from typing import Iterable, List

from careguard.integrations.contracts.interfaces import Inquiry
from careguard.integrations.contracts.records import format_timestamp

CSV_HEADER = ["Timestamp", "Product", "Name", "Email", "Company", "Quantity", "Requirement", "Message"]


def _flatten(value: str) -> str:
    return " ".join((value or "").splitlines())


def _quote(value: str) -> str:
    return '"' + _flatten(value).replace('"', '""') + '"'


def inquiry_to_csv_row(inquiry: Inquiry) -> str:
    cells: List[str] = [
        format_timestamp(inquiry.timestamp) or "",
        inquiry.product_name,
        inquiry.name,
        inquiry.email,
        inquiry.company,
        inquiry.quantity,
        inquiry.requirement,
    ]
    return ",".join([_flatten(c) for c in cells] + [_quote(inquiry.message)])


def inquiries_to_csv(inquiries: Iterable[Inquiry]) -> str:
    lines = [",".join(CSV_HEADER)]
    lines.extend(inquiry_to_csv_row(i) for i in inquiries)
    return "\n".join(lines)


def export_filename(now: datetime = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"careguard_inquiries_{now.strftime('%Y-%m-%d')}.csv"
