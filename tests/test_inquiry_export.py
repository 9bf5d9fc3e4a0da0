from datetime import datetime, timezone

from careguard.inquiry_export import CSV_HEADER, export_filename, inquiries_to_csv
from careguard.integrations.contracts.interfaces import Inquiry


def _inquiry(i, message):
    return Inquiry(
        id=str(i),
        product_id="1",
        product_name="Premium Surgical Gown",
        name=f"Buyer {i}",
        email=f"buyer{i}@x.io",
        company="City Hospital",
        quantity="500",
        message=message,
        requirement="Bulk Case",
        timestamp=datetime(2024, 1, i, 9, 30, tzinfo=timezone.utc),
    )


def test_header_only_for_no_inquiries():
    assert inquiries_to_csv([]) == ",".join(CSV_HEADER)


def test_k_inquiries_give_k_plus_one_lines():
    messages = ['He said "rush"', "line one\nline two", "", "plain, with comma"]
    csv_text = inquiries_to_csv([_inquiry(i + 1, m) for i, m in enumerate(messages)])
    lines = csv_text.splitlines()

    assert len(lines) == len(messages) + 1
    assert lines[0] == "Timestamp,Product,Name,Email,Company,Quantity,Requirement,Message"
    assert lines[1] == (
        '2024-01-01T09:30:00Z,Premium Surgical Gown,Buyer 1,buyer1@x.io,City Hospital,500,Bulk Case,'
        '"He said ""rush"""'
    )
    assert lines[2].endswith('"line one line two"')
    assert lines[3].endswith(',""')
    assert lines[4].endswith('"plain, with comma"')


def test_export_filename():
    assert export_filename(datetime(2024, 6, 1, tzinfo=timezone.utc)) == "careguard_inquiries_2024-06-01.csv"
