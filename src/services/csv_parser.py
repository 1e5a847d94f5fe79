"""
CSV tokenizer and helpers for the deal import.

Quoting follows RFC 4180 closely:
- a double-quoted field may contain commas and newlines
- "" inside a quoted field is a literal quote
- rows end on \\n, \\r\\n or a bare \\r

Fields are trimmed and rows whose fields are all empty are dropped.
"""

from typing import Iterable, Sequence

EXAMPLE_CSV_HEADERS = (
    "client_name",
    "client_phone",
    "client_email",
    "property_address",
    "city",
    "state",
    "zip",
    "deal_type",
    "lead_source_name",
    "pipeline_status",
    "expected_sale_price",
    "actual_sale_price",
    "gross_commission_rate",
    "brokerage_split_rate",
    "referral_out_rate",
    "referral_in_rate",
    "transaction_fee",
    "close_date",
)

DEFAULT_EXAMPLE_STATUSES = ("New Lead", "Contacted", "Under Contract")


def parse_csv(content: str) -> list[list[str]]:
    """Split CSV text into rows of trimmed field strings."""
    rows: list[list[str]] = []
    current_row: list[str] = []
    current_field = ""
    in_quotes = False

    def end_row() -> None:
        nonlocal current_row, current_field
        if current_field or current_row:
            current_row.append(current_field.strip())
            if any(current_row):
                rows.append(current_row)
            current_row = []
            current_field = ""

    i = 0
    length = len(content)
    while i < length:
        char = content[i]
        next_char = content[i + 1] if i + 1 < length else ""

        if in_quotes:
            if char == '"' and next_char == '"':
                current_field += '"'
                i += 1
            elif char == '"':
                in_quotes = False
            else:
                current_field += char
        elif char == '"':
            in_quotes = True
        elif char == ",":
            current_row.append(current_field.strip())
            current_field = ""
        elif char == "\n" or char == "\r":
            end_row()
            if char == "\r" and next_char == "\n":
                i += 1
        else:
            current_field += char

        i += 1

    end_row()
    return rows


def csv_row_to_object(headers: Sequence[str], row: Sequence[str]) -> dict[str, str]:
    """Zip a header row with a data row; missing trailing fields become ""."""
    record: dict[str, str] = {}
    for index, header in enumerate(headers):
        value = row[index] if index < len(row) else ""
        record[header.lower().strip()] = value or ""
    return record


def quote_field(value: object) -> str:
    text = "" if value is None else str(value)
    if "," in text or '"' in text or "\n" in text:
        return '"' + text.replace('"', '""') + '"'
    return text


def serialize_row(fields: Iterable[object]) -> str:
    return ",".join(quote_field(f) for f in fields)


def generate_example_csv(status_names: Sequence[str] = ()) -> str:
    """Template CSV: the 18 import columns plus three sample deals.

    The sample pipeline statuses are picked from status_names so the file
    imports cleanly into the caller's workspace.
    """
    statuses = list(status_names) or list(DEFAULT_EXAMPLE_STATUSES)

    def pick(index: int) -> str:
        return statuses[min(index, len(statuses) - 1)] or statuses[0]

    example_rows = [
        {
            "client_name": "John Smith",
            "client_phone": "555-123-4567",
            "client_email": "john.smith@example.com",
            "property_address": "123 Main Street",
            "city": "Austin",
            "state": "TX",
            "zip": "78701",
            "deal_type": "buyer",
            "lead_source_name": "Zillow",
            "pipeline_status": pick(2),
            "expected_sale_price": "450000",
            "actual_sale_price": "",
            "gross_commission_rate": "0.03",
            "brokerage_split_rate": "0.20",
            "referral_out_rate": "",
            "referral_in_rate": "",
            "transaction_fee": "500",
            "close_date": "",
        },
        {
            "client_name": "Sarah Johnson",
            "client_phone": "555-987-6543",
            "client_email": "sarah.j@example.com",
            "property_address": "456 Oak Avenue",
            "city": "Dallas",
            "state": "TX",
            "zip": "75201",
            "deal_type": "seller",
            "lead_source_name": "Past Client",
            "pipeline_status": pick(len(statuses) - 1),
            "expected_sale_price": "525000",
            "actual_sale_price": "520000",
            "gross_commission_rate": "0.03",
            "brokerage_split_rate": "0.20",
            "referral_out_rate": "0.25",
            "referral_in_rate": "",
            "transaction_fee": "500",
            "close_date": "2024-12-15",
        },
        {
            "client_name": "Mike Davis",
            "client_phone": "555-456-7890",
            "client_email": "mike.davis@example.com",
            "property_address": "789 Elm Street",
            "city": "Houston",
            "state": "TX",
            "zip": "77001",
            "deal_type": "renter",
            "lead_source_name": "Referral",
            "pipeline_status": pick(1),
            "expected_sale_price": "2400",
            "actual_sale_price": "",
            "gross_commission_rate": "0.5",
            "brokerage_split_rate": "0.20",
            "referral_out_rate": "",
            "referral_in_rate": "",
            "transaction_fee": "0",
            "close_date": "",
        },
    ]

    lines = [",".join(EXAMPLE_CSV_HEADERS)]
    lines.extend(
        serialize_row(row[column] for column in EXAMPLE_CSV_HEADERS)
        for row in example_rows
    )
    return "\n".join(lines)
