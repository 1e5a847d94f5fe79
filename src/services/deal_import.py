"""
CSV deal import: row validation and conversion to insert payloads.

The pipeline is pure. It takes the CSV text plus the workspace's lead sources
and pipeline statuses and returns one DealDraft per valid row, together with
per-row errors. Persisting the drafts is the caller's job; a row that fails
to persist is moved to the failed side with ImportResult.mark_failed().

Row numbers count the header as row 1, so the first data row is row 2.
"""

import logging
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping, Optional

from src.services.csv_parser import csv_row_to_object, parse_csv
from src.services.dates import parse_flexible_date

logger = logging.getLogger(__name__)

DEAL_TYPES = ("buyer", "seller", "buyer_and_seller", "renter", "landlord")

DEFAULT_LIFECYCLE_STAGE = "new"
CLOSED_LIFECYCLE_STAGE = "closed"

FINANCIAL_COLUMNS = (
    "expected_sale_price",
    "actual_sale_price",
    "gross_commission_rate",
    "brokerage_split_rate",
    "referral_out_rate",
    "referral_in_rate",
    "transaction_fee",
)


class CSVImportError(ValueError):
    """The file as a whole cannot be imported."""


@dataclass(frozen=True)
class LeadSourceRef:
    id: Any
    name: str


@dataclass(frozen=True)
class PipelineStatusRef:
    id: Any
    name: str
    lifecycle_stage: Optional[str] = None


@dataclass(frozen=True)
class ImportDefaults:
    gross_commission_rate: Decimal = Decimal("0.03")
    brokerage_split_rate: Decimal = Decimal("0.20")
    transaction_fee: Decimal = Decimal("0")
    max_rows: Optional[int] = None


@dataclass
class RowValidation:
    valid: bool
    errors: list[str] = field(default_factory=list)


@dataclass
class RowError:
    row: int
    errors: list[str]


@dataclass
class DealDraft:
    """Insert-ready deal built from one CSV row."""

    row: int
    client_name: str
    deal_type: str
    lead_source_id: Any
    pipeline_status_id: Any
    status: str
    client_phone: Optional[str] = None
    client_email: Optional[str] = None
    property_address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    expected_sale_price: Optional[Decimal] = None
    actual_sale_price: Optional[Decimal] = None
    gross_commission_rate: Decimal = Decimal("0.03")
    brokerage_split_rate: Decimal = Decimal("0.20")
    referral_out_rate: Optional[Decimal] = None
    referral_in_rate: Optional[Decimal] = None
    transaction_fee: Decimal = Decimal("0")
    close_date: Optional[date] = None
    stage_entered_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None

    def to_insert(self) -> dict[str, Any]:
        """Column values for the deals table (without the row number)."""
        values = asdict(self)
        values.pop("row")
        return values


@dataclass
class ImportResult:
    success: int = 0
    failed: int = 0
    errors: list[RowError] = field(default_factory=list)
    drafts: list[DealDraft] = field(default_factory=list)

    def add_error(self, row: int, errors: list[str]) -> None:
        self.failed += 1
        self.errors.append(RowError(row=row, errors=errors))

    def mark_failed(self, row: int, message: str) -> None:
        """Move a row that was drafted successfully to the failed side."""
        self.success -= 1
        self.add_error(row, [message])
        self.errors.sort(key=lambda e: e.row)

    def summary(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "failed": self.failed,
            "errors": [{"row": e.row, "errors": list(e.errors)} for e in self.errors],
        }


# ── Row validation ───────────────────────────────────────────────────────────

def _blank(value: Optional[str]) -> bool:
    return not value or not value.strip()


def validate_deal_row(
    row: Mapping[str, str],
    valid_status_names: Iterable[str] = (),
) -> RowValidation:
    """Check the required columns of one row. All rules are checked."""
    errors: list[str] = []
    status_names = [name.lower().strip() for name in valid_status_names]

    if _blank(row.get("client_name")):
        errors.append("client_name is required")

    if _blank(row.get("lead_source_name")):
        errors.append("lead_source_name is required")

    deal_type = row.get("deal_type")
    if not deal_type or deal_type not in DEAL_TYPES:
        errors.append(f"deal_type must be one of: {', '.join(DEAL_TYPES)}")

    pipeline_status = row.get("pipeline_status")
    if _blank(pipeline_status):
        errors.append("pipeline_status is required")
    elif status_names and pipeline_status.lower().strip() not in status_names:
        errors.append(
            "pipeline_status must be one of your configured statuses: "
            + ", ".join(status_names)
        )

    return RowValidation(valid=not errors, errors=errors)


def _optional_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _parse_number(value: str) -> Decimal:
    number = Decimal(value.strip())
    if not number.is_finite():
        raise InvalidOperation(value)
    return number


def _parse_financials(
    row: Mapping[str, str],
    defaults: ImportDefaults,
) -> tuple[dict[str, Optional[Decimal]], list[str]]:
    fallback: dict[str, Optional[Decimal]] = {
        "expected_sale_price": None,
        "actual_sale_price": None,
        "gross_commission_rate": defaults.gross_commission_rate,
        "brokerage_split_rate": defaults.brokerage_split_rate,
        "referral_out_rate": None,
        "referral_in_rate": None,
        "transaction_fee": defaults.transaction_fee,
    }
    values: dict[str, Optional[Decimal]] = {}
    errors: list[str] = []

    for column in FINANCIAL_COLUMNS:
        raw = row.get(column, "")
        if _blank(raw):
            values[column] = fallback[column]
            continue
        try:
            values[column] = _parse_number(raw)
        except InvalidOperation:
            errors.append(f"{column} must be a number")

    return values, errors


# ── Pipeline ─────────────────────────────────────────────────────────────────

def import_deals(
    content: str,
    lead_sources: Iterable[LeadSourceRef],
    pipeline_statuses: Iterable[PipelineStatusRef],
    defaults: Optional[ImportDefaults] = None,
    now: Optional[datetime] = None,
) -> ImportResult:
    """Validate every data row of a CSV file and build insert drafts.

    Raises CSVImportError only when the file cannot be imported at all.
    """
    defaults = defaults or ImportDefaults()
    now = now or datetime.now(timezone.utc)

    rows = parse_csv(content)
    if len(rows) < 2:
        raise CSVImportError("CSV file must contain a header row and at least one data row")

    headers = [h.lower().strip() for h in rows[0]]
    data_rows = rows[1:]

    if defaults.max_rows is not None and len(data_rows) > defaults.max_rows:
        raise CSVImportError(
            f"CSV file has {len(data_rows)} data rows; the limit is {defaults.max_rows}"
        )

    lead_source_map = {ls.name.lower().strip(): ls.id for ls in lead_sources}
    status_map = {ps.name.lower().strip(): ps for ps in pipeline_statuses}

    result = ImportResult()

    for index, values in enumerate(data_rows):
        row_number = index + 2
        record = csv_row_to_object(headers, values)

        validation = validate_deal_row(record, status_map.keys())
        if not validation.valid:
            result.add_error(row_number, validation.errors)
            continue

        lead_source_name = record["lead_source_name"]
        lead_source_id = lead_source_map.get(lead_source_name.lower().strip())
        if lead_source_id is None:
            result.add_error(
                row_number,
                [
                    f'Lead source "{lead_source_name}" not found. '
                    "Please create it in Lead Sources settings first."
                ],
            )
            continue

        pipeline_status_id = None
        stage = DEFAULT_LIFECYCLE_STAGE
        mapped_status = status_map.get(record["pipeline_status"].lower().strip())
        if mapped_status is not None:
            pipeline_status_id = mapped_status.id
            if mapped_status.lifecycle_stage:
                stage = mapped_status.lifecycle_stage

        close_date = None
        raw_close_date = record.get("close_date", "")
        if not _blank(raw_close_date):
            parsed = parse_flexible_date(raw_close_date)
            if parsed is None:
                result.add_error(
                    row_number,
                    [
                        f'Close date "{raw_close_date}" is not recognized. '
                        "Use formats like YYYY-MM-DD, MM/DD/YYYY, or December 15, 2024."
                    ],
                )
                continue
            close_date = date.fromisoformat(parsed)

        financials, number_errors = _parse_financials(record, defaults)
        if number_errors:
            result.add_error(row_number, number_errors)
            continue

        result.drafts.append(
            DealDraft(
                row=row_number,
                client_name=record["client_name"].strip(),
                client_phone=_optional_text(record.get("client_phone")),
                client_email=_optional_text(record.get("client_email")),
                property_address=_optional_text(record.get("property_address")),
                city=_optional_text(record.get("city")),
                state=_optional_text(record.get("state")),
                zip=_optional_text(record.get("zip")),
                deal_type=record["deal_type"].strip(),
                lead_source_id=lead_source_id,
                pipeline_status_id=pipeline_status_id,
                status=stage,
                close_date=close_date,
                stage_entered_at=now,
                closed_at=now if stage == CLOSED_LIFECYCLE_STAGE else None,
                **financials,
            )
        )
        result.success += 1

    logger.info(
        f"CSV import parsed {len(data_rows)} rows: "
        f"{result.success} ready, {result.failed} failed"
    )
    return result
