"""
Tests for CSV deal import: row validation and the import pipeline.
"""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from src.services.deal_import import (
    CSVImportError,
    ImportDefaults,
    LeadSourceRef,
    PipelineStatusRef,
    import_deals,
    validate_deal_row,
)

HEADER = "client_name,deal_type,lead_source_name,pipeline_status"
NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)

LEAD_SOURCES = [LeadSourceRef(id=1, name="Zillow"), LeadSourceRef(id=2, name="Past Client")]
STATUSES = [
    PipelineStatusRef(id=10, name="New Lead", lifecycle_stage="new"),
    PipelineStatusRef(id=11, name="Contacted", lifecycle_stage="in_progress"),
    PipelineStatusRef(id=12, name="Closed", lifecycle_stage="closed"),
]


def _row(**kwargs):
    row = {
        "client_name": "Jane Doe",
        "lead_source_name": "Zillow",
        "deal_type": "buyer",
        "pipeline_status": "New Lead",
    }
    row.update(kwargs)
    return row


def _import(content, **kwargs):
    kwargs.setdefault("now", NOW)
    return import_deals(content, LEAD_SOURCES, STATUSES, **kwargs)


# ── validate_deal_row ────────────────────────────────────


class TestValidateDealRow:
    def test_valid_row(self):
        result = validate_deal_row(_row(), ["new lead", "contacted"])
        assert result.valid
        assert result.errors == []

    def test_all_errors_collected(self):
        result = validate_deal_row(
            {"client_name": " ", "lead_source_name": "", "deal_type": "tenant", "pipeline_status": ""}
        )
        assert not result.valid
        assert result.errors == [
            "client_name is required",
            "lead_source_name is required",
            "deal_type must be one of: buyer, seller, buyer_and_seller, renter, landlord",
            "pipeline_status is required",
        ]

    def test_deal_type_is_exact(self):
        result = validate_deal_row(_row(deal_type="Buyer"))
        assert not result.valid

    def test_status_checked_case_insensitively(self):
        assert validate_deal_row(_row(pipeline_status=" CONTACTED "), ["new lead", "contacted"]).valid

    def test_unknown_status(self):
        result = validate_deal_row(_row(pipeline_status="Archived"), ["new lead", "contacted"])
        assert result.errors == [
            "pipeline_status must be one of your configured statuses: new lead, contacted"
        ]

    def test_any_status_when_no_set_given(self):
        assert validate_deal_row(_row(pipeline_status="Whatever")).valid


# ── import_deals ─────────────────────────────────────────


class TestImportDeals:
    def test_one_valid_one_missing_client_name(self):
        content = "\n".join([
            HEADER,
            "Jane Doe,buyer,Zillow,new lead",
            ",seller,Zillow,contacted",
        ])
        result = import_deals(
            content,
            LEAD_SOURCES,
            [
                PipelineStatusRef(id=10, name="new lead", lifecycle_stage="new"),
                PipelineStatusRef(id=11, name="contacted", lifecycle_stage="in_progress"),
            ],
            now=NOW,
        )
        assert result.summary() == {
            "success": 1,
            "failed": 1,
            "errors": [{"row": 3, "errors": ["client_name is required"]}],
        }

    def test_draft_fields(self):
        content = "\n".join([
            "client_name,client_email,deal_type,lead_source_name,pipeline_status,"
            "expected_sale_price,referral_out_rate,close_date",
            "Jane Doe, jane@example.com ,seller,zillow,contacted,450000,0.25,Dec 15 2024",
        ])
        result = _import(content)
        assert result.success == 1
        draft = result.drafts[0]
        assert draft.row == 2
        assert draft.client_email == "jane@example.com"
        assert draft.lead_source_id == 1
        assert draft.pipeline_status_id == 11
        assert draft.status == "in_progress"
        assert draft.expected_sale_price == Decimal("450000")
        assert draft.referral_out_rate == Decimal("0.25")
        assert draft.close_date == date(2024, 12, 15)
        assert draft.stage_entered_at == NOW
        assert draft.closed_at is None

    def test_defaults_for_blank_financials(self):
        result = _import(f"{HEADER}\nJane,buyer,Zillow,New Lead")
        draft = result.drafts[0]
        assert draft.gross_commission_rate == Decimal("0.03")
        assert draft.brokerage_split_rate == Decimal("0.20")
        assert draft.transaction_fee == Decimal("0")
        assert draft.expected_sale_price is None
        assert draft.client_phone is None

    def test_workspace_defaults_applied(self):
        defaults = ImportDefaults(gross_commission_rate=Decimal("0.025"), brokerage_split_rate=Decimal("0.3"))
        draft = _import(f"{HEADER}\nJane,buyer,Zillow,New Lead", defaults=defaults).drafts[0]
        assert draft.gross_commission_rate == Decimal("0.025")
        assert draft.brokerage_split_rate == Decimal("0.3")

    def test_closed_status_stamps_closed_at(self):
        draft = _import(f"{HEADER}\nJane,buyer,Zillow,Closed").drafts[0]
        assert draft.status == "closed"
        assert draft.closed_at == NOW

    def test_unknown_lead_source(self):
        result = _import(f"{HEADER}\nJane,buyer,Craigslist,New Lead")
        assert result.success == 0
        assert result.errors[0].errors == [
            'Lead source "Craigslist" not found. Please create it in Lead Sources settings first.'
        ]

    def test_unrecognized_close_date(self):
        content = f"{HEADER},close_date\nJane,buyer,Zillow,New Lead,2024-02-30"
        result = _import(content)
        assert result.failed == 1
        assert result.errors[0].errors[0].startswith('Close date "2024-02-30" is not recognized.')

    def test_non_numeric_financials(self):
        content = f"{HEADER},actual_sale_price,transaction_fee\nJane,buyer,Zillow,New Lead,abc,$500"
        result = _import(content)
        assert result.errors[0].errors == [
            "actual_sale_price must be a number",
            "transaction_fee must be a number",
        ]

    def test_blank_rows_dropped_before_numbering(self):
        content = f"{HEADER}\nJane,buyer,Zillow,New Lead\n,,,\nBob,renter,Zillow,Nope"
        result = _import(content)
        assert result.success == 1
        assert [e.row for e in result.errors] == [3]

    def test_header_only_raises(self):
        with pytest.raises(CSVImportError):
            _import(HEADER)

    def test_row_limit(self):
        content = "\n".join([HEADER] + ["Jane,buyer,Zillow,New Lead"] * 3)
        with pytest.raises(CSVImportError, match="limit is 2"):
            _import(content, defaults=ImportDefaults(max_rows=2))

    def test_mark_failed_moves_row_to_errors(self):
        content = "\n".join([HEADER, "Jane,buyer,Zillow,New Lead", ",buyer,Zillow,New Lead"])
        result = _import(content)
        result.mark_failed(2, "Failed to save deal")
        assert result.success == 0
        assert result.failed == 2
        assert [e.row for e in result.errors] == [2, 3]

    def test_to_insert_drops_row_number(self):
        draft = _import(f"{HEADER}\nJane,buyer,Zillow,New Lead").drafts[0]
        values = draft.to_insert()
        assert "row" not in values
        assert values["client_name"] == "Jane"
