"""
Request schema validation tests.
"""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from src.schemas.commission import CommissionRequest, TieredSplitSchema
from src.schemas.lead_source import LeadSourceCreate, tiers_to_json
from src.schemas.workspace import MemberCreate


class TestTieredSplitSchema:
    def test_valid_open_ended(self):
        tier = TieredSplitSchema(min_amount=600000, max_amount=None, split_rate=Decimal("0.1"))
        assert tier.max_amount is None

    def test_negative_min_rejected(self):
        with pytest.raises(ValidationError):
            TieredSplitSchema(min_amount=-1, split_rate=Decimal("0.1"))

    def test_max_below_min_rejected(self):
        with pytest.raises(ValidationError):
            TieredSplitSchema(min_amount=500000, max_amount=100000, split_rate=Decimal("0.1"))

    def test_rate_above_one_rejected(self):
        with pytest.raises(ValidationError):
            TieredSplitSchema(min_amount=0, split_rate=Decimal("1.5"))


class TestLeadSourceCreate:
    def test_defaults(self):
        body = LeadSourceCreate(name="Zillow")
        assert body.payout_structure.value == "standard"
        assert body.brokerage_split_rate == Decimal("0.20")

    def test_tiers_serialized_for_json_column(self):
        body = LeadSourceCreate(
            name="Tiered",
            payout_structure="tiered",
            tiered_splits=[{"min_amount": 0, "max_amount": 299999, "split_rate": "0.3"}],
        )
        assert tiers_to_json(body.tiered_splits) == [
            {"min_amount": 0.0, "max_amount": 299999.0, "split_rate": 0.3}
        ]
        assert tiers_to_json(None) is None

    def test_empty_name_rejected(self):
        with pytest.raises(ValidationError):
            LeadSourceCreate(name="")


class TestCommissionRequest:
    def test_all_optional(self):
        body = CommissionRequest()
        assert body.prefer_actual is True
        assert body.include_referral_in is False

    def test_unknown_payout_rejected(self):
        with pytest.raises(ValidationError):
            CommissionRequest(payout_structure="revenue_share")


class TestMemberCreate:
    def test_short_password_rejected(self):
        with pytest.raises(ValidationError):
            MemberCreate(email="a@b.co", display_name="A", password="short")

    def test_default_role_agent(self):
        body = MemberCreate(email="a@b.co", display_name="A", password="long-enough")
        assert body.global_role.value == "agent"
