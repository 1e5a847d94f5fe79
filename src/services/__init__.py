"""Business logic services."""

from src.services.commission import (
    CommissionInput,
    calculate_commission_breakdown,
    calculate_net_commission,
)
from src.services.deal_import import CSVImportError, import_deals

__all__ = [
    "CommissionInput",
    "calculate_commission_breakdown",
    "calculate_net_commission",
    "CSVImportError",
    "import_deals",
]
