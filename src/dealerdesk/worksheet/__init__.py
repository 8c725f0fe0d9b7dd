"""Deal worksheet arithmetic: taxes, totals, amortization and cost lines."""

from dealerdesk.worksheet.amortization import amortize
from dealerdesk.worksheet.calculator import WorksheetCalculator, calculate_worksheet
from dealerdesk.worksheet.models import (
    PaymentFrequency,
    PaymentSchedule,
    WorksheetInputs,
    WorksheetTotals,
)
from dealerdesk.worksheet.taxes import TaxCode, TaxRateTable

__all__ = [
    "PaymentFrequency",
    "PaymentSchedule",
    "TaxCode",
    "TaxRateTable",
    "WorksheetCalculator",
    "WorksheetInputs",
    "WorksheetTotals",
    "amortize",
    "calculate_worksheet",
]
