"""Deterministic deal-worksheet calculator.

Recomputes every derived worksheet field from the current inputs. No state
is kept between calls, so the same inputs always produce the same totals.
Values keep full precision; callers round once for display via
``WorksheetTotals.rounded()``.
"""

from __future__ import annotations

from dealerdesk.worksheet.amortization import amortize
from dealerdesk.worksheet.models import WorksheetInputs, WorksheetTotals
from dealerdesk.worksheet.taxes import TaxRateTable, default_table


def calculate_worksheet(
    inputs: WorksheetInputs,
    table: TaxRateTable | None = None,
) -> WorksheetTotals:
    table = table or default_table()

    subtotal = max(0.0, inputs.purchase_price - inputs.discount)
    net_difference = max(0.0, subtotal - inputs.trade_value)
    # Negative equity must reach the user as a negative number
    trade_equity = inputs.actual_cash_value - inputs.trade_value

    tax_rate = table.rate(inputs.tax_code)
    computed_tax = net_difference * tax_rate
    total_tax = inputs.tax_manual if inputs.tax_override else computed_tax

    total_balance_due = (
        net_difference
        + total_tax
        + inputs.license_fee
        + inputs.lien_payout
        - trade_equity
    )

    totals = WorksheetTotals(
        subtotal=subtotal,
        net_difference=net_difference,
        trade_equity=trade_equity,
        tax_rate=tax_rate,
        computed_tax=computed_tax,
        total_tax=total_tax,
        total_balance_due=total_balance_due,
    )

    if inputs.is_finance:
        schedule = amortize(
            principal=total_balance_due,
            annual_rate_percent=inputs.finance_rate_percent,
            term_months=inputs.finance_term_months,
            frequency=inputs.payment_frequency,
        )
        totals.financed_amount = total_balance_due
        totals.payment = schedule.payment
        totals.finance_interest = schedule.finance_interest
        totals.periods = schedule.periods

    return totals


class WorksheetCalculator:
    """Calculator bound to one tax-rate table, for wiring on app state."""

    def __init__(self, table: TaxRateTable | None = None) -> None:
        self._table = table or default_table()

    @property
    def table(self) -> TaxRateTable:
        return self._table

    def calculate(self, inputs: WorksheetInputs) -> WorksheetTotals:
        return calculate_worksheet(inputs, self._table)
