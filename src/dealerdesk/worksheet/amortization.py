"""Closed-form fixed-rate amortization for finance deals."""

from __future__ import annotations

import math

from dealerdesk.worksheet.models import PaymentFrequency, PaymentSchedule


def period_count(term_months: float, frequency: PaymentFrequency) -> int:
    """Number of payments over the term, never fewer than one.

    Halves round up.
    """
    return max(1, math.floor(term_months / 12 * frequency.periods_per_year + 0.5))


def amortize(
    principal: float,
    annual_rate_percent: float,
    term_months: float,
    frequency: PaymentFrequency | str = PaymentFrequency.MONTHLY,
    down_payment: float = 0.0,
) -> PaymentSchedule:
    """Compute the periodic payment and total interest for a loan.

    ``payment = P*r / (1 - (1+r)^-n)`` for a positive periodic rate ``r``,
    ``P / n`` at zero rate. Interest is derived from the unrounded payment.
    """
    frequency = PaymentFrequency(frequency)
    if down_payment:
        principal = max(0.0, principal - down_payment)

    periods_per_year = frequency.periods_per_year
    n = period_count(term_months, frequency)
    r = (annual_rate_percent / 100) / periods_per_year

    if principal == 0:
        payment = 0.0
    elif r > 0:
        payment = principal * r / (1 - (1 + r) ** -n)
    else:
        payment = principal / n

    return PaymentSchedule(
        principal=principal,
        annual_rate_percent=annual_rate_percent,
        term_months=term_months,
        frequency=frequency,
        periods_per_year=periods_per_year,
        periods=n,
        periodic_rate=r,
        payment=payment,
        finance_interest=max(0.0, payment * n - principal),
    )
