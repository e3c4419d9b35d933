"""Base financial formulas used by the amortization engine.

All functions are pure and operate on ``Decimal`` values. Frequencies are
expressed as a number of periods per year (see ``Frequency`` in
``data_models``), so converting between two frequencies is a simple ratio.
"""

from __future__ import annotations

from decimal import Decimal, getcontext

getcontext().prec = 28  # increase precision for financial calculations


def _check_frequency(frequency: Decimal, name: str) -> None:
    if frequency <= 0:
        raise ValueError(f"{name} must be positive; got {frequency}")


def effective_rate(nominal_rate: Decimal, rate_frequency: Decimal, payment_frequency: Decimal) -> Decimal:
    """Return the interest rate per repayment period.

    A nominal rate quoted per ``rate_frequency`` (e.g. yearly, ``1``) is
    spread over ``payment_frequency`` periods (e.g. monthly, ``12``).
    """
    _check_frequency(rate_frequency, "rate_frequency")
    _check_frequency(payment_frequency, "payment_frequency")
    return nominal_rate * rate_frequency / payment_frequency


def effective_term(term: Decimal, term_frequency: Decimal, payment_frequency: Decimal) -> Decimal:
    """Return the total number of repayment periods for a term.

    The result may be fractional, e.g. 18 months repaid yearly gives 1.5.
    """
    _check_frequency(term_frequency, "term_frequency")
    _check_frequency(payment_frequency, "payment_frequency")
    return term / term_frequency * payment_frequency


def annuity_payment(principal: Decimal, period_rate: Decimal, periods_remaining: Decimal) -> Decimal:
    """Return the level payment that fully amortizes ``principal``.

    The formula is:

        payment = P * (i * (1 + i)^n) / ((1 + i)^n - 1)

    where ``P`` is the principal, ``i`` is the rate per period and ``n`` is
    the number of remaining payments. When the interest rate is zero, the
    payment simplifies to ``P / n``.
    """
    if periods_remaining <= 0:
        raise ValueError("Number of remaining periods must be positive")
    if period_rate == 0:
        return principal / periods_remaining
    factor = (1 + period_rate) ** periods_remaining
    return principal * (period_rate * factor) / (factor - 1)
