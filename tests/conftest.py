"""Shared fixtures.

Canonical loan: 100,000 at 10 % nominal yearly, 10 year term, monthly
repayments (120 periods, monthly rate 0.1 / 12).
"""

import pytest
from decimal import Decimal

from loan_engine.data_models import Frequency, LoanConfig, RepaymentType


@pytest.fixture
def standard_loan() -> LoanConfig:
    return LoanConfig(
        principal=Decimal("100000"),
        interest_rate=Decimal("0.1"),
        term=Decimal("10"),
    )


@pytest.fixture
def interest_only_loan() -> LoanConfig:
    return LoanConfig(
        principal=Decimal("100000"),
        interest_rate=Decimal("0.1"),
        term=Decimal("10"),
        repayment_type=RepaymentType.INTEREST_ONLY,
    )


@pytest.fixture
def savings_plan() -> LoanConfig:
    """1,000 opening balance, 100 deposited monthly at 12 % for a year."""
    return LoanConfig(
        principal=Decimal("1000"),
        interest_rate=Decimal("0.12"),
        term=Decimal("1"),
        repayment=Decimal("100"),
        repayment_frequency=Frequency.MONTH,
        is_savings_mode=True,
    )
