"""Loan and savings amortization engine with pluggable schedule operators."""

from .data_models import (
    AmortizationItem,
    BaseContext,
    CalculationResult,
    ContextItem,
    Frequency,
    LoanConfig,
    RepaymentType,
    Totals,
)
from .engine import LoanCalculatorEngine, compute_schedule
from .operators import ExtraRepayment, Fee, InterestRateChange, LumpSum, Offset, OperatorSet

__all__ = [
    "AmortizationItem",
    "BaseContext",
    "CalculationResult",
    "ContextItem",
    "ExtraRepayment",
    "Fee",
    "Frequency",
    "InterestRateChange",
    "LoanCalculatorEngine",
    "LoanConfig",
    "LumpSum",
    "Offset",
    "OperatorSet",
    "RepaymentType",
    "Totals",
    "compute_schedule",
]
