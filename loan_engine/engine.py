"""Core calculation engine for the loan engine.

This module implements the period-by-period amortization loop. For each
period it builds the period context (opening balance plus operator
adjustments), decides whether the scheduled repayment must be recomputed,
splits the cash flow into interest and principal under loan or savings
semantics and stops early once a loan is paid off. A final pass computes the
totals and the running interest balance.

Results are returned as a ``CalculationResult`` holding index-aligned
context and amortization lists, period 0 included.
"""

from __future__ import annotations

import dataclasses
import logging
from decimal import Decimal
from typing import Iterable, List, Optional

from .context import build_context_at
from .data_models import (
    ZERO,
    AmortizationItem,
    BaseContext,
    CalculationResult,
    ContextItem,
    LoanConfig,
    RepaymentType,
    Totals,
)
from .formulas import annuity_payment
from .operators import Operator, OperatorSet

logger = logging.getLogger(__name__)


def compute_totals(amortization_list: Iterable[AmortizationItem]) -> Totals:
    """Sum repayments and interest over the whole schedule."""
    repayment = ZERO
    interest_paid = ZERO
    for item in amortization_list:
        repayment += item.repayment
        interest_paid += item.interest_paid
    return Totals(repayment=repayment, interest_paid=interest_paid)


def compute_interest_balance(
    amortization_list: List[AmortizationItem], totals: Totals, is_savings_mode: bool
) -> None:
    """Fill in ``interest_balance`` for every period.

    For loans the running balance starts at the total interest and decreases
    to zero. For savings it starts at zero and grows with the interest
    earned.
    """
    interest_balance = ZERO if is_savings_mode else totals.interest_paid
    for item in amortization_list:
        if is_savings_mode:
            interest_balance -= item.interest_paid * -1
        else:
            interest_balance -= item.interest_paid
        item.interest_balance = interest_balance


class LoanCalculatorEngine:
    """Calculates a loan and its amortization table.

    Example::

        engine = LoanCalculatorEngine(LoanConfig(principal=100000, interest_rate=0.1, term=10))
        result = engine.calculate()

    ``calculate`` can be called any number of times; each call starts from a
    clean state.
    """

    def __init__(self, config: LoanConfig, operators: Iterable[Operator] = ()) -> None:
        self.config = config
        self.base_context = BaseContext.from_config(config)
        self.operators = OperatorSet(tuple(operators))

        self.context_list: List[ContextItem] = []
        self.amortization_list: List[AmortizationItem] = []
        self.totals: Optional[Totals] = None

    def use(self, *operators: Operator) -> "LoanCalculatorEngine":
        self.operators.register(*operators)
        return self

    @property
    def is_savings_mode(self) -> bool:
        return self.config.is_savings_mode

    def calculate(self) -> CalculationResult:
        """Calculate the schedule period by period."""
        self._start_calculation()

        period = 1
        while period <= self.base_context.eff_term:
            context = build_context_at(
                period,
                self.amortization_list[-1],
                self.base_context,
                self.operators.active_at(period),
            )
            context, amortization = self._calculate_amortization_at(period, context)

            self.context_list.append(context)
            self.amortization_list.append(amortization)

            # A loan with extra repayments or offsets may finish before its term.
            if not self.is_savings_mode and amortization.principal_balance <= 0:
                logger.debug("Loan paid off at period %s", period)
                break
            period += 1

        self._end_calculation()

        logger.info(
            "Calculated %d periods: total repayment %s, total interest %s",
            len(self.amortization_list) - 1,
            self.totals.repayment,
            self.totals.interest_paid,
        )
        return CalculationResult(
            totals=self.totals,
            context_list=list(self.context_list),
            amortization_list=list(self.amortization_list),
        )

    def _calculate_amortization_at(self, period: int, context: ContextItem):
        prev_context = self.context_list[-1]

        is_initial_period = period == 1
        has_changed_rate = prev_context.eff_interest_rate != context.eff_interest_rate

        # Savings always keep the configured repayment; loans recompute it on
        # the first period and whenever the effective rate changes.
        repayment = prev_context.repayment
        if not self.is_savings_mode and (is_initial_period or has_changed_rate):
            repayment = self._calculate_repayment(period, context)
            logger.debug("Period %s: repayment set to %s", period, repayment)

        context = dataclasses.replace(context, repayment=repayment)

        repayment += context.eff_extra_repayment
        repayment += context.lump_sum

        considered_principal = context.principal - context.offset
        interest_paid = max(considered_principal * context.eff_interest_rate, ZERO)

        principal_paid = ZERO
        if self.is_savings_mode:
            principal_balance = context.principal + repayment + interest_paid
        else:
            # Final payment: never pay more than what is owed.
            if repayment > context.principal + interest_paid:
                repayment = context.principal + interest_paid
                principal_paid = context.principal
            else:
                principal_paid = repayment - interest_paid
            principal_balance = context.principal - principal_paid

        repayment += context.fee

        amortization = AmortizationItem(
            period=period,
            principal_balance=principal_balance,
            interest_paid=interest_paid,
            principal_paid=principal_paid,
            repayment=repayment,
        )
        return context, amortization

    @staticmethod
    def _calculate_repayment(period: int, context: ContextItem) -> Decimal:
        if context.repayment_type == RepaymentType.INTEREST_ONLY:
            return context.principal * context.eff_interest_rate
        remaining = context.eff_term - period + 1
        return annuity_payment(context.principal, context.eff_interest_rate, remaining)

    def _start_calculation(self) -> None:
        self.context_list = []
        self.amortization_list = []
        self.totals = None

        context = ContextItem.from_base(0, self.base_context)
        amortization = AmortizationItem(period=0, principal_balance=context.principal)
        self.context_list.append(context)
        self.amortization_list.append(amortization)

    def _end_calculation(self) -> None:
        self.totals = compute_totals(self.amortization_list)
        compute_interest_balance(self.amortization_list, self.totals, self.is_savings_mode)


def compute_schedule(config: LoanConfig, operators: Iterable[Operator] = ()) -> CalculationResult:
    """Compute the amortization schedule for ``config`` with ``operators``."""
    return LoanCalculatorEngine(config, operators).calculate()
