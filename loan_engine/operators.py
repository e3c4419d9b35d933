"""Schedule operators.

Operators adjust the context of the periods they are active in. The set of
operator kinds is closed: ``Fee``, ``Offset``, ``LumpSum``,
``InterestRateChange`` and ``ExtraRepayment``. Each one is a frozen dataclass
exposing ``apply(period, context)``, which returns a *patch*: a mapping of
``ContextItem`` field names to new values. Operators never mutate the context
themselves; the context builder merges patches in registration order.

Activation windows are inclusive. ``end_period=None`` means the operator stays
active until the end of the schedule.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterator, List, Optional, Tuple, Union

from .data_models import ContextItem, Frequency
from .formulas import effective_rate
from .utils import to_decimal

logger = logging.getLogger(__name__)

Patch = Dict[str, Decimal]


def _window_contains(start_period: int, end_period: Optional[int], period: int) -> bool:
    if period < start_period:
        return False
    return end_period is None or period <= end_period


@dataclass(frozen=True)
class Fee:
    """A fee charged in every period of the window.

    A window with ``start_period == end_period`` is a one-off fee. Fees add
    to the period's cash flow but never touch the principal/interest split.
    """

    amount: Decimal
    start_period: int = 1
    end_period: Optional[int] = None

    def apply(self, period: int, context: ContextItem) -> Patch:
        return {"fee": to_decimal(self.amount, "fee")}


@dataclass(frozen=True)
class Offset:
    """An offset account balance; reduces the balance interest is charged on."""

    amount: Decimal
    start_period: int = 1
    end_period: Optional[int] = None

    def apply(self, period: int, context: ContextItem) -> Patch:
        return {"offset": to_decimal(self.amount, "offset")}


@dataclass(frozen=True)
class LumpSum:
    """A single payment made on top of the scheduled repayment at ``period``."""

    amount: Decimal
    period: int

    @property
    def start_period(self) -> int:
        return self.period

    @property
    def end_period(self) -> int:
        return self.period

    def apply(self, period: int, context: ContextItem) -> Patch:
        return {"lump_sum": to_decimal(self.amount, "lump_sum")}


@dataclass(frozen=True)
class InterestRateChange:
    """A new nominal interest rate effective over the window."""

    interest_rate: Decimal
    interest_rate_frequency: int = Frequency.YEAR
    start_period: int = 1
    end_period: Optional[int] = None

    def apply(self, period: int, context: ContextItem) -> Patch:
        rate = effective_rate(
            to_decimal(self.interest_rate, "interest_rate"),
            to_decimal(self.interest_rate_frequency, "interest_rate_frequency"),
            context.repayment_frequency,
        )
        return {"eff_interest_rate": rate}


@dataclass(frozen=True)
class ExtraRepayment:
    """A recurring payment on top of the scheduled repayment.

    When ``frequency`` is given the amount is quoted per that frequency and
    converted to the repayment frequency (e.g. 1200 a year is 100 a month).
    """

    amount: Decimal
    frequency: Optional[int] = None
    start_period: int = 1
    end_period: Optional[int] = None

    def apply(self, period: int, context: ContextItem) -> Patch:
        amount = to_decimal(self.amount, "extra_repayment")
        if self.frequency is not None:
            amount = amount * to_decimal(self.frequency, "frequency") / context.repayment_frequency
        return {"eff_extra_repayment": amount}


Operator = Union[Fee, Offset, LumpSum, InterestRateChange, ExtraRepayment]

OPERATOR_KINDS: Tuple[type, ...] = (Fee, Offset, LumpSum, InterestRateChange, ExtraRepayment)


class OperatorSet:
    """Ordered registry of operators.

    Registration order is the merge order used by the context builder: when
    two operators write the same field in the same period the one registered
    last wins.
    """

    def __init__(self, operators: Tuple[Operator, ...] = ()) -> None:
        self._operators: List[Operator] = []
        self.register(*operators)

    def register(self, *operators: Operator) -> "OperatorSet":
        for operator in operators:
            if not isinstance(operator, OPERATOR_KINDS):
                raise TypeError(f"Unsupported operator: {operator!r}")
            end = operator.end_period
            if end is not None and end < operator.start_period:
                raise ValueError(
                    f"{type(operator).__name__}: end_period {end} is before start_period {operator.start_period}"
                )
            logger.debug("Registered %r", operator)
            self._operators.append(operator)
        return self

    def active_at(self, period: int) -> List[Operator]:
        """Return the operators active at ``period``, in registration order."""
        return [
            op for op in self._operators
            if _window_contains(op.start_period, op.end_period, period)
        ]

    def __iter__(self) -> Iterator[Operator]:
        return iter(self._operators)

    def __len__(self) -> int:
        return len(self._operators)
