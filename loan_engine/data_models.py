"""Data models for the loan engine.

This module defines dataclasses representing the entities used by the
engine: the user configuration (``LoanConfig``), the normalized baseline
derived from it (``BaseContext``), the per-period state entering a period
(``ContextItem``), the per-period results (``AmortizationItem``) and the
aggregate output of a run (``Totals`` and ``CalculationResult``).
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field, fields
from decimal import Decimal
from enum import Enum, IntEnum
from typing import Any, Dict, List, Mapping

from .formulas import effective_rate, effective_term
from .utils import to_decimal

ZERO = Decimal("0")


class Frequency(IntEnum):
    """Number of periods per year for rates, terms and repayments."""

    YEAR = 1
    HALF_YEAR = 2
    QUARTER = 4
    MONTH = 12
    FORTNIGHT = 26
    WEEK = 52
    DAY = 365


class RepaymentType(str, Enum):
    INTEREST_ONLY = "IO"
    PRINCIPAL_AND_INTEREST = "PI"


# camelCase keys accepted by ``LoanConfig.from_dict`` in addition to the
# dataclass field names.
_CONFIG_ALIASES = {
    "interestRate": "interest_rate",
    "interestRateFrequency": "interest_rate_frequency",
    "termFrequency": "term_frequency",
    "repaymentType": "repayment_type",
    "repaymentFrequency": "repayment_frequency",
    "isSavingsMode": "is_savings_mode",
}


def _check_period(owner: str, period: Any) -> None:
    if period is None:
        raise ValueError(f"{owner}: `period` is undefined.")
    if isinstance(period, bool) or not isinstance(period, (int, float, Decimal)):
        raise ValueError(f"{owner}: `period` must be a number.")
    if isinstance(period, float) and not math.isfinite(period):
        raise ValueError(f"{owner}: `period` must be a number.")
    if isinstance(period, Decimal) and not period.is_finite():
        raise ValueError(f"{owner}: `period` must be a number.")
    if period < 0 or period != int(period):
        raise ValueError(f"{owner}: `period` must be a non-negative integer; got {period!r}.")


@dataclass
class LoanConfig:
    """Configuration of a loan or savings plan.

    This configuration collects all user inputs into a single object. Rates
    are nominal decimal fractions (``0.1`` for 10 %) quoted per
    ``interest_rate_frequency``; the term is expressed in units of
    ``term_frequency``. ``repayment`` is only used in savings mode, where it
    is the periodic deposit; loans always compute their own repayment.
    """

    principal: Decimal = ZERO
    interest_rate: Decimal = ZERO
    interest_rate_frequency: Decimal = Frequency.YEAR
    term: Decimal = ZERO
    term_frequency: Decimal = Frequency.YEAR
    repayment: Decimal = ZERO
    repayment_type: RepaymentType = RepaymentType.PRINCIPAL_AND_INTEREST
    repayment_frequency: Decimal = Frequency.MONTH
    is_savings_mode: bool = False

    def __post_init__(self) -> None:
        self.principal = to_decimal(self.principal, "principal")
        self.interest_rate = to_decimal(self.interest_rate, "interest_rate")
        self.term = to_decimal(self.term, "term")
        self.repayment = to_decimal(self.repayment, "repayment")
        for name in ("interest_rate_frequency", "term_frequency", "repayment_frequency"):
            value = to_decimal(getattr(self, name), name)
            if value <= 0:
                raise ValueError(f"{name} must be positive; got {value}")
            setattr(self, name, value)
        try:
            self.repayment_type = RepaymentType(self.repayment_type)
        except ValueError as exc:
            raise ValueError(
                f"repayment_type must be 'IO' or 'PI'; got {self.repayment_type!r}"
            ) from exc
        self.is_savings_mode = bool(self.is_savings_mode)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LoanConfig":
        """Build a configuration from a mapping such as a parsed JSON file."""
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in data.items():
            name = _CONFIG_ALIASES.get(key, key)
            if name not in known:
                raise ValueError(f"Unknown loan option: {key}")
            kwargs[name] = value
        return cls(**kwargs)


@dataclass(frozen=True)
class BaseContext:
    """Normalized loan parameters shared by every period of a run."""

    principal: Decimal
    interest_rate: Decimal
    interest_rate_frequency: Decimal
    term: Decimal
    term_frequency: Decimal
    repayment: Decimal
    repayment_type: RepaymentType
    repayment_frequency: Decimal
    eff_interest_rate: Decimal
    eff_term: Decimal

    @classmethod
    def from_config(cls, config: LoanConfig) -> "BaseContext":
        return cls(
            principal=config.principal,
            interest_rate=config.interest_rate,
            interest_rate_frequency=config.interest_rate_frequency,
            term=config.term,
            term_frequency=config.term_frequency,
            repayment=config.repayment,
            repayment_type=config.repayment_type,
            repayment_frequency=config.repayment_frequency,
            eff_interest_rate=effective_rate(
                config.interest_rate, config.interest_rate_frequency, config.repayment_frequency
            ),
            eff_term=effective_term(
                config.term, config.term_frequency, config.repayment_frequency
            ),
        )


@dataclass(frozen=True)
class ContextItem:
    """Loan state entering a period.

    Operator-contributed fields (``fee``, ``offset``, ``lump_sum`` and
    ``eff_extra_repayment``) default to zero when no operator sets them.
    """

    period: int
    principal: Decimal
    eff_interest_rate: Decimal
    eff_term: Decimal
    repayment: Decimal
    repayment_type: RepaymentType
    repayment_frequency: Decimal
    fee: Decimal = ZERO
    offset: Decimal = ZERO
    lump_sum: Decimal = ZERO
    eff_extra_repayment: Decimal = ZERO

    def __post_init__(self) -> None:
        _check_period("ContextItem", self.period)

    @classmethod
    def from_base(cls, period: int, base: BaseContext) -> "ContextItem":
        return cls(
            period=period,
            principal=base.principal,
            eff_interest_rate=base.eff_interest_rate,
            eff_term=base.eff_term,
            repayment=base.repayment,
            repayment_type=base.repayment_type,
            repayment_frequency=base.repayment_frequency,
        )


@dataclass
class AmortizationItem:
    """Computed results for one period.

    ``repayment`` is the actual cash flow of the period, including extra
    repayments, lump sums and fees. ``interest_balance`` is filled in once
    the whole schedule is known.
    """

    period: int
    principal_balance: Decimal = ZERO
    interest_balance: Decimal = ZERO
    interest_paid: Decimal = ZERO
    principal_paid: Decimal = ZERO
    repayment: Decimal = ZERO

    def __post_init__(self) -> None:
        _check_period("AmortizationItem", self.period)


@dataclass(frozen=True)
class Totals:
    repayment: Decimal = ZERO
    interest_paid: Decimal = ZERO


def _jsonable(data: Dict[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, Decimal):
            out[key] = float(value)
        elif isinstance(value, Enum):
            out[key] = value.value
        else:
            out[key] = value
    return out


@dataclass
class CalculationResult:
    """Output of a calculation run; both lists start at period 0."""

    totals: Totals
    context_list: List[ContextItem] = field(default_factory=list)
    amortization_list: List[AmortizationItem] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-serializable representation of the result."""
        return {
            "totals": _jsonable(asdict(self.totals)),
            "context_list": [_jsonable(asdict(c)) for c in self.context_list],
            "amortization_list": [_jsonable(asdict(a)) for a in self.amortization_list],
        }
