from decimal import Decimal

import pytest

from loan_engine.data_models import (
    AmortizationItem,
    BaseContext,
    CalculationResult,
    ContextItem,
    Frequency,
    LoanConfig,
    RepaymentType,
    Totals,
)


class TestLoanConfig:
    def test_defaults(self):
        config = LoanConfig()
        assert config.principal == 0
        assert config.interest_rate_frequency == Frequency.YEAR
        assert config.term_frequency == Frequency.YEAR
        assert config.repayment_frequency == Frequency.MONTH
        assert config.repayment_type is RepaymentType.PRINCIPAL_AND_INTEREST
        assert config.is_savings_mode is False

    def test_numbers_coerced_to_decimal(self):
        config = LoanConfig(principal=100000, interest_rate=0.1, term="10")
        assert config.principal == Decimal("100000")
        assert config.interest_rate == Decimal("0.1")
        assert config.term == Decimal("10")

    def test_repayment_type_from_code(self):
        assert LoanConfig(repayment_type="IO").repayment_type is RepaymentType.INTEREST_ONLY

    def test_unknown_repayment_type(self):
        with pytest.raises(ValueError):
            LoanConfig(repayment_type="XX")

    def test_non_positive_frequency(self):
        with pytest.raises(ValueError):
            LoanConfig(repayment_frequency=0)

    def test_non_numeric_principal(self):
        with pytest.raises(ValueError):
            LoanConfig(principal="lots")

    @pytest.mark.parametrize("field", ["principal", "interest_rate", "term", "repayment"])
    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf"), "nan", Decimal("Infinity")])
    def test_non_finite_values_rejected(self, field, value):
        with pytest.raises(ValueError, match="finite"):
            LoanConfig(**{field: value})

    def test_infinite_frequency_rejected(self):
        with pytest.raises(ValueError, match="finite"):
            LoanConfig(repayment_frequency=float("inf"))

    def test_degenerate_values_accepted(self):
        config = LoanConfig(principal=-5, interest_rate=-0.01, term=0)
        assert config.principal == Decimal("-5")

    def test_from_dict_accepts_camel_case(self):
        config = LoanConfig.from_dict(
            {
                "principal": 5000,
                "interestRate": 0.05,
                "interestRateFrequency": 1,
                "term": 2,
                "termFrequency": 1,
                "repaymentType": "IO",
                "repaymentFrequency": 52,
                "isSavingsMode": True,
            }
        )
        assert config.interest_rate == Decimal("0.05")
        assert config.repayment_frequency == Frequency.WEEK
        assert config.repayment_type is RepaymentType.INTEREST_ONLY
        assert config.is_savings_mode is True

    def test_from_dict_rejects_unknown_keys(self):
        with pytest.raises(ValueError, match="Unknown loan option"):
            LoanConfig.from_dict({"principal": 1, "currency": "EUR"})


class TestBaseContext:
    def test_effective_values(self, standard_loan):
        base = BaseContext.from_config(standard_loan)
        assert base.eff_interest_rate == Decimal("0.1") / Decimal(12)
        assert base.eff_term == Decimal("120")
        assert base.principal == Decimal("100000")


class TestPeriodGuard:
    def _context(self, period):
        return ContextItem(
            period=period,
            principal=Decimal("0"),
            eff_interest_rate=Decimal("0"),
            eff_term=Decimal("0"),
            repayment=Decimal("0"),
            repayment_type=RepaymentType.PRINCIPAL_AND_INTEREST,
            repayment_frequency=Decimal(12),
        )

    def test_context_requires_period(self):
        with pytest.raises(ValueError, match="undefined"):
            self._context(None)

    def test_context_rejects_nan(self):
        with pytest.raises(ValueError, match="must be a number"):
            self._context(float("nan"))

    def test_context_rejects_string(self):
        with pytest.raises(ValueError, match="must be a number"):
            self._context("3")

    def test_amortization_requires_period(self):
        with pytest.raises(ValueError, match="undefined"):
            AmortizationItem(period=None)

    def test_amortization_rejects_negative_period(self):
        with pytest.raises(ValueError, match="non-negative integer"):
            AmortizationItem(period=-1)

    def test_context_rejects_fractional_period(self):
        with pytest.raises(ValueError, match="non-negative integer"):
            self._context(1.5)

    def test_integral_period_values_accepted(self):
        assert self._context(Decimal("3")).period == Decimal("3")
        assert AmortizationItem(period=0).period == 0

    def test_amortization_defaults_to_zero(self):
        item = AmortizationItem(period=0)
        assert item.principal_balance == 0
        assert item.interest_balance == 0
        assert item.repayment == 0

    def test_operator_fields_default_to_zero(self):
        context = self._context(1)
        assert context.fee == 0
        assert context.offset == 0
        assert context.lump_sum == 0
        assert context.eff_extra_repayment == 0


class TestCalculationResult:
    def test_to_dict_is_json_friendly(self, standard_loan):
        base = BaseContext.from_config(standard_loan)
        result = CalculationResult(
            totals=Totals(repayment=Decimal("10"), interest_paid=Decimal("1")),
            context_list=[ContextItem.from_base(0, base)],
            amortization_list=[AmortizationItem(period=0, principal_balance=base.principal)],
        )
        data = result.to_dict()
        assert data["totals"] == {"repayment": 10.0, "interest_paid": 1.0}
        assert data["context_list"][0]["repayment_type"] == "PI"
        assert data["amortization_list"][0]["principal_balance"] == 100000.0
