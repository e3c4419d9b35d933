from decimal import Decimal

import pytest

from loan_engine.context import build_context_at, collect_patches, find_conflicts
from loan_engine.data_models import AmortizationItem, BaseContext, ContextItem, Frequency
from loan_engine.operators import (
    ExtraRepayment,
    Fee,
    InterestRateChange,
    LumpSum,
    Offset,
    OperatorSet,
)


@pytest.fixture
def base(standard_loan) -> BaseContext:
    return BaseContext.from_config(standard_loan)


@pytest.fixture
def context(base) -> ContextItem:
    return ContextItem.from_base(1, base)


class TestOperatorPatches:
    def test_fee(self, context):
        assert Fee(amount=Decimal("25")).apply(1, context) == {"fee": Decimal("25")}

    def test_offset(self, context):
        assert Offset(amount=Decimal("5000")).apply(1, context) == {"offset": Decimal("5000")}

    def test_lump_sum(self, context):
        assert LumpSum(amount=Decimal("1000"), period=1).apply(1, context) == {"lump_sum": Decimal("1000")}

    def test_rate_change_uses_repayment_frequency(self, context):
        patch = InterestRateChange(interest_rate=Decimal("0.12")).apply(1, context)
        assert patch == {"eff_interest_rate": Decimal("0.01")}

    def test_extra_repayment_without_frequency(self, context):
        patch = ExtraRepayment(amount=Decimal("200")).apply(1, context)
        assert patch == {"eff_extra_repayment": Decimal("200")}

    def test_extra_repayment_converted_to_repayment_frequency(self, context):
        patch = ExtraRepayment(amount=Decimal("1200"), frequency=Frequency.YEAR).apply(1, context)
        assert patch == {"eff_extra_repayment": Decimal("100")}


class TestOperatorSet:
    def test_windows_are_inclusive(self):
        fee = Fee(amount=Decimal("1"), start_period=3, end_period=5)
        operators = OperatorSet((fee,))
        assert operators.active_at(2) == []
        assert operators.active_at(3) == [fee]
        assert operators.active_at(5) == [fee]
        assert operators.active_at(6) == []

    def test_open_ended_window(self):
        change = InterestRateChange(interest_rate=Decimal("0.2"), start_period=13)
        operators = OperatorSet((change,))
        assert operators.active_at(12) == []
        assert operators.active_at(500) == [change]

    def test_lump_sum_active_at_single_period(self):
        lump = LumpSum(amount=Decimal("1"), period=4)
        operators = OperatorSet((lump,))
        assert [p for p in range(1, 10) if operators.active_at(p)] == [4]

    def test_registration_order_kept(self):
        first = Fee(amount=Decimal("1"))
        second = Offset(amount=Decimal("2"))
        operators = OperatorSet().register(first).register(second)
        assert operators.active_at(1) == [first, second]
        assert len(operators) == 2
        assert list(operators) == [first, second]

    def test_rejects_unknown_operator(self):
        with pytest.raises(TypeError):
            OperatorSet().register(object())

    def test_rejects_inverted_window(self):
        with pytest.raises(ValueError):
            OperatorSet().register(Fee(amount=Decimal("1"), start_period=5, end_period=2))


class TestContextBuilder:
    def test_opening_principal_is_previous_balance(self, base):
        previous = AmortizationItem(period=1, principal_balance=Decimal("99000"))
        context = build_context_at(2, previous, base, [])
        assert context.period == 2
        assert context.principal == Decimal("99000")
        assert context.eff_interest_rate == base.eff_interest_rate
        assert context.eff_term == base.eff_term

    def test_operator_fields_merged(self, base):
        previous = AmortizationItem(period=0, principal_balance=base.principal)
        context = build_context_at(
            1, previous, base, [Fee(amount=Decimal("10")), Offset(amount=Decimal("500"))]
        )
        assert context.fee == Decimal("10")
        assert context.offset == Decimal("500")

    def test_last_write_wins(self, base):
        previous = AmortizationItem(period=0, principal_balance=base.principal)
        context = build_context_at(
            1, previous, base, [Fee(amount=Decimal("10")), Fee(amount=Decimal("30"))]
        )
        assert context.fee == Decimal("30")

    def test_conflicts_are_detectable(self, context):
        low, high, offset = Fee(amount=Decimal("10")), Fee(amount=Decimal("30")), Offset(amount=Decimal("1"))
        result, applied = collect_patches(1, context, [low, offset, high])
        assert [op for op, _ in applied] == [low, offset, high]
        assert find_conflicts(applied) == {"fee": [low, high]}
        assert result.fee == Decimal("30")

    def test_base_context_not_mutated(self, base):
        previous = AmortizationItem(period=0, principal_balance=base.principal)
        build_context_at(1, previous, base, [InterestRateChange(interest_rate=Decimal("0.5"))])
        assert base.eff_interest_rate == Decimal("0.1") / Decimal(12)

    def test_invalid_period(self, base):
        previous = AmortizationItem(period=0, principal_balance=base.principal)
        with pytest.raises(ValueError):
            build_context_at(None, previous, base, [])
