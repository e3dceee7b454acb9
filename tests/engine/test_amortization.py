from dataclasses import replace
from decimal import Decimal

import pytest

from realty_finance.engine.amortization import (
    annuity_payment,
    compute_schedule,
    from_cents,
    to_cents,
    yearly_summary,
)
from realty_finance.engine.validation import ValidationError
from realty_finance.models.loan import ExtraPayment, PaymentFrequency, RateType


def _assert_consistent(spec, result):
    """Invariants every schedule must satisfy."""
    inst = result.installments
    assert inst, "schedule must not be empty"
    assert [i.period_index for i in inst] == list(range(1, len(inst) + 1))
    assert inst[-1].remaining_balance == Decimal("0.00")

    retired = sum(i.principal_portion + i.extra_portion for i in inst)
    assert retired == spec.principal

    for i in inst:
        assert i.payment_amount == i.principal_portion + i.interest_portion
        assert i.principal_portion >= 0
        assert i.interest_portion >= 0

    for prev, cur in zip(inst, inst[1:]):
        assert cur.remaining_balance < prev.remaining_balance

    assert result.total_interest_paid == sum(i.interest_portion for i in inst)
    assert result.total_paid == (
        result.total_principal_paid + result.total_interest_paid + result.total_extra_paid
    )


class TestCents:
    def test_to_cents_rounds_half_up(self):
        assert to_cents(Decimal("0.005")) == 1
        assert to_cents(Decimal("1234.564")) == 123456

    def test_from_cents(self):
        assert from_cents(885620) == Decimal("8856.20")
        assert from_cents(0) == Decimal("0.00")


class TestAnnuityPayment:
    def test_fixture_loan(self, fixed_loan):
        result = compute_schedule(fixed_loan)
        assert annuity_payment(10000000, result.period_rate, 12) == 885620

    def test_zero_rate_divides_evenly(self):
        assert annuity_payment(10000000, Decimal("0"), 12) == 833333


class TestFixedSchedule:
    def test_installment_count(self, fixed_loan):
        result = compute_schedule(fixed_loan)
        assert len(result.installments) == 12
        assert result.scheduled_periods == 12
        assert result.periods_saved == 0

    def test_first_installment(self, fixed_loan):
        """Interest on 100K at 0.94888%/month = 948.88."""
        first = compute_schedule(fixed_loan).installments[0]
        assert first.payment_amount == Decimal("8856.20")
        assert first.interest_portion == Decimal("948.88")
        assert first.principal_portion == Decimal("7907.32")
        assert first.remaining_balance == Decimal("92092.68")

    def test_level_payment_until_final(self, fixed_loan):
        inst = compute_schedule(fixed_loan).installments
        assert {i.payment_amount for i in inst[:-1]} == {Decimal("8856.20")}

    def test_final_installment_absorbs_residual(self, fixed_loan):
        last = compute_schedule(fixed_loan).installments[-1]
        assert last.payment_amount == Decimal("8856.30")
        assert last.principal_portion == Decimal("8773.05")
        assert last.interest_portion == Decimal("83.25")

    def test_totals(self, fixed_loan):
        result = compute_schedule(fixed_loan)
        assert result.installment_amount == Decimal("8856.20")
        assert result.total_interest_paid == Decimal("6274.50")
        assert result.total_principal_paid == Decimal("100000.00")
        assert result.total_extra_paid == Decimal("0.00")
        assert result.total_paid == Decimal("106274.50")

    def test_invariants(self, fixed_loan):
        _assert_consistent(fixed_loan, compute_schedule(fixed_loan))


class TestPriceTableSchedule:
    def test_matches_fixed_without_extras(self, fixed_loan, price_loan):
        fixed = compute_schedule(fixed_loan)
        price = compute_schedule(price_loan)
        assert price.installments == fixed.installments

    def test_constant_installment(self, mortgage):
        inst = compute_schedule(mortgage).installments
        assert len(inst) == 360
        assert len({i.payment_amount for i in inst[:-1]}) == 1

    def test_interest_falls_principal_rises(self, mortgage):
        inst = compute_schedule(mortgage).installments
        for prev, cur in zip(inst[:-1], inst[1:-1]):
            assert cur.interest_portion <= prev.interest_portion
            assert cur.principal_portion >= prev.principal_portion

    def test_invariants(self, mortgage):
        _assert_consistent(mortgage, compute_schedule(mortgage))


class TestSacSchedule:
    def test_constant_principal(self, sac_loan):
        inst = compute_schedule(sac_loan).installments
        assert [i.principal_portion for i in inst[:4]] == [Decimal("8333.34")] * 4
        assert [i.principal_portion for i in inst[4:]] == [Decimal("8333.33")] * 8

    def test_first_and_last(self, sac_loan):
        inst = compute_schedule(sac_loan).installments
        assert inst[0].interest_portion == Decimal("948.88")
        assert inst[0].payment_amount == Decimal("9282.22")
        assert inst[-1].interest_portion == Decimal("79.07")
        assert inst[-1].payment_amount == Decimal("8412.40")

    def test_payments_non_increasing(self, sac_loan, mortgage):
        for spec in (sac_loan, replace(mortgage, rate_type=RateType.SAC)):
            inst = compute_schedule(spec).installments
            for prev, cur in zip(inst, inst[1:]):
                assert cur.payment_amount <= prev.payment_amount

    def test_cheaper_than_price(self, sac_loan, price_loan):
        sac = compute_schedule(sac_loan)
        price = compute_schedule(price_loan)
        assert sac.total_interest_paid == Decimal("6167.72")
        assert sac.total_interest_paid < price.total_interest_paid

    def test_invariants(self, sac_loan):
        _assert_consistent(sac_loan, compute_schedule(sac_loan))


class TestZeroRate:
    def test_fixed(self, make_spec):
        spec = make_spec(RateType.FIXED, annual_rate_percent=Decimal("0"))
        result = compute_schedule(spec)
        inst = result.installments
        assert [i.payment_amount for i in inst[:-1]] == [Decimal("8333.33")] * 11
        assert inst[-1].payment_amount == Decimal("8333.37")
        assert result.total_interest_paid == Decimal("0.00")
        assert result.period_rate == Decimal("0")
        _assert_consistent(spec, result)

    def test_sac(self, make_spec):
        spec = make_spec(RateType.SAC, annual_rate_percent=Decimal("0"))
        inst = compute_schedule(spec).installments
        assert [i.payment_amount for i in inst] == [Decimal("8333.34")] * 4 + [Decimal("8333.33")] * 8

    def test_effective_rate_is_zero(self, make_spec):
        spec = make_spec(annual_rate_percent=Decimal("0"))
        assert compute_schedule(spec).effective_annual_rate == Decimal("0.0000")


class TestFullTerm:
    """Without prepayments a schedule always runs its full term."""

    def test_small_fixed_balance(self, make_spec):
        spec = make_spec(principal=Decimal("16.50"), annual_rate_percent=Decimal("0"), term_months=360)
        result = compute_schedule(spec)
        inst = result.installments
        assert len(inst) == 360
        assert result.periods_saved == 0
        assert {i.payment_amount for i in inst[:-1]} == {Decimal("0.04")}
        assert inst[-1].payment_amount == Decimal("2.14")
        _assert_consistent(spec, result)

    def test_tiny_sac_balance(self, make_spec):
        spec = make_spec(RateType.SAC, principal=Decimal("0.05"), annual_rate_percent=Decimal("0"))
        inst = compute_schedule(spec).installments
        assert len(inst) == 12
        assert [i.principal_portion for i in inst] == [Decimal("0.01")] * 5 + [Decimal("0.00")] * 7
        assert [i.remaining_balance for i in inst[4:]] == [Decimal("0.00")] * 8
        assert sum(i.principal_portion for i in inst) == spec.principal
        for prev, cur in zip(inst, inst[1:]):
            assert cur.payment_amount <= prev.payment_amount

    def test_level_installment_never_overshoots(self, make_spec):
        for principal in ("16.50", "999.99", "100000", "1234567.89"):
            for months in (7, 12, 360):
                spec = make_spec(principal=Decimal(principal), term_months=months)
                result = compute_schedule(spec)
                assert len(result.installments) == result.scheduled_periods
                assert result.installments[-1].payment_amount >= result.installment_amount


class TestSinglePeriod:
    def test_one_month(self, make_spec):
        for rate_type in RateType:
            spec = make_spec(rate_type, term_months=1)
            inst = compute_schedule(spec).installments
            assert len(inst) == 1
            assert inst[0].principal_portion == Decimal("100000.00")
            assert inst[0].interest_portion == Decimal("948.88")
            assert inst[0].payment_amount == Decimal("100948.88")
            assert inst[0].remaining_balance == Decimal("0.00")


class TestFrequencies:
    def test_biweekly(self, make_spec):
        spec = make_spec(payment_frequency=PaymentFrequency.BIWEEKLY)
        result = compute_schedule(spec)
        assert len(result.installments) == 26
        assert result.periods_per_year == 26
        _assert_consistent(spec, result)

    def test_weekly(self, make_spec):
        spec = make_spec(RateType.SAC, payment_frequency=PaymentFrequency.WEEKLY)
        result = compute_schedule(spec)
        assert len(result.installments) == 52
        _assert_consistent(spec, result)

    def test_weekly_interest_below_monthly(self, make_spec):
        """Same annual rate, paid down faster."""
        monthly = compute_schedule(make_spec())
        weekly = compute_schedule(make_spec(payment_frequency=PaymentFrequency.WEEKLY))
        assert weekly.total_interest_paid < monthly.total_interest_paid


class TestExtraPayments:
    def test_fixed_shortens_term(self, fixed_loan, prepayment):
        spec = replace(fixed_loan, extra_payments=prepayment)
        result = compute_schedule(spec)
        inst = result.installments

        sixth = inst[5]
        assert sixth.principal_portion == Decimal("8289.66")
        assert sixth.interest_portion == Decimal("566.54")
        assert sixth.extra_portion == Decimal("20000.00")
        assert sixth.remaining_balance == Decimal("31416.28")

        assert len(inst) == 10
        assert result.periods_saved == 2
        assert {i.payment_amount for i in inst[:-1]} == {Decimal("8856.20")}
        assert inst[-1].payment_amount == Decimal("5549.77")
        assert inst[-1].principal_portion == Decimal("5497.60")
        assert inst[-1].interest_portion == Decimal("52.17")

        assert result.total_interest_paid == Decimal("5255.57")
        assert result.total_extra_paid == Decimal("20000.00")
        assert result.total_paid == Decimal("105255.57")
        _assert_consistent(spec, result)

    def test_price_table_rebases_installment(self, price_loan, prepayment):
        spec = replace(price_loan, extra_payments=prepayment)
        result = compute_schedule(spec)
        inst = result.installments

        assert len(inst) == 12
        assert {i.payment_amount for i in inst[:6]} == {Decimal("8856.20")}
        assert {i.payment_amount for i in inst[6:-1]} == {Decimal("5411.30")}
        assert inst[-1].payment_amount == Decimal("5411.34")
        assert result.total_interest_paid == Decimal("5605.04")
        _assert_consistent(spec, result)

    def test_sac_rebases_principal(self, sac_loan, prepayment):
        spec = replace(sac_loan, extra_payments=prepayment)
        result = compute_schedule(spec)
        inst = result.installments

        assert len(inst) == 12
        assert inst[5].remaining_balance == Decimal("29999.98")
        assert [i.principal_portion for i in inst[6:10]] == [Decimal("5000.00")] * 4
        assert [i.principal_portion for i in inst[10:]] == [Decimal("4999.99")] * 2
        assert inst[6].payment_amount == Decimal("5284.66")
        assert inst[-1].payment_amount == Decimal("5047.43")
        assert result.total_interest_paid == Decimal("5503.50")
        _assert_consistent(spec, result)

    def test_extra_capped_at_balance(self, fixed_loan):
        spec = replace(
            fixed_loan,
            extra_payments=(ExtraPayment(period_index=3, amount=Decimal("200000")),),
        )
        result = compute_schedule(spec)
        inst = result.installments
        assert len(inst) == 3
        assert inst[2].extra_portion == Decimal("76052.24")
        assert inst[2].remaining_balance == Decimal("0.00")
        assert result.total_interest_paid == Decimal("2620.84")
        assert result.total_paid == Decimal("102620.84")
        _assert_consistent(spec, result)

    def test_extras_at_several_periods(self, mortgage):
        spec = replace(mortgage, rate_type=RateType.FIXED, extra_payments=(
            ExtraPayment(period_index=12, amount=Decimal("10000")),
            ExtraPayment(period_index=24, amount=Decimal("10000")),
            ExtraPayment(period_index=36, amount=Decimal("10000")),
        ))
        result = compute_schedule(spec)
        assert result.total_extra_paid == Decimal("30000.00")
        assert result.periods_saved > 0
        _assert_consistent(spec, result)

    def test_effective_rate_unchanged(self, fixed_loan, prepayment):
        baseline = compute_schedule(fixed_loan)
        accelerated = compute_schedule(replace(fixed_loan, extra_payments=prepayment))
        assert abs(baseline.effective_annual_rate - Decimal("12")) < Decimal("0.01")
        assert abs(accelerated.effective_annual_rate - Decimal("12")) < Decimal("0.01")


class TestComputeSchedule:
    def test_deterministic(self, sac_loan, prepayment):
        spec = replace(sac_loan, extra_payments=prepayment)
        assert compute_schedule(spec) == compute_schedule(spec)

    def test_invalid_spec_raises(self, make_spec):
        spec = make_spec(principal=Decimal("0"), term_months=0)
        with pytest.raises(ValidationError) as exc:
            compute_schedule(spec)
        fields = [e.field for e in exc.value.errors]
        assert fields == ["principal", "term_months"]

    def test_extra_out_of_range_raises(self, fixed_loan):
        spec = replace(
            fixed_loan,
            extra_payments=(ExtraPayment(period_index=13, amount=Decimal("100")),),
        )
        with pytest.raises(ValidationError):
            compute_schedule(spec)

    def test_period_rate_reported(self, fixed_loan):
        result = compute_schedule(fixed_loan)
        assert abs(result.period_rate - Decimal("0.009488792934582974")) < Decimal("1e-15")


class TestYearlySummary:
    def test_thirty_years(self, mortgage):
        result = compute_schedule(mortgage)
        yearly = yearly_summary(result)
        assert len(yearly) == 30
        assert [y.year for y in yearly] == list(range(1, 31))
        assert yearly[-1].ending_balance == Decimal("0.00")

    def test_totals_match(self, mortgage):
        result = compute_schedule(mortgage)
        yearly = yearly_summary(result)
        assert sum(y.interest for y in yearly) == result.total_interest_paid
        assert sum(y.principal for y in yearly) == result.total_principal_paid

    def test_partial_final_year(self, fixed_loan, prepayment):
        result = compute_schedule(replace(fixed_loan, extra_payments=prepayment))
        yearly = yearly_summary(result)
        assert len(yearly) == 1
        assert yearly[0].extra == Decimal("20000.00")
        assert yearly[0].payments == result.total_paid

    def test_weekly_years(self, make_spec):
        spec = make_spec(term_months=24, payment_frequency=PaymentFrequency.WEEKLY)
        yearly = yearly_summary(compute_schedule(spec))
        assert len(yearly) == 2
