"""Side-by-side loan comparisons and prepayment savings.

Each spec is computed independently; results come back in input order.
"""

from realty_finance.engine.amortization import compute_schedule
from realty_finance.models.loan import LoanSpec
from realty_finance.models.results import ExtraPaymentSavings, LoanComparisonRow


def compare_loans(specs: list[LoanSpec], labels: list[str] | None = None) -> list[LoanComparisonRow]:
    """Compute every spec and flag the one(s) with the lowest total paid.

    Raises:
        ValidationError: from the first invalid spec.
    """
    if labels is None:
        labels = [f"Option {i + 1}" for i in range(len(specs))]
    if len(labels) != len(specs):
        raise ValueError("labels and specs must have the same length")

    results = [compute_schedule(spec) for spec in specs]
    if not results:
        return []

    lowest = min(r.total_paid for r in results)
    return [
        LoanComparisonRow(label=label, result=result, is_lowest_cost=result.total_paid == lowest)
        for label, result in zip(labels, results)
    ]


def extra_payment_savings(spec: LoanSpec) -> ExtraPaymentSavings:
    """Contrast a spec's schedule with the same loan without extra payments."""
    baseline = compute_schedule(spec.without_extra_payments())
    accelerated = compute_schedule(spec)
    return ExtraPaymentSavings(
        baseline=baseline,
        accelerated=accelerated,
        interest_saved=baseline.total_interest_paid - accelerated.total_interest_paid,
        periods_saved=len(baseline.installments) - len(accelerated.installments),
    )
