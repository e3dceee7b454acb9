"""Claude API client for generating plain-language financing narratives."""

import json
import logging

import anthropic

from realty_finance.config import settings
from realty_finance.data.cache import cached
from realty_finance.data.simulation_store import spec_to_dict
from realty_finance.engine.amortization import yearly_summary
from realty_finance.models.loan import LoanSpec
from realty_finance.models.results import AmortizationResult

logger = logging.getLogger(__name__)

RATE_TYPE_LABELS = {
    "fixed": "fixed installment (extra payments shorten the term)",
    "price_table": "Price table annuity (extra payments lower later installments)",
    "sac": "SAC constant amortization (decreasing installments)",
}


def build_prompt(spec: LoanSpec, result: AmortizationResult) -> str:
    """Render the data block and instructions sent to the model."""
    lines = [
        f"Principal: {spec.principal:,.2f}",
        f"Nominal annual rate: {spec.annual_rate_percent}%",
        f"Term: {spec.term_months} months, {spec.payment_frequency.value} payments",
        f"Amortization method: {RATE_TYPE_LABELS[spec.rate_type.value]}",
        f"First installment: {result.installment_amount:,.2f}",
        f"Final installment: {result.installments[-1].payment_amount:,.2f}" if result.installments else "",
        f"Installments: {len(result.installments)} of {result.scheduled_periods} scheduled",
        f"Total interest: {result.total_interest_paid:,.2f}",
        f"Total paid: {result.total_paid:,.2f}",
    ]
    if result.effective_annual_rate is not None:
        lines.append(f"Effective annual rate: {result.effective_annual_rate}%")

    if spec.extra_payments:
        lines.append("\nExtra payments:")
        for e in spec.extra_payments:
            lines.append(f"  Period {e.period_index}: {e.amount:,.2f}")

    years = yearly_summary(result)
    if years:
        lines.append("\nBy year:")
        for y in years[:10]:
            lines.append(
                f"  Year {y.year}: interest {y.interest:,.2f}, principal {y.principal + y.extra:,.2f}, "
                f"ending balance {y.ending_balance:,.2f}"
            )

    data_block = "\n".join(line for line in lines if line)

    return f"""You are a mortgage advisor for home buyers. Based on the financing simulation below, write a 2-3 paragraph explanation for the borrower. Be direct and practical.

Cover:
1. What the monthly commitment looks like and how it changes over time
2. How much of the total cost is interest, and what drives it
3. The effect of any extra payments, or where extra payments would help most

Data:
{data_block}

Write the explanation now. No headers or bullet points, flowing paragraphs only."""


def _narrative_key(spec: LoanSpec, result: AmortizationResult) -> str:
    # A schedule is fully determined by its spec
    return json.dumps(spec_to_dict(spec), sort_keys=True)


@cached("narrative:financing", ttl_seconds=settings.narrative_cache_ttl_seconds, key=_narrative_key)
async def generate_financing_narrative(spec: LoanSpec, result: AmortizationResult) -> str | None:
    """Generate a plain-language explanation of a simulation using Claude API.

    Returns None if the API key is missing or the call fails.
    """
    api_key = settings.anthropic_api_key
    if not api_key:
        logger.debug("Anthropic API key not configured, skipping narrative")
        return None

    prompt = build_prompt(spec, result)

    try:
        client = anthropic.AsyncAnthropic(api_key=api_key)
        message = await client.messages.create(
            model=settings.narrative_model,
            max_tokens=600,
            messages=[{"role": "user", "content": prompt}],
        )
        return message.content[0].text
    except anthropic.APIError as e:
        logger.warning("Claude narrative generation failed: %s", e)
        return None
