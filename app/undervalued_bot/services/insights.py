from __future__ import annotations

from app.undervalued_bot.models.schemas import AnalystEstimate, StockInsights
from app.undervalued_bot.utils.math_utils import is_number, round_half_up


def extract_key_insights(estimate: AnalystEstimate) -> StockInsights:
    revenue = estimate.revenue_avg
    if not revenue:
        raise ValueError(f"Revenue average is zero for period {estimate.date}")
    averages = (revenue, estimate.ebitda_avg, estimate.net_income_avg, estimate.sga_expense_avg, estimate.eps_avg)
    if not all(is_number(v) for v in averages):
        raise ValueError(f"Non-finite estimate averages for period {estimate.date}")

    ebitda_margin = round_half_up(estimate.ebitda_avg / revenue, 4)
    net_margin = round_half_up(estimate.net_income_avg / revenue, 4)
    sga_to_revenue_ratio = round_half_up(estimate.sga_expense_avg / revenue, 4)
    analyst_count = max(estimate.num_analysts_revenue or 0, estimate.num_analysts_eps)
    eps = round_half_up(estimate.eps_avg, 2)

    summary = (
        f"EPS: ${eps:.2f}, "
        f"EBITDA Margin: {ebitda_margin * 100:.1f}%, "
        f"Net Margin: {net_margin * 100:.1f}%, "
        f"SG&A: {sga_to_revenue_ratio * 100:.1f}%, "
        f"Analysts: {analyst_count}"
    )

    return StockInsights(
        period=estimate.date,
        eps=eps,
        ebitda_margin=ebitda_margin,
        net_margin=net_margin,
        sga_to_revenue_ratio=sga_to_revenue_ratio,
        analyst_count=analyst_count,
        summary=summary,
    )
