"""
Royalty projections for lifetime-mode contracts.

Given where a format currently stands and how fast it is selling, estimate
when it reaches the next tier and what a year of sales would earn with and
without tier escalation.
"""

from decimal import Decimal, ROUND_CEILING

from royalty_engine.errors import InputValidationError
from royalty_engine.models.royalty import (
    AnnualRoyaltyProjection,
    LifetimeContext,
    TierCrossoverProjection,
)
from royalty_engine.services.money import ZERO, engine_context, quantize_currency
from royalty_engine.services.tiers import TierSchedule, resolve_tiers


def project_tier_crossover(
    schedule: TierSchedule,
    context: LifetimeContext,
    monthly_units: Decimal,
) -> TierCrossoverProjection:
    """
    Estimate how many months of sales until the next tier.

    months_to_next_tier is rounded up, and None when the format is already
    in the top tier or is not selling at all.
    """
    if monthly_units < 0:
        raise InputValidationError("monthly_units cannot be negative")

    months = None
    if context.units_to_next_tier is not None and monthly_units > 0:
        months = int(
            (Decimal(context.units_to_next_tier) / monthly_units).to_integral_value(
                rounding=ROUND_CEILING
            )
        )

    return TierCrossoverProjection(
        format=schedule.format,
        current_quantity=context.quantity_after,
        current_tier_rate=context.current_tier_rate,
        next_tier_threshold=context.next_tier_threshold,
        units_to_next_tier=context.units_to_next_tier,
        months_to_next_tier=months,
    )


def project_annual_royalty(
    schedule: TierSchedule,
    context: LifetimeContext,
    projected_annual_units: int,
    average_unit_price: Decimal,
) -> AnnualRoyaltyProjection:
    """
    Compare a year of projected sales at today's rate with the same sales
    escalating through the tiers from the current lifetime position.
    """
    if projected_annual_units < 0:
        raise InputValidationError("projected_annual_units cannot be negative")

    with engine_context():
        revenue = quantize_currency(average_unit_price * projected_annual_units)
        current_rate = context.current_tier_rate
        if current_rate is None:
            current_rate = schedule.tier_at(context.quantity_after).rate
        at_current_rate = quantize_currency(revenue * current_rate)

        escalated = ZERO
        if projected_annual_units:
            escalated = resolve_tiers(
                schedule,
                context.quantity_after,
                projected_annual_units,
                revenue,
            ).royalty

    return AnnualRoyaltyProjection(
        format=schedule.format,
        projected_annual_units=projected_annual_units,
        projected_annual_revenue=revenue,
        current_rate=current_rate,
        royalty_at_current_rate=at_current_rate,
        royalty_with_escalation=quantize_currency(escalated),
    )
