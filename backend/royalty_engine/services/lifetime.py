"""
Lifetime context: where a format stands in its tier schedule.

Period-mode contracts restart at zero every statement. Lifetime-mode
contracts keep counting from the units sold in all earlier periods, so a
title can cross into a higher tier halfway through a period.
"""

from decimal import Decimal
from typing import Optional, Union

from royalty_engine.errors import InputValidationError
from royalty_engine.models.contract import TierCalculationMode
from royalty_engine.models.royalty import LifetimeContext
from royalty_engine.services.money import ZERO, to_units
from royalty_engine.services.tiers import TierSchedule


def build_context(
    mode: TierCalculationMode,
    all_time_quantity_before_period: Union[int, Decimal],
    period_quantity: Union[int, Decimal],
    schedule: Optional[TierSchedule],
    revenue_before: Decimal = ZERO,
    period_revenue: Decimal = ZERO,
) -> LifetimeContext:
    """
    Build the before/after position for one format.

    quantity_before is the baseline the tier resolver must start from:
    always 0 in period mode, the all-time total in lifetime mode.
    quantity_after never drops below 0, even when returns outweigh
    everything sold so far. Fractional quantities raise InputValidationError.
    """
    history = to_units(all_time_quantity_before_period, "all_time_quantity_before_period")
    period = to_units(period_quantity, "period_quantity")
    if history < 0:
        raise InputValidationError("Lifetime quantity before the period cannot be negative")

    if mode == TierCalculationMode.LIFETIME:
        quantity_before = history
    else:
        quantity_before = 0
        revenue_before = ZERO

    quantity_after = max(quantity_before + period, 0)
    revenue_after = max(revenue_before + period_revenue, ZERO)

    current_rate = next_threshold = units_to_next = None
    if schedule is not None:
        current_rate = schedule.tier_at(quantity_after).rate
        upcoming = schedule.next_tier_after(quantity_after)
        if upcoming is not None:
            next_threshold = upcoming.min_quantity
            units_to_next = upcoming.min_quantity - quantity_after

    return LifetimeContext(
        mode=mode,
        quantity_before=quantity_before,
        revenue_before=revenue_before,
        quantity_after=quantity_after,
        revenue_after=revenue_after,
        current_tier_rate=current_rate,
        next_tier_threshold=next_threshold,
        units_to_next_tier=units_to_next,
    )
