"""
Tiered royalty rates: tier schedules and the tier resolver.

Units are numbered by their cumulative ordinal. With `before` units already
counted, a period of `quantity` units covers ordinals before+1 .. before+quantity,
and a tier [min, max] taxes every unit whose ordinal falls inside that
inclusive range. So with tiers [0-4999 @ 10%, 5000+ @ 12%], a period taking the
count from 4,500 to 5,000 puts 499 units at 10% and the 5,000th unit at 12%.
The same rule holds in period mode: a fresh period of 5,000 units against
those tiers also puts 4,999 units at 10% and the 5,000th at 12%, so the first
tier holds `max` units rather than `max + 1`.

Revenue is spread over the units pro-rata: each tier earns
    (units_in_tier / period_units) * period_revenue * tier_rate
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple, Union

from royalty_engine.errors import ContractConfigurationError, InputValidationError
from royalty_engine.models.contract import ContractFormat, RoyaltyTier
from royalty_engine.models.royalty import TierBreakdown
from royalty_engine.services.money import (
    ZERO,
    allocate_pro_rata,
    quantize_currency,
    to_units,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BoundedTier:
    min_quantity: int
    max_quantity: int
    rate: Decimal


@dataclass(frozen=True)
class UnboundedTier:
    """The open-ended top tier. Every schedule ends with exactly one."""
    min_quantity: int
    rate: Decimal

    @property
    def max_quantity(self) -> None:
        return None


Tier = Union[BoundedTier, UnboundedTier]


@dataclass(frozen=True)
class TierSchedule:
    """
    Ordered, contiguous tiers for one format.

    Use TierSchedule.from_rows(); it rejects gaps, overlaps, a missing or
    misplaced unbounded tier, and rates outside [0, 1].
    """
    format: ContractFormat
    bounded: Tuple[BoundedTier, ...]
    top: UnboundedTier

    @property
    def tiers(self) -> Tuple[Tier, ...]:
        return self.bounded + (self.top,)

    @classmethod
    def from_rows(cls, fmt: ContractFormat, rows: Sequence[RoyaltyTier]) -> "TierSchedule":
        if not rows:
            raise ContractConfigurationError(f"No tiers configured for format {fmt.value}")

        ordered = sorted(rows, key=lambda r: r.min_quantity)

        if ordered[0].min_quantity != 0:
            raise ContractConfigurationError(
                f"{fmt.value}: first tier must start at 0, starts at {ordered[0].min_quantity}"
            )

        bounded: List[BoundedTier] = []
        for index, row in enumerate(ordered):
            if not (ZERO <= row.rate <= 1):
                raise ContractConfigurationError(
                    f"{fmt.value}: tier rate {row.rate} is outside 0-1"
                )
            is_last = index == len(ordered) - 1

            if row.max_quantity is None:
                if not is_last:
                    raise ContractConfigurationError(
                        f"{fmt.value}: only the last tier can be unbounded"
                    )
                top = UnboundedTier(min_quantity=row.min_quantity, rate=row.rate)
                break

            if is_last:
                raise ContractConfigurationError(
                    f"{fmt.value}: last tier must be unbounded (max_quantity is {row.max_quantity})"
                )
            if row.max_quantity < row.min_quantity:
                raise ContractConfigurationError(
                    f"{fmt.value}: tier {row.min_quantity}-{row.max_quantity} ends before it starts"
                )
            next_min = ordered[index + 1].min_quantity
            if next_min != row.max_quantity + 1:
                problem = "overlaps" if next_min <= row.max_quantity else "leaves a gap before"
                raise ContractConfigurationError(
                    f"{fmt.value}: tier {row.min_quantity}-{row.max_quantity} {problem} "
                    f"the tier starting at {next_min}"
                )
            bounded.append(
                BoundedTier(
                    min_quantity=row.min_quantity,
                    max_quantity=row.max_quantity,
                    rate=row.rate,
                )
            )

        return cls(format=fmt, bounded=tuple(bounded), top=top)

    def tier_at(self, ordinal: int) -> Tier:
        """Tier that taxes the unit with this cumulative ordinal (0 maps to the first tier)."""
        for tier in self.bounded:
            if ordinal <= tier.max_quantity:
                return tier
        return self.top

    def next_tier_after(self, ordinal: int) -> Optional[Tier]:
        """First tier strictly above the one containing `ordinal`, or None at the top."""
        current = self.tier_at(ordinal)
        if current is self.top:
            return None
        tiers = self.tiers
        return tiers[tiers.index(current) + 1]


@dataclass(frozen=True)
class TierResolution:
    per_tier: List[TierBreakdown]
    royalty: Decimal
    units_resolved: int
    unreversed_quantity: int = 0


def group_tiers_by_format(rows: Sequence[RoyaltyTier]) -> Dict[ContractFormat, TierSchedule]:
    """Build one checked TierSchedule per format present in `rows`."""
    grouped: Dict[ContractFormat, List[RoyaltyTier]] = {}
    for row in rows:
        grouped.setdefault(row.format, []).append(row)
    return {
        fmt: TierSchedule.from_rows(fmt, fmt_rows)
        for fmt, fmt_rows in grouped.items()
    }


def _overlap(start: int, end: int, tier: Tier) -> int:
    """Number of ordinals in (start, end] that fall inside the tier."""
    upper = end if tier.max_quantity is None else min(end, tier.max_quantity)
    lower = max(start, tier.min_quantity - 1)
    return max(upper - lower, 0)


def resolve_tiers(
    schedule: TierSchedule,
    baseline_before: Union[int, Decimal],
    quantity_in_period: Union[int, Decimal],
    revenue_in_period: Decimal,
    reverse_from_baseline: bool = False,
) -> TierResolution:
    """
    Spread a period's units and revenue over the tiers and price each slice.

    Args:
        schedule: Checked tiers for the format.
        baseline_before: Units counted before the period (0 in period mode).
        quantity_in_period: Net units for the period. Negative when returns
            exceed sales; every slice then carries negative units, revenue
            and royalty. The resolver never floors anything at zero.
        revenue_in_period: Net revenue for the period (same sign as quantity).
        reverse_from_baseline: For negative quantities in lifetime mode,
            reverse units walking down from the baseline (never below 0)
            instead of pricing them as the first units of the period.

    Returns:
        TierResolution with one TierBreakdown per tier touched, the summed
        royalty, and how many returned units could not be reversed.
    """
    before = to_units(baseline_before, "baseline_before")
    quantity = to_units(quantity_in_period, "quantity_in_period")
    if before < 0:
        raise InputValidationError(f"baseline_before cannot be negative, got {before}")

    if quantity == 0:
        return TierResolution(per_tier=[], royalty=ZERO, units_resolved=0)

    sign = 1 if quantity > 0 else -1
    magnitude = abs(quantity)

    if sign < 0 and reverse_from_baseline:
        start = max(before - magnitude, 0)
        end = before
    else:
        start = before
        end = before + magnitude

    slices: List[Tuple[Tier, int]] = []
    for tier in schedule.tiers:
        units = _overlap(start, end, tier)
        if units > 0:
            slices.append((tier, units))

    resolved = end - start
    unreversed = magnitude - resolved
    if unreversed:
        logger.warning(
            f"{schedule.format.value}: {unreversed} returned units exceed the lifetime "
            f"baseline of {before} and were not reversed"
        )
    if not slices:
        return TierResolution(
            per_tier=[], royalty=ZERO, units_resolved=0, unreversed_quantity=unreversed
        )

    # Revenue for the units that actually resolved; equals the full revenue
    # unless part of a reversal was dropped.
    resolved_revenue = revenue_in_period * resolved / magnitude
    revenue_slices = allocate_pro_rata(
        resolved_revenue, [Decimal(units) for _, units in slices]
    )

    per_tier: List[TierBreakdown] = []
    royalty = ZERO
    for (tier, units), slice_revenue in zip(slices, revenue_slices):
        tier_royalty = quantize_currency(slice_revenue * tier.rate)
        per_tier.append(
            TierBreakdown(
                min_quantity=tier.min_quantity,
                max_quantity=tier.max_quantity,
                rate=tier.rate,
                units_applied=sign * units,
                revenue_applied=slice_revenue,
                royalty_amount=tier_royalty,
            )
        )
        royalty += tier_royalty

    return TierResolution(
        per_tier=per_tier,
        royalty=royalty,
        units_resolved=sign * resolved,
        unreversed_quantity=unreversed,
    )
