"""
Royalty calculation engine.

Turns a contract snapshot, a period's sales and returns, and (for co-authored
titles) the ownership split into an itemized royalty statement.

Order of operations:
1. Drop records outside the period / after as_of_date
2. Net approved returns against sales per format
3. Work out each format's tier baseline (period or lifetime mode)
4. Resolve tiers and price each slice
5. Sum format royalties into gross royalty
6. Recoup the outstanding advance
7. Floor the net payable at zero (the only place anything is floored)
8. Split the net payable between co-authors

IMPORTANT: this is a pure calculation.
- Nothing is persisted and the contract snapshot is never modified
- Running it twice on the same inputs gives identical results
- Engine errors come back as a failed CalculationOutcome, not an exception
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from royalty_engine.errors import InactiveContractError, RoyaltyEngineError
from royalty_engine.models.contract import (
    ContractFormat,
    ContractStatus,
    RoyaltyContract,
    TierCalculationMode,
)
from royalty_engine.models.ownership import OwnershipContext
from royalty_engine.models.royalty import (
    AuthorAllocation,
    CalculationMode,
    CalculationOutcome,
    CalculationRequest,
    FormatCalculation,
    RoyaltyCalculationResult,
    SplitResult,
)
from royalty_engine.models.sales import (
    LifetimeTotals,
    NettedTotals,
    ReturnRecord,
    SaleRecord,
)
from royalty_engine.services.advance import recoup
from royalty_engine.services.lifetime import build_context
from royalty_engine.services.money import (
    ZERO,
    engine_context,
    quantize_currency,
)
from royalty_engine.services.ownership import (
    build_ownership,
    split_royalty_by_ownership,
)
from royalty_engine.services.returns import net_sales, total_returns_revenue
from royalty_engine.services.tiers import (
    TierResolution,
    TierSchedule,
    group_tiers_by_format,
    resolve_tiers,
)

logger = logging.getLogger(__name__)


def _in_window(
    day: date,
    period_start: Optional[date],
    period_end: Optional[date],
    as_of_date: Optional[date],
) -> bool:
    if period_start is not None and day < period_start:
        return False
    if period_end is not None and day > period_end:
        return False
    if as_of_date is not None and day > as_of_date:
        return False
    return True


def _calculate_format(
    fmt: ContractFormat,
    totals: NettedTotals,
    schedule: Optional[TierSchedule],
    mode: TierCalculationMode,
    lifetime: LifetimeTotals,
) -> FormatCalculation:
    context = build_context(
        mode,
        lifetime.quantity,
        totals.net_quantity,
        schedule,
        revenue_before=lifetime.revenue,
        period_revenue=totals.net_revenue,
    )

    if schedule is None:
        if totals.gross_quantity or totals.returns_quantity:
            logger.warning(
                f"{fmt.value}: {totals.net_quantity} net units but no tiers configured; "
                "format earns no royalty"
            )
        resolution = TierResolution(per_tier=[], royalty=ZERO, units_resolved=0)
    else:
        # The resolver starts from the same baseline the context reports
        resolution = resolve_tiers(
            schedule,
            context.quantity_before,
            totals.net_quantity,
            totals.net_revenue,
            reverse_from_baseline=mode == TierCalculationMode.LIFETIME,
        )

    logger.debug(
        f"{fmt.value}: net_units={totals.net_quantity} baseline={context.quantity_before} "
        f"royalty={resolution.royalty}"
    )

    return FormatCalculation(
        format=fmt,
        net_sales=totals,
        lifetime_context=context,
        tier_breakdowns=resolution.per_tier,
        format_royalty=quantize_currency(resolution.royalty),
        unreversed_quantity=resolution.unreversed_quantity,
    )


def _build_split(
    title_gross: Decimal,
    title_net: Decimal,
    ownership: OwnershipContext,
) -> Optional[SplitResult]:
    title_ownership = build_ownership(ownership.rows)
    percentage = title_ownership.percentage_for(ownership.author_id)
    if not title_ownership.is_multi_author:
        return None

    shares = split_royalty_by_ownership(title_net, title_ownership)
    allocations = [
        AuthorAllocation(
            author_id=author.author_id,
            ownership_percentage=author.ownership_percentage,
            is_primary=author.is_primary,
            split_amount=shares[author.author_id],
        )
        for author in title_ownership.authors
    ]
    return SplitResult(
        author_id=ownership.author_id,
        ownership_percentage=percentage,
        title_gross_royalty=title_gross,
        title_net_payable=title_net,
        author_share=shares[ownership.author_id],
        allocations=allocations,
    )


def _calculate(
    contract: RoyaltyContract,
    sales: Sequence[SaleRecord],
    returns: Sequence[ReturnRecord],
    ownership: Optional[OwnershipContext],
    as_of_date: Optional[date],
    lifetime_before: Dict[ContractFormat, LifetimeTotals],
    mode: CalculationMode,
    period_start: Optional[date],
    period_end: Optional[date],
) -> RoyaltyCalculationResult:
    if contract.status != ContractStatus.ACTIVE:
        raise InactiveContractError(
            f"Contract {contract.id} is {contract.status.value}; only active contracts earn royalties"
        )

    period_sales = [
        s for s in sales
        if _in_window(s.transaction_date, period_start, period_end, as_of_date)
    ]
    period_returns = [
        r for r in returns
        if _in_window(r.transaction_date, period_start, period_end, as_of_date)
    ]
    excluded = len(sales) + len(returns) - len(period_sales) - len(period_returns)
    if excluded:
        logger.warning(f"Contract {contract.id}: excluded {excluded} records outside the period")

    schedules = group_tiers_by_format(contract.tiers)
    netted = net_sales(period_sales, period_returns)

    # Enum order keeps the breakdown stable from run to run
    formats = [f for f in ContractFormat if f in netted or f in schedules]

    format_calculations: List[FormatCalculation] = []
    gross_royalty = ZERO
    for fmt in formats:
        calculation = _calculate_format(
            fmt,
            netted.get(fmt) or NettedTotals(format=fmt),
            schedules.get(fmt),
            contract.tier_calculation_mode,
            lifetime_before.get(fmt) or LifetimeTotals(),
        )
        format_calculations.append(calculation)
        gross_royalty += calculation.format_royalty

    gross_royalty = quantize_currency(gross_royalty)
    advance = recoup(gross_royalty, contract.advance_amount, contract.advance_recouped)
    title_net = max(advance.net_payable, quantize_currency(ZERO))

    split = None
    net_payable = title_net
    author_id = contract.author_id
    if ownership is not None:
        author_id = ownership.author_id
        split = _build_split(gross_royalty, title_net, ownership)
        if split is not None:
            net_payable = split.author_share

    return RoyaltyCalculationResult(
        contract_id=contract.id,
        title_id=contract.title_id,
        author_id=author_id,
        mode=mode,
        tier_calculation_mode=contract.tier_calculation_mode,
        as_of_date=as_of_date,
        period_start=period_start,
        period_end=period_end,
        format_calculations=format_calculations,
        returns_deduction=quantize_currency(total_returns_revenue(netted)),
        gross_royalty=gross_royalty,
        advance=advance,
        net_payable=net_payable,
        split=split,
    )


def calculate(
    contract: RoyaltyContract,
    sales: Sequence[SaleRecord],
    returns: Sequence[ReturnRecord],
    ownership: Optional[OwnershipContext] = None,
    as_of_date: Optional[date] = None,
    *,
    lifetime_before: Optional[Dict[ContractFormat, LifetimeTotals]] = None,
    mode: CalculationMode = CalculationMode.DRY_RUN,
    period_start: Optional[date] = None,
    period_end: Optional[date] = None,
) -> CalculationOutcome:
    """
    Calculate one contract's royalty for a period.

    Args:
        contract: Contract snapshot with tiers and advance state.
        sales: Sale records for the period.
        returns: Return records for the period; only approved ones count.
        ownership: Calling author plus the title's ownership rows. Needed for
            co-authored titles; the net payable becomes that author's share.
        as_of_date: Records dated after this are ignored.
        lifetime_before: Per-format units/revenue sold before the period.
            Only read for lifetime-mode contracts.
        mode: DRY_RUN (preview) or COMMIT (will be stored). The numbers are
            the same either way; only plan_commit() treats them differently.
        period_start / period_end: Optional inclusive bounds on record dates.

    Returns:
        CalculationOutcome with the calculation, or the error that stopped it.
    """
    try:
        with engine_context():
            result = _calculate(
                contract,
                sales,
                returns,
                ownership,
                as_of_date,
                lifetime_before or {},
                mode,
                period_start,
                period_end,
            )
    except RoyaltyEngineError as exc:
        logger.warning(f"Royalty calculation failed for contract {contract.id}: {exc}")
        return CalculationOutcome(
            success=False,
            contract_id=contract.id,
            error=str(exc),
            error_type=exc.error_type,
        )

    logger.info(
        f"Calculated royalty for contract {contract.id} ({mode.value}): "
        f"gross={result.gross_royalty} net_payable={result.net_payable}"
    )
    return CalculationOutcome(success=True, contract_id=contract.id, calculation=result)


def calculate_request(request: CalculationRequest) -> CalculationOutcome:
    """calculate() for a CalculationRequest body."""
    return calculate(
        request.contract,
        request.sales,
        request.returns,
        request.ownership,
        request.as_of_date,
        lifetime_before=request.lifetime_before,
        mode=request.mode,
        period_start=request.period_start,
        period_end=request.period_end,
    )


def calculate_batch(requests: Sequence[CalculationRequest]) -> List[CalculationOutcome]:
    """
    Calculate many contracts, one outcome per request in the same order.

    A failed contract shows up as a failed outcome; the rest still run.
    """
    outcomes = [calculate_request(request) for request in requests]
    failed = sum(1 for o in outcomes if not o.success)
    if failed:
        logger.warning(f"Batch calculation: {failed} of {len(outcomes)} contracts failed")
    return outcomes
