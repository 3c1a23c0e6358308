"""
Returns adjuster: nets approved returns against gross sales per format.
"""

import logging
from datetime import date
from typing import Dict, Sequence

from royalty_engine.models.contract import ContractFormat
from royalty_engine.models.sales import (
    LifetimeTotals,
    NettedTotals,
    ReturnRecord,
    ReturnStatus,
    SaleRecord,
)
from royalty_engine.services.money import ZERO

logger = logging.getLogger(__name__)


def net_sales(
    sales: Sequence[SaleRecord],
    returns: Sequence[ReturnRecord],
) -> Dict[ContractFormat, NettedTotals]:
    """
    Aggregate sales and approved returns per format.

    Pending and rejected returns are ignored. Net quantity and revenue are
    NOT floored: when returns of earlier stock outweigh this period's sales
    the negative remainder is passed on so the tier resolver can reverse it.
    """
    totals: Dict[ContractFormat, NettedTotals] = {}

    for sale in sales:
        row = totals.setdefault(sale.format, NettedTotals(format=sale.format))
        row.gross_quantity += sale.quantity
        row.gross_revenue += sale.amount

    skipped = 0
    for ret in returns:
        if ret.status != ReturnStatus.APPROVED:
            skipped += 1
            continue
        row = totals.setdefault(ret.format, NettedTotals(format=ret.format))
        row.returns_quantity += ret.quantity
        row.returns_revenue += ret.amount

    if skipped:
        logger.debug(f"Ignored {skipped} returns that are not approved")

    return totals


def lifetime_totals_before(
    sales: Sequence[SaleRecord],
    returns: Sequence[ReturnRecord],
    before_date: date,
) -> Dict[ContractFormat, LifetimeTotals]:
    """
    Units and revenue per format sold strictly before `before_date`.

    Used to seed lifetime-mode contracts from raw history. Each format's
    totals are floored at zero: history can't leave a negative baseline.
    """
    history = net_sales(
        [s for s in sales if s.transaction_date < before_date],
        [r for r in returns if r.transaction_date < before_date],
    )
    return {
        fmt: LifetimeTotals(
            quantity=max(row.net_quantity, 0),
            revenue=max(row.net_revenue, ZERO),
        )
        for fmt, row in history.items()
    }


def total_returns_revenue(netted: Dict[ContractFormat, NettedTotals]):
    """Revenue taken back by approved returns across all formats."""
    return sum((row.returns_revenue for row in netted.values()), ZERO)
