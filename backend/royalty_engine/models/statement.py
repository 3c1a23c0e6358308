"""
Pydantic models for what happens after a calculation: the statement commit
plan and the liability roll-up.
"""

from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from royalty_engine.models.royalty import CalculationOutcome, RoyaltyCalculationResult


class StatementCommit(BaseModel):
    """
    The single ledger change a committed statement implies.

    Produced from a commit-mode calculation; the persistence layer writes
    new_advance_recouped and stores the statement row.
    """
    contract_id: str
    author_id: Optional[str] = None
    previous_advance_recouped: Decimal
    recoupment_delta: Decimal
    new_advance_recouped: Decimal
    net_payable: Decimal

    class Config:
        frozen = True


class LiabilitySummary(BaseModel):
    """Totals owed across many calculations (one per author/contract)."""
    calculation_count: int = 0
    total_gross_royalty: Decimal = Decimal("0")
    total_recouped_this_period: Decimal = Decimal("0")
    total_net_payable: Decimal = Decimal("0")
    total_advance_remaining: Decimal = Decimal("0")
    failures: List[CalculationOutcome] = Field(default_factory=list)


class CalculationResponse(BaseModel):
    """
    Body returned by POST /calculate.

    commit is only present for commit-mode calculations.
    """
    calculation: RoyaltyCalculationResult
    commit: Optional[StatementCommit] = None
