"""
Pydantic models for royalty calculation requests and results.

Every intermediate figure is kept on the result so a statement can be
reconciled by hand without re-running the calculation.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, computed_field

from royalty_engine.models.contract import (
    ContractFormat,
    RoyaltyContract,
    TierCalculationMode,
)
from royalty_engine.models.ownership import OwnershipContext
from royalty_engine.models.sales import (
    LifetimeTotals,
    NettedTotals,
    ReturnRecord,
    SaleRecord,
)


class CalculationMode(str, Enum):
    DRY_RUN = "dry_run"  # preview only, never persisted
    COMMIT = "commit"    # the caller will store this as a statement


class TierBreakdown(BaseModel):
    """Units, revenue and royalty that landed in one tier."""
    min_quantity: int
    max_quantity: Optional[int] = None
    rate: Decimal
    units_applied: int
    revenue_applied: Decimal
    royalty_amount: Decimal


class LifetimeContext(BaseModel):
    """
    Cumulative position of a format before and after the period.

    In period mode the "before" values are always zero. The rate/threshold
    fields are None when the format has no tiers; next_tier_threshold and
    units_to_next_tier are None once the top tier is reached.
    """
    mode: TierCalculationMode
    quantity_before: int = 0
    revenue_before: Decimal = Decimal("0")
    quantity_after: int = 0
    revenue_after: Decimal = Decimal("0")
    current_tier_rate: Optional[Decimal] = None
    next_tier_threshold: Optional[int] = None
    units_to_next_tier: Optional[int] = None


class FormatCalculation(BaseModel):
    """Royalty detail for a single format."""
    format: ContractFormat
    net_sales: NettedTotals
    lifetime_context: LifetimeContext
    tier_breakdowns: List[TierBreakdown] = Field(default_factory=list)
    format_royalty: Decimal = Decimal("0")
    # Returned units that could not be reversed (lifetime mode, more returns than ever sold)
    unreversed_quantity: int = 0


class AdvanceRecoupment(BaseModel):
    original_advance: Decimal
    previously_recouped: Decimal
    this_period_recoupment: Decimal
    remaining_advance: Decimal
    net_payable: Decimal  # gross - recoupment, before the zero floor


class AuthorAllocation(BaseModel):
    author_id: str
    ownership_percentage: Decimal
    is_primary: bool
    split_amount: Decimal


class SplitResult(BaseModel):
    """How the title's net payable was divided between co-authors."""
    author_id: str
    ownership_percentage: Decimal
    title_gross_royalty: Decimal
    title_net_payable: Decimal
    author_share: Decimal
    allocations: List[AuthorAllocation] = Field(default_factory=list)


class RoyaltyCalculationResult(BaseModel):
    contract_id: str
    title_id: str
    author_id: Optional[str] = None
    mode: CalculationMode
    tier_calculation_mode: TierCalculationMode
    as_of_date: Optional[date] = None
    period_start: Optional[date] = None
    period_end: Optional[date] = None
    format_calculations: List[FormatCalculation] = Field(default_factory=list)
    returns_deduction: Decimal = Decimal("0")
    gross_royalty: Decimal = Decimal("0")
    advance: AdvanceRecoupment
    net_payable: Decimal = Decimal("0")
    split: Optional[SplitResult] = None

    @computed_field  # type: ignore[misc]
    @property
    def is_split_calculation(self) -> bool:
        return self.split is not None


class CalculationOutcome(BaseModel):
    """
    Typed result of calculate(): either a calculation or an error, never both.

    error_type is one of "input_validation", "contract_configuration",
    "inactive_contract".
    """
    success: bool
    contract_id: Optional[str] = None
    calculation: Optional[RoyaltyCalculationResult] = None
    error: Optional[str] = None
    error_type: Optional[str] = None


class CalculationRequest(BaseModel):
    """Everything one calculation needs, as sent to the API or a batch job."""
    contract: RoyaltyContract
    sales: List[SaleRecord] = Field(default_factory=list)
    returns: List[ReturnRecord] = Field(default_factory=list)
    ownership: Optional[OwnershipContext] = None
    as_of_date: Optional[date] = None
    period_start: Optional[date] = None
    period_end: Optional[date] = None
    lifetime_before: Dict[ContractFormat, LifetimeTotals] = Field(default_factory=dict)
    mode: CalculationMode = CalculationMode.DRY_RUN

    @computed_field  # type: ignore[misc]
    @property
    def record_count(self) -> int:
        return len(self.sales) + len(self.returns)


class TierCrossoverProjection(BaseModel):
    format: ContractFormat
    current_quantity: int
    current_tier_rate: Optional[Decimal] = None
    next_tier_threshold: Optional[int] = None
    units_to_next_tier: Optional[int] = None
    months_to_next_tier: Optional[int] = None


class AnnualRoyaltyProjection(BaseModel):
    format: ContractFormat
    projected_annual_units: int
    projected_annual_revenue: Decimal
    current_rate: Optional[Decimal] = None
    royalty_at_current_rate: Decimal
    royalty_with_escalation: Decimal

    @computed_field  # type: ignore[misc]
    @property
    def escalation_benefit(self) -> Decimal:
        return self.royalty_with_escalation - self.royalty_at_current_rate


class OwnershipSumRequest(BaseModel):
    # Strings so malformed input reaches the parser instead of pydantic
    percentages: List[str]


class OwnershipSumResponse(BaseModel):
    valid: bool
    total: Decimal


class EqualSplitResponse(BaseModel):
    author_count: int
    percentages: List[Decimal]


class AdvancePaymentRequest(BaseModel):
    advance_amount: Decimal = Field(ge=0)
    current_paid: Decimal = Field(ge=0)
    payment: Optional[Decimal] = None


class AdvancePaymentResponse(BaseModel):
    max_additional_payment: Decimal
    new_advance_paid: Optional[Decimal] = None
