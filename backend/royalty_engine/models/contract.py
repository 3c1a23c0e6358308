"""
Pydantic models for royalty contracts and their rate tiers.
"""

from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class ContractStatus(str, Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"
    TERMINATED = "terminated"


class ContractFormat(str, Enum):
    PHYSICAL = "physical"
    EBOOK = "ebook"
    AUDIOBOOK = "audiobook"


class TierCalculationMode(str, Enum):
    """Which cumulative quantity decides the applicable tier."""
    PERIOD = "period"      # tiers reset every statement period
    LIFETIME = "lifetime"  # tiers follow units sold since the contract started


class RoyaltyTier(BaseModel):
    """
    Single tier row as stored with the contract.

    max_quantity = None marks the open-ended top tier. Rows are turned into a
    checked TierSchedule before any calculation uses them.
    """
    id: Optional[str] = None
    format: ContractFormat
    min_quantity: int = Field(ge=0)
    max_quantity: Optional[int] = Field(default=None, ge=0)
    rate: Decimal = Field(ge=0, le=1)  # fraction, e.g. 0.10 for 10%

    class Config:
        from_attributes = True
        frozen = True

    @model_validator(mode="after")
    def check_bounds(self) -> "RoyaltyTier":
        if self.max_quantity is not None and self.max_quantity < self.min_quantity:
            raise ValueError(
                f"max_quantity {self.max_quantity} is below min_quantity {self.min_quantity}"
            )
        return self


class RoyaltyContract(BaseModel):
    """
    Immutable contract snapshot handed to the engine.

    The advance fields form a tiny ledger: advance_amount is what was agreed,
    advance_paid what has actually been paid out, advance_recouped how much of
    it earned royalties have already paid back. The engine only reads them;
    the statement commit step produces the new recouped total.
    """
    id: str
    title_id: str
    author_id: Optional[str] = None
    status: ContractStatus = ContractStatus.ACTIVE
    advance_amount: Decimal = Field(default=Decimal("0"), ge=0)
    advance_paid: Decimal = Field(default=Decimal("0"), ge=0)
    advance_recouped: Decimal = Field(default=Decimal("0"), ge=0)
    tier_calculation_mode: TierCalculationMode = TierCalculationMode.PERIOD
    tiers: List[RoyaltyTier] = Field(default_factory=list)

    class Config:
        from_attributes = True
        frozen = True

    @field_validator("advance_amount", "advance_paid", "advance_recouped", mode="before")
    @classmethod
    def coerce_null_money(cls, v):
        """DB rows store unset advance columns as NULL; treat them as zero."""
        if v is None:
            return Decimal("0")
        return v
