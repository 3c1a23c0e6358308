"""
Pydantic models for sale and return records and their per-format aggregates.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, computed_field

from royalty_engine.models.contract import ContractFormat


class ReturnStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class SaleRecord(BaseModel):
    """One append-only sale line."""
    id: Optional[str] = None
    format: ContractFormat
    quantity: int = Field(gt=0)
    unit_price: Decimal = Field(ge=0)
    transaction_date: date
    channel: Optional[str] = None

    class Config:
        from_attributes = True
        frozen = True

    @computed_field  # type: ignore[misc]
    @property
    def amount(self) -> Decimal:
        """Revenue of the line: quantity * unit_price, unrounded."""
        return self.unit_price * self.quantity


class ReturnRecord(BaseModel):
    """
    One return line. Returns are their own records and never edit a sale.
    Only approved returns reduce royalties.
    """
    id: Optional[str] = None
    format: ContractFormat
    quantity: int = Field(gt=0)
    unit_price: Decimal = Field(ge=0)
    transaction_date: date
    status: ReturnStatus = ReturnStatus.APPROVED
    reason: Optional[str] = None

    class Config:
        from_attributes = True
        frozen = True

    @computed_field  # type: ignore[misc]
    @property
    def amount(self) -> Decimal:
        return self.unit_price * self.quantity


class NettedTotals(BaseModel):
    """Sales minus approved returns for one format. Net values may go negative."""
    format: ContractFormat
    gross_quantity: int = 0
    gross_revenue: Decimal = Decimal("0")
    returns_quantity: int = 0
    returns_revenue: Decimal = Decimal("0")

    @computed_field  # type: ignore[misc]
    @property
    def net_quantity(self) -> int:
        return self.gross_quantity - self.returns_quantity

    @computed_field  # type: ignore[misc]
    @property
    def net_revenue(self) -> Decimal:
        return self.gross_revenue - self.returns_revenue


class LifetimeTotals(BaseModel):
    """Units and revenue for one format sold before the statement period."""
    quantity: int = Field(default=0, ge=0)
    revenue: Decimal = Field(default=Decimal("0"), ge=0)
