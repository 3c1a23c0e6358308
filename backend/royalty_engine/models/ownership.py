"""
Pydantic models for title-author ownership rows.
"""

from decimal import Decimal
from typing import List

from pydantic import BaseModel, Field, field_validator


class OwnershipRow(BaseModel):
    """One (title, author) row with the author's ownership percentage."""
    author_id: str
    ownership_percentage: Decimal = Field(ge=1, le=100)
    is_primary: bool = False

    class Config:
        from_attributes = True
        frozen = True

    @field_validator("ownership_percentage")
    @classmethod
    def at_most_two_places(cls, v: Decimal) -> Decimal:
        """Ownership is stored as DECIMAL(5,2); anything finer is a typo."""
        if v.as_tuple().exponent < -2 and v != v.quantize(Decimal("0.01")):
            raise ValueError("Ownership percentage can have at most 2 decimal places")
        return v


class OwnershipContext(BaseModel):
    """
    Who is asking, and how the title is owned.

    `rows` must describe the whole title; the calculation turns them into a
    checked TitleOwnership before using any percentage.
    """
    author_id: str
    rows: List[OwnershipRow]
