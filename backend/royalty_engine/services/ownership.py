"""
Ownership split helpers for titles with one or more authors.

A TitleOwnership can only be obtained from build_ownership(), which checks
that the percentages sum to exactly 100 and that exactly one author is
primary. Code that receives a TitleOwnership never has to re-check that.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Sequence, Tuple

from royalty_engine.errors import ContractConfigurationError, InputValidationError
from royalty_engine.models.ownership import OwnershipRow
from royalty_engine.services.money import (
    HUNDRED,
    ZERO,
    DecimalLike,
    allocate_pro_rata,
    quantize_currency,
    to_decimal,
    truncate,
)

_BUILD_TOKEN = object()


@dataclass(frozen=True)
class OwnershipCheck:
    """Result of validate_ownership_sum()."""
    valid: bool
    total: Decimal


@dataclass(frozen=True)
class TitleAuthorOwnership:
    author_id: str
    ownership_percentage: Decimal
    is_primary: bool


@dataclass(frozen=True)
class TitleOwnership:
    """Checked ownership set for one title. Build it with build_ownership()."""
    authors: Tuple[TitleAuthorOwnership, ...]
    _token: object = field(default=None, repr=False, compare=False)

    def __post_init__(self):
        if self._token is not _BUILD_TOKEN:
            raise TypeError("TitleOwnership must be created with build_ownership()")

    @property
    def primary(self) -> TitleAuthorOwnership:
        return next(a for a in self.authors if a.is_primary)

    @property
    def is_multi_author(self) -> bool:
        return len(self.authors) > 1

    def percentage_for(self, author_id: str) -> Decimal:
        for author in self.authors:
            if author.author_id == author_id:
                return author.ownership_percentage
        raise InputValidationError(f"Author {author_id} has no ownership share in this title")


def validate_ownership_sum(percentages: Sequence[DecimalLike]) -> OwnershipCheck:
    """
    Check that ownership percentages add up to exactly 100.

    Only the sum is checked; the 1-100 range of each row is the caller's
    input validation. Malformed strings raise ParseError.

    The total keeps the scale of its inputs, so ["60.00", "60.00"] totals
    Decimal("120.00") and serializes as "120.00". Compare numerically.

    Example:
        validate_ownership_sum(["60.00", "40.00"]).valid  -> True
        validate_ownership_sum(["60.00", "60.00"]).total  -> Decimal("120.00")
    """
    total = sum((to_decimal(p) for p in percentages), ZERO)
    return OwnershipCheck(valid=total == HUNDRED, total=total)


def equal_split(author_count: int) -> List[Decimal]:
    """
    Split 100% evenly between `author_count` authors.

    Each share is truncated to 2 decimal places and the last author gets the
    leftover, so the result always sums to exactly 100.00:
        3 -> [33.33, 33.33, 33.34]
    """
    if author_count <= 0:
        return []
    if author_count == 1:
        return [Decimal("100.00")]

    base = truncate(HUNDRED / author_count, 2)
    shares = [base] * author_count
    remainder = HUNDRED - base * author_count
    shares[-1] = base + remainder
    return [share.quantize(Decimal("0.01")) for share in shares]


def build_ownership(rows: Sequence[OwnershipRow]) -> TitleOwnership:
    """
    Turn raw ownership rows into a checked TitleOwnership.

    Raises:
        ContractConfigurationError: no rows, duplicate authors, anything
            other than exactly one primary, or a sum that isn't exactly 100.
    """
    if not rows:
        raise ContractConfigurationError("At least one author is required")

    author_ids = [row.author_id for row in rows]
    if len(set(author_ids)) != len(author_ids):
        raise ContractConfigurationError("Duplicate authors are not allowed")

    check = validate_ownership_sum([row.ownership_percentage for row in rows])
    if not check.valid:
        raise ContractConfigurationError(
            f"Ownership must sum to 100%, got {check.total}%"
        )

    primary_count = sum(1 for row in rows if row.is_primary)
    if len(rows) == 1:
        # A single author is the primary author whether flagged or not
        primary_count = 1
    if primary_count != 1:
        raise ContractConfigurationError(
            f"Exactly one author must be primary, found {primary_count}"
        )

    authors = tuple(
        TitleAuthorOwnership(
            author_id=row.author_id,
            ownership_percentage=row.ownership_percentage,
            is_primary=row.is_primary or len(rows) == 1,
        )
        for row in rows
    )
    return TitleOwnership(authors=authors, _token=_BUILD_TOKEN)


def split_royalty_by_ownership(
    total: Decimal,
    ownership: TitleOwnership,
) -> Dict[str, Decimal]:
    """
    Divide a title-level amount between its authors.

    Shares are rounded to cents with the last author absorbing the rounding
    remainder, so the shares always add back up to the rounded total.
    A zero or negative total gives every author 0.00.
    """
    if total <= 0:
        return {a.author_id: quantize_currency(ZERO) for a in ownership.authors}

    shares = allocate_pro_rata(
        total, [a.ownership_percentage for a in ownership.authors]
    )
    return {a.author_id: share for a, share in zip(ownership.authors, shares)}
