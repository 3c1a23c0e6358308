"""
Unit tests for multi-author ownership: equal splits, sum validation,
building a checked ownership set and splitting royalties by percentage.
"""

import pytest
from decimal import Decimal

from pydantic import ValidationError

from royalty_engine.errors import (
    ContractConfigurationError,
    InputValidationError,
    ParseError,
)
from royalty_engine.models.ownership import OwnershipRow
from royalty_engine.services.ownership import (
    TitleOwnership,
    build_ownership,
    equal_split,
    split_royalty_by_ownership,
    validate_ownership_sum,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_row(author_id: str, percentage: str, is_primary: bool = False) -> OwnershipRow:
    return OwnershipRow(
        author_id=author_id,
        ownership_percentage=Decimal(percentage),
        is_primary=is_primary,
    )


def _three_authors():
    return build_ownership([
        _make_row("a-1", "33.33", is_primary=True),
        _make_row("a-2", "33.33"),
        _make_row("a-3", "33.34"),
    ])


class TestEqualSplit:
    """Test default percentages for N authors."""

    def test_two_authors(self):
        assert equal_split(2) == [Decimal("50.00"), Decimal("50.00")]

    def test_three_authors(self):
        assert equal_split(3) == [Decimal("33.33"), Decimal("33.33"), Decimal("33.34")]

    def test_seven_authors(self):
        shares = equal_split(7)
        assert shares[:6] == [Decimal("14.28")] * 6
        assert shares[6] == Decimal("14.32")

    def test_always_sums_to_100(self):
        for n in range(1, 13):
            assert sum(equal_split(n)) == Decimal("100.00")

    def test_single_author(self):
        assert equal_split(1) == [Decimal("100.00")]

    def test_zero_authors(self):
        assert equal_split(0) == []


class TestValidateOwnershipSum:
    """Test the exactly-100 check."""

    def test_valid_two_way(self):
        check = validate_ownership_sum(["60.00", "40.00"])
        assert check.valid is True
        assert check.total == Decimal("100.00")

    def test_over_100(self):
        check = validate_ownership_sum(["60.00", "60.00"])
        assert check.valid is False
        assert check.total == Decimal("120.00")

    def test_total_keeps_input_scale(self):
        """["60.00", "60.00"] totals 120 numerically but reads back as "120.00"."""
        check = validate_ownership_sum(["60.00", "60.00"])
        assert check.total == Decimal("120")
        assert str(check.total) == "120.00"

    def test_three_way_with_remainder(self):
        assert validate_ownership_sum(["33.33", "33.33", "33.34"]).valid is True

    def test_just_short_of_100(self):
        assert validate_ownership_sum(["33.33", "33.33", "33.33"]).valid is False

    def test_empty(self):
        check = validate_ownership_sum([])
        assert check.valid is False
        assert check.total == Decimal("0")

    def test_malformed_string(self):
        with pytest.raises(ParseError):
            validate_ownership_sum(["fifty", "50"])


class TestOwnershipRow:
    """Test row-level percentage validation."""

    def test_more_than_two_places_rejected(self):
        with pytest.raises(ValidationError):
            _make_row("a-1", "33.333")

    def test_trailing_zero_places_allowed(self):
        assert _make_row("a-1", "33.330").ownership_percentage == Decimal("33.33")

    def test_below_one_percent_rejected(self):
        with pytest.raises(ValidationError):
            _make_row("a-1", "0.5")

    def test_above_100_rejected(self):
        with pytest.raises(ValidationError):
            _make_row("a-1", "100.01")


class TestBuildOwnership:
    """Test building a checked TitleOwnership."""

    def test_valid_multi_author(self):
        ownership = _three_authors()
        assert ownership.is_multi_author is True
        assert ownership.primary.author_id == "a-1"
        assert ownership.percentage_for("a-3") == Decimal("33.34")

    def test_single_author_is_implicitly_primary(self):
        ownership = build_ownership([_make_row("a-1", "100")])
        assert ownership.is_multi_author is False
        assert ownership.primary.author_id == "a-1"

    def test_no_rows(self):
        with pytest.raises(ContractConfigurationError):
            build_ownership([])

    def test_duplicate_author(self):
        with pytest.raises(ContractConfigurationError, match="Duplicate"):
            build_ownership([
                _make_row("a-1", "50", is_primary=True),
                _make_row("a-1", "50"),
            ])

    def test_sum_not_100(self):
        with pytest.raises(ContractConfigurationError, match="sum to 100"):
            build_ownership([
                _make_row("a-1", "50", is_primary=True),
                _make_row("a-2", "40"),
            ])

    def test_two_primaries(self):
        with pytest.raises(ContractConfigurationError, match="primary"):
            build_ownership([
                _make_row("a-1", "50", is_primary=True),
                _make_row("a-2", "50", is_primary=True),
            ])

    def test_no_primary(self):
        with pytest.raises(ContractConfigurationError, match="primary"):
            build_ownership([
                _make_row("a-1", "50"),
                _make_row("a-2", "50"),
            ])

    def test_cannot_be_constructed_directly(self):
        with pytest.raises(TypeError):
            TitleOwnership(authors=())

    def test_unknown_author(self):
        with pytest.raises(InputValidationError):
            _three_authors().percentage_for("a-9")


class TestSplitRoyaltyByOwnership:
    """Test splitting a royalty total between co-authors."""

    def test_three_way_remainder_goes_last(self):
        shares = split_royalty_by_ownership(Decimal("100.00"), _three_authors())
        assert shares == {
            "a-1": Decimal("33.33"),
            "a-2": Decimal("33.33"),
            "a-3": Decimal("33.34"),
        }

    def test_shares_sum_to_total(self):
        ownership = build_ownership([
            _make_row("a-1", "60", is_primary=True),
            _make_row("a-2", "40"),
        ])
        shares = split_royalty_by_ownership(Decimal("1000.01"), ownership)
        assert shares["a-1"] == Decimal("600.01")
        assert shares["a-2"] == Decimal("400.00")
        assert sum(shares.values()) == Decimal("1000.01")

    def test_zero_total(self):
        shares = split_royalty_by_ownership(Decimal("0"), _three_authors())
        assert set(shares.values()) == {Decimal("0.00")}

    def test_negative_total_pays_nobody(self):
        shares = split_royalty_by_ownership(Decimal("-25.00"), _three_authors())
        assert all(share == Decimal("0.00") for share in shares.values())
