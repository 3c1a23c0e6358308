"""
Unit tests for the decimal helpers every royalty figure goes through.
"""

import pytest
from decimal import Decimal, getcontext

from royalty_engine.errors import InputValidationError, ParseError
from royalty_engine.services.money import (
    ENGINE_PRECISION,
    allocate_pro_rata,
    engine_context,
    quantize_currency,
    to_decimal,
    to_units,
    truncate,
)


class TestToDecimal:
    """Test exact decimal parsing."""

    def test_string(self):
        assert to_decimal("33.33") == Decimal("33.33")

    def test_string_with_whitespace(self):
        assert to_decimal(" 40.00 ") == Decimal("40.00")

    def test_int(self):
        assert to_decimal(5) == Decimal("5")

    def test_decimal_passthrough(self):
        value = Decimal("12.345")
        assert to_decimal(value) is value

    def test_float_rejected(self):
        with pytest.raises(ParseError):
            to_decimal(0.1)

    def test_bool_rejected(self):
        with pytest.raises(ParseError):
            to_decimal(True)

    def test_garbage_string(self):
        with pytest.raises(ParseError):
            to_decimal("abc")

    def test_nan_rejected(self):
        with pytest.raises(ParseError):
            to_decimal("NaN")

    def test_infinity_rejected(self):
        with pytest.raises(ParseError):
            to_decimal("Infinity")

    def test_unsupported_type(self):
        with pytest.raises(ParseError):
            to_decimal(["1"])

    def test_parse_error_is_input_validation_error(self):
        """Callers that only care about bad input can catch the parent class."""
        with pytest.raises(InputValidationError):
            to_decimal("12,5")


class TestRounding:
    """Test currency rounding and truncation."""

    def test_half_up(self):
        assert quantize_currency(Decimal("1.005")) == Decimal("1.01")

    def test_half_up_second_case(self):
        assert quantize_currency(Decimal("2.345")) == Decimal("2.35")

    def test_rounds_down_below_half(self):
        assert quantize_currency(Decimal("2.344")) == Decimal("2.34")

    def test_truncate_never_rounds_up(self):
        assert truncate(Decimal("33.339")) == Decimal("33.33")

    def test_truncate_places(self):
        assert truncate(Decimal("1.2399"), 3) == Decimal("1.239")


class TestAllocateProRata:
    """Test splitting a total across weights with the remainder on the last share."""

    def test_three_equal_weights(self):
        shares = allocate_pro_rata(Decimal("100"), [1, 1, 1])
        assert shares == [Decimal("33.33"), Decimal("33.33"), Decimal("33.34")]
        assert sum(shares) == Decimal("100.00")

    def test_uneven_weights(self):
        shares = allocate_pro_rata(Decimal("10.00"), [Decimal("499"), Decimal("1")])
        assert shares == [Decimal("9.98"), Decimal("0.02")]

    def test_sum_matches_rounded_total(self):
        total = Decimal("1234.567")
        shares = allocate_pro_rata(total, [Decimal("7"), Decimal("11"), Decimal("13")])
        assert sum(shares) == quantize_currency(total)

    def test_negative_total(self):
        shares = allocate_pro_rata(Decimal("-100"), [1, 1, 1])
        assert shares == [Decimal("-33.33"), Decimal("-33.33"), Decimal("-33.34")]

    def test_no_weights(self):
        assert allocate_pro_rata(Decimal("10"), []) == []

    def test_zero_weights(self):
        with pytest.raises(InputValidationError):
            allocate_pro_rata(Decimal("10"), [0, 0])

class TestToUnits:
    """Test whole-unit quantity checks."""

    def test_int(self):
        assert to_units(42, "quantity") == 42

    def test_integral_decimal(self):
        assert to_units(Decimal("500.0"), "quantity") == 500

    def test_fractional_decimal_rejected(self):
        with pytest.raises(InputValidationError, match="quantity must be a whole number"):
            to_units(Decimal("499.7"), "quantity")

    def test_bool_rejected(self):
        with pytest.raises(InputValidationError):
            to_units(True, "quantity")

    def test_float_rejected(self):
        with pytest.raises(InputValidationError):
            to_units(1.0, "quantity")



class TestEngineContext:
    """Test the per-calculation decimal context."""

    def test_precision_inside_context(self):
        with engine_context():
            assert getcontext().prec == ENGINE_PRECISION

    def test_context_restored(self):
        before = getcontext().prec
        with engine_context():
            pass
        assert getcontext().prec == before
