"""
Reward Source Normalizer Tests.

Tests cover:
- Amount parsing for hex, decimal, native and absent values
- Explicit NotANumber failures instead of NaN
- Identity parsing and canonicalization across encodings
- Out-of-range identities
"""

import pytest
from decimal import Decimal

from reward_sources.exceptions import (
    IdentityOutOfRangeError,
    InvalidIdentityError,
    NotANumberError,
)
from reward_sources.normalizers import (
    add_amounts,
    canonicalize_identity,
    format_amount,
    parse_amount,
    parse_exported_amount,
    parse_identity,
)


# ============================================================
# AMOUNT PARSING
# ============================================================

class TestParseAmount:
    """Tests for parse_amount."""

    def test_hex_string(self):
        """Hex strings are read as base-16 integers."""
        assert parse_amount("0x1f") == Decimal(31)

    def test_hex_and_decimal_agree(self):
        """Both encodings of one quantity normalize identically."""
        assert parse_amount("0x64") == parse_amount("100")

    def test_decimal_fraction(self):
        """Decimal strings may carry a fractional part."""
        assert parse_amount("2.5") == Decimal("2.5")

    def test_native_numbers(self):
        """Native ints and floats are accepted."""
        assert parse_amount(7) == Decimal(7)
        assert parse_amount(1.25) == Decimal("1.25")

    def test_absent_is_zero(self):
        """A missing amount normalizes to zero."""
        assert parse_amount(None) == Decimal(0)

    def test_large_hex_is_exact(self):
        """256-bit amounts survive without rounding."""
        value = 2 ** 255 + 1
        assert parse_amount(hex(value)) == Decimal(value)

    @pytest.mark.parametrize("raw", ["abc", "0xzz", "0x", "", "1e5", "-3", "1,000"])
    def test_malformed_strings_raise(self, raw):
        """Unparsable strings raise NotANumberError."""
        with pytest.raises(NotANumberError):
            parse_amount(raw)

    @pytest.mark.parametrize("raw", [float("nan"), float("inf"), -1, True, [1], {"a": 1}])
    def test_invalid_native_values_raise(self, raw):
        """NaN, infinities, negatives, bools and containers are rejected."""
        with pytest.raises(NotANumberError):
            parse_amount(raw)

    def test_error_keeps_raw_value(self):
        """The failure records the offending value."""
        with pytest.raises(NotANumberError) as exc_info:
            parse_amount("oops")
        assert exc_info.value.raw_value == "oops"


class TestAmountArithmetic:
    """Tests for exact arithmetic and formatting."""

    def test_addition_is_exact_for_large_values(self):
        """Sums of 256-bit amounts are not rounded."""
        big = Decimal(2 ** 256 - 1)
        assert add_amounts(big, Decimal(1)) == Decimal(2 ** 256)

    def test_format_integral(self):
        """Integral amounts render without exponent or fraction."""
        assert format_amount(Decimal("100.0")) == "100"
        assert format_amount(Decimal(2 ** 200)) == str(2 ** 200)

    def test_format_fraction(self):
        """Fractional amounts render in plain notation."""
        assert format_amount(Decimal("2.50")) == "2.5"

    def test_format_negative(self):
        """Negative deltas keep their sign."""
        assert format_amount(Decimal(-100)) == "-100"

    def test_parse_exported_amount_negative(self):
        """Exported negative values read back."""
        assert parse_exported_amount("-42") == Decimal(-42)
        assert parse_exported_amount(" 7 ") == Decimal(7)


# ============================================================
# IDENTITY CANONICALIZATION
# ============================================================

class TestIdentity:
    """Tests for parse_identity and canonicalize_identity."""

    def test_canonical_width(self):
        """Canonical form is 0x plus 64 lowercase hex digits."""
        canonical = canonicalize_identity(1)
        assert canonical == "0x" + "0" * 63 + "1"
        assert len(canonical) == 66

    def test_all_encodings_agree(self):
        """Decimal, hex and native forms of one integer canonicalize identically."""
        value = 0xABCDEF
        forms = [value, str(value), hex(value), "0xABCDEF", "0x0000abcdef"]
        assert len({canonicalize_identity(f) for f in forms}) == 1

    def test_canonicalization_is_idempotent(self):
        """Canonicalizing a canonical string is a no-op."""
        canonical = canonicalize_identity("123456789")
        assert canonicalize_identity(canonical) == canonical

    def test_lowercase_output(self):
        """Hex digits are emitted lowercase."""
        assert canonicalize_identity("0xFF").endswith("ff")

    def test_max_width_accepted(self):
        """A full 256-bit value still fits."""
        assert canonicalize_identity(2 ** 256 - 1) == "0x" + "f" * 64

    def test_out_of_range(self):
        """Values wider than 256 bits raise IdentityOutOfRangeError."""
        with pytest.raises(IdentityOutOfRangeError) as exc_info:
            canonicalize_identity(2 ** 256)
        assert exc_info.value.bit_length == 257

    @pytest.mark.parametrize("raw", ["", "0xg1", "player", -5, None, 1.5, True])
    def test_invalid_identity(self, raw):
        """Non-integer identities raise InvalidIdentityError."""
        with pytest.raises(InvalidIdentityError):
            parse_identity(raw)

    def test_out_of_range_is_invalid_identity(self):
        """Out-of-range is a kind of invalid identity."""
        assert issubclass(IdentityOutOfRangeError, InvalidIdentityError)
