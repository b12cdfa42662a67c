"""
Reward Source Normalizers - numeric and identity encodings.

Amounts arrive as ``0x`` hex strings, decimal strings, native numbers or
not at all. Participant identifiers arrive as native integers or numeric
strings in either radix. Both are normalized here before any aggregation.
"""

import re
from decimal import Context, Decimal
from typing import Any, Union

from reward_sources.exceptions import (
    IdentityOutOfRangeError,
    InvalidIdentityError,
    NotANumberError,
)


# 256-bit amounts summed over a few hundred edges stay well inside this.
AMOUNT_CONTEXT = Context(prec=100)

ZERO = Decimal(0)

IDENTITY_BITS = 256
IDENTITY_HEX_DIGITS = IDENTITY_BITS // 4

_HEX_RE = re.compile(r"^0x[0-9a-fA-F]+$")
_DECIMAL_RE = re.compile(r"^[0-9]+(\.[0-9]+)?$")
_INTEGER_RE = re.compile(r"^[0-9]+$")

RawAmount = Union[str, int, float, Decimal, None]
RawIdentity = Union[str, int]


# ─────────────────────────────────────────────────────────────
# Numeric Normalizer
# ─────────────────────────────────────────────────────────────

def parse_amount(value: RawAmount) -> Decimal:
    """
    Normalize a reward amount to a non-negative Decimal.

    Accepted shapes:
        "0x1f"      -> base-16 integer
        "31", "3.5" -> base-10 integral or fractional
        31, 3.5     -> native number
        None        -> zero

    Raises:
        NotANumberError: for any other shape or an unparsable string
    """
    if value is None:
        return ZERO

    # bool is an int subclass but never a valid amount
    if isinstance(value, bool):
        raise NotANumberError(f"Boolean is not an amount: {value!r}", raw_value=value)

    if isinstance(value, str):
        text = value.strip()
        if text.startswith("0x"):
            if not _HEX_RE.match(text):
                raise NotANumberError(f"Invalid hex amount: {value!r}", raw_value=value)
            return Decimal(int(text, 16))
        if not _DECIMAL_RE.match(text):
            raise NotANumberError(f"Invalid decimal amount: {value!r}", raw_value=value)
        return Decimal(text)

    if isinstance(value, int):
        amount = Decimal(value)
    elif isinstance(value, float):
        amount = Decimal(repr(value))
    elif isinstance(value, Decimal):
        amount = value
    else:
        raise NotANumberError(
            f"Unsupported amount type {type(value).__name__}",
            raw_value=value,
        )

    if not amount.is_finite():
        raise NotANumberError(f"Non-finite amount: {value!r}", raw_value=value)
    if amount < 0:
        raise NotANumberError(f"Negative amount: {value!r}", raw_value=value)
    return amount


def add_amounts(left: Decimal, right: Decimal) -> Decimal:
    """Exact addition under the amount context."""
    return AMOUNT_CONTEXT.add(left, right)


def subtract_amounts(left: Decimal, right: Decimal) -> Decimal:
    """Exact subtraction under the amount context."""
    return AMOUNT_CONTEXT.subtract(left, right)


def is_integral(amount: Decimal) -> bool:
    return amount == amount.to_integral_value()


def format_amount(amount: Decimal) -> str:
    """Render an amount for export: plain notation, no trailing zeros."""
    if is_integral(amount):
        return str(int(amount))
    return format(amount.normalize(AMOUNT_CONTEXT), "f")


def parse_exported_amount(text: str) -> Decimal:
    """Inverse of format_amount, for values read back from an export."""
    stripped = text.strip()
    negative = stripped.startswith("-")
    amount = parse_amount(stripped[1:] if negative else stripped)
    return amount.copy_negate() if negative else amount


# ─────────────────────────────────────────────────────────────
# Identity Canonicalizer
# ─────────────────────────────────────────────────────────────

def parse_identity(raw: Any) -> int:
    """
    Convert a raw participant identifier to its integer value.

    Accepts native integers, decimal digit strings and ``0x`` hex strings
    of any width or case.

    Raises:
        InvalidIdentityError: if the value is not a non-negative integer
    """
    if isinstance(raw, bool):
        raise InvalidIdentityError(f"Boolean is not an identity: {raw!r}", raw_identity=raw)

    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, str):
        text = raw.strip()
        if text[:2].lower() == "0x":
            if not _HEX_RE.match("0x" + text[2:]):
                raise InvalidIdentityError(f"Invalid hex identity: {raw!r}", raw_identity=raw)
            value = int(text[2:], 16)
        elif _INTEGER_RE.match(text):
            value = int(text, 10)
        else:
            raise InvalidIdentityError(f"Invalid identity: {raw!r}", raw_identity=raw)
    else:
        raise InvalidIdentityError(
            f"Unsupported identity type {type(raw).__name__}",
            raw_identity=raw,
        )

    if value < 0:
        raise InvalidIdentityError(f"Negative identity: {raw!r}", raw_identity=raw)
    return value


def canonicalize_identity(raw: RawIdentity) -> str:
    """
    Canonical form: ``0x`` followed by 64 lowercase, zero-padded hex digits.

    Raises:
        InvalidIdentityError: if the value cannot be parsed
        IdentityOutOfRangeError: if the value needs more than 256 bits
    """
    value = parse_identity(raw)
    if value.bit_length() > IDENTITY_BITS:
        raise IdentityOutOfRangeError(
            f"Identity exceeds {IDENTITY_BITS} bits",
            raw_identity=raw,
            bit_length=value.bit_length(),
        )
    return f"0x{value:0{IDENTITY_HEX_DIGITS}x}"
