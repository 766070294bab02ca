"""Financial value objects - immutable, self-validating primitives"""

import math
import re
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

from credit_offers.domain.exceptions import ValidationError

Number = Union[int, float, Decimal]

RATE_EPSILON = 0.000001

# Identifiers accepted without checksum when a CPF is built with sandbox=True
SANDBOX_CPFS = frozenset({"11111111111", "12312312312", "22222222222"})


def round_half_up(value: Number) -> int:
    """Round to the nearest integer, halves away from zero (0.5 -> 1)"""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def _finite_decimal(value: Number, name: str) -> Decimal:
    try:
        result = Decimal(str(value))
    except ArithmeticError as e:
        raise ValidationError(f"{name} must be a number, got {value!r}") from e
    if not result.is_finite():
        raise ValidationError(f"{name} must be a finite number, got {value!r}")
    return result


def _format_brl_number(value: Decimal, places: int) -> str:
    # 1234.5 -> "1.234,50"
    text = f"{value:,.{places}f}"
    return text.replace(",", "_").replace(".", ",").replace("_", ".")


@dataclass(frozen=True, order=True)
class Money:
    """
    Non-negative amount stored as integer cents.

    All arithmetic stays in cents so repeated operations never drift.
    Build from cents with Money(12345) / Money.from_cents(12345), or from a
    decimal amount in reais with Money.from_value("123.45").
    """

    amount_cents: int

    def __post_init__(self) -> None:
        if isinstance(self.amount_cents, bool) or not isinstance(self.amount_cents, int):
            raise ValidationError(f"Money must be built from integer cents, got {self.amount_cents!r}")
        if self.amount_cents < 0:
            raise ValidationError("Money amount cannot be negative")

    @classmethod
    def from_cents(cls, cents: int) -> "Money":
        return cls(cents)

    @classmethod
    def from_value(cls, value: Union[Number, str]) -> "Money":
        """Build from an amount in reais, rounded half-up to the nearest cent"""
        try:
            amount = Decimal(str(value))
        except ArithmeticError as e:
            raise ValidationError(f"Invalid monetary value: {value!r}") from e
        if not amount.is_finite():
            raise ValidationError(f"Invalid monetary value: {value!r}")
        if amount < 0:
            raise ValidationError("Money amount cannot be negative")
        return cls(round_half_up(amount * 100))

    @classmethod
    def zero(cls) -> "Money":
        return cls(0)

    @property
    def value(self) -> Decimal:
        """Amount in reais"""
        return Decimal(self.amount_cents) / 100

    @property
    def formatted(self) -> str:
        return f"R$ {_format_brl_number(self.value, 2)}"

    def add(self, other: "Money") -> "Money":
        return Money(self.amount_cents + other.amount_cents)

    def subtract(self, other: "Money") -> "Money":
        result = self.amount_cents - other.amount_cents
        if result < 0:
            raise ValidationError("Subtraction result cannot be negative")
        return Money(result)

    def multiply(self, multiplier: Number) -> "Money":
        factor = _finite_decimal(multiplier, "Multiplier")
        if factor < 0:
            raise ValidationError("Multiplier cannot be negative")
        return Money(round_half_up(Decimal(self.amount_cents) * factor))

    def divide(self, divisor: Number) -> "Money":
        quotient = _finite_decimal(divisor, "Divisor")
        if quotient <= 0:
            raise ValidationError("Divisor must be greater than zero")
        return Money(round_half_up(Decimal(self.amount_cents) / quotient))

    def is_greater_than(self, other: "Money") -> bool:
        return self.amount_cents > other.amount_cents

    def is_less_than(self, other: "Money") -> bool:
        return self.amount_cents < other.amount_cents

    def equals(self, other: "Money") -> bool:
        return self.amount_cents == other.amount_cents

    def is_zero(self) -> bool:
        return self.amount_cents == 0

    def __str__(self) -> str:
        return self.formatted


@dataclass(frozen=True, eq=False)
class InterestRate:
    """
    Non-negative monthly interest rate as a fraction (0.02 == 2% a.m.).

    Rates arrive as floats from external institutions, so equality is
    tolerance-based (RATE_EPSILON) and instances are not hashable.
    """

    monthly_rate: float

    __hash__ = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        if isinstance(self.monthly_rate, bool) or not isinstance(self.monthly_rate, (int, float, Decimal)):
            raise ValidationError(f"Interest rate must be numeric, got {self.monthly_rate!r}")
        rate = float(self.monthly_rate)
        if rate != rate or rate in (float("inf"), float("-inf")):
            raise ValidationError("Interest rate must be a finite number")
        if rate < 0:
            raise ValidationError("Interest rate cannot be negative")
        object.__setattr__(self, "monthly_rate", rate)

    @classmethod
    def from_annual(cls, annual_rate: float) -> "InterestRate":
        if annual_rate < 0:
            raise ValidationError("Annual interest rate cannot be negative")
        return cls((1 + annual_rate) ** (1 / 12) - 1)

    @classmethod
    def from_percentage(cls, percentage: float) -> "InterestRate":
        return cls(percentage / 100)

    @property
    def annual_rate(self) -> float:
        return (1 + self.monthly_rate) ** 12 - 1

    @property
    def formatted_monthly(self) -> str:
        return f"{_format_brl_number(Decimal(str(self.monthly_rate * 100)), 4)}% a.m."

    @property
    def formatted_annual(self) -> str:
        return f"{_format_brl_number(Decimal(str(self.annual_rate * 100)), 2)}% a.a."

    def compound(self, periods: int) -> float:
        """(1 + r) ** periods"""
        if periods < 0:
            raise ValidationError("Number of periods cannot be negative")
        try:
            return (1 + self.monthly_rate) ** periods
        except OverflowError as e:
            raise ValidationError(f"Compounding over {periods} periods overflows") from e

    def annuity_factor(self, periods: int) -> float:
        """1 - (1 + r) ** -periods, computed without overflow for long terms"""
        if periods < 0:
            raise ValidationError("Number of periods cannot be negative")
        return -math.expm1(-periods * math.log1p(self.monthly_rate))

    def is_zero(self) -> bool:
        return self.monthly_rate == 0

    def equals(self, other: "InterestRate") -> bool:
        return abs(self.monthly_rate - other.monthly_rate) < RATE_EPSILON

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, InterestRate):
            return NotImplemented
        return self.equals(other)

    def is_greater_than(self, other: "InterestRate") -> bool:
        return self.monthly_rate > other.monthly_rate

    def is_less_than(self, other: "InterestRate") -> bool:
        return self.monthly_rate < other.monthly_rate


@dataclass(frozen=True, order=True)
class InstallmentCount:
    """Number of monthly installments, always >= 1"""

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValidationError(f"Installment count must be an integer, got {self.value!r}")
        if self.value < 1:
            raise ValidationError("Installment count must be greater than zero")

    @property
    def formatted(self) -> str:
        return f"{self.value}x"

    @property
    def years(self) -> int:
        return self.value // 12

    @property
    def period_description(self) -> str:
        if self.value == 1:
            return "À vista"
        if self.value < 12:
            return f"{self.value} meses"

        years = self.years
        remaining_months = self.value % 12
        description = f"{years} {'ano' if years == 1 else 'anos'}"
        if remaining_months > 0:
            description += f" e {remaining_months} {'mês' if remaining_months == 1 else 'meses'}"
        return description

    def is_short_term(self) -> bool:
        return self.value <= 12

    def is_medium_term(self) -> bool:
        return 12 < self.value <= 36

    def is_long_term(self) -> bool:
        return self.value > 36

    def equals(self, other: "InstallmentCount") -> bool:
        return self.value == other.value

    def is_greater_than(self, other: "InstallmentCount") -> bool:
        return self.value > other.value

    def is_less_than(self, other: "InstallmentCount") -> bool:
        return self.value < other.value


def _cpf_checksum_ok(digits: str) -> bool:
    # Two mod-11 check digits over the first 9 and 10 digits
    for position in (9, 10):
        total = sum(int(digits[i]) * (position + 1 - i) for i in range(position))
        check = ((10 * total) % 11) % 10
        if int(digits[position]) != check:
            return False
    return True


@dataclass(frozen=True)
class CPF:
    """
    Brazilian taxpayer identifier (11 digits, two mod-11 check digits).

    Punctuation is stripped before validation. The sandbox allowlist is only
    honoured when sandbox=True is passed explicitly.
    """

    value: str
    sandbox: bool = field(default=False, compare=False, repr=False)

    def __post_init__(self) -> None:
        cleaned = re.sub(r"\D", "", str(self.value))

        if len(cleaned) != 11:
            raise ValidationError("CPF must have 11 digits")

        if not (self.sandbox and cleaned in SANDBOX_CPFS):
            if re.fullmatch(r"(\d)\1{10}", cleaned):
                raise ValidationError("CPF cannot have all digits equal")
            if not _cpf_checksum_ok(cleaned):
                raise ValidationError("Invalid CPF")

        object.__setattr__(self, "value", cleaned)

    @property
    def formatted(self) -> str:
        v = self.value
        return f"{v[:3]}.{v[3:6]}.{v[6:9]}-{v[9:]}"

    def masked(self) -> str:
        return f"{self.value[:3]}.***.***-{self.value[-2:]}"

    def equals(self, other: "CPF") -> bool:
        return self.value == other.value

    def __str__(self) -> str:
        return self.value
