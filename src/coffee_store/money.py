"""Money value type held in integer minor units.

Every supported currency uses a minor-unit exponent of 2, so ``TWD 100.00``
is stored as ``10000``.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from functools import total_ordering
from typing import Any, Optional, Union


# ISO-4217 codes with two decimal places
CURRENCY_EXPONENTS = {
    "TWD": 2,
    "USD": 2,
    "EUR": 2,
    "GBP": 2,
    "CNY": 2,
    "HKD": 2,
    "SGD": 2,
    "AUD": 2,
    "CAD": 2,
    "CHF": 2,
}

DecimalLike = Union[Decimal, int, float, str]


class MoneyError(ValueError):
    """Base class for money construction and comparison errors."""


class InvalidCurrency(MoneyError):
    pass


class CurrencyMismatch(MoneyError):
    pass


class InvalidAmount(MoneyError):
    pass


def normalize_currency(code: Any) -> str:
    """Return the upper-case code, or raise InvalidCurrency if unsupported."""
    if not isinstance(code, str):
        raise InvalidCurrency(f"Currency code must be a string, got {type(code).__name__}")
    norm = code.strip().upper()
    if norm not in CURRENCY_EXPONENTS:
        raise InvalidCurrency(f"Unknown currency: {code!r}")
    return norm


def _to_decimal(amount: DecimalLike) -> Decimal:
    if isinstance(amount, bool):
        raise InvalidAmount("Boolean is not a monetary amount")
    if isinstance(amount, Decimal):
        value = amount
    elif isinstance(amount, int):
        value = Decimal(amount)
    elif isinstance(amount, (float, str)):
        # str() keeps the shortest repr, so 100.1 stays 100.1 instead of 100.09999...
        try:
            value = Decimal(str(amount).strip())
        except InvalidOperation as exc:
            raise InvalidAmount(f"Not a decimal amount: {amount!r}") from exc
    else:
        raise InvalidAmount(f"Unsupported amount type: {type(amount).__name__}")
    if not value.is_finite():
        raise InvalidAmount(f"Amount must be finite, got {amount!r}")
    return value


def _move_point(value: Decimal, places: int) -> Decimal:
    # value * 10**places, exact regardless of the decimal context precision
    sign, digits, exponent = value.as_tuple()
    return Decimal((sign, digits, exponent + places))


@total_ordering
@dataclass(frozen=True)
class Money:
    """Immutable amount + currency pair.

    Attributes
    ----------
    amount_minor_units: int
        Amount in the currency's smallest unit (cents for TWD/USD).
    currency: str
        Upper-case ISO-4217 code from ``CURRENCY_EXPONENTS``.

    Construct through ``Money.of`` (major units) or ``Money.of_minor``.
    Equality compares both fields; ordering across currencies raises
    ``CurrencyMismatch``.
    """

    amount_minor_units: int
    currency: str

    def __post_init__(self) -> None:
        if isinstance(self.amount_minor_units, bool) or not isinstance(self.amount_minor_units, int):
            raise InvalidAmount(
                f"Minor-unit amount must be an integer, got {self.amount_minor_units!r}"
            )
        object.__setattr__(self, "currency", normalize_currency(self.currency))

    # ---------- Factories ----------
    @classmethod
    def of(cls, amount: DecimalLike, currency: str, rounding: Optional[str] = None) -> "Money":
        """Build from a major-unit amount, eg ``Money.of("100.00", "TWD")``.

        Amounts with more decimal places than the currency allows raise
        ``InvalidAmount`` unless a ``decimal`` rounding mode is supplied
        (eg ``decimal.ROUND_HALF_EVEN``).
        """
        code = normalize_currency(currency)
        exponent = CURRENCY_EXPONENTS[code]
        value = _to_decimal(amount)
        minor = _move_point(value, exponent)
        if minor != minor.to_integral_value():
            if rounding is None:
                raise InvalidAmount(
                    f"Amount {value} has more than {exponent} decimal places for {code}"
                )
            minor = minor.to_integral_value(rounding=rounding)
        return cls(int(minor), code)

    @classmethod
    def of_minor(cls, amount: Union[int, Decimal], currency: str) -> "Money":
        """Build from minor units; exact, never rounds."""
        if isinstance(amount, Decimal):
            if not amount.is_finite() or amount != amount.to_integral_value():
                raise InvalidAmount(f"Minor-unit amount must be integral, got {amount}")
            amount = int(amount)
        return cls(amount, currency)

    @classmethod
    def zero(cls, currency: str) -> "Money":
        return cls(0, currency)

    # ---------- Accessors ----------
    def amount_minor(self) -> int:
        return self.amount_minor_units

    @property
    def exponent(self) -> int:
        return CURRENCY_EXPONENTS[self.currency]

    @property
    def amount(self) -> Decimal:
        """Major-unit amount with the currency's scale, eg Decimal('100.00')."""
        return _move_point(Decimal(self.amount_minor_units), -self.exponent)

    def is_zero(self) -> bool:
        return self.amount_minor_units == 0

    def is_negative(self) -> bool:
        return self.amount_minor_units < 0

    # ---------- Same-currency arithmetic ----------
    def _check_currency(self, other: "Money") -> None:
        if not isinstance(other, Money):
            raise TypeError(f"Expected Money, got {type(other).__name__}")
        if other.currency != self.currency:
            raise CurrencyMismatch(f"Currencies differ: {self.currency} and {other.currency}")

    def plus(self, other: "Money") -> "Money":
        self._check_currency(other)
        return Money(self.amount_minor_units + other.amount_minor_units, self.currency)

    def minus(self, other: "Money") -> "Money":
        self._check_currency(other)
        return Money(self.amount_minor_units - other.amount_minor_units, self.currency)

    def __add__(self, other: "Money") -> "Money":
        return self.plus(other)

    def __sub__(self, other: "Money") -> "Money":
        return self.minus(other)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other)
        return self.amount_minor_units < other.amount_minor_units

    def __str__(self) -> str:
        return f"{self.currency} {self.amount:.{self.exponent}f}"
