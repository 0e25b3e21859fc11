"""Money <-> stored price conversion.

Writes always store the price as an integer of minor units. Reads pick a
reader by the shape of the stored value, so items written before the
integer encoding (``{"amount": 100.00, "currency": "TWD"}``) and newer items
(``10000``) can live in the same table without a migration.

Readers are tried in order; a reader returns ``None`` when the value is not
its shape. If no reader matches, ``MalformedMoneyField`` is raised.
"""
from __future__ import annotations

import os
from collections.abc import Mapping
from decimal import Decimal
from typing import Any, Callable, List, Optional, Sequence

from ..money import InvalidAmount, Money, MoneyError, normalize_currency


DEFAULT_CURRENCY = "TWD"

MoneyReader = Callable[[Any], Optional[Money]]


class MalformedMoneyField(MoneyError):
    """The stored price matches none of the supported shapes."""


def write_minor_units(money: Money) -> int:
    return money.amount_minor()


def read_structured(value: Any) -> Optional[Money]:
    """Legacy shape: a mapping with ``amount`` (major units) and ``currency``.

    The currency may also be nested as ``{"code": "TWD"}``.
    """
    if not isinstance(value, Mapping) or "amount" not in value or "currency" not in value:
        return None
    currency = value["currency"]
    if isinstance(currency, Mapping):
        currency = currency.get("code")
    if not isinstance(currency, str):
        raise MalformedMoneyField(f"Structured price has no usable currency: {value!r}")
    code = normalize_currency(currency)
    amount = value["amount"]
    if amount is None or isinstance(amount, bool):
        raise MalformedMoneyField(f"Structured price has no usable amount: {value!r}")
    try:
        return Money.of(amount, code)
    except InvalidAmount as exc:
        raise MalformedMoneyField(f"Structured price has a bad amount: {value!r}") from exc


def minor_units_reader(currency: str) -> MoneyReader:
    """Reader for a bare integer of minor units, paired with a fixed currency.

    The stored value carries no currency, so this only holds while the table
    is single-currency.
    """
    code = normalize_currency(currency)

    def read_minor_units(value: Any) -> Optional[Money]:
        if isinstance(value, bool):
            return None
        if isinstance(value, int):
            return Money.of_minor(value, code)
        # boto3 deserializes every DynamoDB number as Decimal
        if isinstance(value, Decimal) and value.is_finite() and value == value.to_integral_value():
            return Money.of_minor(value, code)
        return None

    return read_minor_units


class MoneyCodec:
    """Bidirectional converter between Money and the stored price field.

    Parameters
    ----------
    currency: str
        Currency assumed for bare-integer prices.
    readers: Optional[Sequence[MoneyReader]]
        Decode attempts in order. Defaults to structured first, then integer.
    """

    def __init__(self, currency: str = DEFAULT_CURRENCY, readers: Optional[Sequence[MoneyReader]] = None) -> None:
        self.currency = normalize_currency(currency)
        if readers is None:
            readers = [read_structured, minor_units_reader(self.currency)]
        self._readers: List[MoneyReader] = list(readers)

    @classmethod
    def from_env(cls) -> "MoneyCodec":
        return cls(currency=os.getenv("COFFEE_CURRENCY", DEFAULT_CURRENCY))

    def encode(self, money: Money) -> int:
        if not isinstance(money, Money):
            raise TypeError(f"Expected Money, got {type(money).__name__}")
        return write_minor_units(money)

    def decode(self, value: Any) -> Money:
        for reader in self._readers:
            money = reader(value)
            if money is not None:
                return money
        raise MalformedMoneyField(f"Unsupported stored price: {value!r} ({type(value).__name__})")
