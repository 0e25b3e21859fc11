from __future__ import annotations

from decimal import Decimal

import pytest

from coffee_store.database.converters import (
    MalformedMoneyField,
    MoneyCodec,
    minor_units_reader,
    read_structured,
)
from coffee_store.money import InvalidCurrency, Money


@pytest.fixture
def codec() -> MoneyCodec:
    return MoneyCodec("TWD")


def test_encode_emits_minor_units(codec: MoneyCodec) -> None:
    assert codec.encode(Money.of(100.0, "TWD")) == 10000
    assert isinstance(codec.encode(Money.of(1, "TWD")), int)


@pytest.mark.parametrize("amount", ["0", "100.00", "150", "175.5", "99999.99"])
def test_decode_of_encode_is_identity(codec: MoneyCodec, amount: str) -> None:
    m = Money.of(amount, "TWD")
    assert codec.decode(codec.encode(m)) == m
    # DynamoDB hands numbers back as Decimal
    assert codec.decode(Decimal(codec.encode(m))) == m


def test_structured_and_integer_shapes_decode_equal(codec: MoneyCodec) -> None:
    legacy = codec.decode({"amount": Decimal("100.00"), "currency": "TWD"})
    current = codec.decode(10000)
    assert legacy == current == Money.of_minor(10000, "TWD")


def test_structured_shape_keeps_its_own_currency(codec: MoneyCodec) -> None:
    m = codec.decode({"amount": 12, "currency": "usd"})
    assert m == Money.of(12, "USD")
    nested = codec.decode({"amount": "3.50", "currency": {"code": "TWD"}})
    assert nested.amount_minor() == 350


def test_structured_shape_is_tried_before_integer() -> None:
    calls = []

    def spy(value):
        calls.append(value)
        return None

    codec = MoneyCodec("TWD", readers=[read_structured, spy, minor_units_reader("TWD")])
    codec.decode({"amount": 1, "currency": "TWD"})
    assert calls == []
    codec.decode(5)
    assert calls == [5]


@pytest.mark.parametrize(
    "stored",
    ["10000", None, 100.5, Decimal("100.5"), True, [10000], {"amount": 1}, {"price": 1}],
)
def test_unsupported_shapes_raise_malformed(codec: MoneyCodec, stored) -> None:
    with pytest.raises(MalformedMoneyField):
        codec.decode(stored)


@pytest.mark.parametrize("amount", [None, "lots", "1.005", False])
def test_structured_shape_with_bad_amount_raises_malformed(codec: MoneyCodec, amount) -> None:
    with pytest.raises(MalformedMoneyField):
        codec.decode({"amount": amount, "currency": "TWD"})


@pytest.mark.parametrize("currency", [None, 901, Decimal("901"), {"code": None}, {"name": "TWD"}])
def test_structured_shape_without_currency_code_raises_malformed(codec: MoneyCodec, currency) -> None:
    with pytest.raises(MalformedMoneyField):
        codec.decode({"amount": 1, "currency": currency})


def test_structured_shape_with_unknown_currency(codec: MoneyCodec) -> None:
    with pytest.raises(InvalidCurrency):
        codec.decode({"amount": 1, "currency": "XYZ"})


def test_integer_path_uses_fixed_currency() -> None:
    usd = MoneyCodec("usd")
    assert usd.currency == "USD"
    assert usd.decode(250) == Money.of("2.50", "USD")


def test_codec_rejects_unknown_fixed_currency() -> None:
    with pytest.raises(InvalidCurrency):
        MoneyCodec("XYZ")


def test_codec_from_env(monkeypatch) -> None:
    monkeypatch.setenv("COFFEE_CURRENCY", "EUR")
    assert MoneyCodec.from_env().decode(1) == Money.of_minor(1, "EUR")
    monkeypatch.delenv("COFFEE_CURRENCY")
    assert MoneyCodec.from_env().currency == "TWD"


def test_encode_rejects_non_money(codec: MoneyCodec) -> None:
    with pytest.raises(TypeError):
        codec.encode(10000)  # type: ignore[arg-type]
