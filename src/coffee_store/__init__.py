from coffee_store.coffee import Coffee
from coffee_store.money import CurrencyMismatch, InvalidAmount, InvalidCurrency, Money, MoneyError
from coffee_store.ports import CoffeeRepository, Sort


__all__ = [
    "Coffee",
    "CoffeeRepository",
    "CurrencyMismatch",
    "InvalidAmount",
    "InvalidCurrency",
    "Money",
    "MoneyError",
    "Sort",
]
