from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from .money import Money


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Coffee:
    """A coffee on the menu.

    ``id`` stays ``None`` until the store assigns one on insert. The caller
    owns this in-memory copy; the store owns the persisted one.
    """

    name: str
    price: Money
    create_time: datetime
    update_time: datetime
    id: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("name must be non-empty")
        if not isinstance(self.price, Money):
            raise TypeError(f"price must be Money, got {type(self.price).__name__}")
        if self.update_time < self.create_time:
            raise ValueError("update_time must not be earlier than create_time")

    @classmethod
    def create(cls, name: str, price: Money, now: Optional[datetime] = None) -> "Coffee":
        """New unsaved coffee with both timestamps set to ``now``."""
        ts = now or utc_now()
        return cls(name=name, price=price, create_time=ts, update_time=ts)

    def reprice(self, price: Money, now: Optional[datetime] = None) -> "Coffee":
        """Set a new price and move ``update_time`` strictly past its previous value."""
        ts = now or utc_now()
        if ts <= self.update_time:
            ts = self.update_time + timedelta(microseconds=1)
        self.price = price
        self.update_time = ts
        return self

    def __str__(self) -> str:
        return (
            f"Coffee(id={self.id}, name={self.name}, price={self.price}, "
            f"createTime={self.create_time.isoformat()}, updateTime={self.update_time.isoformat()})"
        )
