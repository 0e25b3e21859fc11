from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, List, Optional, Protocol, Sequence

from .coffee import Coffee

if TYPE_CHECKING:
    import pandas as pd  # type: ignore[import]


SORTABLE_FIELDS = ("id", "name", "price", "create_time", "update_time")

ASC = "ASC"
DESC = "DESC"


@dataclass(frozen=True)
class Sort:
    """Sort order over one Coffee field, eg ``Sort.by("name").descending()``."""

    field: str
    direction: str = ASC

    def __post_init__(self) -> None:
        if self.field not in SORTABLE_FIELDS:
            raise ValueError(f"Cannot sort by {self.field!r}; expected one of {SORTABLE_FIELDS}")
        if self.direction not in (ASC, DESC):
            raise ValueError(f"Sort direction must be {ASC} or {DESC}, got {self.direction!r}")

    @classmethod
    def by(cls, field: str) -> "Sort":
        return cls(field=field)

    def ascending(self) -> "Sort":
        return Sort(self.field, ASC)

    def descending(self) -> "Sort":
        return Sort(self.field, DESC)

    @property
    def reverse(self) -> bool:
        return self.direction == DESC


class CoffeeRepository(Protocol):
    def insert(self, record: Coffee) -> Coffee: ...

    def insert_all(self, records: Sequence[Coffee]) -> List[Coffee]: ...

    def find_all(self, sort: Optional[Sort] = None) -> List[Coffee]: ...

    def find_by_field(self, field: str, value: Any) -> List[Coffee]: ...

    def find_by_name(self, name: str) -> List[Coffee]: ...

    def find_by_id(self, coffee_id: str) -> Optional[Coffee]: ...

    def get_by_id(self, coffee_id: str) -> Coffee: ...

    def exists_by_id(self, coffee_id: str) -> bool: ...

    def count(self) -> int: ...

    def find_all_df(self, sort: Optional[Sort] = None) -> "pd.DataFrame": ...

    def save(self, record: Coffee) -> Coffee: ...

    def delete_by_id(self, coffee_id: str) -> None: ...

    def delete_all(self) -> int: ...
