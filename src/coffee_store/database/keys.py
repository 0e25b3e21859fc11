from __future__ import annotations

from typing import Optional


COFFEE_ENTITY = "COFFEE"


def _concat(*parts: Optional[str]) -> str:
    return "#".join(str(p) for p in parts if p is not None and p != "")


def make_pk_coffee(coffee_id: str) -> str:
    """Partition key for a coffee item, eg COFFEE#5f2c..."""
    return _concat(COFFEE_ENTITY, coffee_id)


def make_sk_meta(entity_type: str = COFFEE_ENTITY) -> str:
    """Stable sort key; one item per coffee. Example: META#COFFEE"""
    return _concat("META", entity_type)


def make_gsi1pk_name(name: str) -> str:
    """GSI1 (byName) PK for exact name lookups."""
    return _concat("NAME", name)


def make_gsi1sk_entity(entity: str, timestamp_iso: Optional[str] = None) -> str:
    """GSI1 SK; orders same-name coffees by creation time."""
    return _concat("ENTITY", entity, timestamp_iso)
