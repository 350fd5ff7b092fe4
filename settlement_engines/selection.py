"""
Selection Engine - Filter and sort settlement views.

Pure functions over SettlementView rows.  Every filter list is optional;
an empty list means "no filter".  Within one list the values are OR'ed,
and the lists are AND'ed together.

    dates            view.date starts with any prefix ("2025" or "2025-03")
    names            view.name contains any value, case-insensitive
    categories       view.category is one of the values
    settlement_types view.settlement_type is one of the values

Sorting is stable and defaults to date, newest first.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from settlement_kernel.logging_config import get_logger

from settlement_engines.settlement import VIEW_FIELDS, SettlementView

logger = get_logger("engines.selection")


@dataclass(frozen=True)
class SelectionCriteria:
    """Filters and sort order for a settlement listing."""

    dates: tuple[str, ...] = ()
    names: tuple[str, ...] = ()
    categories: tuple[str, ...] = ()
    settlement_types: tuple[str, ...] = ()
    sort_key: str | None = "date"
    descending: bool = True

    def __post_init__(self) -> None:
        if self.sort_key is not None and self.sort_key not in VIEW_FIELDS:
            raise ValueError(f"Cannot sort by unknown field: {self.sort_key}")


@dataclass(frozen=True)
class FilterOptions:
    """Distinct values offered by each filter."""

    dates: tuple[str, ...]
    names: tuple[str, ...]
    categories: tuple[str, ...]
    settlement_types: tuple[str, ...]


def _label(value: Any) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    return "" if value is None else str(value)


def _matches(view: SettlementView, criteria: SelectionCriteria) -> bool:
    if criteria.dates and not any(view.date.startswith(d) for d in criteria.dates):
        return False
    if criteria.names:
        name = view.name.lower()
        if not any(n.lower() in name for n in criteria.names):
            return False
    if criteria.categories and _label(view.category) not in {
        _label(c) for c in criteria.categories
    }:
        return False
    if criteria.settlement_types and _label(view.settlement_type) not in {
        _label(t) for t in criteria.settlement_types
    }:
        return False
    return True


def _sort_value(value: Any) -> tuple[int, Any]:
    # Numbers sort before text; mixed id types must still be comparable.
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, bool):
        return (0, int(value))
    if isinstance(value, (int, float)):
        return (0, value)
    return (1, _label(value))


def select_views(
    views: Iterable[SettlementView],
    criteria: SelectionCriteria | None = None,
) -> list[SettlementView]:
    """Apply ``criteria`` to ``views`` and return the matching rows in order."""
    criteria = criteria or SelectionCriteria()
    selected = [v for v in views if _matches(v, criteria)]
    if criteria.sort_key is not None:
        key = criteria.sort_key
        selected = sorted(
            selected,
            key=lambda v: _sort_value(getattr(v, key)),
            reverse=criteria.descending,
        )
    return selected


def toggle_sort(
    criteria: SelectionCriteria, key: str
) -> SelectionCriteria:
    """Clicking a column: ascending first, descending on a second click."""
    descending = criteria.sort_key == key and not criteria.descending
    return SelectionCriteria(
        dates=criteria.dates,
        names=criteria.names,
        categories=criteria.categories,
        settlement_types=criteria.settlement_types,
        sort_key=key,
        descending=descending,
    )


def _unique(values: Iterable[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(v for v in values if v))


def filter_options(views: Sequence[SettlementView]) -> FilterOptions:
    """Distinct filter values; date options are years and year-months, newest first."""
    date_options = {
        prefix
        for v in views
        for prefix in (v.date[:4], v.date[:7])
        if prefix
    }
    return FilterOptions(
        dates=tuple(sorted(date_options, reverse=True)),
        names=_unique(v.name for v in views),
        categories=_unique(_label(v.category) for v in views),
        settlement_types=_unique(_label(v.settlement_type) for v in views),
    )
