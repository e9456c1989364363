"""
Table Controller
================
Generic in-memory sort + paginate engine behind every list screen
(devices, valves, valve operations, ...).

Rows are open-ended records: plain mappings or attribute-style objects.
Fields are read through ``FieldAccessor`` instances; an absent field reads
as ``MISSING`` instead of raising.

Ordering
--------
The sort is **stable** in both directions, so repeated renders over
unchanged data never move rows between pages.  Values are ranked by kind:

    missing/None  <  numbers  <  dates  <  strings  <  anything else

Within a kind: numbers compare numerically, dates chronologically (a
``date`` is midnight, aware datetimes are compared in UTC), strings
case-insensitively with the raw string breaking ties, and anything else
by ``str(value)``.  Descending is the exact reverse of ascending.
"""

from __future__ import annotations

import enum
import math
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class _Missing:
    """Sentinel for a field that is absent on a record."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()


class SortDirection(str, enum.Enum):
    ASC = "asc"
    DESC = "desc"

    def toggled(self) -> SortDirection:
        return SortDirection.DESC if self is SortDirection.ASC else SortDirection.ASC


# ── Field access ──────────────────────────────────────────────────
class FieldAccessor(Generic[T]):
    """
    Reads one named field from a record.

    Parameters
    ----------
    name : str
        Field name, also used as the sort key.
    getter : callable, optional
        ``getter(record)`` returning the value.  Defaults to a lookup that
        reads mappings by key and other objects by attribute, returning
        ``MISSING`` when the field is absent.
    """

    __slots__ = ("name", "_getter")

    def __init__(self, name: str, getter: Callable[[T], Any] | None = None) -> None:
        self.name = name
        self._getter = getter

    def get(self, record: T) -> Any:
        if self._getter is not None:
            return self._getter(record)
        if isinstance(record, Mapping):
            return record.get(self.name, MISSING)
        return getattr(record, self.name, MISSING)

    __call__ = get

    def __repr__(self) -> str:
        return f"FieldAccessor({self.name!r})"


def _to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def sort_value(value: Any) -> tuple:
    """Map a raw field value onto a totally ordered key (see module doc)."""
    if value is None or value is MISSING:
        return (0,)
    if isinstance(value, bool):
        return (1, int(value))
    if isinstance(value, (int, float)):
        if isinstance(value, float) and math.isnan(value):
            return (0,)
        return (1, value)
    if isinstance(value, datetime):
        return (2, _to_utc(value))
    if isinstance(value, date):
        return (2, datetime.combine(value, time.min))
    if isinstance(value, str):
        return (3, value.casefold(), value)
    return (4, str(value))


def stable_sort(
    records: Iterable[T],
    accessor: FieldAccessor[T] | None,
    direction: SortDirection = SortDirection.ASC,
) -> list[T]:
    """
    Return a new list sorted by *accessor*.

    With no accessor the input order is preserved.  ``sorted`` is stable
    and keeps equal elements in input order even with ``reverse=True``.
    """
    rows = list(records)
    if accessor is None:
        return rows
    return sorted(
        rows,
        key=lambda r: sort_value(accessor.get(r)),
        reverse=direction is SortDirection.DESC,
    )


# ── Pagination summary ────────────────────────────────────────────
@dataclass(frozen=True, slots=True)
class PaginationSummary:
    """What a pager control needs to render itself."""

    current_page: int
    page_size: int
    total_items: int
    total_pages: int

    def as_dict(self) -> dict[str, int]:
        return {
            "current_page": self.current_page,
            "page_size": self.page_size,
            "total_items": self.total_items,
            "total_pages": self.total_pages,
        }


# ── Controller ────────────────────────────────────────────────────
class TableController(Generic[T]):
    """
    Sort + paginate state for one list screen.

    Parameters
    ----------
    records : sequence
        Rows to display.  Copied on entry and never mutated.
    page_size : int
        Rows per page, must be >= 1.
    sort_key : str, optional
        Initial sort field.  ``None`` keeps input order.
    sort_direction : SortDirection
        Initial direction for ``sort_key``.
    accessors : mapping, optional
        Field name → ``FieldAccessor``.  Names not listed fall back to the
        default key/attribute lookup.
    """

    def __init__(
        self,
        records: Sequence[T] = (),
        page_size: int = 10,
        sort_key: str | None = None,
        sort_direction: SortDirection | str = SortDirection.ASC,
        accessors: Mapping[str, FieldAccessor[T]] | None = None,
    ) -> None:
        _require_page_size(page_size)
        self._records: tuple[T, ...] = tuple(records)
        self._page_size = page_size
        self._sort_key = sort_key
        self._sort_direction = SortDirection(sort_direction)
        self._accessors: dict[str, FieldAccessor[T]] = dict(accessors or {})
        self._current_page = 1
        self._sorted_cache: list[T] | None = None

    # ── State ─────────────────────────────────────────────────

    @property
    def records(self) -> tuple[T, ...]:
        return self._records

    @property
    def sort_key(self) -> str | None:
        return self._sort_key

    @property
    def sort_direction(self) -> SortDirection:
        return self._sort_direction

    @property
    def page_size(self) -> int:
        return self._page_size

    @property
    def current_page(self) -> int:
        return self._current_page

    @property
    def total_items(self) -> int:
        return len(self._records)

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_items / self._page_size)

    @property
    def can_go_next(self) -> bool:
        return self._current_page < self.total_pages

    @property
    def can_go_previous(self) -> bool:
        return self._current_page > 1

    def accessor_for(self, key: str) -> FieldAccessor[T]:
        accessor = self._accessors.get(key)
        if accessor is None:
            accessor = FieldAccessor(key)
            self._accessors[key] = accessor
        return accessor

    # ── Sorting ───────────────────────────────────────────────

    def set_sort_key(self, key: str) -> None:
        """Same key toggles direction; a new key sorts ascending."""
        if key == self._sort_key:
            self._sort_direction = self._sort_direction.toggled()
        else:
            self._sort_key = key
            self._sort_direction = SortDirection.ASC
        self._sorted_cache = None
        self._current_page = 1

    def set_sort(self, key: str | None, direction: SortDirection | str = SortDirection.ASC) -> None:
        """Set key and direction explicitly (e.g. from query parameters)."""
        self._sort_key = key
        self._sort_direction = SortDirection(direction)
        self._sorted_cache = None
        self._current_page = 1

    def sorted_records(self) -> list[T]:
        if self._sorted_cache is None:
            accessor = self.accessor_for(self._sort_key) if self._sort_key else None
            self._sorted_cache = stable_sort(self._records, accessor, self._sort_direction)
        return list(self._sorted_cache)

    # ── Records ───────────────────────────────────────────────

    def set_records(self, records: Sequence[T]) -> None:
        self._records = tuple(records)
        self._sorted_cache = None
        self._clamp()

    # ── Pagination ────────────────────────────────────────────

    def set_page_size(self, size: int) -> None:
        _require_page_size(size)
        self._page_size = size
        self._clamp()

    def set_page(self, page: int) -> None:
        """Move to *page*, clamped into ``[1, max(1, total_pages)]``."""
        self._current_page = page
        self._clamp()

    def first_page(self) -> None:
        self._current_page = 1

    def last_page(self) -> None:
        self._current_page = max(1, self.total_pages)

    def next_page(self) -> None:
        if self.can_go_next:
            self._current_page += 1

    def previous_page(self) -> None:
        if self.can_go_previous:
            self._current_page -= 1

    def _clamp(self) -> None:
        self._current_page = min(max(1, self._current_page), max(1, self.total_pages))

    # ── Derived views ─────────────────────────────────────────

    def sorted_and_paginated_view(self) -> list[T]:
        start = (self._current_page - 1) * self._page_size
        return self.sorted_records()[start:start + self._page_size]

    def pages(self) -> list[list[T]]:
        """Every page in order; concatenated they equal ``sorted_records()``."""
        rows = self.sorted_records()
        return [
            rows[i:i + self._page_size]
            for i in range(0, len(rows), self._page_size)
        ]

    def pagination_summary(self) -> PaginationSummary:
        return PaginationSummary(
            current_page=self._current_page,
            page_size=self._page_size,
            total_items=self.total_items,
            total_pages=self.total_pages,
        )


def _require_page_size(size: int) -> None:
    if isinstance(size, bool) or not isinstance(size, int) or size < 1:
        raise ValueError(f"page_size must be a positive integer, got {size!r}")


def paginate(
    records: Sequence[T],
    *,
    page: int = 1,
    page_size: int = 10,
    sort_key: str | None = None,
    sort_direction: SortDirection | str = SortDirection.ASC,
    accessors: Mapping[str, FieldAccessor[T]] | None = None,
) -> tuple[list[T], PaginationSummary]:
    """One-shot helper: sort, clamp to *page* and return ``(rows, summary)``."""
    table = TableController(
        records,
        page_size=page_size,
        sort_key=sort_key,
        sort_direction=sort_direction,
        accessors=accessors,
    )
    table.set_page(page)
    return table.sorted_and_paginated_view(), table.pagination_summary()
