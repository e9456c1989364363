"""Table subpackage — in-memory sort + paginate for list screens."""

from pipewatch.table.controller import (
    MISSING,
    FieldAccessor,
    PaginationSummary,
    SortDirection,
    TableController,
    paginate,
    sort_value,
    stable_sort,
)

__all__ = [
    "MISSING",
    "FieldAccessor",
    "PaginationSummary",
    "SortDirection",
    "TableController",
    "paginate",
    "sort_value",
    "stable_sort",
]
