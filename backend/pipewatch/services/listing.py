"""
List-screen helper: ORM rows → sorted, paginated API payload.

Filtering happens in SQL; ordering and paging run through the in-memory
``TableController`` so every list endpoint sorts exactly like the
dashboard's client-side tables.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel

from pipewatch.table import SortDirection, paginate

logger = logging.getLogger(__name__)


def build_list_payload(
    rows: Iterable[Any],
    schema: type[BaseModel],
    *,
    page: int,
    limit: int,
    sort: str | None,
    direction: SortDirection | str = SortDirection.ASC,
) -> dict[str, Any]:
    """
    Validate *rows* against *schema*, then sort and slice one page.

    Returns a dict with ``data``, ``pagination`` and ``sort`` keys, ready
    to be fed into the matching ``*ListResponse`` model.  ``page`` beyond
    the last page is clamped, never rejected.
    """
    records = [schema.model_validate(r).model_dump() for r in rows]
    data, summary = paginate(
        records,
        page=page,
        page_size=limit,
        sort_key=sort,
        sort_direction=direction,
    )
    logger.debug(
        "%s list: %d rows, page %d/%d, sort=%s %s",
        schema.__name__, summary.total_items, summary.current_page,
        summary.total_pages, sort, SortDirection(direction).value,
    )
    return {
        "data": data,
        "pagination": {
            "page": summary.current_page,
            "limit": summary.page_size,
            "total": summary.total_items,
            "total_pages": summary.total_pages,
        },
        "sort": {"key": sort, "direction": SortDirection(direction).value},
    }
