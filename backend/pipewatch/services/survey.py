"""
Active Survey Tracking
======================
Keeps the list of ACTIVE surveys and the operator's current selection.

Nothing reads the current survey from ambient global state: list and map
queries take ``survey_id`` as an explicit parameter, and anything that
must react to a change of selection registers a callback through
``ActiveSurveyTracker.subscribe``.

Survey payloads come from more than one upstream system, so field names
vary (``id`` / ``surveyId`` / ``SM_ID`` ...).  ``normalize_survey`` folds
them into a single ``SurveyOut`` shape.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Awaitable, Callable, Iterable, Mapping
from datetime import date, datetime
from functools import lru_cache
from typing import Any

from sqlalchemy import select

from pipewatch.schemas.survey import SurveyOut

logger = logging.getLogger(__name__)

SurveyLoader = Callable[[], Awaitable[Iterable[Mapping[str, Any]]]]
SurveyListener = Callable[[SurveyOut | None], None]

_ID_KEYS = ("id", "ID", "surveyId", "SurveyId", "smId", "SM_ID")
_NAME_KEYS = ("name", "surveyName", "SurveyName", "smName", "SM_NAME")
_CATEGORY_KEYS = ("category_name", "categoryName", "CategoryName", "scName", "ScName")
_STATUS_KEYS = ("status", "Status", "smStatus", "SM_STATUS")
_START_KEYS = ("start_date", "startDate", "StartDate", "fromDate", "FromDate", "smStartDate", "SM_START_DATE")
_END_KEYS = ("end_date", "endDate", "EndDate", "toDate", "ToDate", "smEndDate", "SM_END_DATE")

_ISO_DATE = re.compile(r"^(\d{4}-\d{2}-\d{2})")


# ── Payload normalisation ─────────────────────────────────────────
def _first(raw: Mapping[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return None


def to_date_only(value: Any, today: date | None = None) -> date | None:
    """
    Reduce a date-ish value to a calendar date.

    Missing → *today*; ``YYYY-MM-DD...`` prefixes are taken literally;
    other strings go through ``datetime.fromisoformat``; anything that
    still does not parse → ``None``.
    """
    if value is None or value == "":
        return today or date.today()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value)
    m = _ISO_DATE.match(text)
    if m:
        try:
            return date.fromisoformat(m.group(1))
        except ValueError:
            return None
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        return None


def normalize_survey(raw: Mapping[str, Any], today: date | None = None) -> SurveyOut | None:
    """Fold one upstream survey payload into ``SurveyOut``; ``None`` if it has no id."""
    survey_id = _first(raw, _ID_KEYS)
    if survey_id is None or str(survey_id) == "":
        return None
    status = str(_first(raw, _STATUS_KEYS) or "ACTIVE").upper()
    return SurveyOut(
        id=str(survey_id),
        name=str(_first(raw, _NAME_KEYS) or ""),
        category_name=str(_first(raw, _CATEGORY_KEYS) or ""),
        status="CLOSED" if status == "CLOSED" else "ACTIVE",
        start_date=to_date_only(_first(raw, _START_KEYS), today),
        end_date=to_date_only(_first(raw, _END_KEYS), today),
    )


# ── Tracker ───────────────────────────────────────────────────────
class ActiveSurveyTracker:
    """
    Holds active surveys plus the current selection and notifies
    subscribers when the selection changes.

    Parameters
    ----------
    loader : async callable, optional
        Returns raw survey payloads; used by ``refresh`` / ``run``.
    """

    def __init__(self, loader: SurveyLoader | None = None) -> None:
        self._loader = loader
        self._surveys: list[SurveyOut] = []
        self._current: SurveyOut | None = None
        self._listeners: list[SurveyListener] = []

    @property
    def surveys(self) -> list[SurveyOut]:
        return list(self._surveys)

    @property
    def current(self) -> SurveyOut | None:
        return self._current

    @property
    def current_id(self) -> str | None:
        return self._current.id if self._current else None

    # ── Observers ─────────────────────────────────────────────

    def subscribe(self, listener: SurveyListener) -> Callable[[], None]:
        """Register *listener*; returns a callable that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_current(self, survey: SurveyOut | None) -> None:
        previous = self.current_id
        self._current = survey
        if self.current_id != previous:
            logger.info("Current survey changed: %s → %s", previous, self.current_id)
            for listener in list(self._listeners):
                try:
                    listener(survey)
                except Exception:
                    logger.exception("Survey listener %r failed", listener)

    # ── State updates ─────────────────────────────────────────

    def apply(self, payloads: Iterable[Mapping[str, Any]]) -> list[SurveyOut]:
        """
        Replace the active list from raw *payloads*.

        The current selection survives if it is still active; otherwise
        the first active survey (or nothing) becomes current.
        """
        normalized = (normalize_survey(p) for p in payloads)
        self._surveys = [s for s in normalized if s is not None and s.status == "ACTIVE"]

        keep = next((s for s in self._surveys if s.id == self.current_id), None)
        if keep is None and self._surveys:
            keep = self._surveys[0]
        self._set_current(keep)
        return self.surveys

    def select(self, survey_id: str) -> SurveyOut:
        """Make *survey_id* current.  Raises ``LookupError`` if it is not active."""
        for survey in self._surveys:
            if survey.id == survey_id:
                self._set_current(survey)
                return survey
        raise LookupError(f"Survey {survey_id!r} is not active")

    def clear(self) -> None:
        self._surveys = []
        self._set_current(None)

    # ── Polling ───────────────────────────────────────────────

    async def refresh(self) -> list[SurveyOut]:
        """Pull payloads through the loader; on failure the state is cleared."""
        if self._loader is None:
            return self.surveys
        try:
            payloads = await self._loader()
        except Exception:
            logger.exception("Failed to load active surveys")
            self.clear()
            return []
        return self.apply(payloads)

    async def run(self, interval_s: float) -> None:
        """Refresh every *interval_s* seconds until cancelled."""
        while True:
            await self.refresh()
            await asyncio.sleep(interval_s)


# ── Database loader ───────────────────────────────────────────────
async def load_active_surveys() -> list[dict[str, Any]]:
    """Loader used by the application: ACTIVE rows from ``surveys``."""
    from pipewatch.models.database import async_session_factory
    from pipewatch.models.survey import Survey

    async with async_session_factory() as session:
        result = await session.execute(
            select(Survey).where(Survey.status == "ACTIVE").order_by(Survey.start_date)
        )
        return [
            SurveyOut.model_validate(row).model_dump()
            for row in result.scalars().all()
        ]


@lru_cache(maxsize=1)
def get_survey_tracker() -> ActiveSurveyTracker:
    """Process-wide tracker (FastAPI dependency; overridable in tests)."""
    return ActiveSurveyTracker(loader=load_active_surveys)
