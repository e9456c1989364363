"""
Survey Endpoints
================
Active surveys and the operator's current selection.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from pipewatch.schemas.survey import (
    ActiveSurveyListResponse,
    CurrentSurveyUpdate,
    SurveyOut,
)
from pipewatch.services.survey import ActiveSurveyTracker, get_survey_tracker

router = APIRouter(prefix="/surveys", tags=["Surveys"])


@router.get("/active", response_model=ActiveSurveyListResponse)
async def active_surveys(
    tracker: ActiveSurveyTracker = Depends(get_survey_tracker),
):
    return ActiveSurveyListResponse(
        current_survey_id=tracker.current_id,
        surveys=tracker.surveys,
    )


@router.get("/current", response_model=SurveyOut)
async def current_survey(
    tracker: ActiveSurveyTracker = Depends(get_survey_tracker),
):
    if tracker.current is None:
        raise HTTPException(404, "No active survey")
    return tracker.current


@router.put("/current", response_model=SurveyOut)
async def select_current_survey(
    req: CurrentSurveyUpdate,
    tracker: ActiveSurveyTracker = Depends(get_survey_tracker),
):
    try:
        return tracker.select(req.survey_id)
    except LookupError:
        raise HTTPException(404, f"Survey '{req.survey_id}' is not active")
