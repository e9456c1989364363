"""Services subpackage — business logic behind the routers."""

from pipewatch.services.listing import build_list_payload
from pipewatch.services.map import MapQueryService, radius_table_from_settings
from pipewatch.services.survey import (
    ActiveSurveyTracker,
    get_survey_tracker,
    load_active_surveys,
    normalize_survey,
)
from pipewatch.services.valve_ops import closed_valve_ids, summarize_operations

__all__ = [
    "build_list_payload",
    "MapQueryService",
    "radius_table_from_settings",
    "ActiveSurveyTracker",
    "get_survey_tracker",
    "load_active_surveys",
    "normalize_survey",
    "closed_valve_ids",
    "summarize_operations",
]
