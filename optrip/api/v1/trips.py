import logging
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import HTMLResponse, Response

from optrip.api.dependencies import get_trip_service
from optrip.api.v1.models import (
    ExportRequest,
    PlanTripRequest,
    ScheduleRequest,
    ShareRequest,
    ShareResponse,
)
from optrip.core.settings import get_settings
from optrip.models.route import OptimizedRoute, TripPlan
from optrip.models.trip import TripParameters
from optrip.repositories.maps.google_maps import AddressNotFoundError, MapsServiceError
from optrip.repositories.maps.links import LinkExpansionError, LinkParseError
from optrip.services.export import (
    ShareTokenError,
    build_calendar,
    build_share_link,
    calendar_disposition,
    decode_share_token,
    encode_share_token,
    render_itinerary,
)
from optrip.services.optimizer import RoutePlanningError, optimize_segments
from optrip.services.segments import WaypointMismatchError
from optrip.services.trip import TripService

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/schedule", response_model=OptimizedRoute)
async def schedule_trip(request: ScheduleRequest):
    """Split already-routed segments into driving days."""
    try:
        return optimize_segments(request.segments, request.waypoints, request.params)
    except (RoutePlanningError, WaypointMismatchError) as e:
        logger.warning(f"Cannot schedule trip: {e}")
        raise HTTPException(status_code=422, detail=str(e))


@router.post("/plan", response_model=TripPlan)
async def plan_trip(
    request: PlanTripRequest,
    trip_service: TripService = Depends(get_trip_service),
):
    """Route a trip through Google Maps and split it into driving days."""
    settings = get_settings()
    params = TripParameters(
        maps_link=request.maps_link,
        max_driving_hours=request.max_driving_hours or settings.DEFAULT_MAX_DRIVING_HOURS,
        departure_time=request.departure_time,
        arrival_deadline=request.arrival_deadline,
        preferred_stop_duration=(
            request.preferred_stop_duration
            if request.preferred_stop_duration is not None
            else settings.DEFAULT_STOP_DURATION
        ),
        avoid_highways=request.avoid_highways,
        avoid_tolls=request.avoid_tolls,
    )
    try:
        return await trip_service.plan_trip(params, waypoints=request.waypoints)
    except LinkParseError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except AddressNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (RoutePlanningError, WaypointMismatchError) as e:
        logger.warning(f"Cannot plan trip: {e}")
        raise HTTPException(status_code=422, detail=str(e))
    except (MapsServiceError, LinkExpansionError) as e:
        logger.error(f"Upstream error while planning trip: {e}", exc_info=True)
        raise HTTPException(status_code=503, detail=f"Map service error: {e}")


@router.post("/export/calendar")
async def export_calendar(request: ExportRequest):
    """Download the itinerary as an iCalendar file."""
    return Response(
        content=build_calendar(request.route, request.trip_name),
        media_type="text/calendar; charset=utf-8",
        headers={"Content-Disposition": calendar_disposition(request.trip_name)},
    )


@router.post("/export/itinerary", response_class=HTMLResponse)
async def export_itinerary(request: ExportRequest):
    """Printable HTML itinerary."""
    return HTMLResponse(content=render_itinerary(request.route, request.trip_name))


@router.post("/share", response_model=ShareResponse)
async def share_trip(request: ShareRequest):
    base_url = request.base_url or get_settings().PUBLIC_BASE_URL
    return ShareResponse(
        url=build_share_link(base_url, request.params),
        token=encode_share_token(request.params),
    )


@router.get("/share/{token}", response_model=TripParameters)
async def open_shared_trip(token: str):
    try:
        return decode_share_token(token)
    except ShareTokenError as e:
        raise HTTPException(status_code=400, detail=str(e))
