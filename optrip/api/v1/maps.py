import logging
from fastapi import APIRouter, Depends, HTTPException, Query

from optrip.api.dependencies import get_link_expander, get_trip_service
from optrip.api.v1.models import ExpandLinkResponse, LinkRequest
from optrip.models.location import Waypoint
from optrip.models.trip import ParsedMapsLink
from optrip.repositories.maps.google_maps import (
    AddressNotFoundError,
    MapsServiceError,
)
from optrip.repositories.maps.links import (
    LinkExpansionError,
    LinkParseError,
    ShortLinkExpander,
    is_maps_link,
)
from optrip.services.trip import TripService

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/links/parse", response_model=ParsedMapsLink)
async def parse_link(
    request: LinkRequest,
    trip_service: TripService = Depends(get_trip_service),
):
    """Read origin, stops and destination out of a Google Maps link."""
    try:
        return await trip_service.resolve_link(request.url)
    except LinkParseError as e:
        logger.warning(f"Could not parse link '{request.url}': {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except (MapsServiceError, LinkExpansionError) as e:
        logger.error(f"Upstream error while parsing link '{request.url}': {e}", exc_info=True)
        raise HTTPException(status_code=503, detail=f"Map service error: {e}")


@router.post("/links/expand", response_model=ExpandLinkResponse)
async def expand_link(
    request: LinkRequest,
    link_expander: ShortLinkExpander = Depends(get_link_expander),
):
    """Follow a short maps link to its full URL."""
    if not is_maps_link(request.url):
        raise HTTPException(status_code=400, detail="Invalid Google Maps URL")
    try:
        return ExpandLinkResponse(expanded_url=await link_expander.expand(request.url))
    except LinkExpansionError as e:
        raise HTTPException(status_code=503, detail=str(e))


@router.get("/geocode", response_model=Waypoint)
async def geocode(
    address: str = Query(..., min_length=1, description="Address or place name"),
    trip_service: TripService = Depends(get_trip_service),
):
    try:
        return await trip_service.maps_repository.geocode(address)
    except AddressNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except MapsServiceError as e:
        logger.error(f"Geocoding failed for '{address}': {e}", exc_info=True)
        raise HTTPException(status_code=503, detail=f"Map service error: {e}")
