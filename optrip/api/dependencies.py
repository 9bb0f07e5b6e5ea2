from functools import lru_cache
from fastapi import Depends, HTTPException

from optrip.core.settings import get_settings
from optrip.repositories.maps.google_maps import GoogleMapsRepository
from optrip.repositories.maps.links import ShortLinkExpander
from optrip.services.trip import TripService


@lru_cache()
def get_maps_repository() -> GoogleMapsRepository:
    """Get GoogleMapsRepository instance."""
    api_key = get_settings().GOOGLE_MAPS_API_KEY
    if not api_key:
        raise HTTPException(status_code=503, detail="Google Maps API key not configured")
    return GoogleMapsRepository(api_key=api_key)


@lru_cache()
def get_link_expander() -> ShortLinkExpander:
    """Get ShortLinkExpander instance."""
    return ShortLinkExpander(timeout_seconds=get_settings().SHORT_LINK_TIMEOUT_SECONDS)


def get_trip_service(
    maps_repository: GoogleMapsRepository = Depends(get_maps_repository),
    link_expander: ShortLinkExpander = Depends(get_link_expander),
) -> TripService:
    """Get TripService instance."""
    return TripService(maps_repository=maps_repository, link_expander=link_expander)
