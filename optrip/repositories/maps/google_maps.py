from typing import Any, Dict, List, Optional, Sequence
import asyncio
import logging

import googlemaps
import googlemaps.exceptions

from optrip.models.location import Waypoint

logger = logging.getLogger(__name__)


# Custom Exception Hierarchy
class MapsServiceError(Exception):
    """Base class for Google Maps service errors."""
    pass


class GeocodingError(MapsServiceError):
    """Error during geocoding."""
    pass


class AddressNotFoundError(GeocodingError):
    """Geocoding returned no result for the address."""
    pass


class DirectionsError(MapsServiceError):
    """Error retrieving directions."""
    pass


class GoogleMapsRepository:
    def __init__(self, api_key: Optional[str] = None, client: Optional[Any] = None):
        """Initialize Google Maps client."""
        if client is None:
            logger.info("Initializing Google Maps client")
            client = googlemaps.Client(key=api_key)
        self.client = client

    async def geocode(self, address: str, name: Optional[str] = None) -> Waypoint:
        """Convert address to a waypoint using Google Maps API."""
        logger.info(f"Attempting to geocode address: '{address}'")
        try:
            result = await asyncio.to_thread(self.client.geocode, address)
        except googlemaps.exceptions.ApiError as e:
            logger.error(f"Google Maps API error while geocoding '{address}': {e}", exc_info=True)
            raise GeocodingError(f"API error during geocoding for '{address}': {e}") from e
        except Exception as e:
            logger.error(f"Unexpected error while geocoding '{address}': {e}", exc_info=True)
            raise GeocodingError(f"Unexpected error during geocoding for '{address}': {e}") from e

        if not result:
            logger.warning(f"No geocoding results found for address: '{address}'")
            raise AddressNotFoundError(f"No results found for address: {address}")

        location_data = result[0]["geometry"]["location"]
        waypoint = Waypoint(
            name=name or address,
            latitude=location_data["lat"],
            longitude=location_data["lng"],
            address=result[0].get("formatted_address"),
            place_id=result[0].get("place_id"),
        )
        logger.info(
            f"Successfully geocoded '{address}' to: lat={waypoint.latitude}, lng={waypoint.longitude}, address='{waypoint.address}'"
        )
        return waypoint

    async def get_directions(
        self,
        waypoints: Sequence[Waypoint],
        avoid_highways: bool = False,
        avoid_tolls: bool = False,
    ) -> List[Dict[str, Any]]:
        """Driving directions through every waypoint, in the given order."""
        if len(waypoints) < 2:
            raise DirectionsError("At least an origin and a destination are required")

        origin, destination = waypoints[0], waypoints[-1]
        stopovers = [w.as_latlng() for w in waypoints[1:-1]] or None
        avoid = [
            feature
            for feature, enabled in (("highways", avoid_highways), ("tolls", avoid_tolls))
            if enabled
        ] or None
        logger.info(
            f"Attempting to get directions from origin='{origin.name}' to destination='{destination.name}'"
            f"{(' via ' + str(len(stopovers)) + ' stops') if stopovers else ''}"
            f"{(' avoiding ' + ', '.join(avoid)) if avoid else ''}."
        )

        try:
            directions_result = await asyncio.to_thread(
                self.client.directions,
                origin=origin.as_latlng(),
                destination=destination.as_latlng(),
                mode="driving",
                waypoints=stopovers,
                avoid=avoid,
                # Legs must stay aligned with the waypoint order
                optimize_waypoints=False,
            )
        except googlemaps.exceptions.ApiError as e:
            logger.error(
                f"Google Maps API error while getting directions for origin='{origin.name}', destination='{destination.name}': {e}",
                exc_info=True,
            )
            raise DirectionsError(f"API error while getting directions: {e}") from e
        except Exception as e:
            logger.error(
                f"Unexpected error while getting directions for origin='{origin.name}', destination='{destination.name}': {e}",
                exc_info=True,
            )
            raise DirectionsError(f"Unexpected error while getting directions: {e}") from e

        if not directions_result:
            logger.warning(f"No route found for origin='{origin.name}', destination='{destination.name}'")
            raise DirectionsError(f"No route found between {origin.name} and {destination.name}")

        logger.info(
            f"Successfully found route for origin='{origin.name}', destination='{destination.name}': "
            f"{len(directions_result[0].get('legs', []))} legs"
        )
        return directions_result
