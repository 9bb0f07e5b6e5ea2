from typing import List, Optional, Sequence
import logging

from optrip.models.location import Waypoint
from optrip.models.route import TripPlan
from optrip.models.trip import LinkLocation, ParsedMapsLink, TripParameters
from optrip.repositories.maps.google_maps import AddressNotFoundError, GoogleMapsRepository
from optrip.repositories.maps.links import (
    LinkParseError,
    ShortLinkExpander,
    is_short_link,
    parse_maps_link,
)
from optrip.services.optimizer import check_deadline, optimize_route

logger = logging.getLogger(__name__)


class TripService:
    def __init__(
        self,
        maps_repository: GoogleMapsRepository,
        link_expander: ShortLinkExpander,
    ):
        self.maps_repository = maps_repository
        self.link_expander = link_expander

    async def _resolve_location(self, location: LinkLocation) -> Optional[Waypoint]:
        if location.has_coordinates:
            return Waypoint(
                name=location.name,
                latitude=location.latitude,
                longitude=location.longitude,
                address=location.query,
            )
        try:
            return await self.maps_repository.geocode(location.query, name=location.name)
        except AddressNotFoundError:
            logger.warning(f"Could not geocode location: {location.query}")
            return None

    async def resolve_link(self, url: str) -> ParsedMapsLink:
        """Turn a (possibly short) maps link into geocoded waypoints."""
        full_url = url.strip()
        if is_short_link(full_url):
            full_url = await self.link_expander.expand(full_url)

        waypoints: List[Waypoint] = []
        for location in parse_maps_link(full_url):
            waypoint = await self._resolve_location(location)
            if waypoint is not None:
                waypoints.append(waypoint)

        if len(waypoints) < 2:
            raise LinkParseError("Could not find origin and destination in the URL")

        return ParsedMapsLink(
            origin=waypoints[0],
            destination=waypoints[-1],
            waypoints=waypoints[1:-1],
            raw_url=url,
        )

    async def plan_trip(
        self, params: TripParameters, waypoints: Optional[Sequence[Waypoint]] = None
    ) -> TripPlan:
        """Fetch directions for the trip and split it into driving days."""
        if not waypoints:
            if not params.maps_link:
                raise LinkParseError("Either waypoints or a maps link is required")
            waypoints = (await self.resolve_link(params.maps_link)).all_waypoints
        if len(waypoints) < 2:
            raise LinkParseError("A trip needs at least an origin and a destination")

        logger.info(
            f"Planning trip {waypoints[0].name} -> {waypoints[-1].name} with {len(waypoints) - 2} "
            f"intermediate stops, max {params.max_driving_hours}h/day"
        )
        directions = await self.maps_repository.get_directions(
            waypoints,
            avoid_highways=params.avoid_highways,
            avoid_tolls=params.avoid_tolls,
        )
        route = optimize_route(directions, waypoints, params)
        return TripPlan(route=route, deadline=check_deadline(route, params))
