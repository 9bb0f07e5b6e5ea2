from typing import List, Optional
from urllib.parse import parse_qs, unquote_plus, urlparse
import logging
import re

import aiohttp

from optrip.models.trip import LinkLocation

logger = logging.getLogger(__name__)

COORDINATE_PATTERN = re.compile(r"^\s*(-?\d+(?:\.\d+)?)\s*,\s*(-?\d+(?:\.\d+)?)\s*$")
SHORT_LINK_HOSTS = ("maps.app.goo.gl",)


class LinkError(Exception):
    """Base class for maps link errors."""
    pass


class LinkParseError(LinkError):
    """The link is not a maps directions link we can read."""
    pass


class LinkExpansionError(LinkError):
    """A short link could not be followed to its full URL."""
    pass


def is_short_link(url: str) -> bool:
    parsed = urlparse(url.strip())
    host = (parsed.hostname or "").lower()
    if host in SHORT_LINK_HOSTS:
        return True
    return host == "goo.gl" and parsed.path.startswith("/maps")


def is_maps_link(url: str) -> bool:
    parsed = urlparse(url.strip())
    host = (parsed.hostname or "").lower()
    if is_short_link(url):
        return True
    if host.startswith("maps.google."):
        return True
    return bool(re.match(r"^(www\.)?google\.[a-z.]+$", host)) and parsed.path.startswith("/maps")


def _location_from_text(text: str, default_name: str) -> LinkLocation:
    """A coordinate pair keeps ``default_name``; a place name names itself."""
    match = COORDINATE_PATTERN.match(text)
    if match:
        latitude, longitude = float(match.group(1)), float(match.group(2))
        if not (-90 <= latitude <= 90 and -180 <= longitude <= 180):
            raise LinkParseError(f"Coordinates out of range: {text}")
        return LinkLocation(
            name=default_name, query=text, latitude=latitude, longitude=longitude
        )
    return LinkLocation(name=text, query=text)


def _locations_from_path(path: str) -> List[LinkLocation]:
    parts = path.split("/")
    if "dir" not in parts:
        return []
    locations = []
    for part in parts[parts.index("dir") + 1:]:
        if not part:
            continue
        # Map viewport and encoded route data follow the stops
        if part.startswith("@") or part.startswith("data="):
            break
        text = unquote_plus(part).strip()
        if text:
            locations.append(_location_from_text(text, f"Point {len(locations) + 1}"))
    return locations


def _first(query: dict, key: str) -> Optional[str]:
    values = query.get(key)
    if not values:
        return None
    return values[0].strip() or None


def _locations_from_query(query: dict) -> List[LinkLocation]:
    # Maps URLs API: ?api=1&origin=..&destination=..&waypoints=a|b
    origin = _first(query, "origin")
    destination = _first(query, "destination")
    if origin and destination:
        stops = _first(query, "waypoints")
        middle = [part.strip() for part in stops.split("|")] if stops else []
        return (
            [_location_from_text(origin, "Origin")]
            + [
                _location_from_text(text, f"Stop {index}")
                for index, text in enumerate(filter(None, middle), start=1)
            ]
            + [_location_from_text(destination, "Destination")]
        )

    # Legacy ?saddr=..&daddr=a+to:b
    saddr = _first(query, "saddr")
    daddr = _first(query, "daddr")
    if saddr and daddr:
        targets = [part.strip() for part in re.split(r"\s+to:", daddr) if part.strip()]
        return (
            [_location_from_text(saddr, "Origin")]
            + [
                _location_from_text(text, f"Stop {index}")
                for index, text in enumerate(targets[:-1], start=1)
            ]
            + [_location_from_text(targets[-1], "Destination")]
        )
    return []


def extract_locations(url: str) -> List[LinkLocation]:
    """Read the ordered trip locations out of a full maps URL."""
    parsed = urlparse(url.strip())
    locations = _locations_from_path(parsed.path)
    if locations:
        return locations
    return _locations_from_query(parse_qs(parsed.query))


def parse_maps_link(url: str) -> List[LinkLocation]:
    """Validate a full maps link and return at least an origin and destination."""
    if not url or not is_maps_link(url):
        raise LinkParseError(f"Invalid Google Maps URL: {url}")
    if is_short_link(url):
        raise LinkParseError("Short links must be expanded before parsing")

    locations = extract_locations(url)
    if len(locations) < 2:
        raise LinkParseError("Could not find origin and destination in the URL")
    logger.info(f"Parsed {len(locations)} locations from maps link")
    return locations


class ShortLinkExpander:
    """Follows maps short links to the full directions URL."""

    def __init__(self, timeout_seconds: float = 10.0):
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    async def expand(self, url: str, session: Optional[aiohttp.ClientSession] = None) -> str:
        logger.info(f"Expanding short link '{url}'")
        try:
            if session is not None:
                return await self._follow(session, url)
            async with aiohttp.ClientSession(timeout=self.timeout) as own_session:
                return await self._follow(own_session, url)
        except aiohttp.ClientError as e:
            logger.error(f"Failed to expand short link '{url}': {e}", exc_info=True)
            raise LinkExpansionError(f"Failed to expand short URL: {e}") from e

    async def _follow(self, session: aiohttp.ClientSession, url: str) -> str:
        async with session.head(url, allow_redirects=True) as response:
            expanded = str(response.url)
        logger.info(f"Short link expanded to '{expanded}'")
        return expanded
