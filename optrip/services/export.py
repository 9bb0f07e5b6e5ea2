"""Calendar, printable itinerary and share-link exports of an optimized route."""

from collections import OrderedDict
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence
from urllib.parse import quote
import base64
import binascii
import logging
import re
import unicodedata

from jinja2 import Environment, PackageLoader, select_autoescape

from optrip.models.route import OptimizedRoute, OptimizedStop
from optrip.models.trip import TripParameters

logger = logging.getLogger(__name__)

_environment = Environment(
    loader=PackageLoader("optrip", "templates"),
    autoescape=select_autoescape(["html"]),
)


class ShareTokenError(ValueError):
    """A share token could not be decoded into trip parameters."""
    pass


def group_stops_by_day(stops: Sequence[OptimizedStop]) -> Dict[int, List[OptimizedStop]]:
    days: Dict[int, List[OptimizedStop]] = OrderedDict()
    for stop in stops:
        days.setdefault(stop.day_number, []).append(stop)
    return days


def format_distance(meters: float) -> str:
    if meters < 1000:
        return f"{int(meters)} m"
    return f"{meters / 1000:.1f} km"


def format_duration(seconds: float) -> str:
    minutes = int(round(seconds / 60))
    hours, minutes = divmod(minutes, 60)
    if hours and minutes:
        return f"{hours}h {minutes}m"
    if hours:
        return f"{hours}h"
    return f"{minutes}m"


def _ics_date(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def _ics_text(value: str) -> str:
    return (
        value.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\n", "\\n")
    )


def _fold(line: str) -> str:
    """Fold a content line into 75-octet pieces (RFC 5545 section 3.1)."""
    pieces = []
    current, size, limit = "", 0, 75
    for char in line:
        width = len(char.encode("utf-8"))
        if size + width > limit:
            pieces.append(current)
            # Continuation lines start with a space, which counts
            current, size, limit = "", 0, 74
        current += char
        size += width
    pieces.append(current)
    return "\r\n ".join(pieces)


def _event_text(
stop: OptimizedStop, index: int, count: int) -> tuple:
    name = stop.waypoint.name
    if index == 0:
        summary, description = f"Start Trip: {name}", f"Departure from {name}"
    elif index == count - 1:
        summary, description = f"Arrive at {name}", f"Final destination: {name}"
    elif stop.is_overnight:
        summary, description = f"Overnight Stop: {name}", f"Book accommodation at {name}"
    else:
        summary, description = f"Rest Stop: {name}", f"{stop.stop_duration} minute break at {name}"
    if stop.waypoint.address:
        description += f"\n\nAddress: {stop.waypoint.address}"
    return summary, description


def build_calendar(
    route: OptimizedRoute, trip_name: str = "Road Trip", stamp: Optional[datetime] = None
) -> str:
    """One VEVENT per stop, from arrival to departure."""
    stamp = stamp or datetime.now(timezone.utc)
    uid_prefix = int(stamp.timestamp() * 1000)
    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        "PRODID:-//OpTrip//Road Trip Planner//EN",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
        f"X-WR-CALNAME:{_ics_text(trip_name)}",
        "X-WR-TIMEZONE:UTC",
    ]
    for index, stop in enumerate(route.stops):
        summary, description = _event_text(stop, index, len(route.stops))
        lines.extend(
            [
                "BEGIN:VEVENT",
                f"UID:{uid_prefix}-{index}@optrip.app",
                f"DTSTAMP:{_ics_date(stamp)}",
                f"DTSTART:{_ics_date(stop.arrival_time)}",
                f"DTEND:{_ics_date(stop.departure_time)}",
                f"SUMMARY:{_ics_text(summary)}",
                f"DESCRIPTION:{_ics_text(description)}",
                f"LOCATION:{_ics_text(stop.waypoint.address or stop.waypoint.name)}",
                "STATUS:CONFIRMED",
                "SEQUENCE:0",
                "END:VEVENT",
            ]
        )
    lines.append("END:VCALENDAR")
    logger.debug(f"Built calendar '{trip_name}' with {len(route.stops)} events")
    return "\r\n".join(_fold(line) for line in lines) + "\r\n"


def calendar_filename(trip_name: str) -> str:
    return "_".join(trip_name.split()) + ".ics"


def calendar_disposition(trip_name: str) -> str:
    """``Content-Disposition`` for the calendar download.

    Header values must be latin-1, so ``filename`` carries an ASCII fallback
    and the real name goes in an RFC 6266 ``filename*`` parameter.
    """
    filename = calendar_filename(trip_name)
    ascii_name = unicodedata.normalize("NFKD", filename).encode("ascii", "ignore").decode("ascii")
    fallback = re.sub(r"[^A-Za-z0-9.-]+", "_", ascii_name).strip("_")
    if fallback.startswith("."):
        fallback = "trip" + fallback
    header = f'attachment; filename="{fallback}"'
    if fallback != filename:
        header += f"; filename*=UTF-8''{quote(filename, safe='')}"
    return header



def render_itinerary(
    route: OptimizedRoute,
    trip_name: str = "Road Trip",
    generated_on: Optional[datetime] = None,
) -> str:
    """Printable HTML itinerary grouped by driving day."""
    template = _environment.get_template("itinerary.html")
    return template.render(
        trip_name=trip_name,
        generated_on=(generated_on or datetime.now(timezone.utc)).strftime("%B %d, %Y"),
        total_distance=format_distance(route.total_distance),
        total_duration=format_duration(route.total_duration),
        driving_days=route.driving_days,
        days=group_stops_by_day(route.stops),
    )


def encode_share_token(params: TripParameters) -> str:
    payload = params.model_dump_json(exclude_none=True).encode("utf-8")
    return base64.urlsafe_b64encode(payload).decode("ascii").rstrip("=")


def decode_share_token(token: str) -> TripParameters:
    padded = token + "=" * (-len(token) % 4)
    try:
        payload = base64.urlsafe_b64decode(padded.encode("ascii"))
        return TripParameters.model_validate_json(payload)
    except (binascii.Error, UnicodeError, ValueError) as e:
        raise ShareTokenError(f"Invalid share token: {e}") from e


def build_share_link(base_url: str, params: TripParameters) -> str:
    return f"{base_url.rstrip('/')}/?trip={encode_share_token(params)}"
