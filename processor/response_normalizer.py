"""Normalization of remote responses from either API dialect."""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from processor.errors import InvalidEvent
from processor.models import Dialect, NormalizedEvent, Organizer, RouteDetail
from processor.payload_transformer import (
    DEFAULT_UTC_OFFSET,
    coerce_bool,
    coerce_visibility,
    parse_utc_offset,
    resolve_zone,
)

logger = logging.getLogger(__name__)


def unwrap(body: Any, key: str) -> Dict[str, Any]:
    """Return ``body[key]`` for an enveloped body, else the body itself."""
    if isinstance(body, dict) and isinstance(body.get(key), dict):
        return body[key]
    if isinstance(body, dict):
        return body
    raise ValueError(f"Expected a JSON object, got {type(body).__name__}")


def parse_timestamp(value, default_utc_offset: str = DEFAULT_UTC_OFFSET) -> Optional[datetime]:
    """
    Parse an ISO 8601 timestamp into an aware datetime.

    Args:
        value: ISO string or datetime; naive values get the default offset
        default_utc_offset: Offset applied to naive values

    Returns:
        Aware datetime, or None for empty input

    Raises:
        ValueError: If the string is not ISO 8601
    """
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=parse_utc_offset(default_utc_offset))
    return parsed


def combine_date_time(
    date_str: str,
    time_str: Optional[str],
    time_zone: Optional[str],
    default_utc_offset: str = DEFAULT_UTC_OFFSET
) -> datetime:
    """
    Combine v1 ``start_date`` and ``start_time`` into one aware datetime.

    The zone is applied DST-aware when ``time_zone`` names a known IANA
    zone; otherwise the fixed default offset is used. A missing time means
    midnight.
    """
    time_str = (time_str or '00:00').strip()
    time_format = '%H:%M:%S' if time_str.count(':') == 2 else '%H:%M'
    naive = datetime.strptime(f"{date_str.strip()} {time_str}", f"%Y-%m-%d {time_format}")
    return naive.replace(tzinfo=resolve_zone(time_zone, default_utc_offset))


def _id_list(value) -> Optional[List[str]]:
    if value is None:
        return None
    if isinstance(value, str):
        items = value.split(',')
    elif isinstance(value, (list, tuple)):
        items = []
        for item in value:
            if isinstance(item, dict):
                item = item.get('id')
            if isinstance(item, (list, tuple)):
                continue
            items.append(item)
    else:
        items = [value]
    return [str(item).strip() for item in items if item is not None and str(item).strip()]


def _organizers(body: Dict[str, Any]) -> Optional[List[Organizer]]:
    organizers = body.get('organizers')
    if not isinstance(organizers, list):
        return None
    result = []
    for organizer in organizers:
        if not isinstance(organizer, dict) or organizer.get('id') is None:
            continue
        text = organizer.get('text')
        if text is None:
            text = organizer.get('name', '')
        result.append(Organizer(id=str(organizer['id']), text=text))
    return result


def _start(body: Dict[str, Any], dialect: Dialect, default_utc_offset: str, prefix: str) -> Optional[datetime]:
    date_value = body.get(f'{prefix}_date')
    time_value = body.get(f'{prefix}_time')
    combined = body.get(f'{prefix}s_at')

    def from_split():
        if date_value:
            return combine_date_time(date_value, time_value, body.get('time_zone'), default_utc_offset)
        return None

    def from_combined():
        return parse_timestamp(combined, default_utc_offset) if combined else None

    readers = (from_split, from_combined) if dialect == Dialect.V1 else (from_combined, from_split)
    for reader in readers:
        value = reader()
        if value is not None:
            return value
    return None


def from_dialect_response(
    dialect: Dialect,
    body: Any,
    default_utc_offset: str = DEFAULT_UTC_OFFSET
) -> NormalizedEvent:
    """
    Convert an event body from either dialect into a NormalizedEvent.

    Args:
        dialect: Dialect that produced the body
        body: Decoded JSON, optionally wrapped as ``{'event': {...}}``
        default_utc_offset: Offset used for v1 times without ``time_zone``

    Returns:
        NormalizedEvent

    Raises:
        ValueError: If the body is not an object or carries a bad timestamp
    """
    event = unwrap(body, 'event')

    desc = event.get('description')
    if desc is None:
        desc = event.get('desc')

    organizers = _organizers(event)
    if organizers is not None:
        organizer_ids = [o.id for o in organizers]
    else:
        organizer_ids = _id_list(event.get('organizer_ids'))
        if organizer_ids is None:
            organizer_ids = _id_list(event.get('organizer_tokens'))

    route_ids = _id_list(event.get('route_ids'))
    if route_ids is None:
        route_ids = _id_list(event.get('routes'))

    return NormalizedEvent(
        id=str(event['id']) if event.get('id') is not None else None,
        name=event.get('name'),
        desc=desc,
        starts_at=_start(event, dialect, default_utc_offset, 'start'),
        ends_at=_start(event, dialect, default_utc_offset, 'end'),
        location=event.get('location'),
        visibility=coerce_visibility(event.get('visibility')),
        all_day=coerce_bool(event.get('all_day')),
        organizer_ids=organizer_ids,
        organizers=organizers,
        route_ids=route_ids,
        time_zone=event.get('time_zone') or None,
    )


def event_from_fields(fields, default_utc_offset: str = DEFAULT_UTC_OFFSET) -> NormalizedEvent:
    """
    Build a NormalizedEvent from caller-supplied fields.

    Accepts an existing NormalizedEvent unchanged or a plain dictionary in
    normalized shape (ISO strings for ``starts_at``/``ends_at``).

    Raises:
        InvalidEvent: If the fields cannot be interpreted
    """
    if isinstance(fields, NormalizedEvent):
        return fields
    if not isinstance(fields, dict):
        raise InvalidEvent('Event fields must be a dictionary')

    try:
        starts_at = parse_timestamp(fields.get('starts_at'), default_utc_offset)
        ends_at = parse_timestamp(fields.get('ends_at'), default_utc_offset)
    except ValueError as e:
        raise InvalidEvent(f"Invalid event timestamp: {e}") from e

    desc = fields.get('desc')
    if desc is None:
        desc = fields.get('description')

    visibility = fields.get('visibility')
    if visibility is not None and coerce_visibility(visibility) is None:
        raise InvalidEvent(f"Invalid visibility: {visibility}")

    return NormalizedEvent(
        id=str(fields['id']) if fields.get('id') is not None else None,
        name=fields.get('name'),
        desc=desc,
        starts_at=starts_at,
        ends_at=ends_at,
        location=fields.get('location'),
        visibility=coerce_visibility(visibility),
        all_day=coerce_bool(fields.get('all_day')),
        organizer_ids=_id_list(fields.get('organizer_ids')),
        route_ids=_id_list(fields.get('route_ids')),
        time_zone=fields.get('time_zone'),
    )


def normalize_route(body: Any, base_url: str) -> RouteDetail:
    """
    Convert a v1 route body into a RouteDetail.

    Args:
        body: Decoded JSON, optionally wrapped as ``{'route': {...}}``
        base_url: Service base URL used to build the route's canonical URL

    Returns:
        RouteDetail
    """
    route = unwrap(body, 'route')
    route_id = str(route['id'])

    tag_names = route.get('tag_names') or []
    if isinstance(tag_names, str):
        tag_names = [t.strip() for t in tag_names.split(',') if t.strip()]

    user_id = route.get('user_id')
    return RouteDetail(
        id=route_id,
        name=route.get('name'),
        url=f"{base_url.rstrip('/')}/routes/{route_id}",
        tag_names=list(tag_names),
        user_id=str(user_id) if user_id is not None else None,
        distance=route.get('distance'),
        elevation_gain=route.get('elevation_gain'),
        raw=route,
    )
