"""Conversion of normalized events into request bodies for either API dialect."""
import logging
import re
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from processor.errors import InvalidEvent
from processor.models import Dialect, Logo, NormalizedEvent, Visibility

logger = logging.getLogger(__name__)

V1_VISIBILITY = {
    Visibility.PUBLIC: 'public',
    Visibility.PRIVATE: 'private',
    Visibility.FRIENDS_ONLY: 'friends_only',
}

_VISIBILITY_NAMES = {
    'public': Visibility.PUBLIC,
    'private': Visibility.PRIVATE,
    'friends_only': Visibility.FRIENDS_ONLY,
    'members_only': Visibility.FRIENDS_ONLY,
}

DEFAULT_UTC_OFFSET = '-08:00'

_OFFSET_PATTERN = re.compile(r'^([+-])(\d{2}):?(\d{2})$')


@dataclass(frozen=True)
class MultipartParts:
    """Text structure of a multipart body around one binary attachment."""
    boundary: str
    text_part: str
    end_boundary: str

    @property
    def content_type(self) -> str:
        return f"multipart/form-data; boundary={self.boundary}"


def coerce_visibility(value) -> Optional[Visibility]:
    """
    Convert any representation of visibility into the numeric enum.

    Args:
        value: Visibility, int, numeric string or one of the v1 names

    Returns:
        Visibility or None when the value is empty or unknown
    """
    if value is None or value == '':
        return None
    if isinstance(value, Visibility):
        return value
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        try:
            return Visibility(value)
        except ValueError:
            return None
    text = str(value).strip().lower()
    if text.isdigit():
        return coerce_visibility(int(text))
    return _VISIBILITY_NAMES.get(text)


def coerce_bool(value) -> Optional[bool]:
    if value is None or value == '':
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    return str(value).strip().lower() in ('1', 'true', 'yes', 'on')


def parse_utc_offset(offset: str) -> timezone:
    """
    Parse a fixed UTC offset such as '-08:00'.

    Raises:
        ValueError: If the offset is malformed
    """
    match = _OFFSET_PATTERN.match(offset.strip())
    if not match:
        raise ValueError(f"Invalid UTC offset: {offset}")
    sign, hours, minutes = match.groups()
    delta = timedelta(hours=int(hours), minutes=int(minutes))
    return timezone(-delta if sign == '-' else delta)


def resolve_zone(time_zone: Optional[str], default_utc_offset: str) -> tzinfo:
    """
    Resolve an IANA zone name, falling back to the fixed default offset.

    Args:
        time_zone: Zone name such as 'America/Los_Angeles', may be None
        default_utc_offset: Offset used when no usable zone is given

    Returns:
        tzinfo for the zone or the fixed offset
    """
    if time_zone:
        try:
            return ZoneInfo(time_zone)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning(f"Unknown time zone '{time_zone}', using offset {default_utc_offset}")
    return parse_utc_offset(default_utc_offset)


def split_datetime(
    value: datetime,
    time_zone: Optional[str] = None,
    default_utc_offset: str = DEFAULT_UTC_OFFSET
) -> tuple[str, str]:
    """
    Split a datetime into the v1 'YYYY-MM-DD' and 'HH:MM' strings.

    An aware value is shifted into the zone the remote service will apply
    when reading the parts back: ``time_zone`` when it is known, otherwise
    the fixed ``default_utc_offset``.
    """
    if value.tzinfo is not None:
        value = value.astimezone(resolve_zone(time_zone, default_utc_offset))
    return value.strftime('%Y-%m-%d'), value.strftime('%H:%M')


def validate_new_event(event: NormalizedEvent) -> List[str]:
    """
    Check that an event carries what the remote service needs to create it.

    Returns:
        List of error messages, empty when valid
    """
    errors = []
    if not event.name or not event.name.strip():
        errors.append('Event name is required')
    if event.starts_at is None:
        errors.append('Start time is required')
    elif event.starts_at.tzinfo is None:
        errors.append('Start time must carry a timezone')
    return errors


def to_dialect_payload(
    dialect: Dialect,
    event: NormalizedEvent,
    all_day: Optional[bool] = None,
    default_utc_offset: str = DEFAULT_UTC_OFFSET
) -> Dict[str, Any]:
    """
    Build a request body for an event write in the given dialect.

    Unset fields are omitted rather than sent as nulls.

    Args:
        dialect: Target API dialect
        event: Event (complete or partial) to write
        all_day: Overrides ``event.all_day`` when not None
        default_utc_offset: Offset for v1 date and time parts of a zone-less event

    Returns:
        Flat dictionary for the legacy dialect, ``{'event': {...}}`` for v1
    """
    if all_day is None:
        all_day = event.all_day

    if dialect == Dialect.V1:
        return {'event': _v1_fields(event, all_day, default_utc_offset)}
    if dialect == Dialect.WEB:
        return _web_fields(event, all_day)
    raise ValueError(f"Unknown dialect: {dialect}")


def _v1_fields(
    event: NormalizedEvent,
    all_day: Optional[bool],
    default_utc_offset: str = DEFAULT_UTC_OFFSET
) -> Dict[str, Any]:
    body: Dict[str, Any] = {}
    if event.name is not None:
        body['name'] = event.name
    if event.desc is not None:
        body['description'] = event.desc
    if event.starts_at is not None:
        body['start_date'], body['start_time'] = split_datetime(
            event.starts_at, event.time_zone, default_utc_offset
        )
    if event.ends_at is not None:
        body['end_date'], body['end_time'] = split_datetime(
            event.ends_at, event.time_zone, default_utc_offset
        )
    if event.time_zone is not None:
        body['time_zone'] = event.time_zone
    if event.location is not None:
        body['location'] = event.location
    if all_day is not None:
        body['all_day'] = '1' if all_day else '0'
    if event.visibility is not None:
        body['visibility'] = V1_VISIBILITY[Visibility(event.visibility)]
    if event.organizer_ids is not None:
        body['organizer_ids'] = [str(i) for i in event.organizer_ids]
    if event.route_ids is not None:
        body['route_ids'] = [str(i) for i in event.route_ids]
    return body


def _web_fields(event: NormalizedEvent, all_day: Optional[bool]) -> Dict[str, Any]:
    body: Dict[str, Any] = {}
    if event.name is not None:
        body['name'] = event.name
    if event.desc is not None:
        body['desc'] = event.desc
    if event.starts_at is not None:
        body['starts_at'] = event.starts_at.isoformat()
    if event.ends_at is not None:
        body['ends_at'] = event.ends_at.isoformat()
    if event.time_zone is not None:
        body['time_zone'] = event.time_zone
    if event.location is not None:
        body['location'] = event.location
    if all_day is not None:
        body['all_day'] = '1' if all_day else '0'
    if event.visibility is not None:
        body['visibility'] = str(int(event.visibility))
    if event.organizer_ids is not None:
        body['organizer_tokens'] = [str(i) for i in event.organizer_ids]
    if event.route_ids is not None:
        body['route_ids'] = [str(i) for i in event.route_ids]
    return body


def generate_boundary() -> str:
    return '----RideSchedulerFormBoundary' + uuid.uuid4().hex


def build_multipart_parts(
    event: NormalizedEvent,
    logo: Logo,
    boundary: str,
    default_utc_offset: str = DEFAULT_UTC_OFFSET,
    all_day: Optional[bool] = False
) -> MultipartParts:
    """
    Build the text structure of a multipart event body with a logo.

    Each v1 event field becomes an ``event[<field>]`` part (array fields
    repeat as ``event[<field>][]``) followed by the header of the
    ``event[logo]`` file part. The logo bytes go between ``text_part`` and
    ``end_boundary``; see ``assemble_multipart``.

    Args:
        event: Event fields to send with the logo
        logo: Image to attach
        boundary: Multipart boundary string
        default_utc_offset: Offset for date and time parts of a zone-less event
        all_day: Sent when ``event.all_day`` is unset, None omits the part

    Returns:
        MultipartParts with the text before and after the binary data
    """
    if event.all_day is not None:
        all_day = event.all_day
    fields = _v1_fields(event, all_day, default_utc_offset)
    parts = []

    for key, value in fields.items():
        if isinstance(value, list):
            for item in value:
                parts.append(
                    f"--{boundary}\r\n"
                    f"Content-Disposition: form-data; name=\"event[{key}][]\"\r\n\r\n"
                    f"{item}\r\n"
                )
        else:
            parts.append(
                f"--{boundary}\r\n"
                f"Content-Disposition: form-data; name=\"event[{key}]\"\r\n\r\n"
                f"{value}\r\n"
            )

    parts.append(
        f"--{boundary}\r\n"
        f"Content-Disposition: form-data; name=\"event[logo]\"; filename=\"logo.{logo.extension}\"\r\n"
        f"Content-Type: {logo.content_type}\r\n\r\n"
    )

    return MultipartParts(
        boundary=boundary,
        text_part=''.join(parts),
        end_boundary=f"\r\n--{boundary}--\r\n"
    )


def assemble_multipart(parts: MultipartParts, data: bytes) -> bytes:
    return parts.text_part.encode('utf-8') + data + parts.end_boundary.encode('utf-8')


def ensure_valid_new_event(event: NormalizedEvent) -> None:
    """
    Raise if the event cannot be created.

    Raises:
        InvalidEvent: With every validation error joined into the message
    """
    errors = validate_new_event(event)
    if errors:
        raise InvalidEvent('Invalid event: ' + '; '.join(errors))
