"""Data models for ride scheduling against the Ride with GPS API."""
from dataclasses import asdict, dataclass, field, replace
from datetime import datetime
from enum import Enum, IntEnum
from typing import Any, Dict, List, Optional, Union

from requests.structures import CaseInsensitiveDict


class Dialect(str, Enum):
    """The two API surfaces exposed by the remote service."""
    WEB = 'web'
    V1 = 'v1'


class Visibility(IntEnum):
    """Event visibility as stored by the legacy dialect."""
    PUBLIC = 0
    PRIVATE = 1
    FRIENDS_ONLY = 2


@dataclass(frozen=True)
class Credentials:
    """Authentication material for one client instance."""
    api_key: str
    auth_token: str
    username: str
    password: str

    def __repr__(self) -> str:
        return f"Credentials(username={self.username!r}, api_key='***', auth_token='***', password='***')"


@dataclass(frozen=True)
class ResourceIdentity:
    """Numeric identity of an event or route extracted from its URL."""
    kind: str
    id: str
    url: str


@dataclass(frozen=True)
class Organizer:
    """Ride leader as returned by the organizer lookup."""
    id: str
    text: str


@dataclass
class NormalizedEvent:
    """Dialect-independent event representation.

    Every field is optional so the same type can carry a partial edit.
    ``starts_at`` and ``ends_at`` are timezone-aware datetimes.
    """
    name: Optional[str] = None
    starts_at: Optional[datetime] = None
    id: Optional[str] = None
    desc: Optional[str] = None
    ends_at: Optional[datetime] = None
    location: Optional[str] = None
    visibility: Optional[Visibility] = None
    all_day: Optional[bool] = None
    organizer_ids: Optional[List[str]] = None
    organizers: Optional[List[Organizer]] = None
    route_ids: Optional[List[str]] = None
    time_zone: Optional[str] = None

    @property
    def description(self) -> Optional[str]:
        return self.desc

    def replace(self, **changes: Any) -> 'NormalizedEvent':
        """Return a copy of this event with the given fields changed."""
        return replace(self, **changes)

    def set_fields(self) -> List[str]:
        """Names of the fields that carry a value."""
        return [name for name, value in vars(self).items() if value is not None]

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to a plain dictionary readable by consumers of either dialect.

        Both ``desc`` and ``description`` are present, organizers use the
        ``{id, text}`` shape and routes are exposed both as ``route_ids`` and
        ``routes``.

        Returns:
            Dictionary with unset fields omitted
        """
        data: Dict[str, Any] = {}
        if self.id is not None:
            data['id'] = self.id
        if self.name is not None:
            data['name'] = self.name
        if self.desc is not None:
            data['desc'] = self.desc
            data['description'] = self.desc
        if self.starts_at is not None:
            data['starts_at'] = self.starts_at.isoformat()
        if self.ends_at is not None:
            data['ends_at'] = self.ends_at.isoformat()
        if self.location is not None:
            data['location'] = self.location
        if self.visibility is not None:
            data['visibility'] = int(self.visibility)
        if self.all_day is not None:
            data['all_day'] = self.all_day
        if self.time_zone is not None:
            data['time_zone'] = self.time_zone
        if self.organizer_ids is not None:
            data['organizer_ids'] = list(self.organizer_ids)
        if self.organizers is not None:
            data['organizers'] = [asdict(o) for o in self.organizers]
        if self.route_ids is not None:
            data['route_ids'] = list(self.route_ids)
            data['routes'] = [{'id': route_id} for route_id in self.route_ids]
        return data


@dataclass
class Logo:
    """Binary image attached to an event."""
    data: bytes
    content_type: str
    filename: Optional[str] = None

    @property
    def extension(self) -> str:
        """File extension the remote service expects for this content type."""
        content_type = self.content_type.lower()
        for ext in ('png', 'gif', 'webp'):
            if ext in content_type:
                return ext
        return 'jpg'


@dataclass
class RouteDetail:
    """Normalized route as fetched from the v1 API."""
    id: str
    name: Optional[str]
    url: str
    tag_names: List[str] = field(default_factory=list)
    user_id: Optional[str] = None
    distance: Optional[float] = None
    elevation_gain: Optional[float] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data.pop('raw')
        return data


@dataclass
class TransportResponse:
    """Response returned by a transport: status, headers and body text."""
    status_code: int
    headers: Any = field(default_factory=CaseInsensitiveDict)
    body_text: str = ''
    content: bytes = b''

    def __post_init__(self):
        if not isinstance(self.headers, CaseInsensitiveDict):
            self.headers = CaseInsensitiveDict(self.headers or {})
        if not self.content and self.body_text:
            self.content = self.body_text.encode('utf-8')


@dataclass
class OperationResult:
    """Uniform envelope returned by every public client operation."""
    success: bool
    data: Any = None
    event_url: Optional[str] = None
    route_url: Optional[str] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    status_code: Optional[int] = None
    warnings: List[str] = field(default_factory=list)
    skipped: bool = False

    @classmethod
    def ok(cls, data: Any = None, **kwargs: Any) -> 'OperationResult':
        return cls(success=True, data=data, **kwargs)

    @classmethod
    def failure(
        cls,
        error: str,
        error_type: Optional[str] = None,
        status_code: Optional[int] = None
    ) -> 'OperationResult':
        return cls(
            success=False,
            error=error,
            error_type=error_type,
            status_code=status_code
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to a JSON-serializable dictionary.

        Returns:
            Dictionary containing ``success`` plus whichever fields are set
        """
        data: Dict[str, Any] = {'success': self.success}
        if self.success:
            if self.data is not None:
                data['data'] = _serialize(self.data)
            if self.event_url:
                data['eventUrl'] = self.event_url
            if self.route_url:
                data['routeUrl'] = self.route_url
            if self.warnings:
                data['warnings'] = list(self.warnings)
            if self.skipped:
                data['skipped'] = True
        else:
            data['error'] = self.error
            if self.error_type:
                data['errorType'] = self.error_type
            if self.status_code is not None:
                data['statusCode'] = self.status_code
            if self.route_url:
                data['routeUrl'] = self.route_url
        return data


def _serialize(value: Union[Any, List[Any]]) -> Any:
    if isinstance(value, list):
        return [_serialize(item) for item in value]
    if isinstance(value, Organizer):
        return asdict(value)
    if hasattr(value, 'to_dict'):
        return value.to_dict()
    return value
