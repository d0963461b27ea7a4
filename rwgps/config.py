"""Client configuration read from environment variables."""
import os
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple
from urllib.parse import urlparse

from processor.models import Dialect

# Fields the remote service does not reliably apply from a single PUT.
DEFAULT_DOUBLE_PUT_FIELDS = (
    'desc',
    'location',
    'ends_at',
    'all_day',
    'visibility',
    'organizer_ids',
    'route_ids',
    'time_zone',
)


@dataclass(frozen=True)
class ClientConfig:
    """Settings for one RWGPSClient."""
    base_url: str = 'https://ridewithgps.com'
    club_id: int = 47
    session_cookie_name: str = '_rwgps_3_session'
    edit_strategy: str = 'double'
    double_put_fields: Tuple[str, ...] = DEFAULT_DOUBLE_PUT_FIELDS
    write_dialect: Dialect = Dialect.V1
    default_utc_offset: str = '-08:00'
    route_expiry_days: int = 30
    route_copy_user_id: Optional[int] = None
    template_url: Optional[str] = None
    tbd_organizer_id: Optional[str] = None
    tbd_organizer_name: str = 'To Be Determined'
    timeout: int = 30

    @property
    def host(self) -> str:
        return urlparse(self.base_url).netloc

    @property
    def api_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/api/v1"

    @property
    def login_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/organizations/{self.club_id}/sign_in"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'ClientConfig':
        """
        Build a configuration from environment variables.

        Args:
            environ: Mapping to read instead of os.environ

        Returns:
            ClientConfig with defaults for unset variables
        """
        env = os.environ if environ is None else environ
        defaults = cls()

        double_put_fields = defaults.double_put_fields
        if env.get('RWGPS_DOUBLE_PUT_FIELDS'):
            double_put_fields = tuple(
                f.strip() for f in env['RWGPS_DOUBLE_PUT_FIELDS'].split(',') if f.strip()
            )

        copy_user_id = env.get('RWGPS_ROUTE_COPY_USER_ID')

        return cls(
            base_url=env.get('RWGPS_BASE_URL', defaults.base_url),
            club_id=int(env.get('RWGPS_CLUB_ID', defaults.club_id)),
            session_cookie_name=env.get('RWGPS_SESSION_COOKIE', defaults.session_cookie_name),
            edit_strategy=env.get('RWGPS_EDIT_STRATEGY', defaults.edit_strategy).lower(),
            double_put_fields=double_put_fields,
            write_dialect=Dialect(env.get('RWGPS_WRITE_DIALECT', defaults.write_dialect.value).lower()),
            default_utc_offset=env.get('RWGPS_DEFAULT_UTC_OFFSET', defaults.default_utc_offset),
            route_expiry_days=int(env.get('ROUTE_EXPIRY_DAYS', defaults.route_expiry_days)),
            route_copy_user_id=int(copy_user_id) if copy_user_id else None,
            template_url=env.get('RWGPS_TEMPLATE_URL') or None,
            tbd_organizer_id=env.get('RIDE_LEADER_TBD_ID') or None,
            tbd_organizer_name=env.get('RIDE_LEADER_TBD_NAME', defaults.tbd_organizer_name),
            timeout=int(env.get('TIMEOUT_SECONDS', defaults.timeout)),
        )
