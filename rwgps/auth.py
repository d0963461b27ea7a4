"""Authentication for the two API dialects: session cookie and Basic-Auth."""
import base64
import logging
from typing import Callable, Dict, Optional

from processor.errors import AuthRequired, TransportError
from processor.models import Credentials, Dialect, TransportResponse

logger = logging.getLogger(__name__)

USER_AGENT = (
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
    '(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36'
)


def build_basic_auth_header(api_key: str, auth_token: str) -> str:
    encoded = base64.b64encode(f"{api_key}:{auth_token}".encode('utf-8')).decode('ascii')
    return f"Basic {encoded}"


class BasicAuth:
    """Stateless Basic-Auth for the v1 dialect, from api key and auth token."""

    def __init__(self, credentials: Credentials):
        self._credentials = credentials

    def headers(self) -> Dict[str, str]:
        return {
            'Authorization': build_basic_auth_header(
                self._credentials.api_key,
                self._credentials.auth_token
            )
        }


class SessionAuth:
    """Session-cookie authentication for the legacy web dialect."""

    def __init__(self, credentials: Credentials, login_url: str, cookie_name: str):
        """
        Initialize without a session.

        Args:
            credentials: Credentials; only username and password are used
            login_url: Sign-in endpoint
            cookie_name: Name of the session cookie set by the service
        """
        self._credentials = credentials
        self.login_url = login_url
        self.cookie_name = cookie_name
        self._cookie: Optional[str] = None

    @property
    def session_cookie(self) -> Optional[str]:
        return self._cookie

    @property
    def is_authenticated(self) -> bool:
        return self._cookie is not None

    def clear_session(self) -> None:
        self._cookie = None

    def login(self, fetch: Callable[..., TransportResponse]) -> bool:
        """
        Sign in and keep the session cookie.

        Redirects are not followed so the cookie on the 302 is visible.

        Args:
            fetch: Transport-compatible callable used for the request

        Returns:
            True if a session cookie is held afterwards
        """
        self.clear_session()
        try:
            response = fetch(
                'POST',
                self.login_url,
                headers={
                    'user-email': self._credentials.username,
                    'user-password': self._credentials.password,
                    'Content-Type': 'application/json',
                },
                follow_redirects=False
            )
        except TransportError as e:
            logger.error(f"Login request failed: {e}")
            return False

        self.observe(response)
        if self._cookie is None:
            logger.warning(
                "Login did not return a session cookie",
                extra={'status_code': response.status_code}
            )
            return False
        logger.info("Login succeeded")
        return True

    def observe(self, response: TransportResponse) -> None:
        """Replace the session cookie if the response sets a new one."""
        values = response.headers.get('Set-Cookie')
        if not values:
            return
        if isinstance(values, str):
            values = [values]

        prefix = f"{self.cookie_name}="
        for value in values:
            cookie = value.strip().split(';')[0]
            if cookie.startswith(prefix):
                if cookie != self._cookie:
                    logger.debug("Session cookie updated")
                self._cookie = cookie
                return

    def headers(self) -> Dict[str, str]:
        """
        Headers for a session-authenticated request.

        Raises:
            AuthRequired: If no session cookie is held
        """
        if self._cookie is None:
            raise AuthRequired('Web session not authenticated. Call login() first.')
        return {'Cookie': self._cookie, 'User-Agent': USER_AGENT}


class AuthStrategy:
    """Selects the authentication scheme per dialect for one client."""

    def __init__(self, credentials: Credentials, login_url: str, cookie_name: str):
        self.basic = BasicAuth(credentials)
        self.session = SessionAuth(credentials, login_url, cookie_name)

    def headers_for(self, dialect: Dialect) -> Dict[str, str]:
        if dialect == Dialect.V1:
            return self.basic.headers()
        return self.session.headers()

    def login(self, fetch: Callable[..., TransportResponse]) -> bool:
        return self.session.login(fetch)
