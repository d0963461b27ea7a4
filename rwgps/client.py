"""Ride with GPS client: the multi-step ride scheduling workflows."""
import json
import logging
import time
from functools import partial
from typing import Any, Dict, Iterable, List, Optional, Union
from urllib.parse import urljoin

from processor.error_result import build_error_message, is_success_status
from processor.errors import (
    PARTIAL_SUCCESS,
    AuthFailed,
    RemoteError,
    RideSchedulerError,
)
from processor.models import (
    Credentials,
    Dialect,
    Logo,
    NormalizedEvent,
    OperationResult,
    Organizer,
    ResourceIdentity,
    RouteDetail,
    TransportResponse,
)
from processor.organizers import (
    OrganizerLookup,
    find_matching_organizer,
    resolve_organizer_ids,
    search_term,
)
from processor.payload_transformer import (
    assemble_multipart,
    build_multipart_parts,
    ensure_valid_new_event,
    generate_boundary,
    to_dialect_payload,
)
from processor.response_normalizer import (
    event_from_fields,
    from_dialect_response,
    normalize_route,
    unwrap,
)
from processor.ride_state import cancelled_name, reinstated_name
from processor.tags import (
    build_batch_tag_payload,
    build_expiration_tag,
    build_expiry_tag,
    coerce_date,
    find_expiration_tag,
    is_expiration_newer,
)
from processor.url_identity import UrlIdentity
from rwgps.auth import AuthStrategy
from rwgps.config import ClientConfig
from rwgps.edit_strategy import EditStrategy, make_edit_strategy
from rwgps.http_transport import RequestsTransport, Transport

logger = logging.getLogger(__name__)

# Form the legacy copy endpoint expects; the copy is renamed by the next edit.
TEMPLATE_COPY_FORM = {
    'event[name]': 'COPIED EVENT',
    'event[all_day]': '0',
    'event[copy_routes]': '0',
    'event[start_date]': '',
    'event[start_time]': '',
}


class RWGPSClient:
    """
    Client for ride events and routes on Ride with GPS.

    One instance owns one set of credentials and at most one web session.
    Every public operation returns an OperationResult; failures of the
    remote service or the transport are reported in the result, never
    raised.
    """

    def __init__(
        self,
        credentials: Credentials,
        transport: Optional[Transport] = None,
        config: Optional[ClientConfig] = None,
        edit_strategy: Optional[EditStrategy] = None,
        organizer_lookup: Optional[OrganizerLookup] = None,
        call_log=None
    ):
        """
        Initialize the client.

        Args:
            credentials: Username/password for the web session plus
                api key/auth token for the v1 API
            transport: Callable performing HTTP requests
                (default: RequestsTransport)
            config: Client configuration (default: ClientConfig())
            edit_strategy: How event edits are submitted
                (default: from config)
            organizer_lookup: Resolves organizer names to Organizers
                (default: the template event's organizer search, when a
                template URL is configured)
            call_log: Optional ApiCallLog recording each request
        """
        self.config = config or ClientConfig()
        self.transport = transport or RequestsTransport(timeout=self.config.timeout)
        self.auth = AuthStrategy(
            credentials,
            self.config.login_url,
            self.config.session_cookie_name
        )
        self.urls = UrlIdentity(self.config.host)
        self.edit_strategy = edit_strategy or make_edit_strategy(
            self.config.edit_strategy,
            self.config.double_put_fields
        )
        self.organizer_lookup = organizer_lookup
        self.call_log = call_log

    # -- session ---------------------------------------------------------

    def login(self) -> bool:
        """
        Sign in to the web dialect.

        Returns:
            True if a session cookie is now held
        """
        return self.auth.login(partial(self._fetch, 'login'))

    @property
    def is_authenticated(self) -> bool:
        return self.auth.session.is_authenticated

    def _require_login(self) -> None:
        if not self.login():
            raise AuthFailed('Login failed: no session cookie returned')

    # -- events ----------------------------------------------------------

    def get_event(self, event_url: str, dialect: Dialect = Dialect.V1) -> OperationResult:
        """
        Fetch an event.

        Args:
            event_url: Public event URL
            dialect: API dialect to read from; WEB requires a session

        Returns:
            OperationResult with a NormalizedEvent as data
        """
        try:
            identity = self.urls.parse('event', event_url)
            event = self._read_event(identity, dialect)
        except RideSchedulerError as e:
            return self._failure('get_event', e)
        return OperationResult.ok(event, event_url=event_url)

    def edit_event(self, event_url: str, fields) -> OperationResult:
        """
        Update an event with the given fields.

        Only fields that are set are written.

        Args:
            event_url: Public event URL
            fields: NormalizedEvent or dict of normalized fields

        Returns:
            OperationResult with the updated NormalizedEvent
        """
        try:
            identity = self.urls.parse('event', event_url)
            event = event_from_fields(fields, self.config.default_utc_offset)
            updated = self._write_event(identity, event)
        except RideSchedulerError as e:
            return self._failure('edit_event', e)
        return OperationResult.ok(updated, event_url=event_url)

    def create_event(self, fields, logo: Union[Logo, bytes, str, None] = None) -> OperationResult:
        """
        Create an event through the v1 API.

        Args:
            fields: NormalizedEvent or dict with at least name and starts_at
            logo: Optional Logo, raw image bytes or image URL to download

        Returns:
            OperationResult with the created event and its URL
        """
        try:
            event = event_from_fields(fields, self.config.default_utc_offset)
            ensure_valid_new_event(event)
            created, event_url = self._create_event(event, self._resolve_logo(logo))
        except RideSchedulerError as e:
            return self._failure('create_event', e)
        return OperationResult.ok(created, event_url=event_url)

    def delete_event(self, event_url: str) -> OperationResult:
        try:
            identity = self.urls.parse('event', event_url)
            self._delete_event(identity)
        except RideSchedulerError as e:
            return self._failure('delete_event', e)
        return OperationResult.ok(event_url=event_url)

    def delete_events(self, event_urls: Iterable[str]) -> List[OperationResult]:
        """Delete several events, one result per URL in the same order."""
        return [self.delete_event(url) for url in event_urls]

    def cancel_event(self, event_url: str) -> OperationResult:
        """
        Mark an event cancelled by prefixing its name.

        Returns:
            OperationResult; AlreadyCancelled if the name is already prefixed
        """
        return self._change_state('cancel_event', event_url, cancelled_name)

    def reinstate_event(self, event_url: str) -> OperationResult:
        """
        Remove the cancellation prefix from an event name.

        Returns:
            OperationResult; NotCancelled if the event is active
        """
        return self._change_state('reinstate_event', event_url, reinstated_name)

    def _change_state(self, operation: str, event_url: str, rename) -> OperationResult:
        try:
            identity = self.urls.parse('event', event_url)
            current = self._read_event(identity, Dialect.V1)
            new_name = rename(current.name)
            updated = self._write_event(identity, NormalizedEvent(name=new_name))
        except RideSchedulerError as e:
            return self._failure(operation, e)
        logger.info(
            f"Event {identity.id} renamed to '{new_name}'",
            extra={'operation': operation}
        )
        return OperationResult.ok(updated, event_url=event_url)

    def schedule_event(
        self,
        fields,
        organizers: Optional[List[Any]] = None,
        logo: Union[Logo, bytes, str, None] = None,
        tags: Optional[List[str]] = None
    ) -> OperationResult:
        """
        Create a fully configured ride event.

        Logs in, creates the event, then edits it with the full field set
        and organizer ids, because creation does not apply every field. If
        that edit fails the new event is deleted again. Organizer
        resolution and tagging failures are reported as warnings.

        Args:
            fields: NormalizedEvent or dict with at least name and starts_at
            organizers: Organizer ids and/or names
            logo: Optional Logo, raw image bytes or image URL
            tags: Optional tags to add to the new event

        Returns:
            OperationResult with the scheduled event and its URL
        """
        warnings: List[str] = []
        try:
            event = event_from_fields(fields, self.config.default_utc_offset)
            ensure_valid_new_event(event)
            self._require_login()

            organizer_ids, organizer_warnings = resolve_organizer_ids(
                organizers or [],
                self._organizer_lookup(),
                self.config.tbd_organizer_id
            )
            warnings.extend(organizer_warnings)

            created, event_url = self._create_event(event, self._resolve_logo(logo))
            identity = self.urls.parse('event', event_url)

            try:
                updated = self._write_event(
                    identity,
                    event.replace(id=None, organizer_ids=organizer_ids)
                )
            except RideSchedulerError as e:
                self._compensate(identity, e)
                raise

            if tags:
                try:
                    self._batch_tags('event', [identity.id], 'add', tags)
                except RideSchedulerError as e:
                    warnings.append(self._partial('schedule_event', 'Adding event tags', e))
        except RideSchedulerError as e:
            return self._failure('schedule_event', e)

        logger.info(
            f"Scheduled event {identity.id}",
            extra={'operation': 'schedule_event'}
        )
        return OperationResult.ok(updated, event_url=event_url, warnings=warnings)

    def update_event(
        self,
        event_url: str,
        fields,
        organizers: Optional[List[Any]] = None,
        old_group: Optional[str] = None,
        new_group: Optional[str] = None,
        logo: Union[Logo, bytes, str, None] = None
    ) -> OperationResult:
        """
        Log in and edit an event, resolving organizer names when given.

        When the ride moves to another group the old group tag is swapped
        for the new one. A given logo replaces the event's logo through a
        multipart v1 PUT. Tag and logo failures are reported as warnings
        because the field edit has already been written.

        Args:
            event_url: Public event URL
            fields: NormalizedEvent or dict of normalized fields
            organizers: Organizer ids and/or names; None leaves them as is
            old_group: Group tag the event carried before the edit
            new_group: Group tag the event carries after the edit
            logo: Optional Logo, raw image bytes or image URL

        Returns:
            OperationResult with the updated event
        """
        warnings: List[str] = []
        try:
            identity = self.urls.parse('event', event_url)
            event = event_from_fields(fields, self.config.default_utc_offset)
            self._require_login()

            if organizers is not None:
                organizer_ids, warnings = resolve_organizer_ids(
                    organizers,
                    self._organizer_lookup(),
                    self.config.tbd_organizer_id
                )
                event = event.replace(organizer_ids=organizer_ids)

            updated = self._write_event(identity, event)
        except RideSchedulerError as e:
            return self._failure('update_event', e)

        if logo is not None:
            try:
                self._replace_logo(identity, self._resolve_logo(logo))
            except RideSchedulerError as e:
                warnings.append(self._partial('update_event', 'Updating event logo', e))

        if old_group and new_group and old_group != new_group:
            try:
                self._batch_tags('event', [identity.id], 'remove', [old_group])
            except RideSchedulerError as e:
                warnings.append(self._partial('update_event', 'Removing old group tag', e))
            try:
                self._batch_tags('event', [identity.id], 'add', [new_group])
            except RideSchedulerError as e:
                warnings.append(self._partial('update_event', 'Adding new group tag', e))

        return OperationResult.ok(updated, event_url=event_url, warnings=warnings)

    def copy_template(self, template_url: str) -> OperationResult:
        """
        Copy a template event through the web dialect.

        Requires a session. The copy is named 'COPIED EVENT' until edited.

        Returns:
            OperationResult with the new event's URL
        """
        try:
            identity = self.urls.parse('event', template_url)
            response = self._web(
                'copy_template',
                'POST',
                f"{self.urls.canonical_url('event', identity.id)}/copy",
                body=dict(TEMPLATE_COPY_FORM),
                follow_redirects=False
            )
            location = response.headers.get('Location')
            if response.status_code not in (200, 302) or not location:
                raise RemoteError(
                    build_error_message(response, 'Copy template'),
                    response.status_code
                )
            new_url = urljoin(self.config.base_url, location)
            new_id = self.urls.extract_id('event', new_url)
        except RideSchedulerError as e:
            return self._failure('copy_template', e)
        return OperationResult.ok({'id': new_id}, event_url=new_url)

    # -- organizers and members -------------------------------------------

    def lookup_organizers(self, names: List[str]) -> OperationResult:
        """
        Resolve organizer names through the template event's search.

        Requires a session and a configured template URL. Names without an
        exact match come back with the TBD id.

        Returns:
            OperationResult with a list of Organizers
        """
        try:
            organizers = self._search_organizers(names)
        except RideSchedulerError as e:
            return self._failure('lookup_organizers', e)
        return OperationResult.ok(organizers)

    def get_club_members(self) -> OperationResult:
        try:
            response = self._web(
                'get_club_members',
                'GET',
                f"{self.config.base_url.rstrip('/')}/clubs/{self.config.club_id}/table_members.json"
            )
            self._expect(response, 'Get club members')
            members = self._json(response, 'Get club members')
        except RideSchedulerError as e:
            return self._failure('get_club_members', e)
        return OperationResult.ok(members)

    # -- routes ----------------------------------------------------------

    def get_route(self, route_url: str) -> OperationResult:
        try:
            identity = self.urls.parse('route', route_url)
            route = self._read_route(identity)
        except RideSchedulerError as e:
            return self._failure('get_route', e)
        return OperationResult.ok(route, route_url=route.url)

    def import_route(
        self,
        source_url: str,
        tags: Optional[List[str]] = None,
        expiry=None,
        name: Optional[str] = None,
        ride_date=None,
        group: Optional[str] = None
    ) -> OperationResult:
        """
        Copy a route into the club account and tag it.

        The copy is fetched back through the v1 API, then tagged with the
        requested tags, the group and an expiry marker derived from
        ``ride_date``. A failed fetch fails the import with the copy's URL
        in the result; tag failures are warnings.

        Args:
            source_url: Public URL of the route to copy
            tags: Tags to add to the copy
            expiry: Expiration date passed to the copy request
            name: Name for the copy
            ride_date: Date of the ride the route is used for
            group: Ride group name, added as a tag

        Returns:
            OperationResult with the copied RouteDetail and its URL
        """
        warnings: List[str] = []
        try:
            source = self.urls.parse('route', source_url)
            all_tags = list(tags or [])
            if group:
                all_tags.append(group)
            if ride_date is not None:
                all_tags.append(build_expiry_tag(ride_date, self.config.route_expiry_days))
            expiry_text = coerce_date(expiry).strftime('%m/%d/%Y') if expiry is not None else None

            self._require_login()
            route_url = self._copy_route(source, name, expiry_text, all_tags)
            identity = self.urls.parse('route', route_url)

            try:
                route = self._read_route(identity)
            except RideSchedulerError as e:
                result = self._failure(
                    'import_route',
                    RemoteError(f"Route copied to {route_url} but could not be fetched: {e}", e.status_code)
                )
                result.route_url = route_url
                return result

            if all_tags:
                try:
                    self._batch_tags('route', [identity.id], 'add', all_tags)
                    route.tag_names.extend(t for t in all_tags if t not in route.tag_names)
                except RideSchedulerError as e:
                    warnings.append(self._partial('import_route', 'Adding route tags', e))
        except RideSchedulerError as e:
            return self._failure('import_route', e)

        logger.info(
            f"Imported route {source.id} as {identity.id}",
            extra={'operation': 'import_route'}
        )
        return OperationResult.ok(route, route_url=route_url, warnings=warnings)

    def set_route_expiration(
        self,
        route_url: str,
        expiry_date,
        force_update: bool = False,
        extend_only: bool = False
    ) -> OperationResult:
        """
        Set the 'expires: MM/DD/YYYY' tag of a route.

        An existing expiration is only replaced by a strictly later date,
        unless ``force_update`` is set. Writing requires a session.

        Args:
            route_url: Public route URL
            expiry_date: New expiration date
            force_update: Replace the tag even with an earlier date
            extend_only: Only touch routes that already carry an expiration

        Returns:
            OperationResult; ``skipped`` is True when nothing was written
        """
        try:
            identity = self.urls.parse('route', route_url)
            new_date = coerce_date(expiry_date)
            route = self._read_route(identity)

            existing = find_expiration_tag(route.tag_names)
            if existing is None and extend_only:
                logger.info(
                    f"Route {identity.id} has no expiration to extend",
                    extra={'operation': 'set_route_expiration'}
                )
                return OperationResult.ok(
                    {'expiration_tag': None},
                    route_url=route_url,
                    skipped=True
                )
            if existing and not force_update and not is_expiration_newer(existing, new_date):
                logger.info(
                    f"Route {identity.id} keeps '{existing}'",
                    extra={'operation': 'set_route_expiration'}
                )
                return OperationResult.ok(
                    {'expiration_tag': existing},
                    route_url=route_url,
                    skipped=True
                )

            new_tag = build_expiration_tag(new_date)
            if existing:
                self._batch_tags('route', [identity.id], 'remove', [existing])
            self._batch_tags('route', [identity.id], 'add', [new_tag])
        except RideSchedulerError as e:
            return self._failure('set_route_expiration', e)
        return OperationResult.ok(
            {'expiration_tag': new_tag, 'previous_tag': existing},
            route_url=route_url
        )

    # -- tags ------------------------------------------------------------

    def add_event_tags(self, event_urls, tags: List[str]) -> OperationResult:
        return self._update_tags('event', event_urls, 'add', tags)

    def remove_event_tags(self, event_urls, tags: List[str]) -> OperationResult:
        return self._update_tags('event', event_urls, 'remove', tags)

    def add_route_tags(self, route_urls, tags: List[str]) -> OperationResult:
        return self._update_tags('route', route_urls, 'add', tags)

    def remove_route_tags(self, route_urls, tags: List[str]) -> OperationResult:
        return self._update_tags('route', route_urls, 'remove', tags)

    def _update_tags(self, kind: str, urls, action: str, tags: List[str]) -> OperationResult:
        operation = f"{action}_{kind}_tags"
        if isinstance(urls, str):
            urls = [urls]
        try:
            ids = [self.urls.parse(kind, url).id for url in urls or []]
            self._batch_tags(kind, ids, action, tags)
        except RideSchedulerError as e:
            return self._failure(operation, e)
        return OperationResult.ok({f'{kind}_ids': ids, 'tags': list(tags)})

    # -- workflow steps (raise RideSchedulerError) -------------------------

    def _read_event(self, identity: ResourceIdentity, dialect: Dialect) -> NormalizedEvent:
        if dialect == Dialect.V1:
            response = self._v1('get_event', 'GET', f"/events/{identity.id}.json")
        else:
            response = self._web(
                'get_event',
                'GET',
                f"{self.urls.canonical_url('event', identity.id)}.json"
            )
        self._expect(response, 'Get event')
        body = self._json(response, 'Get event')
        try:
            return from_dialect_response(dialect, body, self.config.default_utc_offset)
        except (ValueError, KeyError) as e:
            raise RemoteError(f"Get event returned an unreadable event: {e}", response.status_code) from e

    def _write_event(self, identity: ResourceIdentity, event: NormalizedEvent) -> NormalizedEvent:
        dialect = self.config.write_dialect

        def send(all_day: Optional[bool]) -> TransportResponse:
            payload = to_dialect_payload(dialect, event, all_day, self.config.default_utc_offset)
            if dialect == Dialect.V1:
                return self._v1('edit_event', 'PUT', f"/events/{identity.id}.json", payload)
            return self._web(
                'edit_event',
                'PUT',
                self.urls.canonical_url('event', identity.id),
                body=payload,
                as_json=True
            )

        response = self.edit_strategy.submit(event, send)
        self._expect(response, 'Edit event')

        try:
            return from_dialect_response(dialect, json.loads(response.body_text), self.config.default_utc_offset)
        except (ValueError, KeyError):
            logger.debug(f"Edit of event {identity.id} returned no event body")
            return event.replace(id=identity.id)

    def _create_event(self, event: NormalizedEvent, logo: Optional[Logo]):
        if logo is None:
            payload = to_dialect_payload(Dialect.V1, event, default_utc_offset=self.config.default_utc_offset)
            response = self._v1('create_event', 'POST', '/events.json', payload)
        else:
            parts = build_multipart_parts(
                event,
                logo,
                generate_boundary(),
                self.config.default_utc_offset
            )
            response = self._v1(
                'create_event',
                'POST',
                '/events.json',
                assemble_multipart(parts, logo.data),
                content_type=parts.content_type
            )

        if response.status_code not in (200, 201):
            raise RemoteError(build_error_message(response, 'Create event'), response.status_code)

        body = self._json(response, 'Create event')
        try:
            created = from_dialect_response(Dialect.V1, body, self.config.default_utc_offset)
        except (ValueError, KeyError) as e:
            raise RemoteError(f"Create event returned an unreadable event: {e}", response.status_code) from e
        return created, self._self_reference('event', unwrap(body, 'event'), created.id)

    def _replace_logo(self, identity: ResourceIdentity, logo: Logo) -> None:
        parts = build_multipart_parts(NormalizedEvent(), logo, generate_boundary(), all_day=None)
        response = self._v1(
            'update_event_logo',
            'PUT',
            f"/events/{identity.id}.json",
            assemble_multipart(parts, logo.data),
            content_type=parts.content_type
        )
        self._expect(response, 'Update event logo')

    def _delete_event(self, identity: ResourceIdentity) -> None:
        response = self._v1('delete_event', 'DELETE', f"/events/{identity.id}.json")
        if response.status_code != 204:
            raise RemoteError(build_error_message(response, 'Delete event'), response.status_code)

    def _compensate(self, identity: ResourceIdentity, cause: RideSchedulerError) -> None:
        logger.warning(
            f"Edit of new event {identity.id} failed, deleting it: {cause}",
            extra={'operation': 'schedule_event'}
        )
        try:
            self._delete_event(identity)
        except RideSchedulerError as e:
            logger.error(
                f"Could not delete incompletely scheduled event {identity.id}: {e}",
                extra={'operation': 'schedule_event'}
            )

    def _read_route(self, identity: ResourceIdentity) -> RouteDetail:
        response = self._v1('get_route', 'GET', f"/routes/{identity.id}.json")
        self._expect(response, 'Get route')
        body = self._json(response, 'Get route')
        try:
            return normalize_route(body, self.config.base_url)
        except (ValueError, KeyError) as e:
            raise RemoteError(f"Get route returned an unreadable route: {e}", response.status_code) from e

    def _copy_route(self, source: ResourceIdentity, name, expiry, tags: List[str]) -> str:
        body: Dict[str, Any] = {
            'user_id': self.config.route_copy_user_id,
            'asset_type': 'route',
            'privacy_code': None,
            'include_photos': False,
            'url': source.url,
        }
        if name:
            body['name'] = name
        if expiry:
            body['expiry'] = expiry
        if tags:
            body['tags'] = tags

        response = self._web(
            'import_route',
            'POST',
            f"{self.urls.canonical_url('route', source.id)}/copy.json",
            body=body,
            as_json=True,
            follow_redirects=False
        )

        location = response.headers.get('Location')
        if response.status_code == 302 and location:
            return urljoin(self.config.base_url, location)

        self._expect(response, 'Copy route')
        result = self._json(response, 'Copy route')
        if isinstance(result, dict) and result.get('success') and result.get('url'):
            return urljoin(self.config.base_url, result['url'])
        raise RemoteError(build_error_message(response, 'Copy route'), response.status_code)

    def _batch_tags(self, kind: str, ids: List[str], action: str, tags: List[str]) -> None:
        try:
            form = build_batch_tag_payload(kind, ids, action, tags)
        except ValueError as e:
            raise RideSchedulerError(str(e)) from e

        response = self._web(
            f"{action}_{kind}_tags",
            'POST',
            f"{self.config.base_url.rstrip('/')}/{kind}s/batch_update_tags.json",
            body=form
        )
        self._expect(response, f"{action.capitalize()} {kind} tags")

    def _search_organizers(self, names: List[str]) -> List[Organizer]:
        if not self.config.template_url:
            raise RideSchedulerError('No template event configured for organizer lookup')
        template = self.urls.parse('event', self.config.template_url)
        search_url = f"{self.urls.canonical_url('event', template.id)}/organizer_ids.json"
        unknown_id = self.config.tbd_organizer_id or '-1'

        organizers = []
        for name in names:
            if not name or not name.strip():
                continue
            response = self._web(
                'lookup_organizers',
                'POST',
                search_url,
                body={'term': search_term(name), 'page': 1}
            )
            if response.status_code not in (200, 404):
                logger.warning(
                    f"Organizer search for '{name}' failed",
                    extra={'operation': 'lookup_organizers', 'status_code': response.status_code}
                )
                organizers.append(Organizer(id=unknown_id, text=self.config.tbd_organizer_name))
                continue
            try:
                results = json.loads(response.body_text).get('results', [])
            except (ValueError, AttributeError):
                results = []
            match = find_matching_organizer(results, name)
            organizers.append(match or Organizer(id=unknown_id, text=name.strip()))
        return organizers

    def _organizer_lookup(self) -> Optional[OrganizerLookup]:
        if self.organizer_lookup is not None:
            return self.organizer_lookup
        if self.config.template_url:
            return self._search_organizers
        return None

    def _resolve_logo(self, logo) -> Optional[Logo]:
        if logo is None or isinstance(logo, Logo):
            return logo
        if isinstance(logo, (bytes, bytearray)):
            return Logo(data=bytes(logo), content_type='image/jpeg')
        if isinstance(logo, str):
            response = self._fetch('download_logo', 'GET', logo)
            self._expect(response, 'Download logo')
            content_type = response.headers.get('Content-Type', 'image/jpeg').split(';')[0].strip()
            return Logo(data=response.content, content_type=content_type or 'image/jpeg')
        raise RideSchedulerError(f"Unsupported logo type: {type(logo).__name__}")

    def _self_reference(self, kind: str, body: Dict[str, Any], resource_id: Optional[str]) -> str:
        for key in ('html_url', 'url'):
            value = body.get(key)
            if self.urls.extract_id(kind, value):
                return value.strip()
        if resource_id is None:
            raise RemoteError(f"Create {kind} response did not include an id")
        return self.urls.canonical_url(kind, resource_id)

    # -- transport plumbing ------------------------------------------------

    def _fetch(
        self,
        operation: str,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        body: Any = None,
        follow_redirects: bool = True
    ) -> TransportResponse:
        start = time.time()
        response = self.transport(
            method,
            url,
            headers=headers,
            body=body,
            follow_redirects=follow_redirects
        )
        logger.debug(
            f"{method} {url} -> {response.status_code}",
            extra={
                'operation': operation,
                'status_code': response.status_code,
                'duration_seconds': round(time.time() - start, 3),
            }
        )
        if self.call_log is not None:
            self.call_log.record(
                operation,
                method,
                url,
                headers or {},
                response.status_code,
                response.body_text
            )
        return response

    def _v1(
        self,
        operation: str,
        method: str,
        path: str,
        body: Any = None,
        content_type: str = 'application/json'
    ) -> TransportResponse:
        headers = self.auth.headers_for(Dialect.V1)
        headers['Accept'] = 'application/json'
        if body is not None:
            headers['Content-Type'] = content_type
            if isinstance(body, dict):
                body = json.dumps(body)
        return self._fetch(operation, method, f"{self.config.api_url}{path}", headers, body)

    def _web(
        self,
        operation: str,
        method: str,
        url: str,
        body: Any = None,
        as_json: bool = False,
        follow_redirects: bool = True
    ) -> TransportResponse:
        headers = self.auth.headers_for(Dialect.WEB)
        if as_json and body is not None:
            headers['Content-Type'] = 'application/json'
            body = json.dumps(body)
        response = self._fetch(operation, method, url, headers, body, follow_redirects)
        self.auth.session.observe(response)
        return response

    @staticmethod
    def _expect(response: TransportResponse, context: str) -> None:
        if not is_success_status(response.status_code):
            raise RemoteError(build_error_message(response, context), response.status_code)

    @staticmethod
    def _json(response: TransportResponse, context: str) -> Any:
        try:
            return json.loads(response.body_text)
        except ValueError as e:
            raise RemoteError(f"{context} returned invalid JSON", response.status_code) from e

    @staticmethod
    def _partial(operation: str, step: str, error: RideSchedulerError) -> str:
        logger.warning(f"{step} failed: {error}", extra={'operation': operation})
        return f"{PARTIAL_SUCCESS}: {step} failed: {error}"

    @staticmethod
    def _failure(operation: str, error: RideSchedulerError) -> OperationResult:
        logger.warning(
            f"{operation} failed: {error}",
            extra={'operation': operation, 'error_type': error.code}
        )
        return OperationResult.failure(str(error), error.code, error.status_code)
