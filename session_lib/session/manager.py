"""Session lifecycle manager.

Resolves the caller's session identifier, restores or creates the session
record, and performs login/logout and temp-token delegation against a
pluggable `SessionStore`. The manager is host-agnostic: every access to the
request goes through the injected `HostAdapter`.

Store failures never reach the client. A session that cannot be read is
replaced with a fresh anonymous one, and failed writes are logged while the
record attached to the request stays authoritative for that request.
"""
from __future__ import annotations
import asyncio
import inspect
import ipaddress
import logging
import re
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Iterable, Mapping, Optional, Set, Union

from pydantic import ValidationError

from session_lib.adapters.interfaces import CookieOptions, HostAdapter
from session_lib.config.settings import SessionSettings
from session_lib.storage.base import SessionStore
from session_lib.storage.errors import StoreAlreadyExists, StoreError

from .errors import (
    AuthenticatorRejected,
    InvalidCredentialsInput,
    NotLoggedIn,
    ParentSessionGone,
    ParentSessionNotLoggedIn,
    TempTokenNotFound,
)
from .records import (
    SessionRecord,
    format_empty_user_packet,
    format_user_packet,
    format_user_packet_from_record,
)

logger = logging.getLogger(__name__)

SESSION_PREFIX = 'SES'
TEMP_TOKEN_PREFIX = 'TempSessionToken-'
BEARER_PREFIX = 'Bearer '
# TTL used when a freshly generated id collides with a stored one
COLLISION_TTL = 600
ACTIVE_SESSION_WINDOW = timedelta(minutes=15)

# request attribute keys
OVERRIDE_DATA_KEY = 'SessionOverrideData'
CREDENTIALS_KEY = 'Credentials'
REQUEST_ID_KEY = 'RequestUUID'
SESSION_DATA_KEY = 'SessionData'

AuthenticatorResult = Optional[Union[SessionRecord, Mapping[str, Any]]]
Authenticator = Callable[[Any], Union[AuthenticatorResult, Awaitable[AuthenticatorResult]]]


def _credential(credentials: Any, name: str) -> Any:
    if credentials is None:
        return None
    if isinstance(credentials, Mapping):
        return credentials.get(name)
    return getattr(credentials, name, None)


def _present(value: Any) -> bool:
    return isinstance(value, str) and value != ''


def _is_ip_literal(host: str) -> bool:
    try:
        ipaddress.ip_address(host.strip('[]'))
    except ValueError:
        return False
    return True


class SessionManager:
    def __init__(self, settings: SessionSettings, store: SessionStore, adapter: HostAdapter) -> None:
        self._settings = settings
        self._store = store
        self._adapter = adapter
        self._passthrough_urls: Set[str] = set(settings.passthrough_urls)
        self._mobile_ua = re.compile(settings.mobile_user_agent_pattern)
        self._pending: Set[asyncio.Task] = set()
        logger.info(
            "Session manager ready (strategy=%s, cookie=%s, timeout=%ss)",
            settings.strategy.value, settings.cookie_name, settings.timeout,
        )

    @property
    def settings(self) -> SessionSettings:
        return self._settings

    @property
    def store(self) -> SessionStore:
        return self._store

    @property
    def adapter(self) -> HostAdapter:
        return self._adapter

    @property
    def passthrough_urls(self) -> list[str]:
        return sorted(self._passthrough_urls)

    @passthrough_urls.setter
    def passthrough_urls(self, urls: Iterable[str]) -> None:
        self._passthrough_urls = set(urls)

    def add_passthrough_urls(self, urls: Iterable[str]) -> None:
        self._passthrough_urls.update(urls)

    def is_passthrough(self, request: Any) -> bool:
        return self._adapter.get_url(request) in self._passthrough_urls

    # -- request state -------------------------------------------------

    def get_attached(self, request: Any) -> Optional[SessionRecord]:
        """Return the record attached to this in-flight request, if any."""
        return self._adapter.get_attribute(request, self._settings.cookie_name)

    def _attach(self, request: Any, record: SessionRecord) -> None:
        self._adapter.set_attribute(request, self._settings.cookie_name, record)

    def resolve_session_id(self, request: Any) -> Optional[str]:
        """Find the session id: bearer header, then cookie, then attached record.

        The attached record covers the request that just created a session
        whose cookie the client has not echoed back yet.
        """
        authorization = self._adapter.get_header(request, 'authorization')
        if authorization and authorization.startswith(BEARER_PREFIX):
            token = authorization[len(BEARER_PREFIX):].strip()
            if token:
                return token

        cookie = self._adapter.get_cookie(request, self._settings.cookie_name)
        if cookie:
            return cookie

        attached = self.get_attached(request)
        if attached is not None and attached.session_id:
            return attached.session_id
        return None

    # -- lifecycle -----------------------------------------------------

    async def get_session(self, request: Any, deadline: Optional[float] = None) -> Optional[SessionRecord]:
        """Restore the caller's session onto the request, creating one if needed.

        `deadline` (seconds) bounds every store call made on the caller's behalf.
        """
        if self.is_passthrough(request):
            return None

        session_id = self.resolve_session_id(request)
        if not session_id:
            return await self.create_session(request, deadline=deadline)

        try:
            payload = await self._store.get(session_id, deadline=deadline)
        except StoreError as e:
            logger.debug("Session lookup failed for %s, creating a new session: %s", session_id, e)
            return await self.create_session(request, deadline=deadline)

        if payload is None:
            logger.debug("Session %s not found but identifier was supplied; creating a new session", session_id)
            return await self.create_session(request, deadline=deadline)

        try:
            record = SessionRecord.from_payload(payload)
        except ValidationError:
            logger.warning("Stored session %s is not a valid record; creating a new session", session_id)
            return await self.create_session(request, deadline=deadline)

        self._attach(request, record)
        self._schedule_touch(session_id, deadline)
        return record

    async def create_session(self, request: Any, deadline: Optional[float] = None) -> SessionRecord:
        override = self._adapter.get_attribute(request, OVERRIDE_DATA_KEY)
        if override:
            logger.info("SessionOverride data is specified")
            record = SessionRecord.coerce(override)
            if not record.session_id:
                record.session_id = self._new_session_id()
        else:
            record = format_empty_user_packet(self._new_session_id())

        session_id = record.session_id
        payload = record.to_payload()
        cookie_domain = self.get_wildcard_cookie_domain(request)
        logger.info("Creating a new session %s", session_id)

        try:
            existing = await self._store.get(session_id, deadline=deadline)
        except StoreError as e:
            logger.debug("Could not check for existing session %s: %s", session_id, e)
            existing = None

        if existing is None:
            try:
                await self._store.set(session_id, payload, self._settings.timeout, deadline=deadline)
            except StoreAlreadyExists:
                await self._replace_logged(session_id, payload, COLLISION_TTL, deadline)
            except StoreError as e:
                logger.warning("Error setting session %s: %s", session_id, e)
        else:
            logger.warning("Session id collision on %s; replacing stored record", session_id)
            await self._replace_logged(session_id, payload, COLLISION_TTL, deadline)

        self._attach(request, record)
        self._adapter.set_cookie(
            request,
            self._settings.cookie_name,
            session_id,
            CookieOptions(max_age=self._settings.timeout, domain=cookie_domain),
        )
        return record

    def _new_session_id(self) -> str:
        return f"{SESSION_PREFIX}{uuid.uuid4()}"

    async def _replace_logged(self, key: str, payload: str, timeout: int, deadline: Optional[float] = None) -> bool:
        try:
            await self._store.replace(key, payload, timeout, deadline=deadline)
        except StoreError as e:
            logger.error("Error replacing session %s: %s", key, e)
            return False
        return True

    def _schedule_touch(self, session_id: str, deadline: Optional[float] = None) -> None:
        task = asyncio.get_running_loop().create_task(self._touch(session_id, deadline))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _touch(self, session_id: str, deadline: Optional[float] = None) -> None:
        try:
            await self._store.touch(session_id, self._settings.timeout, deadline=deadline)
        except StoreError as e:
            logger.error("Failed to touch session %s: %s", session_id, e)

    async def drain(self) -> None:
        """Wait for background keepalive writes to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # -- cookie domain -------------------------------------------------

    def get_server_host_domain(self, request: Any) -> Optional[str]:
        """Public host name of this server, from Origin or Host, without port."""
        origin = self._adapter.get_header(request, 'origin')
        if origin:
            host = re.sub(r'^[a-zA-Z][a-zA-Z0-9+.-]*://', '', origin)
        else:
            host = self._adapter.get_header(request, 'host')
        if not host:
            logger.warning("Request carries neither Origin nor Host header")
            return None

        host = host.split('/', 1)[0]
        if host.startswith('['):
            return host.split(']', 1)[0] + ']'
        return host.split(':', 1)[0]

    def get_wildcard_cookie_domain(self, request: Any) -> Optional[str]:
        """Cookie domain shared across subdomains of this deployment.

        e.g. app.tenant.example.com -> example.com, or
        app.tenant.internal.example -> tenant.internal.example when
        `internal.example` is the configured wildcard suffix.
        """
        user_agent = self._adapter.get_header(request, 'user-agent')
        if user_agent and self._mobile_ua.search(user_agent):
            return None

        host = self.get_server_host_domain(request)
        if not host or _is_ip_literal(host):
            return None

        parts = host.split('.')
        suffix = (self._settings.wildcard_domain_suffix or '').strip('.')
        if suffix and (host == suffix or host.endswith('.' + suffix)):
            return '.'.join(parts[-3:]) if len(parts) >= 3 else None
        if len(parts) >= 2:
            return '.'.join(parts[-2:])
        return None

    # -- temp tokens ---------------------------------------------------

    async def get_temp_session(self, request: Any, deadline: Optional[float] = None) -> Optional[SessionRecord]:
        """Import a logged-in identity named by the `SessionToken` query parameter.

        Any failure leaves the request in its current state.
        """
        token = self._adapter.get_query(request, 'SessionToken')
        if not token:
            return None

        current = self.get_attached(request)
        if current is None or not current.session_id:
            logger.error("Temp session token %s supplied on a request without a session", token)
            return None

        try:
            parent = await self._resolve_token_parent(token, deadline)
        except (TempTokenNotFound, ParentSessionGone, ParentSessionNotLoggedIn) as e:
            logger.error("Temp session import skipped: %s", e)
            return None

        logger.debug(
            "Session import using temp session token (session=%s parent=%s token=%s)",
            current.session_id, parent.session_id, token,
        )
        imported = parent.model_copy(update={'session_id': current.session_id})
        imported = await self.set_session_login_status(request, imported, deadline=deadline)

        if self._settings.temp_token_single_use:
            try:
                await self._store.delete(token, deadline=deadline)
            except StoreError as e:
                logger.error("Failed to revoke temp session token %s: %s", token, e)
        return imported

    async def _resolve_token_parent(self, token: str, deadline: Optional[float] = None) -> SessionRecord:
        try:
            parent_id = await self._store.get(token, deadline=deadline)
        except StoreError as e:
            raise TempTokenNotFound(f"Failed to find temp session token {token}: {e}") from e
        if not parent_id:
            raise TempTokenNotFound(f"Failed to find temp session token {token}")

        try:
            payload = await self._store.get(parent_id, deadline=deadline)
        except StoreError as e:
            raise ParentSessionGone(f"Failed to find session {parent_id} using temp token {token}: {e}") from e
        if payload is None:
            raise ParentSessionGone(f"Failed to find session {parent_id} using temp token {token}")

        try:
            parent = SessionRecord.from_payload(payload)
        except ValidationError as e:
            raise ParentSessionGone(f"Session {parent_id} holds invalid data") from e
        if not parent.logged_in:
            raise ParentSessionNotLoggedIn(f"User session {parent_id} is no longer logged in")
        return parent

    async def checkout_session_token(self, request: Any, deadline: Optional[float] = None) -> str:
        """Issue a temp token that lets another client import this session's identity.

        Raises NotLoggedIn for anonymous sessions; store failures propagate.
        """
        session = self.get_attached(request)
        if session is None or not session.logged_in or not session.session_id:
            raise NotLoggedIn('User not logged in!')

        token = f"{TEMP_TOKEN_PREFIX}{uuid.uuid4()}"
        try:
            await self._store.set(token, session.session_id, self._settings.temp_token_timeout_seconds, deadline=deadline)
        except StoreError as e:
            logger.error("Error checking out a session token for %s: %s", session.session_id, e)
            raise
        logger.debug("Checked out session token %s (user=%s session=%s)", token, session.user_id, session.session_id)
        return token

    # -- login / logout ------------------------------------------------

    async def set_session_login_status(
        self,
        request: Any,
        packet: Union[SessionRecord, Mapping[str, Any]],
        deadline: Optional[float] = None,
    ) -> SessionRecord:
        """Attach `packet` to the request and persist it as the full session record."""
        record = SessionRecord.coerce(packet)
        if not record.session_id:
            record.session_id = self.resolve_session_id(request)
        self._attach(request, record)

        if not record.session_id:
            logger.warning("Session status set on a request without a session id; not persisted")
            return record

        logger.debug("Setting session status for %s (logged_in=%s)", record.session_id, record.logged_in)
        try:
            await self._store.replace(record.session_id, record.to_payload(), self._settings.timeout, deadline=deadline)
        except StoreError as e:
            logger.error("Error setting session status for %s: %s", record.session_id, e)
        return record

    async def authenticate_user(
        self,
        request: Any,
        authenticator: Optional[Authenticator] = None,
        credentials: Any = None,
        deadline: Optional[float] = None,
    ) -> SessionRecord:
        """Log the caller in through `authenticator` (default: configured user).

        Credentials come from the argument or the request's `Credentials`
        attribute. Raises InvalidCredentialsInput when the username or
        password is missing or empty. A rejection by the authenticator
        still writes an anonymous packet before AuthenticatorRejected is
        re-raised.
        """
        if credentials is None:
            credentials = self._adapter.get_attribute(request, CREDENTIALS_KEY)
        username = _credential(credentials, 'username')
        remote_ip = self._adapter.get_header(request, 'x-forwarded-for') or self._adapter.get_remote_address(request)
        request_id = self._adapter.get_attribute(request, REQUEST_ID_KEY)
        logger.debug("User %s is attempting to login from %s", username, remote_ip)

        if not _present(username) or not _present(_credential(credentials, 'password')):
            logger.info("Authentication failure: missing credentials (login=%s ip=%s request=%s)", username, remote_ip, request_id)
            raise InvalidCredentialsInput('Bad username or password!')

        rejection: Optional[AuthenticatorRejected] = None
        try:
            result = (authenticator or self.default_authenticator)(credentials)
            if inspect.isawaitable(result):
                result = await result
        except AuthenticatorRejected as e:
            rejection = e
            result = None

        packet = SessionRecord.coerce(result) if result is not None else format_empty_user_packet(None)
        packet.session_id = self.resolve_session_id(request)
        if packet.is_authenticated:
            packet.stamp_login_time()
        logger.info(
            "User login %s (login=%s request=%s)",
            'success' if packet.is_authenticated else 'failed', username, request_id,
        )

        packet = await self.set_session_login_status(request, packet, deadline=deadline)
        if rejection is not None:
            raise rejection
        return packet

    def default_authenticator(self, credentials: Any) -> SessionRecord:
        """Accept only the configured DefaultUsername / DefaultPassword pair."""
        expected_user = self._settings.default_username
        expected_password = self._settings.default_password
        if expected_user is None or expected_password is None:
            raise AuthenticatorRejected('Default authenticator is not configured')

        username = str(_credential(credentials, 'username') or '')
        password = str(_credential(credentials, 'password') or '')
        user_ok = secrets.compare_digest(username.encode('utf-8'), expected_user.encode('utf-8'))
        password_ok = secrets.compare_digest(password.encode('utf-8'), expected_password.encode('utf-8'))
        if user_ok and password_ok:
            return format_user_packet(None, True, 'Administrator', 5, 1)
        raise AuthenticatorRejected('Invalid username or password!')

    async def de_authenticate_user(self, request: Any, deadline: Optional[float] = None) -> SessionRecord:
        """Blank the identity on this session; the session row itself is kept."""
        current = self.get_attached(request)
        session_id = current.session_id if current is not None and current.session_id else self.resolve_session_id(request)
        logger.info(
            "Deauthentication success (session=%s user=%s request=%s)",
            session_id, current.user_id if current else 0, self._adapter.get_attribute(request, REQUEST_ID_KEY),
        )
        return await self.set_session_login_status(request, format_empty_user_packet(session_id), deadline=deadline)

    def check_if_logged_in(self, request: Any) -> bool:
        if not self.resolve_session_id(request):
            return False
        session = self.get_attached(request)
        return session is not None and session.is_authenticated

    def check_session(self, request: Any) -> dict[str, Any]:
        """Identity check body: the full record, or the anonymous shape."""
        session = self.get_attached(request)
        if session is None or not session.logged_in or session.user_id < 1:
            return {'IDUser': 0, 'UserID': 0, 'LoggedIn': False}
        return session.to_dict()

    # -- internal API --------------------------------------------------

    format_user_packet_from_record = staticmethod(format_user_packet_from_record)

    async def get_session_user_id(self, session_id: str, deadline: Optional[float] = None) -> int:
        """UserID stored for `session_id`, 0 when absent or unreadable."""
        try:
            payload = await self._store.get(session_id, deadline=deadline)
        except StoreError as e:
            logger.warning("Could not read session %s: %s", session_id, e)
            return 0
        if not payload:
            return 0
        try:
            return SessionRecord.from_payload(payload).user_id or 0
        except ValidationError:
            return 0

    async def get_active_user_sessions(
        self, session_ids: Iterable[str], deadline: Optional[float] = None
    ) -> list[SessionRecord]:
        """Logged-in sessions among `session_ids` whose login is recent."""
        cutoff = datetime.now(timezone.utc) - ACTIVE_SESSION_WINDOW
        active: list[SessionRecord] = []
        for session_id in session_ids:
            try:
                payload = await self._store.get(session_id, deadline=deadline)
            except StoreError as e:
                logger.debug("Skipping session %s: %s", session_id, e)
                continue
            if not payload:
                continue
            try:
                record = SessionRecord.from_payload(payload)
            except ValidationError:
                continue
            # logged out sessions keep their row with UserID 0
            if record.user_id == 0 or record.last_login_time is None:
                continue
            login_time = record.last_login_time
            if login_time.tzinfo is None:
                login_time = login_time.replace(tzinfo=timezone.utc)
            if login_time >= cutoff:
                active.append(record)
        return active

    # -- telemetry -----------------------------------------------------

    def log_session(self, request: Any) -> None:
        if self.is_passthrough(request):
            return

        session = self.get_attached(request)
        fields = {
            'ClientIP': self._adapter.get_remote_address(request),
            'RequestUUID': self._adapter.get_attribute(request, REQUEST_ID_KEY),
            'RequestURL': self._adapter.get_url(request),
            'SessionID': session.session_id if session else None,
            'CustomerID': session.customer_id if session else None,
            'UserID': session.user_id if session else None,
        }
        logger.info(
            "Request client=%s request=%s url=%s session=%s customer=%s user=%s",
            *fields.values(),
            extra=fields,
        )
        # data-access layers read the record under this name
        self._adapter.set_attribute(request, SESSION_DATA_KEY, session)
