# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""SessionFilter — loads and persists sessions around each request."""

from __future__ import annotations

import uuid
from typing import Any

import structlog

from flysession.kernel.exceptions import ConfigurationException, DecryptionException
from flysession.security.encryption import decrypt, encrypt, prepare_key
from flysession.session.adapters.cookie import CookieSessionStore
from flysession.session.configure import SessionSettings
from flysession.session.data import SessionData
from flysession.session.session import Session
from flysession.web.adapters.starlette.cookies import StarletteCookieAccess
from flysession.web.adapters.starlette.filters.request_context_filter import RequestContextFilter
from flysession.web.filters import OncePerRequestFilter
from flysession.web.ports.filter import CallNext, WebFilter

logger = structlog.get_logger("flysession.session")


class SessionFilter(OncePerRequestFilter):
    """Attaches a :class:`Session` to ``request.state.session``.

    With a :class:`CookieSessionStore` the whole session travels in cookies
    and is rewritten on every response. With any other store only a session
    ID cookie is set (sealed with the encryption key when one is configured)
    and the store is written only when the session changed.
    """

    def __init__(self, settings: SessionSettings) -> None:
        if isinstance(settings.store, CookieSessionStore) and not settings.store.encryption_key:
            raise ConfigurationException(
                "encryption_key is required while using CookieSessionStore",
                code="SESSION_KEY_REQUIRED",
            )
        if settings.encryption_key:
            prepare_key(settings.encryption_key)
        self._settings = settings
        self._store = settings.store

    @property
    def _client_side(self) -> bool:
        return isinstance(self._store, CookieSessionStore)

    async def do_filter(self, request: Any, call_next: CallNext) -> Any:
        cookies = StarletteCookieAccess(request)
        session, session_id = await self._load_or_create_session(cookies)
        request.state.session = session

        try:
            response = await call_next(request)
        finally:
            await self._persist_session(cookies, session, session_id)

        cookies.apply(response)
        return response

    async def _load_or_create_session(self, cookies: StarletteCookieAccess) -> tuple[Session, str | None]:
        """Load the request's session, or create one when it is absent or expired."""
        session_id: str | None = None

        if isinstance(self._store, CookieSessionStore):
            loaded = await self._store.get_session(cookies)
        else:
            session_id = self._read_session_id(cookies)
            loaded = await self._store.get_session_by_id(session_id)

        session: Session | None = None
        if isinstance(loaded, SessionData):
            session = Session(loaded)
            if not session.is_valid():
                logger.info("session_expired", expire=loaded.expire)
                await self._delete(cookies, session_id)
                session = None
            elif self._settings.auto_extend_expiration and self._settings.expire_after_seconds:
                session.extend(self._settings.expire_after_seconds)

        if session is None:
            session, session_id = await self._create_session(cookies)

        if not self._client_side and session_id:
            cookies.write(self._settings.cookie_name, self._seal_session_id(session_id), self._settings.cookie_options)

        session.touch()
        return session, session_id

    async def _create_session(self, cookies: StarletteCookieAccess) -> tuple[Session, str | None]:
        """Start a fresh session. Cookie sessions are written once, by :meth:`_persist_session`."""
        session = Session(SessionData(), is_new=True)
        if self._settings.expire_after_seconds:
            session.extend(self._settings.expire_after_seconds)

        if isinstance(self._store, CookieSessionStore):
            return session, None

        session_id = uuid.uuid4().hex
        await self._store.create_session(session_id, session.data)
        return session, session_id

    async def _persist_session(self, cookies: StarletteCookieAccess, session: Session, session_id: str | None) -> None:
        """Save or delete the session in the store based on its state."""
        if session.deleted:
            await self._delete(cookies, session_id)
            return

        if isinstance(self._store, CookieSessionStore):
            await self._store.persist_session_data(cookies, session.data)
        elif session.modified and session_id:
            await self._store.persist_session_data(session_id, session.data)

    async def _delete(self, cookies: StarletteCookieAccess, session_id: str | None) -> None:
        if isinstance(self._store, CookieSessionStore):
            await self._store.delete_session(cookies)
            return

        if session_id:
            await self._store.delete_session(session_id)
        cookies.write(
            self._settings.cookie_name,
            "",
            self._settings.cookie_options.with_overrides(max_age=0, expires=None),
        )

    def _read_session_id(self, cookies: StarletteCookieAccess) -> str | None:
        raw = cookies.read(self._settings.cookie_name)
        if not raw or not self._settings.encryption_key:
            return raw or None
        try:
            return decrypt(self._settings.encryption_key, raw)
        except DecryptionException:
            logger.warning("session_cookie_rejected", reason="session_id")
            return None

    def _seal_session_id(self, session_id: str) -> str:
        if self._settings.encryption_key:
            return encrypt(self._settings.encryption_key, session_id)
        return session_id


def build_filters(settings: SessionSettings) -> list[WebFilter]:
    """Return the filters to install in :class:`WebFilterChainMiddleware`, in order.

    Usage::

        settings = configure(Config.from_file("session.yaml"))
        app = Starlette(
            routes=routes,
            middleware=[Middleware(WebFilterChainMiddleware, filters=build_filters(settings))],
        )
    """
    return [RequestContextFilter(settings.bindings), SessionFilter(settings)]
