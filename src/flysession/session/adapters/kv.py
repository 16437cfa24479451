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
"""Key-value session store resolved from the request context.

The store holds no connection of its own. On every operation it looks up the
backend bound under ``namespace`` in :attr:`RequestContext.env`, because in
some hosting environments a backend handle only exists within the scope of
the inbound request.

Concurrent requests for the same session ID are not serialized: the last
write wins.
"""

from __future__ import annotations

import math
from typing import cast

import structlog

from flysession.context.request_context import RequestContext
from flysession.kernel.exceptions import BackendBindingException
from flysession.session.data import SessionData, parse_iso, utc_now_iso
from flysession.session.ports.outbound import MISSING_ID, KeyValueAccess, MissingId, require_session_id

logger = structlog.get_logger("flysession.session")

DEFAULT_NAMESPACE = "Sessions"
DEFAULT_EXPIRATION_TTL = 86400  # 24 hours
DEFAULT_PREFIX = "session:"


def absolute_expiration(data: SessionData) -> int | None:
    """Return ``data.expire`` as whole UNIX seconds, or ``None`` when unset."""
    if not data.expire:
        return None
    return math.floor(parse_iso(data.expire).timestamp())


class KeyValueSessionStore:
    """Session store persisting JSON records in a key-value backend.

    Args:
        namespace: Name of the backend binding in the request context.
        expiration_ttl: TTL in seconds for sessions without an explicit expiry.
        prefix: Prepended to session IDs to build storage keys.
    """

    def __init__(
        self,
        namespace: str = DEFAULT_NAMESPACE,
        expiration_ttl: int | None = None,
        prefix: str | None = None,
    ) -> None:
        self._namespace = namespace
        self._expiration_ttl = expiration_ttl or DEFAULT_EXPIRATION_TTL
        self._prefix = prefix if prefix is not None else DEFAULT_PREFIX

    @property
    def namespace(self) -> str:
        return self._namespace

    @property
    def kv(self) -> KeyValueAccess:
        """The backend bound to the current request.

        Raises:
            BackendBindingException: Outside a request context, or when the
                context has no binding for this store's namespace.
        """
        ctx = RequestContext.current()
        if ctx is None:
            raise BackendBindingException(
                "Key-value namespace is not available in the current context",
                code="SESSION_KV_UNBOUND",
            )
        backend = ctx.env.get(self._namespace)
        if backend is None:
            raise BackendBindingException(
                f'Key-value namespace "{self._namespace}" is not available in the current context',
                code="SESSION_KV_UNBOUND",
                context={"namespace": self._namespace},
            )
        return cast(KeyValueAccess, backend)

    def _key(self, session_id: str) -> str:
        return f"{self._prefix}{session_id}"

    async def get_session_by_id(self, session_id: str | None) -> SessionData | MissingId | None:
        """Load a session, refreshing its ``accessed`` time.

        Returns :data:`MISSING_ID` when no ID is given and ``None`` when the
        session is absent, marked for deletion, or cannot be read.
        """
        if not session_id:
            return MISSING_ID

        kv = self.kv
        try:
            raw = await kv.get(self._key(session_id))
            if not raw:
                return None

            data = SessionData.from_json(raw)
            data.accessed = utc_now_iso()

            if data.delete:
                await kv.delete(self._key(session_id))
                return None

            return data
        except Exception as exc:
            logger.error(
                "session_read_failed",
                operation="get_session_by_id",
                namespace=self._namespace,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return None

    async def create_session(self, session_id: str, data: SessionData) -> None:
        """Store a new session record."""
        session_id = require_session_id(session_id)
        kv = self.kv
        try:
            if not data.accessed:
                data.accessed = utc_now_iso()
            await self._put(kv, session_id, data)
        except Exception as exc:
            self._log_write_failure("create_session", exc)
            raise

    async def persist_session_data(self, session_id: str, data: SessionData) -> None:
        """Overwrite a session record, or delete it when ``data.delete`` is set."""
        session_id = require_session_id(session_id)
        kv = self.kv
        try:
            data.accessed = utc_now_iso()

            if data.delete:
                await kv.delete(self._key(session_id))
                return

            await self._put(kv, session_id, data)
        except Exception as exc:
            self._log_write_failure("persist_session_data", exc)
            raise

    async def delete_session(self, session_id: str) -> None:
        """Remove a session record."""
        session_id = require_session_id(session_id)
        kv = self.kv
        try:
            await kv.delete(self._key(session_id))
        except Exception as exc:
            self._log_write_failure("delete_session", exc, event="session_delete_failed")
            raise

    async def _put(self, kv: KeyValueAccess, session_id: str, data: SessionData) -> None:
        expiration = absolute_expiration(data)
        await kv.put(
            self._key(session_id),
            data.to_json(),
            expiration=expiration,
            expiration_ttl=None if expiration is not None else self._expiration_ttl,
        )

    def _log_write_failure(self, operation: str, exc: Exception, event: str = "session_write_failed") -> None:
        logger.error(
            event,
            operation=operation,
            namespace=self._namespace,
            error=str(exc),
            error_type=type(exc).__name__,
        )
