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
"""In-process session storage for development, testing and single-process apps."""

from __future__ import annotations

import asyncio
import copy
import time

from flysession.session.data import SessionData, utc_now_iso
from flysession.session.ports.outbound import MISSING_ID, MissingId, require_session_id


class InMemoryKeyValue:
    """``KeyValueAccess`` backed by a dict, honouring absolute and relative expiry."""

    def __init__(self) -> None:
        self._store: dict[str, tuple[str, float | None]] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> str | None:
        async with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None

            value, expires_at = entry
            if expires_at is not None and time.time() >= expires_at:
                del self._store[key]
                return None

            return value

    async def put(
        self,
        key: str,
        value: str,
        *,
        expiration: int | None = None,
        expiration_ttl: int | None = None,
    ) -> None:
        if expiration is not None:
            expires_at: float | None = float(expiration)
        elif expiration_ttl is not None:
            expires_at = time.time() + expiration_ttl
        else:
            expires_at = None
        async with self._lock:
            self._store[key] = (value, expires_at)

    async def delete(self, key: str) -> None:
        async with self._lock:
            self._store.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._store


class MemorySessionStore:
    """Session store holding SessionData in process memory.

    The store keeps its own copies: a request works on a copy and changes
    become visible to other requests only through :meth:`persist_session_data`.
    Access goes through an ``asyncio.Lock``.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, SessionData] = {}
        self._lock = asyncio.Lock()

    async def get_session_by_id(self, session_id: str | None) -> SessionData | MissingId | None:
        """Return a copy of the stored session; expired or deleted ones are purged."""
        if not session_id:
            return MISSING_ID

        async with self._lock:
            stored = self._sessions.get(session_id)
            if stored is None:
                return None

            if stored.delete or stored.is_expired():
                del self._sessions[session_id]
                return None

            stored.accessed = utc_now_iso()
            return copy.deepcopy(stored)

    async def create_session(self, session_id: str, data: SessionData) -> None:
        require_session_id(session_id)
        if not data.accessed:
            data.accessed = utc_now_iso()
        async with self._lock:
            self._sessions[session_id] = copy.deepcopy(data)

    async def persist_session_data(self, session_id: str, data: SessionData) -> None:
        require_session_id(session_id)
        data.accessed = utc_now_iso()
        async with self._lock:
            if data.delete:
                self._sessions.pop(session_id, None)
                return
            self._sessions[session_id] = copy.deepcopy(data)

    async def delete_session(self, session_id: str) -> None:
        require_session_id(session_id)
        async with self._lock:
            self._sessions.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._sessions)
