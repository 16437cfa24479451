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
"""Session store protocol and the capabilities stores are written against."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Final, Literal, Protocol, runtime_checkable

from flysession.kernel.exceptions import MissingSessionIdException
from flysession.session.data import SessionData


class MissingId:
    """Type of :data:`MISSING_ID`."""

    _instance: MissingId | None = None

    def __new__(cls) -> MissingId:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING_ID"


MISSING_ID: Final = MissingId()
"""Returned by ``get_session_by_id`` when no session ID was supplied at all,
as opposed to ``None`` for an ID that matched no stored session."""


def require_session_id(session_id: str | None) -> str:
    """Return *session_id*, or raise if it is empty.

    Raises:
        MissingSessionIdException: If *session_id* is ``None`` or empty.
    """
    if not session_id:
        raise MissingSessionIdException("Session ID is required", code="SESSION_ID_REQUIRED")
    return session_id


@dataclass(frozen=True)
class CookieOptions:
    """Attributes applied uniformly to every session cookie."""

    path: str = "/"
    domain: str | None = None
    secure: bool = False
    httponly: bool = True
    samesite: Literal["lax", "strict", "none"] | None = "lax"
    max_age: int | None = None
    expires: datetime | None = None

    def with_overrides(self, **changes: object) -> CookieOptions:
        return replace(self, **changes)  # type: ignore[arg-type]


@runtime_checkable
class CookieAccess(Protocol):
    """Read request cookies and queue response cookies."""

    def read(self, name: str) -> str | None: ...

    def write(self, name: str, value: str, options: CookieOptions) -> None: ...


@runtime_checkable
class KeyValueAccess(Protocol):
    """Keyed string storage with per-key expiry.

    ``expiration`` is an absolute UNIX timestamp in seconds and
    ``expiration_ttl`` a relative lifetime in seconds; callers pass at most one.
    """

    async def get(self, key: str) -> str | None: ...

    async def put(
        self,
        key: str,
        value: str,
        *,
        expiration: int | None = None,
        expiration_ttl: int | None = None,
    ) -> None: ...

    async def delete(self, key: str) -> None: ...


@runtime_checkable
class SessionStore(Protocol):
    """Abstract session persistence interface for server-side stores.

    All ID-addressed backends (key-value, in-memory, SQL) implement this
    protocol. Reads never raise for backend failures; writes and deletes do.
    """

    async def get_session_by_id(self, session_id: str | None) -> SessionData | MissingId | None: ...

    async def create_session(self, session_id: str, data: SessionData) -> None: ...

    async def persist_session_data(self, session_id: str, data: SessionData) -> None: ...

    async def delete_session(self, session_id: str) -> None: ...
