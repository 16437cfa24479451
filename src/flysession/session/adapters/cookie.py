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
"""Cookie-backed session store.

The whole session is serialized, zlib-compressed, sealed with the encryption
key and split across up to ``max_chunks`` cookies of at most ``chunk_size`` bytes::

    session        chunk 0 (the only cookie for small sessions)
    session_1      chunk 1
    ...
    session_9      chunk 9
    session_count  number of chunks, written only when there is more than one
"""

from __future__ import annotations

import zlib

import structlog

from flysession.kernel.exceptions import (
    DecryptionException,
    InvalidSessionCookieException,
    SessionTooLargeException,
)
from flysession.security.encryption import decrypt_bytes, encrypt_bytes
from flysession.session.chunking import join_chunks, split_by_bytes
from flysession.session.data import SessionData, parse_iso
from flysession.session.ports.outbound import CookieAccess, CookieOptions

logger = structlog.get_logger("flysession.session")

DEFAULT_CHUNK_SIZE = 4000
DEFAULT_MAX_CHUNKS = 10


def chunk_cookie_name(name: str, index: int) -> str:
    """Return the cookie name holding chunk *index* of session cookie *name*."""
    return name if index == 0 else f"{name}_{index}"


class CookieSessionStore:
    """Stores the entire session client-side in encrypted, chunked cookies.

    Reads require an encryption key: without one :meth:`get_session` always
    returns ``None``. Writes without a key store plaintext, uncompressed JSON.
    """

    def __init__(
        self,
        encryption_key: str | None = None,
        cookie_options: CookieOptions | None = None,
        cookie_name: str = "session",
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        max_chunks: int = DEFAULT_MAX_CHUNKS,
    ) -> None:
        if chunk_size < 1:
            raise ValueError("chunk_size must be greater than zero")
        if max_chunks < 1:
            raise ValueError("max_chunks must be greater than zero")
        self.encryption_key = encryption_key
        self.cookie_options = cookie_options or CookieOptions()
        self.cookie_name = cookie_name or "session"
        self._chunk_size = chunk_size
        self._max_chunks = max_chunks

    @property
    def count_cookie_name(self) -> str:
        return f"{self.cookie_name}_count"

    async def get_session(self, cookies: CookieAccess) -> SessionData | None:
        """Reassemble, decrypt and parse the session cookies.

        Returns ``None`` when there is no session or it cannot be decrypted
        or parsed.

        Raises:
            InvalidSessionCookieException: If the count cookie is present but
                is not a positive integer.
        """
        count = self._read_count(cookies)

        chunks: list[str] = []
        for index in range(count):
            chunk = cookies.read(chunk_cookie_name(self.cookie_name, index))
            if not chunk:
                break
            chunks.append(chunk)
        payload = join_chunks(chunks)

        if not self.encryption_key or not payload:
            return None

        try:
            compressed = decrypt_bytes(self.encryption_key, payload)
        except DecryptionException as exc:
            logger.warning("session_cookie_rejected", reason="decrypt", error=exc.code, chunks=len(chunks))
            return None

        try:
            plaintext = zlib.decompress(compressed).decode("utf-8")
        except (zlib.error, UnicodeDecodeError) as exc:
            logger.warning("session_cookie_rejected", reason="decompress", error=str(exc))
            return None

        try:
            return SessionData.from_json(plaintext)
        except ValueError as exc:
            logger.warning("session_cookie_rejected", reason="parse", error=str(exc))
            return None

    async def create_session(self, cookies: CookieAccess, data: SessionData) -> None:
        """Write a new session. Identical to :meth:`persist_session_data`."""
        await self.persist_session_data(cookies, data)

    async def persist_session_data(self, cookies: CookieAccess, data: SessionData) -> None:
        """Replace the session cookies with the serialized *data*.

        Every chunk slot is cleared first, so no chunk of a previous larger
        session stays readable.

        Raises:
            SessionTooLargeException: If the payload needs more than
                ``max_chunks`` cookies. Only the clearing writes happen.
        """
        serialized = data.to_json()
        if self.encryption_key:
            payload = encrypt_bytes(self.encryption_key, zlib.compress(serialized.encode("utf-8"), level=9))
        else:
            payload = serialized
        chunks = split_by_bytes(payload, self._chunk_size)

        self._clear(cookies)

        if len(chunks) > self._max_chunks:
            raise SessionTooLargeException(
                "Session too large for cookie storage",
                code="SESSION_TOO_LARGE",
                context={"chunks": len(chunks), "max_chunks": self._max_chunks},
            )

        options = self._options_for(data)
        if len(chunks) == 1:
            cookies.write(self.cookie_name, chunks[0], options)
        elif len(chunks) > 1:
            for index, chunk in enumerate(chunks):
                cookies.write(chunk_cookie_name(self.cookie_name, index), chunk, options)
            cookies.write(self.count_cookie_name, str(len(chunks)), options)

    async def delete_session(self, cookies: CookieAccess) -> None:
        """Clear every chunk slot and the count cookie."""
        self._clear(cookies)

    def _read_count(self, cookies: CookieAccess) -> int:
        raw = cookies.read(self.count_cookie_name)
        if not raw:
            return 1
        count = int(raw) if raw.isascii() and raw.isdigit() else 0
        if count < 1:
            raise InvalidSessionCookieException(
                f"Invalid session cookie count: {raw}",
                code="SESSION_COOKIE_COUNT",
                context={"cookie": self.count_cookie_name},
            )
        return count

    def _clear(self, cookies: CookieAccess) -> None:
        expired = self.cookie_options.with_overrides(max_age=0, expires=None)
        for index in range(self._max_chunks):
            cookies.write(chunk_cookie_name(self.cookie_name, index), "", expired)
        cookies.write(self.count_cookie_name, "", expired)

    def _options_for(self, data: SessionData) -> CookieOptions:
        """Let the client drop the cookies when the session expires."""
        options = self.cookie_options
        if data.expire and options.max_age is None and options.expires is None:
            try:
                return options.with_overrides(expires=parse_iso(data.expire))
            except ValueError:
                return options
        return options
