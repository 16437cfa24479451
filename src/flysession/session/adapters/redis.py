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
"""Redis-backed key-value access for :class:`KeyValueSessionStore`."""

from __future__ import annotations

from typing import Any


class RedisKeyValue:
    """``KeyValueAccess`` over a ``redis.asyncio.Redis``-like client.

    Absolute expirations map to ``SET ... EXAT`` and relative ones to
    ``SET ... EX``, so Redis drops expired sessions by itself.
    """

    def __init__(self, client: Any) -> None:
        self._client = client

    async def get(self, key: str) -> str | None:
        raw = await self._client.get(key)
        if raw is None:
            return None
        return raw.decode("utf-8") if isinstance(raw, bytes) else str(raw)

    async def put(
        self,
        key: str,
        value: str,
        *,
        expiration: int | None = None,
        expiration_ttl: int | None = None,
    ) -> None:
        """Store *value* with an absolute (``expiration``) or relative TTL."""
        if expiration is not None:
            await self._client.set(key, value.encode("utf-8"), exat=expiration)
        else:
            await self._client.set(key, value.encode("utf-8"), ex=expiration_ttl)

    async def delete(self, key: str) -> None:
        await self._client.delete(key)
