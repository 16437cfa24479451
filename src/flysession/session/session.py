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
"""Session — the per-request view of stored session state."""

from __future__ import annotations

from collections.abc import Iterator
from datetime import UTC, datetime, timedelta
from typing import Any

from flysession.session.data import SessionData, SessionEntry, to_iso, utc_now_iso


class Session:
    """Wraps a loaded :class:`SessionData` for the duration of one request.

    Handlers read and write values through this object; the session filter
    persists the underlying data once the handler returns.

    Attributes:
        modified: ``True`` once anything changed, including a flash value
            being consumed by :meth:`get`.
    """

    def __init__(self, data: SessionData | None = None, *, is_new: bool = False) -> None:
        self._data = data if data is not None else SessionData()
        self._is_new = is_new
        self._modified = False

    @property
    def data(self) -> SessionData:
        return self._data

    @property
    def is_new(self) -> bool:
        return self._is_new

    @property
    def modified(self) -> bool:
        return self._modified

    @property
    def deleted(self) -> bool:
        return self._data.delete

    @property
    def expire(self) -> str | None:
        return self._data.expire

    @property
    def accessed(self) -> str | None:
        return self._data.accessed

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value for *key*, or *default* if absent.

        Flash values are removed as they are read.
        """
        entry = self._data.data.get(key)
        if entry is None:
            return default
        if entry.flash:
            del self._data.data[key]
            self._modified = True
        return entry.value

    def set(self, key: str, value: Any) -> None:
        self._data.data[key] = SessionEntry(value=value, flash=False)
        self._modified = True

    def flash(self, key: str, value: Any) -> None:
        """Store a value that the next :meth:`get` consumes."""
        self._data.data[key] = SessionEntry(value=value, flash=True)
        self._modified = True

    def forget(self, key: str) -> None:
        if key in self._data.data:
            del self._data.data[key]
            self._modified = True

    def keys(self) -> list[str]:
        return list(self._data.data)

    def __contains__(self, key: object) -> bool:
        return key in self._data.data

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def delete_session(self) -> None:
        """Mark the session for deletion at the end of the request."""
        self._data.delete = True
        self._modified = True

    def set_expiration(self, expire: str | None) -> None:
        self._data.expire = expire
        self._modified = True

    def extend(self, seconds: int) -> None:
        """Set the expiry to *seconds* from now."""
        self.set_expiration(to_iso(datetime.now(UTC) + timedelta(seconds=seconds)))

    def is_valid(self) -> bool:
        """Return ``True`` unless the session has an expiry in the past."""
        return not self._data.is_expired()

    def touch(self) -> None:
        """Record the current time as the last access. Called by the session filter on load."""
        self._data.accessed = utc_now_iso()
