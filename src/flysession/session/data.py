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
"""SessionData — the backend-agnostic persisted unit of session state."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any


def to_iso(value: datetime) -> str:
    """Format *value* as UTC ISO-8601 with millisecond precision, e.g. ``2026-01-01T00:00:00.000Z``."""
    return value.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def utc_now_iso() -> str:
    return to_iso(datetime.now(UTC))


def parse_iso(value: str) -> datetime:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


@dataclass
class SessionEntry:
    """One stored value. ``flash`` entries are discarded after the first read."""

    value: Any
    flash: bool = False


@dataclass
class SessionData:
    """Session state as stored by every backend.

    Attributes:
        data: Stored entries keyed by name.
        expire: ISO-8601 expiry; a past value makes the session absent on load.
        accessed: ISO-8601 time of the last successful load, set by backends.
        delete: When true the session is purged instead of persisted.
    """

    data: dict[str, SessionEntry] = field(default_factory=dict)
    expire: str | None = None
    accessed: str | None = None
    delete: bool = False

    def is_expired(self, now: datetime | None = None) -> bool:
        """Return ``True`` if ``expire`` is set and not in the future."""
        if self.expire is None:
            return False
        try:
            expires_at = parse_iso(self.expire)
        except ValueError:
            return True
        return expires_at <= (now or datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON wire form."""
        return {
            "_data": {key: {"value": entry.value, "flash": entry.flash} for key, entry in self.data.items()},
            "_expire": self.expire,
            "_accessed": self.accessed,
            "_delete": self.delete,
        }

    @classmethod
    def from_dict(cls, raw: Any) -> SessionData:
        """Build SessionData from its JSON wire form.

        Raises:
            ValueError: If *raw* does not have the wire shape.
        """
        if not isinstance(raw, dict):
            raise ValueError(f"Session payload must be an object, got {type(raw).__name__}")

        raw_data = raw.get("_data") or {}
        if not isinstance(raw_data, dict):
            raise ValueError("Session '_data' must be an object")

        entries: dict[str, SessionEntry] = {}
        for key, item in raw_data.items():
            if not isinstance(item, dict) or "value" not in item:
                raise ValueError(f"Session entry '{key}' is malformed")
            entries[key] = SessionEntry(value=item["value"], flash=bool(item.get("flash", False)))

        return cls(
            data=entries,
            expire=raw.get("_expire"),
            accessed=raw.get("_accessed"),
            delete=bool(raw.get("_delete", False)),
        )

    def to_json(self) -> str:
        """Serialize to compact JSON, keeping non-ASCII characters as-is."""
        return json.dumps(self.to_dict(), ensure_ascii=False, separators=(",", ":"))

    @classmethod
    def from_json(cls, raw: str | bytes) -> SessionData:
        """Parse the JSON produced by :meth:`to_json`.

        Raises:
            ValueError: On invalid JSON or an unexpected shape
                (``json.JSONDecodeError`` is a ``ValueError``).
        """
        return cls.from_dict(json.loads(raw))
