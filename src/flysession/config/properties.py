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
"""Session subsystem configuration properties."""

from __future__ import annotations

from dataclasses import dataclass

from flysession.core.config import config_properties


@config_properties(prefix="session")
@dataclass
class SessionProperties:
    """Configuration for the session subsystem (session.*).

    Every field can be overridden from the environment, e.g.
    ``SESSION_STORE=redis`` or ``SESSION_ENCRYPTION_KEY=...``.
    """

    store: str | None = None
    store_namespace: str | None = None
    encryption_key: str | None = None
    expire_after_seconds: int | None = None
    auto_extend_expiration: bool = False
    cookie_name: str = "session"
    cookie_path: str = "/"
    cookie_domain: str | None = None
    cookie_secure: bool = False
    cookie_httponly: bool = True
    cookie_samesite: str = "lax"
    key_prefix: str = "session:"
    kv_ttl: int = 86400
    redis_url: str = "redis://localhost:6379/0"
    database_url: str = "sqlite+aiosqlite:///sessions.db"
