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
"""flysession sessions — session state with pluggable stores.

Import concrete store types from the adapter package::

    from flysession.session.adapters.cookie import CookieSessionStore
    from flysession.session.adapters.kv import KeyValueSessionStore
    from flysession.session.adapters.memory import MemorySessionStore
"""

from flysession.session.configure import SessionSettings, configure
from flysession.session.data import SessionData, SessionEntry
from flysession.session.filter import SessionFilter, build_filters
from flysession.session.ports.outbound import (
    MISSING_ID,
    CookieAccess,
    CookieOptions,
    KeyValueAccess,
    MissingId,
    SessionStore,
    require_session_id,
)
from flysession.session.session import Session

__all__ = [
    "MISSING_ID",
    "CookieAccess",
    "CookieOptions",
    "KeyValueAccess",
    "MissingId",
    "Session",
    "SessionData",
    "SessionEntry",
    "SessionFilter",
    "SessionSettings",
    "SessionStore",
    "build_filters",
    "configure",
    "require_session_id",
]
