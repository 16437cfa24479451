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
"""flysession — encrypted, chunked cookie sessions and server-side session stores.

Quick start::

    from starlette.applications import Starlette
    from starlette.middleware import Middleware

    from flysession import Config, WebFilterChainMiddleware, build_filters, configure

    settings = configure(Config({"session": {"encryption_key": "x" * 32}}))
    app = Starlette(
        routes=routes,
        middleware=[Middleware(WebFilterChainMiddleware, filters=build_filters(settings))],
    )

Handlers then use ``request.state.session``.
"""

from flysession.core.config import Config
from flysession.security.encryption import decrypt, encrypt
from flysession.session import Session, SessionData, build_filters, configure
from flysession.session.adapters.cookie import CookieSessionStore
from flysession.session.adapters.kv import KeyValueSessionStore
from flysession.session.adapters.memory import MemorySessionStore
from flysession.web.adapters.starlette.filter_chain import WebFilterChainMiddleware

__version__ = "0.1.0"

__all__ = [
    "Config",
    "CookieSessionStore",
    "KeyValueSessionStore",
    "MemorySessionStore",
    "Session",
    "SessionData",
    "WebFilterChainMiddleware",
    "build_filters",
    "configure",
    "decrypt",
    "encrypt",
]
