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
"""RequestContextFilter — initializes RequestContext for each HTTP request.

Runs first in the chain so session stores that resolve their backend from
the request context find it bound.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import structlog

from flysession.context.request_context import RequestContext
from flysession.web.filters import OncePerRequestFilter
from flysession.web.ports.filter import CallNext


class RequestContextFilter(OncePerRequestFilter):
    """Creates a fresh RequestContext for each incoming HTTP request.

    Honors the ``X-Request-Id`` header if present; otherwise generates a UUID.
    The context ``env`` holds the configured backend bindings, overlaid with
    ``scope["env"]`` when the ASGI server provides per-request bindings.
    The request ID is bound into structlog's context variables for the
    duration of the request.

    Args:
        bindings: Backend bindings by name, e.g. ``{"Sessions": RedisKeyValue(client)}``.
    """

    def __init__(self, bindings: Mapping[str, Any] | None = None) -> None:
        self._bindings = dict(bindings or {})

    async def do_filter(self, request: Any, call_next: CallNext) -> Any:
        request_id = getattr(request, "headers", {}).get("x-request-id")
        env = {**self._bindings, **(request.scope.get("env") or {})}

        with RequestContext.scope(request_id=request_id, env=env) as ctx:
            with structlog.contextvars.bound_contextvars(request_id=ctx.request_id):
                return await call_next(request)
