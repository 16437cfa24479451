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
"""Request-scoped context backed by contextvars.

Each HTTP request gets a fresh RequestContext via RequestContextFilter.
The context stores the request_id, the backend bindings (``env``) that
key-value session stores resolve their backend from, and arbitrary
attributes.

A ContextVar is copied into every task created while it is set, so a value
bound at the start of a request is visible from any nested await or child
task of that request and never from a concurrently handled one.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

_request_context_var: ContextVar[RequestContext | None] = ContextVar(
    "flysession_request_context", default=None
)


class RequestContext:
    """Holds per-request state: request ID, backend bindings, and custom attributes.

    Use ``RequestContext.init()`` to create a new context for the current
    async task, and ``RequestContext.current()`` to retrieve it.
    """

    def __init__(
        self,
        request_id: str | None = None,
        env: Mapping[str, Any] | None = None,
    ) -> None:
        self._request_id = request_id or uuid.uuid4().hex
        self._env: dict[str, Any] = dict(env or {})
        self._attributes: dict[str, Any] = {}

    @property
    def request_id(self) -> str:
        return self._request_id

    @property
    def env(self) -> Mapping[str, Any]:
        """Backend bindings available to this request, keyed by binding name."""
        return self._env

    def get(self, key: str, default: Any = None) -> Any:
        return self._attributes.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._attributes[key] = value

    @classmethod
    def init(
        cls,
        request_id: str | None = None,
        env: Mapping[str, Any] | None = None,
    ) -> RequestContext:
        """Create and set a new RequestContext for the current async task."""
        ctx = cls(request_id=request_id, env=env)
        _request_context_var.set(ctx)
        return ctx

    @classmethod
    def current(cls) -> RequestContext | None:
        """Get the RequestContext for the current async task, or None."""
        return _request_context_var.get()

    @classmethod
    def clear(cls) -> None:
        """Clear the RequestContext for the current async task."""
        _request_context_var.set(None)

    @classmethod
    @contextmanager
    def scope(
        cls,
        request_id: str | None = None,
        env: Mapping[str, Any] | None = None,
    ) -> Iterator[RequestContext]:
        """Bind a new RequestContext for the duration of a ``with`` block.

        The previous context (usually ``None``) is restored on exit, so scopes
        nest::

            with RequestContext.scope(env={"Sessions": kv}):
                await store.get_session_by_id(sid)
        """
        ctx = cls(request_id=request_id, env=env)
        token = _request_context_var.set(ctx)
        try:
            yield ctx
        finally:
            _request_context_var.reset(token)
