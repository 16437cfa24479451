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
"""Starlette implementation of the ``CookieAccess`` capability."""

from __future__ import annotations

from typing import Any

from starlette.responses import Response

from flysession.session.ports.outbound import CookieOptions


class StarletteCookieAccess:
    """Reads cookies from a Starlette request and buffers cookie writes.

    Writes are kept until :meth:`apply` copies them onto the response, since
    the response does not exist yet while the session is loaded. A later
    write to the same name replaces an earlier one, so a clear followed by a
    rewrite yields a single ``Set-Cookie`` header.
    """

    def __init__(self, request: Any) -> None:
        self._cookies: dict[str, str] = dict(getattr(request, "cookies", {}) or {})
        self._pending: dict[str, tuple[str, CookieOptions]] = {}

    def read(self, name: str) -> str | None:
        return self._cookies.get(name)

    def write(self, name: str, value: str, options: CookieOptions) -> None:
        self._pending.pop(name, None)
        self._pending[name] = (value, options)

    @property
    def pending(self) -> dict[str, tuple[str, CookieOptions]]:
        return dict(self._pending)

    def apply(self, response: Response) -> None:
        """Emit one ``Set-Cookie`` header per written cookie."""
        for name, (value, options) in self._pending.items():
            response.set_cookie(
                key=name,
                value=value,
                max_age=options.max_age,
                expires=options.expires,
                path=options.path,
                domain=options.domain,
                secure=options.secure,
                httponly=options.httponly,
                samesite=options.samesite,
            )
        self._pending.clear()
