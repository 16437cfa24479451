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
"""Base class for filters that run at most once for a given request.

Applications that mount sub-applications can end up with the filter chain
installed more than once around the same request. The session must still be
loaded and persisted exactly once, so a filter records in the ASGI scope that
it has handled the request and later chains pass the request straight on.
"""

from __future__ import annotations

import abc
from collections.abc import Sequence
from fnmatch import fnmatch
from typing import Any

from flysession.web.ports.filter import CallNext

_FILTERED_KEY = "flysession.filtered"


class OncePerRequestFilter(abc.ABC):
    """Skips requests already handled by this filter and paths it does not cover.

    Attributes:
        url_patterns: Glob patterns of paths to handle. Empty means every path.
        exclude_patterns: Glob patterns of paths to skip, e.g. ``/static/*``.
            Wins over ``url_patterns``.
    """

    url_patterns: Sequence[str] = ()
    exclude_patterns: Sequence[str] = ()

    @property
    def filter_name(self) -> str:
        return type(self).__qualname__

    def should_not_filter(self, request: Any) -> bool:
        """Return ``True`` to pass *request* on without running :meth:`do_filter`.

        A request that is not skipped is marked as handled by this filter.
        """
        filtered: set[str] = request.scope.setdefault(_FILTERED_KEY, set())
        if self.filter_name in filtered:
            return True

        path: str = request.scope.get("path", "")
        if self.url_patterns and not any(fnmatch(path, p) for p in self.url_patterns):
            return True
        if any(fnmatch(path, p) for p in self.exclude_patterns):
            return True

        filtered.add(self.filter_name)
        return False

    @abc.abstractmethod
    async def do_filter(self, request: Any, call_next: CallNext) -> Any:
        """Handle *request*, delegating to ``await call_next(request)`` to continue the chain."""
