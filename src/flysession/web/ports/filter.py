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
"""Filter contract for the request pipeline.

Filters see the framework's request and response objects but are typed as
``Any`` here, so only the Starlette adapter imports Starlette.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, Protocol, runtime_checkable

CallNext = Callable[[Any], Awaitable[Any]]
"""Continues the chain with the next filter, or the application after the last one."""


@runtime_checkable
class WebFilter(Protocol):
    """A step in ``WebFilterChainMiddleware``.

    ``do_filter`` returns the response, usually the one produced by
    ``call_next``, possibly after adding headers or cookies to it.
    """

    async def do_filter(self, request: Any, call_next: CallNext) -> Any: ...

    def should_not_filter(self, request: Any) -> bool: ...
