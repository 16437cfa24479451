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
"""Resolve session settings and the active store from configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from flysession.config.properties import SessionProperties
from flysession.core.config import Config
from flysession.kernel.exceptions import ConfigurationException
from flysession.security.encryption import prepare_key
from flysession.session.adapters.cookie import CookieSessionStore
from flysession.session.adapters.kv import DEFAULT_NAMESPACE, KeyValueSessionStore
from flysession.session.ports.outbound import CookieOptions, SessionStore


@dataclass
class SessionSettings:
    """Everything the session filter needs, resolved once at startup.

    Attributes:
        store: The active store.
        bindings: Backend bindings to place in each request context, keyed
            by namespace. Only key-value stores need them.
    """

    store: CookieSessionStore | SessionStore
    cookie_name: str = "session"
    cookie_options: CookieOptions = field(default_factory=CookieOptions)
    encryption_key: str | None = None
    expire_after_seconds: int | None = None
    auto_extend_expiration: bool = False
    bindings: dict[str, Any] = field(default_factory=dict)


def configure(
    config: Config,
    store: CookieSessionStore | SessionStore | None = None,
    bindings: dict[str, Any] | None = None,
) -> SessionSettings:
    """Build :class:`SessionSettings` from the ``session.*`` configuration.

    An explicit *store* wins. Otherwise ``session.store`` selects one:

    - unset or ``cookie``: :class:`CookieSessionStore`
    - ``kv`` (or any ``session.store_namespace``): :class:`KeyValueSessionStore`,
      backend supplied per request through *bindings* or ``scope["env"]``
    - ``redis``: :class:`KeyValueSessionStore` bound to Redis at ``session.redis_url``
    - ``memory``: :class:`MemorySessionStore`
    - ``sql``: :class:`SqlAlchemySessionStore` on ``session.database_url``

    Raises:
        ConfigurationException: For an unknown store type.
        EncryptionKeyException: If an encryption key shorter than 32
            characters is configured.
    """
    props = config.bind(SessionProperties)

    if props.encryption_key is not None:
        prepare_key(props.encryption_key)

    cookie_options = CookieOptions(
        path=props.cookie_path,
        domain=props.cookie_domain,
        secure=props.cookie_secure,
        httponly=props.cookie_httponly,
        samesite=props.cookie_samesite.lower(),  # type: ignore[arg-type]
    )
    resolved_bindings = dict(bindings or {})

    if store is None:
        store = _build_store(props, resolved_bindings)

    if isinstance(store, CookieSessionStore):
        store.cookie_name = props.cookie_name
        store.cookie_options = cookie_options
        if props.encryption_key:
            store.encryption_key = props.encryption_key

    return SessionSettings(
        store=store,
        cookie_name=props.cookie_name,
        cookie_options=cookie_options,
        encryption_key=props.encryption_key,
        expire_after_seconds=props.expire_after_seconds,
        auto_extend_expiration=props.auto_extend_expiration,
        bindings=resolved_bindings,
    )


def _build_store(props: SessionProperties, bindings: dict[str, Any]) -> CookieSessionStore | SessionStore:
    store_type = (props.store or "").lower()

    if store_type == "kv" or (not store_type and props.store_namespace):
        return KeyValueSessionStore(
            namespace=props.store_namespace or DEFAULT_NAMESPACE,
            expiration_ttl=props.expire_after_seconds or props.kv_ttl,
            prefix=props.key_prefix,
        )

    if store_type == "redis":
        import redis.asyncio as aioredis

        from flysession.session.adapters.redis import RedisKeyValue

        namespace = props.store_namespace or DEFAULT_NAMESPACE
        client = aioredis.from_url(props.redis_url)  # type: ignore[no-untyped-call,unused-ignore]
        bindings.setdefault(namespace, RedisKeyValue(client))
        return KeyValueSessionStore(
            namespace=namespace,
            expiration_ttl=props.expire_after_seconds or props.kv_ttl,
            prefix=props.key_prefix,
        )

    if store_type == "memory":
        from flysession.session.adapters.memory import MemorySessionStore

        return MemorySessionStore()

    if store_type == "sql":
        from sqlalchemy.ext.asyncio import create_async_engine

        from flysession.session.adapters.sqlalchemy import SqlAlchemySessionStore

        return SqlAlchemySessionStore(create_async_engine(props.database_url))

    if not store_type or store_type == "cookie":
        return CookieSessionStore(cookie_name=props.cookie_name)

    raise ConfigurationException(
        "No session store provided. Please provide a session store or set the SESSION_STORE environment variable.",
        code="SESSION_STORE_UNKNOWN",
        context={"store": props.store},
    )
