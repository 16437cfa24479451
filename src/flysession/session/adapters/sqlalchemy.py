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
"""SQL-backed session store on an async SQLAlchemy engine.

Intended for a local on-disk database (``sqlite+aiosqlite:///sessions.db``),
but any async SQLAlchemy dialect works.
"""

from __future__ import annotations

import asyncio
import time

import structlog
from sqlalchemy import Float, String, Text, delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from flysession.kernel.exceptions import SessionStoreException
from flysession.session.adapters.kv import absolute_expiration
from flysession.session.data import SessionData, utc_now_iso
from flysession.session.ports.outbound import MISSING_ID, MissingId, require_session_id

logger = structlog.get_logger("flysession.session")


class Base(DeclarativeBase):
    """Declarative base for session tables."""


class SessionRecord(Base):
    """One stored session: its JSON payload and optional UNIX expiry."""

    __tablename__ = "sessions"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    data: Mapped[str] = mapped_column(Text, nullable=False)
    expires_at: Mapped[float | None] = mapped_column(Float, nullable=True, index=True)


class SqlAlchemySessionStore:
    """Session store keeping one row per session.

    Expiry is checked explicitly on load since SQL databases have no native
    TTL. Reads fail open (``None``), writes raise
    :class:`SessionStoreException`. The table is created on first use.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine
        self._sessions = async_sessionmaker(engine, expire_on_commit=False)
        self._tables_ready = False
        self._tables_lock = asyncio.Lock()

    async def create_tables(self) -> None:
        """Create the ``sessions`` table if it does not exist."""
        if self._tables_ready:
            return
        async with self._tables_lock:
            if self._tables_ready:
                return
            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            self._tables_ready = True

    async def purge_expired(self) -> int:
        """Delete rows whose expiry has passed and return how many were removed."""
        await self.create_tables()
        async with self._sessions() as db:
            result = await db.execute(delete(SessionRecord).where(SessionRecord.expires_at <= time.time()))
            await db.commit()
            return int(result.rowcount or 0)

    async def get_session_by_id(self, session_id: str | None) -> SessionData | MissingId | None:
        if not session_id:
            return MISSING_ID

        try:
            await self.create_tables()
            async with self._sessions() as db:
                record = await db.scalar(select(SessionRecord).where(SessionRecord.id == session_id))
                if record is None:
                    return None

                data = SessionData.from_json(record.data)
                if data.delete or data.is_expired():
                    await db.execute(delete(SessionRecord).where(SessionRecord.id == session_id))
                    await db.commit()
                    return None

                data.accessed = utc_now_iso()
                return data
        except (SQLAlchemyError, ValueError) as exc:
            logger.error(
                "session_read_failed",
                operation="get_session_by_id",
                store="sql",
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return None

    async def create_session(self, session_id: str, data: SessionData) -> None:
        session_id = require_session_id(session_id)
        if not data.accessed:
            data.accessed = utc_now_iso()
        await self._upsert("create_session", session_id, data)

    async def persist_session_data(self, session_id: str, data: SessionData) -> None:
        session_id = require_session_id(session_id)
        data.accessed = utc_now_iso()
        if data.delete:
            await self.delete_session(session_id)
            return
        await self._upsert("persist_session_data", session_id, data)

    async def delete_session(self, session_id: str) -> None:
        session_id = require_session_id(session_id)
        try:
            await self.create_tables()
            async with self._sessions() as db:
                await db.execute(delete(SessionRecord).where(SessionRecord.id == session_id))
                await db.commit()
        except SQLAlchemyError as exc:
            logger.error(
                "session_delete_failed",
                operation="delete_session",
                store="sql",
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise SessionStoreException(
                "Failed to delete session", code="SESSION_STORE_WRITE", context={"operation": "delete_session"}
            ) from exc

    async def _upsert(self, operation: str, session_id: str, data: SessionData) -> None:
        expiration = absolute_expiration(data)
        try:
            await self.create_tables()
            async with self._sessions() as db:
                record = await db.get(SessionRecord, session_id)
                if record is None:
                    db.add(SessionRecord(id=session_id, data=data.to_json(), expires_at=expiration))
                else:
                    record.data = data.to_json()
                    record.expires_at = expiration
                await db.commit()
        except SQLAlchemyError as exc:
            logger.error(
                "session_write_failed",
                operation=operation,
                store="sql",
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise SessionStoreException(
                "Failed to write session", code="SESSION_STORE_WRITE", context={"operation": operation}
            ) from exc
