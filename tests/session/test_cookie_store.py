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
"""Tests for CookieSessionStore — encrypted, chunked cookie persistence."""

from __future__ import annotations

import secrets
import zlib

import pytest

from flysession.kernel.exceptions import InvalidSessionCookieException, SessionTooLargeException
from flysession.security.encryption import encrypt, encrypt_bytes
from flysession.session.adapters.cookie import CookieSessionStore, chunk_cookie_name
from flysession.session.data import SessionData, SessionEntry
from flysession.session.ports.outbound import CookieAccess, CookieOptions

ENCRYPTION_KEY = "test-encryption-key-that-is-long-enough"


class FakeCookieJar:
    """In-memory ``CookieAccess`` that records writes like a browser would see them."""

    def __init__(self, cookies: dict[str, str] | None = None) -> None:
        self.cookies: dict[str, str] = dict(cookies or {})
        self.writes: list[tuple[str, str, CookieOptions]] = []

    def read(self, name: str) -> str | None:
        return self.cookies.get(name)

    def write(self, name: str, value: str, options: CookieOptions) -> None:
        self.writes.append((name, value, options))

    def written(self) -> dict[str, tuple[str, CookieOptions]]:
        """Last write per cookie name."""
        result: dict[str, tuple[str, CookieOptions]] = {}
        for name, value, options in self.writes:
            result[name] = (value, options)
        return result

    def next_request(self) -> FakeCookieJar:
        """Cookies the client sends back after applying this response's writes."""
        cookies = dict(self.cookies)
        for name, (value, options) in self.written().items():
            if options.max_age == 0 or value == "":
                cookies.pop(name, None)
            else:
                cookies[name] = value
        return FakeCookieJar(cookies)


@pytest.fixture
def cookies() -> FakeCookieJar:
    return FakeCookieJar()


@pytest.fixture
def encryption_key() -> str:
    return ENCRYPTION_KEY


CLEARED_NAMES = {"session", *(f"session_{i}" for i in range(1, 10)), "session_count"}


def _sample() -> SessionData:
    return SessionData(data={"user": SessionEntry({"id": 1})})


def _seal(key: str, text: str) -> str:
    return encrypt_bytes(key, zlib.compress(text.encode("utf-8")))


class TestCookieNames:
    def test_chunk_cookie_name(self):
        assert chunk_cookie_name("session", 0) == "session"
        assert chunk_cookie_name("session", 3) == "session_3"

    def test_fake_jar_satisfies_protocol(self, cookies: FakeCookieJar):
        assert isinstance(cookies, CookieAccess)


class TestCookieStoreRoundTrip:
    @pytest.mark.asyncio
    async def test_single_chunk_round_trip(self, cookies: FakeCookieJar, encryption_key: str):
        store = CookieSessionStore(encryption_key=encryption_key)
        await store.persist_session_data(cookies, _sample())

        written = cookies.written()
        assert written["session"][0] != ""
        assert written["session_count"][0] == ""

        loaded = await store.get_session(cookies.next_request())
        assert loaded == _sample()

    @pytest.mark.asyncio
    async def test_multi_chunk_round_trip(self, cookies: FakeCookieJar, encryption_key: str):
        store = CookieSessionStore(encryption_key=encryption_key)
        data = SessionData(data={"blob": SessionEntry(secrets.token_hex(6000))})
        await store.persist_session_data(cookies, data)

        written = cookies.written()
        count = int(written["session_count"][0])
        assert 2 <= count <= 10
        for index in range(count):
            value = written[chunk_cookie_name("session", index)][0]
            assert 0 < len(value.encode("utf-8")) <= 4000

        assert await store.get_session(cookies.next_request()) == data

    @pytest.mark.asyncio
    async def test_repetitive_session_near_ceiling_round_trips(self, cookies: FakeCookieJar, encryption_key: str):
        store = CookieSessionStore(encryption_key=encryption_key)
        data = SessionData(data={"blob": SessionEntry("a" * 35_000)})
        await store.persist_session_data(cookies, data)

        assert cookies.written()["session"][0] != ""
        assert await store.get_session(cookies.next_request()) == data

    @pytest.mark.asyncio
    async def test_hex_session_at_ceiling_round_trips(self, cookies: FakeCookieJar, encryption_key: str):
        store = CookieSessionStore(encryption_key=encryption_key)
        overhead = len(SessionData(data={"blob": SessionEntry("")}).to_json())
        data = SessionData(data={"blob": SessionEntry(secrets.token_hex(20_000)[: 40_000 - overhead])})
        assert len(data.to_json()) == 40_000

        await store.persist_session_data(cookies, data)
        assert int(cookies.written()["session_count"][0]) <= 10
        assert await store.get_session(cookies.next_request()) == data

    @pytest.mark.asyncio
    async def test_create_session_persists(self, cookies: FakeCookieJar, encryption_key: str):
        store = CookieSessionStore(encryption_key=encryption_key)
        await store.create_session(cookies, _sample())
        assert await store.get_session(cookies.next_request()) == _sample()

    @pytest.mark.asyncio
    async def test_custom_cookie_name(self, cookies: FakeCookieJar, encryption_key: str):
        store = CookieSessionStore(encryption_key=encryption_key, cookie_name="app")
        await store.persist_session_data(cookies, _sample())
        assert "app" in cookies.written()
        assert "app_count" in cookies.written()
        assert await store.get_session(cookies.next_request()) == _sample()


class TestCookieStoreRead:
    @pytest.mark.asyncio
    async def test_no_cookies_returns_none(self, cookies: FakeCookieJar, encryption_key: str):
        store = CookieSessionStore(encryption_key=encryption_key)
        assert await store.get_session(cookies) is None

    @pytest.mark.asyncio
    async def test_without_key_always_returns_none(self, cookies: FakeCookieJar):
        store = CookieSessionStore()
        await store.persist_session_data(cookies, _sample())
        assert cookies.written()["session"][0] == _sample().to_json()
        assert await store.get_session(cookies.next_request()) is None

    @pytest.mark.asyncio
    async def test_tampered_cookie_returns_none(self, encryption_key: str):
        store = CookieSessionStore(encryption_key=encryption_key)
        sealed = _seal(encryption_key, _sample().to_json())
        tampered = sealed[:-4] + ("AAAA" if not sealed.endswith("AAAA") else "BBBB")
        assert await store.get_session(FakeCookieJar({"session": tampered})) is None

    @pytest.mark.asyncio
    async def test_garbage_cookie_returns_none(self, encryption_key: str):
        store = CookieSessionStore(encryption_key=encryption_key)
        assert await store.get_session(FakeCookieJar({"session": "not-a-sealed-value"})) is None

    @pytest.mark.asyncio
    async def test_other_key_returns_none(self, cookies: FakeCookieJar, encryption_key: str):
        writer = CookieSessionStore(encryption_key=encryption_key)
        reader = CookieSessionStore(encryption_key="another-key-that-is-also-long-enough!")
        await writer.persist_session_data(cookies, _sample())
        assert await reader.get_session(cookies.next_request()) is None

    @pytest.mark.asyncio
    async def test_decryptable_non_session_json_returns_none(self, encryption_key: str):
        store = CookieSessionStore(encryption_key=encryption_key)
        sealed = _seal(encryption_key, "[1, 2, 3]")
        assert await store.get_session(FakeCookieJar({"session": sealed})) is None

    @pytest.mark.asyncio
    async def test_uncompressed_payload_returns_none(self, encryption_key: str):
        store = CookieSessionStore(encryption_key=encryption_key)
        sealed = encrypt(encryption_key, _sample().to_json())
        assert await store.get_session(FakeCookieJar({"session": sealed})) is None

    @pytest.mark.asyncio
    async def test_missing_chunk_stops_reading(self, cookies: FakeCookieJar, encryption_key: str):
        store = CookieSessionStore(encryption_key=encryption_key)
        await store.persist_session_data(cookies, SessionData(data={"blob": SessionEntry(secrets.token_hex(6000))}))
        jar = cookies.next_request()
        del jar.cookies["session_1"]
        assert await store.get_session(jar) is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("count", ["abc", "0", "-2", "1_0", " 2 ", "+2", "\u0662", "2.0"])
    async def test_invalid_count_raises(self, count: str, encryption_key: str):
        store = CookieSessionStore(encryption_key=encryption_key)
        with pytest.raises(InvalidSessionCookieException):
            await store.get_session(FakeCookieJar({"session": "x", "session_count": count}))

    @pytest.mark.asyncio
    async def test_empty_count_treated_as_one(self, cookies: FakeCookieJar, encryption_key: str):
        store = CookieSessionStore(encryption_key=encryption_key)
        await store.persist_session_data(cookies, _sample())
        jar = cookies.next_request()
        jar.cookies["session_count"] = ""
        assert await store.get_session(jar) == _sample()


class TestCookieStoreWrite:
    @pytest.mark.asyncio
    async def test_clears_all_slots_before_writing(self, cookies: FakeCookieJar, encryption_key: str):
        store = CookieSessionStore(encryption_key=encryption_key)
        await store.persist_session_data(cookies, _sample())

        clearing = cookies.writes[: len(CLEARED_NAMES)]
        assert {name for name, _, _ in clearing} == CLEARED_NAMES
        assert all(value == "" and options.max_age == 0 for _, value, options in clearing)

    @pytest.mark.asyncio
    async def test_shrinking_session_leaves_no_stale_chunks(self, cookies: FakeCookieJar, encryption_key: str):
        store = CookieSessionStore(encryption_key=encryption_key)
        await store.persist_session_data(cookies, SessionData(data={"blob": SessionEntry(secrets.token_hex(6000))}))
        large = cookies.next_request()
        assert "session_1" in large.cookies

        await store.persist_session_data(large, _sample())
        small = large.next_request()
        assert set(small.cookies) == {"session"}
        assert await store.get_session(small) == _sample()

    @pytest.mark.asyncio
    async def test_oversized_session_raises_after_cleanup_only(self, cookies: FakeCookieJar):
        store = CookieSessionStore()
        data = SessionData(data={"blob": SessionEntry("x" * 44_000)})

        with pytest.raises(SessionTooLargeException) as exc_info:
            await store.persist_session_data(cookies, data)

        assert exc_info.value.context["chunks"] == 12
        assert len(cookies.writes) == len(CLEARED_NAMES)
        assert all(value == "" for _, value, _ in cookies.writes)

    @pytest.mark.asyncio
    async def test_ten_chunks_is_the_ceiling(self, cookies: FakeCookieJar):
        store = CookieSessionStore()
        overhead = len(SessionData(data={"blob": SessionEntry("")}).to_json())
        data = SessionData(data={"blob": SessionEntry("x" * (40_000 - overhead))})

        await store.persist_session_data(cookies, data)
        assert cookies.written()["session_count"][0] == "10"
        assert cookies.written()["session_9"][0] != ""

    @pytest.mark.asyncio
    async def test_cookie_options_applied_to_every_chunk(self, cookies: FakeCookieJar, encryption_key: str):
        options = CookieOptions(path="/app", secure=True, samesite="strict")
        store = CookieSessionStore(encryption_key=encryption_key, cookie_options=options)
        await store.persist_session_data(cookies, SessionData(data={"blob": SessionEntry(secrets.token_hex(6000))}))

        for name, (value, written_options) in cookies.written().items():
            if value:
                assert written_options == options, name

    @pytest.mark.asyncio
    async def test_session_expiry_becomes_cookie_expiry(self, cookies: FakeCookieJar, encryption_key: str):
        store = CookieSessionStore(encryption_key=encryption_key)
        await store.persist_session_data(cookies, SessionData(expire="2030-01-01T00:00:00.000Z"))
        expires = cookies.written()["session"][1].expires
        assert expires is not None
        assert expires.year == 2030

    @pytest.mark.asyncio
    async def test_explicit_max_age_wins_over_session_expiry(self, cookies: FakeCookieJar, encryption_key: str):
        store = CookieSessionStore(encryption_key=encryption_key, cookie_options=CookieOptions(max_age=60))
        await store.persist_session_data(cookies, SessionData(expire="2030-01-01T00:00:00.000Z"))
        options = cookies.written()["session"][1]
        assert options.max_age == 60
        assert options.expires is None


class TestCookieStoreDelete:
    @pytest.mark.asyncio
    async def test_delete_clears_every_slot(self, cookies: FakeCookieJar, encryption_key: str):
        store = CookieSessionStore(encryption_key=encryption_key)
        await store.delete_session(cookies)

        assert {name for name, _, _ in cookies.writes} == CLEARED_NAMES
        assert all(value == "" and options.max_age == 0 for _, value, options in cookies.writes)

    @pytest.mark.asyncio
    async def test_deleted_session_reads_as_none(self, cookies: FakeCookieJar, encryption_key: str):
        store = CookieSessionStore(encryption_key=encryption_key)
        await store.persist_session_data(cookies, _sample())
        after_write = cookies.next_request()
        await store.delete_session(after_write)
        assert await store.get_session(after_write.next_request()) is None


class TestCookieStoreConstruction:
    def test_rejects_invalid_limits(self):
        with pytest.raises(ValueError):
            CookieSessionStore(chunk_size=0)
        with pytest.raises(ValueError):
            CookieSessionStore(max_chunks=0)

    def test_defaults(self):
        store = CookieSessionStore()
        assert store.cookie_name == "session"
        assert store.count_cookie_name == "session_count"
        assert store.encryption_key is None
