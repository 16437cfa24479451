"""Tests for RequestContext — per-request state and backend bindings."""

import asyncio
import uuid

import pytest

from flysession.context.request_context import RequestContext


class TestRequestContext:
    def test_current_returns_none_outside_request(self):
        assert RequestContext.current() is None

    def test_init_and_current(self):
        ctx = RequestContext.init()
        assert RequestContext.current() is ctx
        assert isinstance(ctx.request_id, str)
        assert len(ctx.request_id) > 0
        RequestContext.clear()

    def test_clear_resets_to_none(self):
        RequestContext.init()
        RequestContext.clear()
        assert RequestContext.current() is None

    def test_custom_request_id(self):
        rid = str(uuid.uuid4())
        ctx = RequestContext.init(request_id=rid)
        assert ctx.request_id == rid
        RequestContext.clear()

    def test_attributes_get_set(self):
        ctx = RequestContext.init()
        ctx.set("tenant_id", "acme")
        assert ctx.get("tenant_id") == "acme"
        assert ctx.get("missing") is None
        assert ctx.get("missing", "default") == "default"
        RequestContext.clear()

    def test_env_defaults_to_empty(self):
        ctx = RequestContext.init()
        assert dict(ctx.env) == {}
        RequestContext.clear()

    def test_env_is_copied(self):
        bindings = {"Sessions": object()}
        ctx = RequestContext.init(env=bindings)
        bindings["Other"] = object()
        assert set(ctx.env) == {"Sessions"}
        RequestContext.clear()


class TestRequestContextScope:
    def test_scope_binds_and_restores(self):
        backend = object()
        with RequestContext.scope(env={"Sessions": backend}) as ctx:
            assert RequestContext.current() is ctx
            assert ctx.env["Sessions"] is backend
        assert RequestContext.current() is None

    def test_scopes_nest(self):
        with RequestContext.scope(request_id="outer") as outer:
            with RequestContext.scope(request_id="inner"):
                assert RequestContext.current().request_id == "inner"
            assert RequestContext.current() is outer

    def test_scope_restores_on_error(self):
        with pytest.raises(RuntimeError):
            with RequestContext.scope():
                raise RuntimeError("boom")
        assert RequestContext.current() is None

    @pytest.mark.asyncio
    async def test_isolation_between_tasks(self):
        """Each asyncio task gets its own context (contextvars copy-on-create)."""
        results = {}

        async def worker(name: str):
            with RequestContext.scope(env={"Sessions": name}):
                await asyncio.sleep(0.01)
                results[name] = RequestContext.current().env["Sessions"]

        await asyncio.gather(worker("a"), worker("b"))
        assert results == {"a": "a", "b": "b"}
