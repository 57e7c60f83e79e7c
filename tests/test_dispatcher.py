"""Tests for apply(): binding, partial failures and the request adapter."""

import asyncio
import logging
import sys

import pytest

from routebook import (
    ApplyReport,
    HttpContext,
    InvalidHandlerShape,
    MissingHandlerMethod,
    Registry,
    UnsupportedMethodToken,
)
from routebook.core.base import SUPPORTED_METHODS
from routebook.core.dispatcher import build_adapter

from .helpers import ChainRouter


class Controller:
    def index(self, ctx):
        ctx.res.send("instance")


class StaticController:
    @staticmethod
    def index(ctx):
        ctx.res.send("static")


def test_end_to_end_middleware_runs_before_handler():
    calls = []

    def mw(req, res, next):
        calls.append("mw")
        next()

    def h(ctx):
        calls.append("h")
        ctx.res.send("directly")

    reg = Registry()
    reg.middleware([mw], lambda: reg.get("directly", h))
    router = ChainRouter()
    report = reg.apply(router)

    assert report.ok and report.bound == [("get", "/directly")]
    response, errors = router.dispatch("get", "/directly")
    assert calls == ["mw", "h"]
    assert response.body == "directly"
    assert errors == []


def test_short_circuiting_middleware_blocks_handler():
    def guard(req, res, next):
        if req.get("id") != "12345678":
            res.send("Forbidden", status=403)
            return
        next()

    reg = Registry()
    reg.middleware(
        [guard],
        lambda: reg.group("protected", lambda: reg.get("static", (StaticController, "index"))),
    )
    router = ChainRouter()
    reg.apply(router)

    denied, _ = router.dispatch("get", "/protected/static")
    assert denied.status == 403
    allowed, _ = router.dispatch("get", "/protected/static", {"id": "12345678"})
    assert allowed.body == "static"


def test_handler_kinds_receive_same_context():
    seen = []

    class Recorder:
        def index(self, ctx):
            seen.append(type(ctx))

        @staticmethod
        def static(ctx):
            seen.append(type(ctx))

    reg = Registry()
    reg.get("fn", lambda ctx: seen.append(type(ctx)))
    reg.get("instance", (Recorder, "index"))
    reg.get("static", (Recorder, "static"))
    router = ChainRouter()
    reg.apply(router)
    for path in ("/fn", "/instance", "/static"):
        router.dispatch("get", path)
    assert seen == [HttpContext, HttpContext, HttpContext]


def test_missing_method_skips_only_that_route(caplog):
    reg = Registry()
    reg.get("good", (Controller, "index"))
    reg.get("bad", (Controller, "missingMethod"))
    reg.get("shape", 42)
    reg.post("also-good", (StaticController, "index"))
    router = ChainRouter()

    with caplog.at_level(logging.ERROR, logger="routebook"):
        report = reg.apply(router)

    assert not report
    assert report.bound == [("get", "/good"), ("post", "/also-good")]
    assert [type(issue) for issue in report.issues] == [MissingHandlerMethod, InvalidHandlerShape]
    assert ("get", "/bad") not in router.stack
    assert "missingMethod" in caplog.text


def test_unsupported_token_skips_only_that_method():
    reg = Registry()
    reg.add(["get", "teleport", "POST"], "multi", lambda ctx: None)
    router = ChainRouter()
    report = reg.apply(router)
    assert report.bound == [("get", "/multi"), ("post", "/multi")]
    (issue,) = report.issues
    assert isinstance(issue, UnsupportedMethodToken)
    assert issue.token == "teleport"


def test_router_without_operation_is_reported():
    reg = Registry()
    reg.add(["get", "head"], "x", lambda ctx: None)
    router = ChainRouter(methods=("get",))
    report = reg.apply(router)
    assert report.bound == [("get", "/x")]
    assert isinstance(report.issues[0], UnsupportedMethodToken)


def test_all_token_fans_out_to_every_supported_method():
    reg = Registry()
    reg.add(["post", "all"], "any", lambda ctx: None)
    router = ChainRouter()
    report = reg.apply(router)
    assert [method for method, _ in report.bound] == ["post"] + [
        m for m in SUPPORTED_METHODS if m != "post"
    ]


def test_empty_methods_bind_nothing(caplog):
    reg = Registry()
    reg.add([], "none", lambda ctx: None)
    with caplog.at_level(logging.WARNING, logger="routebook"):
        report = reg.apply(ChainRouter())
    assert report.bound == [] and report.ok
    assert "No HTTP method" in caplog.text


def test_async_handler_is_awaited():
    async def handler(ctx):
        await asyncio.sleep(0)
        ctx.res.send("async")

    reg = Registry()
    reg.get("async", handler)
    router = ChainRouter()
    reg.apply(router)
    response, errors = router.dispatch("get", "/async")
    assert response.body == "async"
    assert errors == []


def test_sync_error_is_forwarded_to_next(caplog):
    failure = ValueError("bad input")

    def handler(ctx):
        raise failure

    reg = Registry()
    reg.put("explode", handler)
    router = ChainRouter()
    reg.apply(router)
    with caplog.at_level(logging.ERROR, logger="routebook"):
        _, errors = router.dispatch("put", "/explode")
    assert errors == [failure]
    assert "Error in route PUT /explode: bad input" in caplog.text


def test_async_error_is_forwarded_to_next():
    async def handler(ctx):
        raise KeyError("missing")

    reg = Registry()
    reg.delete("explode", handler)
    router = ChainRouter()
    reg.apply(router)
    _, errors = router.dispatch("delete", "/explode")
    assert len(errors) == 1 and isinstance(errors[0], KeyError)


def test_apply_twice_registers_again():
    reg = Registry()
    reg.get("x", lambda ctx: None)
    router = ChainRouter()
    reg.apply(router)
    reg.apply(router)
    assert len(router.stack[("get", "/x")]) == 2


def test_instance_controller_constructed_once_per_route():
    created = []

    class Counted:
        def __init__(self):
            created.append(self)

        def index(self, ctx):
            ctx.res.send(len(created))

    reg = Registry()
    reg.get("counted", (Counted, "index"))
    router = ChainRouter()
    reg.apply(router)
    router.dispatch("get", "/counted")
    router.dispatch("get", "/counted")
    assert len(created) == 1


def test_context_factory_option():
    class Ctx:
        def __init__(self, request, response, next):
            self.request = request
            self.res = response

    reg = Registry(apply_context_factory=Ctx)
    reg.get("ctx", lambda ctx: ctx.res.send(type(ctx).__name__))
    router = ChainRouter()
    reg.apply(router)
    response, _ = router.dispatch("get", "/ctx")
    assert response.body == "Ctx"

    override = ChainRouter()
    reg.apply(override, context_factory=HttpContext)
    response, _ = override.dispatch("get", "/ctx")
    assert response.body == "HttpContext"


def test_apply_with_smartasync(monkeypatch):
    wrapped = []

    def fake_smartasync(fn):
        wrapped.append(fn)
        return fn

    fake_module = type(sys)("smartasync")
    fake_module.smartasync = fake_smartasync
    monkeypatch.setitem(sys.modules, "smartasync", fake_module)

    reg = Registry(apply_use_smartasync=True)
    reg.get("a", lambda ctx: None)
    reg.post("b", lambda ctx: None)
    reg.apply(ChainRouter())
    assert [fn.__name__ for fn in wrapped] == ["get_a", "post_b"]

    wrapped.clear()
    reg.apply(ChainRouter(), use_smartasync=False)
    assert wrapped == []


def test_build_adapter_contract():
    forwarded = []
    adapter = build_adapter(lambda ctx: 1 / 0, "get", "/")
    assert adapter.__name__ == "get_root"
    asyncio.run(adapter({}, None, forwarded.append))
    assert len(forwarded) == 1 and isinstance(forwarded[0], ZeroDivisionError)


def test_apply_report_truthiness():
    report = ApplyReport()
    assert report
    report.issues.append(InvalidHandlerShape("x"))
    assert not report


def test_apply_on_base_registry_without_plugins():
    from routebook import BaseRegistry

    reg = BaseRegistry()
    reg.get("plain", lambda ctx: ctx.res.send("plain"))
    router = ChainRouter()
    assert reg.apply(router).bound == [("get", "/plain")]
    response, _ = router.dispatch("get", "/plain")
    assert response.body == "plain"


@pytest.mark.parametrize("token", ["GET", "Get"])
def test_method_tokens_are_case_insensitive(token):
    reg = Registry()
    reg.add(token, "x", lambda ctx: None)
    assert reg.apply(ChainRouter()).bound == [("get", "/x")]


@pytest.mark.parametrize("token", [None, 42])
def test_non_string_token_reported_at_apply(token):
    reg = Registry()
    reg.add(token, "odd", lambda ctx: None)
    reg.get("fine", lambda ctx: None)
    report = reg.apply(ChainRouter())
    assert report.bound == [("get", "/fine")]
    (issue,) = report.issues
    assert isinstance(issue, UnsupportedMethodToken)
    assert issue.token == token


def test_failing_continuation_does_not_escape_adapter(caplog):
    def broken_next(error=None):
        raise RuntimeError("continuation down")

    adapter = build_adapter(lambda ctx: 1 / 0, "post", "/orders")
    with caplog.at_level(logging.ERROR, logger="routebook"):
        asyncio.run(adapter({}, None, broken_next))
    assert "Error in route POST /orders" in caplog.text
    assert "Continuation failed for POST /orders: continuation down" in caplog.text
