"""
Example declaring routes with every handler style, then applying them to a
minimal Express-like router.
"""

from __future__ import annotations

import asyncio
import types

from routebook import HttpContext, routes


def pick_request_fields(req: dict) -> dict:
    return {key: req.get(key) for key in ("method", "path", "query")}


# ==================== Sample middlewares ====================
class Middleware:
    @staticmethod
    def unprotected(req, res, next):
        next()

    @staticmethod
    def protected(req, res, next):
        if req.get("query", {}).get("id") != "12345678":
            res["status"] = 403
            res["body"] = {"status": False, "code": 403, "message": "Forbidden"}
            return
        next()


# ==================== Sample controllers ====================
def _reply(ctx: HttpContext, message: str) -> None:
    ctx.res["status"] = 200
    ctx.res["body"] = {"message": message, "request": pick_request_fields(ctx.req)}


this_object = types.SimpleNamespace(
    index=lambda ctx: _reply(ctx, "Route handler with object"),
    protected=lambda ctx: _reply(ctx, "Route handler with object + protected middleware"),
)


class ThisInstanceClass:
    def index(self, ctx: HttpContext) -> None:
        _reply(ctx, "Route handler with instance class")

    def protected(self, ctx: HttpContext) -> None:
        _reply(ctx, "Route handler with instance class + protected middleware")


class ThisStaticClass:
    @staticmethod
    async def index(ctx: HttpContext) -> None:
        _reply(ctx, "Route handler with static class")

    @staticmethod
    def protected(ctx: HttpContext) -> None:
        _reply(ctx, "Route handler with static class + protected middleware")


# ==================== Routes registration ====================
def unprotected_routes():
    routes.get("directly", lambda ctx: _reply(ctx, "Route handler with directly function"))
    routes.get("object", (this_object, "index"))
    routes.get("instance", (ThisInstanceClass, "index"))
    routes.get("static", (ThisStaticClass, "index"))


def protected_routes():
    routes.get(
        "directly",
        lambda ctx: _reply(ctx, "Route handler with directly function + protected middleware"),
    )
    routes.get("object", (this_object, "protected"))
    routes.get("instance", (ThisInstanceClass, "protected"))
    routes.get("static", (ThisStaticClass, "protected"))


routes.middleware([Middleware.unprotected], unprotected_routes)
routes.middleware([Middleware.protected], lambda: routes.group("protected", protected_routes))


# ==================== Minimal router ====================
class DemoRouter:
    def __init__(self):
        self.table = {}

    def get(self, path, *chain):
        self.table[("GET", path)] = chain

    async def handle(self, method, path, query=None):
        req = {"method": method, "path": path, "query": query or {}}
        res = {"status": 404, "body": None}
        for step in self.table.get((method, path), ()):
            proceed = []
            result = step(req, res, lambda error=None: proceed.append(error))
            if asyncio.iscoroutine(result):
                await result
            if not proceed or proceed[0] is not None:
                break
        return res


if __name__ == "__main__":
    router = DemoRouter()
    report = routes.plug("logging").apply(router)
    print(f"bound {len(report.bound)} routes, {len(report.issues)} issues")
    requests = [
        ("/directly", None),
        ("/static", None),
        ("/protected/instance", {"id": "12345678"}),
        ("/protected/object", None),
    ]
    for path, query in requests:
        print(path, asyncio.run(router.handle("GET", path, query)))
