"""In-memory Express-like router used to drive applied routes in tests."""

import asyncio
import inspect


class Response:
    def __init__(self):
        self.status = None
        self.body = None

    def send(self, body, status=200):
        self.status = status
        self.body = body
        return self


class ChainRouter:
    """Binds ``(method, path)`` to a callable chain, like ``express.Router``."""

    METHODS = ("get", "post", "put", "patch", "delete", "options", "head")

    def __init__(self, methods=METHODS):
        self.stack = {}
        for method in methods:
            setattr(self, method, self._binder(method))

    def _binder(self, method):
        def bind(path, *callables):
            self.stack.setdefault((method, path), []).append(list(callables))

        return bind

    async def _run(self, chain, request, response):
        errors = []
        index = 0
        while index < len(chain):
            advanced = []

            def next_(error=None):
                if error is not None:
                    errors.append(error)
                else:
                    advanced.append(True)

            result = chain[index](request, response, next_)
            if inspect.isawaitable(result):
                await result
            if errors or not advanced:
                break
            index += 1
        return errors

    def dispatch(self, method, path, request=None):
        """Run the first chain bound to ``(method, path)``; returns (response, errors)."""
        response = Response()
        chains = self.stack.get((method, path))
        if not chains:
            response.status = 404
            return response, []
        request = request if request is not None else {}
        errors = asyncio.run(self._run(chains[0], request, response))
        return response, errors
