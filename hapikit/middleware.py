"""Composition of request middleware into a single handler."""

from __future__ import annotations

from typing import Any, Callable

Handler = Callable[[Any], None]
Middleware = Callable[[Any, Handler], None]


def _wrap(middleware: Middleware, following: Handler) -> Handler:
    def handler(ctx: Any) -> None:
        middleware(ctx, following)

    return handler


class Middlewares(list):
    """An ordered list of middleware functions ``fn(ctx, next)``.

    Middleware run in list order; each decides whether and with which
    context to call ``next``.
    """

    def handler(self, endpoint: Handler) -> Handler:
        """Build a handler that runs every middleware and then ``endpoint``."""
        wrapped = endpoint
        for middleware in reversed(self):
            wrapped = _wrap(middleware, wrapped)
        return wrapped