"""
Snippetbox — Middleware Chain Builder
=======================================

What:  An immutable, ordered list of Starlette middleware that can be applied
       to a whole application or to individual FastAPI routes.
How:   The first element is the outermost layer: it sees the request first
       and the response last. append() returns a new chain, so a protected
       chain extends the dynamic chain without re-declaring it.

Usage:
    standard = Chain(RecoverPanicMiddleware, RequestIDMiddleware)
    standard.install(app)                                   # app-wide

    dynamic = Chain(SessionMiddleware, CSRFMiddleware)
    protected = dynamic.append(RequireAuthenticationMiddleware)
    router = APIRouter(route_class=protected.route_class()) # per route
"""

from typing import Iterator, Tuple, Type, Union

from fastapi import FastAPI
from fastapi.routing import APIRoute
from starlette.middleware import Middleware
from starlette.types import ASGIApp, Receive, Scope, Send

MiddlewareLike = Union[Middleware, type]


def _as_spec(item: MiddlewareLike) -> Middleware:
    if isinstance(item, Middleware):
        return item
    return Middleware(item)


class Chain:
    """
    Ordered middleware, outermost first.

    Elements are starlette `Middleware` specs; bare middleware classes are
    accepted and wrapped with no arguments.
    """

    def __init__(self, *middleware: MiddlewareLike):
        self._middleware: Tuple[Middleware, ...] = tuple(_as_spec(m) for m in middleware)

    def append(self, *middleware: MiddlewareLike) -> "Chain":
        """New chain: this one followed by `middleware` (innermost last)."""
        return Chain(*self._middleware, *middleware)

    def then(self, app: ASGIApp) -> ASGIApp:
        """Wrap `app` so that a request passes the chain in order."""
        for cls, args, kwargs in reversed(self._middleware):
            app = cls(app, *args, **kwargs)
        return app

    def install(self, app: FastAPI) -> None:
        """
        Register the chain as application-wide middleware.

        Starlette runs the most recently added middleware first, so the
        chain is added back to front to keep its first element outermost.
        """
        for cls, args, kwargs in reversed(self._middleware):
            app.add_middleware(cls, *args, **kwargs)

    def route_class(self) -> Type[APIRoute]:
        """
        A FastAPI route class whose routes run behind this chain.

        The chain wraps the route's handle(), the entry point the router
        calls once a path has matched, whether the route was declared on the
        app or arrived through include_router(). Path matching and parameter
        extraction happen before the chain, and the route's registered
        exception handlers sit inside it, so a handled error (404, 400) still
        flows back out through every layer.
        """
        chain = self

        class ChainedRoute(APIRoute):
            def __init__(self, *args, **kwargs):
                super().__init__(*args, **kwargs)
                self._chained_app = chain.then(self._handle_matched)

            async def _handle_matched(self, scope: Scope, receive: Receive, send: Send) -> None:
                await super().handle(scope, receive, send)

            async def handle(self, scope: Scope, receive: Receive, send: Send) -> None:
                await self._chained_app(scope, receive, send)

        return ChainedRoute

    def __iter__(self) -> Iterator[Middleware]:
        return iter(self._middleware)

    def __len__(self) -> int:
        return len(self._middleware)

    def __repr__(self) -> str:
        names = ", ".join(spec.cls.__name__ for spec in self._middleware)
        return f"<Chain({names})>"
