"""
apishell: Error Chain
=====================

What:  Runs error-handling middleware in order whenever a request fails.
Why:   Logging an error and answering it are separate decisions; keeping them
       as separate links lets callers add, drop or reorder stages.
How:   Each error middleware is an async callable

           async def handler(exc, request, call_next) -> Response

       It either returns a response (terminating the chain) or forwards the
       error with `await call_next(exc)`. The chain is entered from two places:

       1. As the app's exception handler for Starlette's HTTPException, which
          is how routing reports 404/405 and how routes raise HTTP errors.
       2. From ErrorHandlerMiddleware, which catches every other exception
          raised by the middleware and routes beneath it.

Chain flow:
    Route raises ──▶ ErrorHandlerMiddleware ──▶ [error logger] ──▶ [error responder]
                                                     │ call_next         │
                                                     └───────────────────▶ JSONResponse
"""

import logging
from typing import Awaitable, Callable, Optional, Sequence

from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)

ErrorCallNext = Callable[[Exception], Awaitable[Response]]
ErrorMiddleware = Callable[[Exception, Request, ErrorCallNext], Awaitable[Response]]

DEFAULT_STATUS = 500


def resolve_status(exc: BaseException) -> int:
    """
    HTTP status carried by an error, 500 when it carries none.

    RequestError exposes `status`; Starlette's HTTPException exposes
    `status_code`. Missing, zero or non-integer values mean "unclassified".
    """
    status = getattr(exc, "status", None) or getattr(exc, "status_code", None)
    if isinstance(status, bool) or not isinstance(status, int) or status <= 0:
        return DEFAULT_STATUS
    return status


def resolve_message(exc: BaseException) -> str:
    """Human message of an error: `message`, then HTTPException `detail`, then str()."""
    message = getattr(exc, "message", None)
    if message is None and isinstance(exc, StarletteHTTPException):
        message = exc.detail
    if message is None:
        message = str(exc)
    return str(message)


class ErrorChain:
    """
    Ordered error middleware, callable as a Starlette exception handler.

    If every stage forwards the error, the chain answers with a bare
    plain-text 500 so a failed request never goes unanswered.
    """

    def __init__(self, middlewares: Sequence[ErrorMiddleware]):
        self._middlewares = tuple(middlewares)

    @property
    def middlewares(self) -> tuple:
        return self._middlewares

    async def __call__(self, request: Request, exc: Exception) -> Response:
        return await self._dispatch(0, request, exc)

    async def _dispatch(self, index: int, request: Request, exc: Exception) -> Response:
        if index >= len(self._middlewares):
            logger.debug("Error chain exhausted for %s, answering 500", type(exc).__name__)
            return PlainTextResponse("Internal Server Error", status_code=DEFAULT_STATUS)

        handler = self._middlewares[index]

        async def call_next(error: Exception) -> Response:
            return await self._dispatch(index + 1, request, error)

        return await handler(exc, request, call_next)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Catches exceptions raised further down the stack and runs the error chain.

    Starlette's HTTPException never reaches this middleware: the router's
    exception middleware handles it first, using the same chain.
    """

    def __init__(self, app: ASGIApp, chain: Optional[ErrorChain] = None):
        super().__init__(app)
        self.chain = chain or ErrorChain(())

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            return await self.chain(request, exc)
