"""
apishell: HTTPS Enforcement Middleware
======================================

What:  Rejects requests that did not arrive over HTTPS.
How:   Relies on ProxyHeadersMiddleware (registered outside this one) to
       rewrite the scope scheme from X-Forwarded-Proto, so `request.url.scheme`
       reflects what the client actually used.
When:  Only registered when ALLOW_HTTP=false. Off by default, since TLS is
       normally terminated and enforced by the platform router.

Unlike a redirect, a plain-HTTP request fails with HTTPSRequiredError (403),
which the error chain logs and answers like any other request error.
"""

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from apishell.exceptions import HTTPSRequiredError

SECURE_SCHEMES = frozenset({"https", "wss"})


class RequireHTTPSMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.scheme not in SECURE_SCHEMES:
            raise HTTPSRequiredError()
        return await call_next(request)
