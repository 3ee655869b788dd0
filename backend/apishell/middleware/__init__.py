"""
apishell: Middleware Package
============================

What:  Everything that runs around the application's routes.

Request path (outermost first):
    Request → [Proxy headers] → [Access log*] → [Request ID] → [CORS] → [GZip]
            → [Error handler] → [HTTPS only*] → [Body parser] → Routes

    * conditional: access log outside production, HTTPS enforcement when
      ALLOW_HTTP=false

Error path:
    Any exception raised below the error handler, and every HTTPException
    raised by routing, runs through the error chain:

        error logger (logs, forwards) → error responder (answers)

    The error response then travels back out through GZip, CORS, request ID
    and the access log like any other response.
"""

from apishell.middleware.body_parser import BodyParserMiddleware
from apishell.middleware.error_chain import ErrorChain, ErrorHandlerMiddleware
from apishell.middleware.error_logger import ErrorLoggerPolicy, create_error_logger
from apishell.middleware.error_responder import (
    ErrorResponderPolicy,
    create_error_responder,
)
from apishell.middleware.https import RequireHTTPSMiddleware
from apishell.middleware.logging import RequestLoggingMiddleware
from apishell.middleware.request_id import RequestIDMiddleware

__all__ = [
    "BodyParserMiddleware",
    "ErrorChain",
    "ErrorHandlerMiddleware",
    "ErrorLoggerPolicy",
    "ErrorResponderPolicy",
    "RequestIDMiddleware",
    "RequestLoggingMiddleware",
    "RequireHTTPSMiddleware",
    "create_error_logger",
    "create_error_responder",
]
