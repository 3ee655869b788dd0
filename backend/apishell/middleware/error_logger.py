"""
apishell: Error Logger
======================

What:  First stage of the error chain. Logs a failed request, then forwards
       the error untouched to the next stage.
Why:   Server-side visibility into failures without leaking details to
       clients (that decision belongs to the responder).
How:   The error's HTTP status drives two independent policy predicates:

           log_request(status)      → log redacted headers/params and the body
           log_stack_trace(status)  → log the traceback, else a one-line summary

       The log level follows the status class:
           5xx → ERROR   (system problem, needs investigation)
           4xx → WARNING (client error)

Default policy:
    Request details for every status >= 400 except 404 and 503; routine
    not-found and maintenance-mode responses would otherwise flood the logs.
    Stack traces for every status >= 500 except 503, the quiet path for a
    known degraded-service state.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from starlette.requests import Request
from starlette.responses import Response

from apishell.middleware.error_chain import (
    ErrorCallNext,
    ErrorMiddleware,
    resolve_message,
    resolve_status,
)
from apishell.middleware.redaction import suppress_long_strings

QUIET_STATUSES = frozenset({404, 503})


def default_log_request(status: int) -> bool:
    return status >= 400 and status not in QUIET_STATUSES


def default_log_stack_trace(status: int) -> bool:
    return status >= 500 and status != 503


@dataclass(frozen=True)
class ErrorLoggerPolicy:
    """Predicates deciding what gets logged for a given status."""

    log_request: Callable[[int], bool] = default_log_request
    log_stack_trace: Callable[[int], bool] = default_log_stack_trace


def get_log_level(status: int) -> int:
    return logging.ERROR if status >= 500 else logging.WARNING


def log_request_details(log: logging.Logger, level: int, request: Request) -> None:
    log.log(level, "Request headers: %s", suppress_long_strings(request.headers))
    log.log(level, "Request parameters: %s", suppress_long_strings(request.path_params))
    # Body is logged as parsed, without redaction
    log.log(level, "Request body: %s", getattr(request.state, "body", None))


def create_error_logger(
    log: logging.Logger, policy: Optional[ErrorLoggerPolicy] = None
) -> ErrorMiddleware:
    """
    Build the error-logging stage of the error chain.

    Args:
        log:    Sink for all records written by this stage.
        policy: Overrides for the default predicates.

    Returns:
        An error middleware that always forwards to `call_next`.
    """
    opts = policy or ErrorLoggerPolicy()

    async def error_logger(
        exc: Exception, request: Request, call_next: ErrorCallNext
    ) -> Response:
        try:
            status = resolve_status(exc)
            level = get_log_level(status)

            if opts.log_request(status):
                log_request_details(log, level, request)

            if opts.log_stack_trace(status):
                log.log(level, "%r", exc, exc_info=exc)
            else:
                log.log(level, "%s: %s", type(exc).__name__, resolve_message(exc))
        except Exception:
            # A malformed error or request must not break the chain
            log.exception("Failed to log %s for %s", type(exc).__name__, request.url.path)

        return await call_next(exc)

    return error_logger
