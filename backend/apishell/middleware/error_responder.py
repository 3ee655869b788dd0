"""
apishell: Error Responder
=========================

What:  Terminal stage of the error chain. Turns a failed request into a
       JSON response and never forwards further.
Why:   Clients always get a well-formed body with a status-appropriate
       message, never a stack trace and never a hung request.
How:   1. Resolve the status (500 when the error has none)
       2. Look up the standard reason phrase for it
       3. Reveal the error's own message only if the policy says the status
          is safe; otherwise substitute the reason phrase
       4. Errors carrying an `errors` payload are sent serialized as-is,
          everything else gets the ErrorBody envelope

Security: with the default policy (safe when status < 500) internal failure
details never leave the server.
"""

import logging
from dataclasses import dataclass
from http import HTTPStatus
from typing import Any, Callable, Dict, Optional

from fastapi.encoders import jsonable_encoder
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from apishell.middleware.error_chain import (
    ErrorCallNext,
    ErrorMiddleware,
    resolve_message,
    resolve_status,
)
from apishell.schemas.error import ErrorBody

UNKNOWN_REASON = "Unknown Error"


def default_is_error_safe_to_respond(status: int) -> bool:
    return status < 500


@dataclass(frozen=True)
class ErrorResponderPolicy:
    """Predicate deciding whether the error's own message may be returned."""

    is_error_safe_to_respond: Callable[[int], bool] = default_is_error_safe_to_respond


def reason_phrase(status: int) -> str:
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return UNKNOWN_REASON


def has_validation_payload(exc: BaseException) -> bool:
    # pydantic's ValidationError exposes errors() as a method, not a payload
    errors = getattr(exc, "errors", None)
    return errors is not None and not callable(errors)


def serialize_error(exc: BaseException) -> Any:
    """
    The error itself as a JSON-compatible value.

    Uses the error's own `to_dict()` when it has one, otherwise its public
    instance attributes.
    """
    to_dict = getattr(exc, "to_dict", None)
    if callable(to_dict):
        payload = to_dict()
    else:
        payload = {
            key: value for key, value in vars(exc).items() if not key.startswith("_")
        }
    return jsonable_encoder(payload)


def create_error_responder(
    log: Optional[logging.Logger] = None,
    policy: Optional[ErrorResponderPolicy] = None,
) -> ErrorMiddleware:
    """Build the responding stage of the error chain."""
    opts = policy or ErrorResponderPolicy()
    log = log or logging.getLogger(__name__)

    async def error_responder(
        exc: Exception, request: Request, call_next: ErrorCallNext
    ) -> Response:
        status = resolve_status(exc)
        http_message = reason_phrase(status)

        if opts.is_error_safe_to_respond(status):
            message = resolve_message(exc)
        else:
            message = http_message

        if has_validation_payload(exc):
            content: Dict[str, Any] = serialize_error(exc)
        else:
            content = ErrorBody(
                status=status, status_text=http_message, messages=[message]
            ).model_dump(by_alias=True)

        log.debug("Responding %d to %s %s", status, request.method, request.url.path)

        # Preserve headers such as Allow (405) set on HTTPException
        headers = exc.headers if isinstance(exc, StarletteHTTPException) else None
        return JSONResponse(status_code=status, content=content, headers=headers)

    return error_responder
