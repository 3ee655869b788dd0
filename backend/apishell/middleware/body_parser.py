"""
apishell: Body Parsing Middleware
=================================

What:  Parses `text/html` and JSON request bodies up front, with a size cap.
Why:   Oversized or malformed payloads are rejected before any route runs,
       and the parsed body is available to the error logger even when the
       route itself never read it.
How:   Streams the body once, giving up as soon as it passes the limit,
       caches the bytes so routes can still read them, decodes/parses by
       media type and stores the result on `request.state.body`.

Rules:
    text/html         → str, decoded with the declared charset (utf-8 default)
    application/json  → dict or list; an empty body parses to {}
                        (like most JSON parsers in strict mode, the top-level
                        value must be an object or an array)
    anything else     → untouched, request.state.body stays unset

Errors raised (handled by the error chain):
    PayloadTooLargeError     413  body (or declared Content-Length) over limit
    InvalidBodyError         400  malformed JSON / undecodable text
    UnsupportedCharsetError  415  unknown charset in Content-Type
"""

import codecs
import json
import logging
from typing import Any, Optional, Tuple

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from apishell.config import DEFAULT_BODY_LIMIT
from apishell.exceptions import (
    InvalidBodyError,
    PayloadTooLargeError,
    UnsupportedCharsetError,
)

logger = logging.getLogger(__name__)

TEXT_HTML = "text/html"
APPLICATION_JSON = "application/json"


def parse_content_type(header: str) -> Tuple[str, Optional[str]]:
    """Split a Content-Type header into (media type, charset)."""
    media_type, _, params = header.partition(";")
    charset = None
    for param in params.split(";"):
        name, _, value = param.partition("=")
        if name.strip().lower() == "charset" and value.strip():
            charset = value.strip().strip('"').lower()
    return media_type.strip().lower(), charset


class BodyParserMiddleware(BaseHTTPMiddleware):
    """Parses HTML text and JSON bodies into `request.state.body`."""

    def __init__(
        self,
        app: ASGIApp,
        text_limit: int = DEFAULT_BODY_LIMIT,
        json_limit: int = DEFAULT_BODY_LIMIT,
    ):
        super().__init__(app)
        self.text_limit = text_limit
        self.json_limit = json_limit

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        media_type, charset = parse_content_type(request.headers.get("content-type", ""))

        if media_type == TEXT_HTML:
            raw = await self._read(request, self.text_limit)
            request.state.body = self._decode(raw, charset or "utf-8")
        elif media_type == APPLICATION_JSON:
            raw = await self._read(request, self.json_limit)
            request.state.body = self._parse_json(raw, charset or "utf-8")

        return await call_next(request)

    async def _read(self, request: Request, limit: int) -> bytes:
        declared = request.headers.get("content-length")
        if declared and declared.isdigit() and int(declared) > limit:
            raise PayloadTooLargeError(limit=limit, length=int(declared))

        # Chunked uploads carry no Content-Length: stop reading at the limit
        chunks = []
        received = 0
        async for chunk in request.stream():
            received += len(chunk)
            if received > limit:
                raise PayloadTooLargeError(limit=limit, length=received)
            chunks.append(chunk)

        # Cached the same way Request.body() caches it, so downstream
        # handlers can still read the body
        request._body = b"".join(chunks)
        return request._body

    @staticmethod
    def _decode(raw: bytes, charset: str) -> str:
        try:
            codecs.lookup(charset)
        except LookupError:
            raise UnsupportedCharsetError(charset)
        try:
            return raw.decode(charset)
        except UnicodeDecodeError as e:
            raise InvalidBodyError(f"Body is not valid {charset}: {e.reason}")

    def _parse_json(self, raw: bytes, charset: str) -> Any:
        text = self._decode(raw, charset)
        stripped = text.strip()
        if not stripped:
            return {}
        if stripped[0] not in "{[":
            raise InvalidBodyError("JSON body must be an object or an array")
        try:
            return json.loads(stripped)
        except ValueError as e:
            logger.debug("Rejected malformed JSON body: %s", e)
            raise InvalidBodyError(f"Invalid JSON body: {e}")
