"""
apishell: Request Error Hierarchy
=================================

What:  Defines the request error raised when a request cannot be satisfied.
Why:   The error chain needs one uniform shape to decide what to log and what
       to tell the client: an HTTP status, a human message, and optionally a
       structured validation payload.
How:   RequestError carries status/message/errors. Subclasses pin the status
       for the failures raised by our own transport middleware.
Who:   Raised by middleware (body parser, HTTPS enforcement) and by route
       handlers; consumed by the error logger and the error responder.
When:  During request processing, before a response has been started.

Exception Hierarchy:
    RequestError (base, status optional → treated as 500)
    ├── InvalidBodyError         → 400 Bad Request
    ├── ValidationError          → 400 Bad Request (carries `errors` payload)
    ├── HTTPSRequiredError       → 403 Forbidden
    ├── PayloadTooLargeError     → 413 Payload Too Large
    └── UnsupportedCharsetError  → 415 Unsupported Media Type

Any exception that is not a RequestError still flows through the error chain;
it simply has no status and is answered as a 500.
"""

from typing import Any, Dict, Optional


class RequestError(Exception):
    """
    Base exception for all request failures.

    Attributes:
        message: Human-readable description. Returned to the client only when
                 the responder policy deems the status safe (default: < 500).
        status:  HTTP status code. None means "unclassified" and resolves
                 to 500 in the error chain.
        errors:  Optional structured validation payload (field → problem,
                 or a list of error entries).
                 When set, the responder sends the serialized error instead
                 of the generic envelope.
    """

    def __init__(
        self,
        message: str = "Internal Server Error",
        status: Optional[int] = None,
        errors: Any = None,
    ):
        self.message = message
        self.status = status
        self.errors = errors
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Serializable view used when the error is sent as-is."""
        body: Dict[str, Any] = {"status": self.status, "message": self.message}
        if self.errors is not None:
            body["errors"] = self.errors
        return body


class InvalidBodyError(RequestError):
    """
    Raised when a request body cannot be parsed.

    When:    Malformed JSON, a JSON root that is neither object nor array,
             or text that cannot be decoded with the declared charset.
    HTTP:    400 Bad Request
    """

    def __init__(self, message: str = "Invalid request body"):
        super().__init__(message=message, status=400)


class ValidationError(RequestError):
    """
    Raised with a field-level validation payload.

    The responder sends this error serialized verbatim, bypassing the
    generic envelope, so callers control the shape of `errors`.

    Example response:
        {
            "status": 400,
            "message": "Validation failed",
            "errors": {"email": "must be a valid address"}
        }
    """

    def __init__(
        self,
        errors: Any,
        message: str = "Validation failed",
        status: int = 400,
    ):
        super().__init__(message=message, status=status, errors=errors)


class HTTPSRequiredError(RequestError):
    """Raised by the HTTPS enforcement middleware for plain-HTTP requests."""

    def __init__(self, message: str = "Only HTTPS allowed."):
        super().__init__(message=message, status=403)


class PayloadTooLargeError(RequestError):
    """
    Raised when a parsed body exceeds the configured limit.

    HTTP:    413 Payload Too Large
    """

    def __init__(self, limit: int, length: Optional[int] = None):
        super().__init__(message="request entity too large", status=413)
        self.limit = limit
        self.length = length


class UnsupportedCharsetError(RequestError):
    """Raised when the Content-Type declares a charset Python cannot decode."""

    def __init__(self, charset: str):
        super().__init__(
            message=f'unsupported charset "{charset.upper()}"',
            status=415,
        )
        self.charset = charset
