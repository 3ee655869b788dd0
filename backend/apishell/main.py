"""
apishell: FastAPI Application Factory
=====================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes middleware registration, route mounting and error handling
       in one place, in one fixed order.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn (uvicorn apishell.main:app) or by `run()`.
When:  Once at server startup; the returned app handles all subsequent requests.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                        FastAPI App                       │
    │                                                          │
    │  Middleware Chain (outermost first):                     │
    │  Proxy headers → Access log* → Request ID → CORS → GZip  │
    │  → Error handler → HTTPS only* → Body parser             │
    │                                                          │
    │  Routes: caller's router mounted at "/"                  │
    │                                                          │
    │  Error Chain:                                            │
    │  ┌──────────────┐   call_next   ┌─────────────────────┐  │
    │  │ Error logger │ ────────────▶ │ Error responder     │  │
    │  └──────────────┘               └─────────────────────┘  │
    └──────────────────────────────────────────────────────────┘
    * conditional, see create_app()
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import uvicorn
from fastapi import APIRouter, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from apishell import __version__
from apishell.config import Settings, settings as default_settings
from apishell.exceptions import ValidationError
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
from apishell.routes import create_router

logger = logging.getLogger(__name__)

CORS_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS", "HEAD", "PATCH"]


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str = "INFO") -> None:
    """
    Configure logging for the entire process.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once at startup, before anything else logs.
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),  # Containers capture stdout
        ],
        force=True,
    )

    # Our own access log replaces uvicorn's
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    config: Settings = app.state.settings
    setup_logging(config.log_level)

    logger.info("apishell %s starting (environment=%s)", __version__, config.environment)
    if config.allow_http:
        logger.info("ALLOW_HTTP=true, unsafe requests are allowed. Don't use this in production.")
    else:
        logger.info("All requests require HTTPS.")
    logger.info("CORS origins: %s", ", ".join(config.cors_origins_list) or "(none)")

    yield

    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Error Chain
# ══════════════════════════════════════════════════════════════════════════

def build_error_chain(
    error_log: Optional[logging.Logger] = None,
    logger_policy: Optional[ErrorLoggerPolicy] = None,
    responder_policy: Optional[ErrorResponderPolicy] = None,
) -> ErrorChain:
    """
    Error logger first, error responder last.

    The logger always forwards; the responder always answers. Both receive
    the same logging sink.
    """
    error_log = error_log or logging.getLogger("apishell.errors")
    return ErrorChain(
        [
            create_error_logger(error_log, logger_policy),
            create_error_responder(error_log, responder_policy),
        ]
    )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    settings: Optional[Settings] = None,
    router: Optional[APIRouter] = None,
    error_chain: Optional[ErrorChain] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings:    Configuration; the environment-loaded singleton by default.
        router:      Routing table mounted at "/"; the health-only default
                     router when omitted.
        error_chain: Error middleware to run on failed requests; the
                     logger → responder chain by default.

    Returns:
        Fully configured FastAPI instance.
    """
    config = settings or default_settings
    chain = error_chain or build_error_chain()

    app = FastAPI(
        title="apishell",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )
    app.state.settings = config
    app.state.error_chain = chain

    # ── Register Middleware ───────────────────────────────────────────────
    # Middleware executes in REVERSE order of addition: the first added
    # sits closest to the routes, the last added sees the request first.

    # Body parsing, 10mb each in case HTML has e.g. inline images
    app.add_middleware(
        BodyParserMiddleware,
        text_limit=config.body_limit,
        json_limit=config.body_limit,
    )

    if not config.allow_http:
        app.add_middleware(RequireHTTPSMiddleware)

    # Failures from everything registered above end up in the error chain
    app.add_middleware(ErrorHandlerMiddleware, chain=chain)

    # Compress everything from 10 bytes up, error responses included
    app.add_middleware(GZipMiddleware, minimum_size=config.compression_threshold)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins_list,
        allow_methods=CORS_METHODS,
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    app.add_middleware(RequestIDMiddleware)

    if not config.is_production:
        app.add_middleware(RequestLoggingMiddleware)

    # Served behind a reverse proxy: take client IP and scheme from
    # X-Forwarded-For / X-Forwarded-Proto
    app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=config.trusted_proxies_list)

    # ── Routes ────────────────────────────────────────────────────────────
    app.include_router(router or create_router())

    # ── Error Handlers ────────────────────────────────────────────────────
    # Routing reports 404/405 via HTTPException and route-schema failures via
    # RequestValidationError. Both are handled next to the routes and never
    # reach ErrorHandlerMiddleware
    app.add_exception_handler(StarletteHTTPException, chain)
    app.add_exception_handler(RequestValidationError, request_validation_handler(chain))

    return app


def request_validation_handler(chain: ErrorChain):
    """
    Route-schema failures (bad path/query/body types) as a 422 ValidationError.

    FastAPI's RequestValidationError has no status and exposes errors() as a
    method, so it is rewrapped before entering the chain.
    """

    async def handler(request: Request, exc: RequestValidationError) -> Response:
        error = ValidationError(
            errors=jsonable_encoder(exc.errors()),
            message="Request validation failed",
            status=422,
        )
        return await chain(request, error)

    return handler


def run() -> None:
    """Console entry point: serve the default app with uvicorn."""
    uvicorn.run(
        "apishell.main:app",
        host=default_settings.host,
        port=default_settings.port,
        log_level=default_settings.log_level.lower(),
        proxy_headers=False,  # create_app() installs ProxyHeadersMiddleware
        server_header=False,  # No framework fingerprinting
    )


# uvicorn expects `apishell.main:app` to be importable
app = create_app()
