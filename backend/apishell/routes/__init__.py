"""
apishell: Routing Table
=======================

What:  Default routing table mounted at "/" by the application factory.
Why:   Application routes are owned by the embedding service, which passes
       its own router to create_app(). The default only carries the health
       probe so the server is runnable on its own.
"""

from fastapi import APIRouter

from apishell.routes import health


def create_router() -> APIRouter:
    """Build the default routing table."""
    router = APIRouter()
    router.include_router(health.router)
    return router
