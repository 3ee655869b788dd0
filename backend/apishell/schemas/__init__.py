"""
apishell: Response Schemas
==========================

What:  Pydantic models describing what the server sends back.
Why:   A single definition of each wire shape keeps serialization
       consistent and documents the contract in one place.
"""

from apishell.schemas.error import ErrorBody
from apishell.schemas.health import HealthResponse

__all__ = ["ErrorBody", "HealthResponse"]
