from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """
    What:  Liveness probe response.
    Who:   Returned by GET /health for load balancers and container checks.
    """

    status: str = Field(description="Overall service status")
    version: str = Field(description="Application version")
    environment: str = Field(description="Deployment environment name")
    uptime_seconds: float = Field(description="Seconds since service started")
