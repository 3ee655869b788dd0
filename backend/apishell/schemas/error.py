from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ErrorBody(BaseModel):
    """
    What:  Generic error envelope returned for every failed request.
    Who:   Built by the error responder unless the error carries its own
           validation payload.

    Example:
        {
            "status": 500,
            "statusText": "Internal Server Error",
            "messages": ["Internal Server Error"]
        }

    Dump with `model_dump(by_alias=True)` to get the camelCase wire names.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    status: int = Field(description="HTTP status code of the response")
    status_text: Optional[str] = Field(
        default=None,
        alias="statusText",
        description="Standard reason phrase for the status",
    )
    messages: List[str] = Field(
        default_factory=list,
        description="Client-facing messages; the reason phrase for 5xx",
    )
