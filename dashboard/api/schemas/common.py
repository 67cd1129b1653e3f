"""Common schemas for the dashboard API."""

from typing import List, Optional, Union
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    required: Optional[Union[str, List[str]]] = None


# Documented on every gated route
GATE_RESPONSES = {
    401: {"model": ErrorResponse, "description": "No caller identity supplied"},
    403: {"model": ErrorResponse, "description": "Unknown/inactive user or insufficient permissions"},
}
