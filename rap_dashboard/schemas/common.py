"""
Common schemas used across multiple endpoints.
"""
from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for bodies whose wire format is camelCase."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class ErrorResponse(BaseModel):
    """Error response."""
    error: str
    message: str
    kind: str
    retryable: bool

    class Config:
        json_schema_extra = {
            "example": {
                "error": "Invalid request",
                "message": "Validation failed for field 'name': none of name, full_name present",
                "kind": "validation",
                "retryable": False
            }
        }


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "healthy"
    version: str
    timestamp: str


def error_responses(*status_codes: int) -> dict:
    """OpenAPI `responses` entries for the error body."""
    return {code: {"model": ErrorResponse} for code in status_codes}
