"""Shared / generic schemas."""

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base for request/response bodies — camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ErrorResponse(BaseModel):
    """Standard error envelope."""

    success: bool = False
    error_code: str
    message: str
    details: dict[str, Any] | None = None


class OkResponse(ApiModel):
    """``{"success": true}`` acknowledgement."""

    success: bool = True
