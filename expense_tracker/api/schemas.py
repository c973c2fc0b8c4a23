"""Request bodies that are not domain models."""

from pydantic import BaseModel, Field


class EmailRequest(BaseModel):
    email: str = Field(..., min_length=1, max_length=320)
