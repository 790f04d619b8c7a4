from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class Attachment(BaseModel):
    """An uploaded file, kept in memory for the lifetime of one request."""
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"
    size: int = 0


class CareerForm(BaseModel):
    """Raw result of parsing the request body, before validation."""
    fields: Dict[str, str] = Field(default_factory=dict)
    cv: Optional[Attachment] = None


class CareerSubmission(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1)
    phone: str = Field(min_length=1)
    email: str = Field(min_length=1)
    cv: Optional[Attachment] = None


class CareerResponse(BaseModel):
    success: bool
    message: str
