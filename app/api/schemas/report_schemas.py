from pydantic import BaseModel
from typing import Optional


class ReportGenerationResponse(BaseModel):
    success: bool
    url: Optional[str] = None
    message: str


class ReportUrlResponse(BaseModel):
    success: bool
    url: Optional[str] = None
    message: Optional[str] = None
