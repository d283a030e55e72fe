"""
TogetherLog Backend - Log Schemas
==================================

What:  Request/response models for the /api/logs endpoints.
How:   Request models enforce the name length and type vocabulary; a failed
       check surfaces as RequestValidationError and is answered with 400.
"""

import uuid
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

LogType = Literal["Couple", "Friends", "Family", "Solo", "Other"]


class LogCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100, description="Display name of the log")
    type: LogType = Field(default="Couple", description="Relationship type of the log")


class LogUpdate(BaseModel):
    """
    What:  Partial update for a log. Omitted fields are left untouched.

    Sending neither field is rejected with "No fields to update".
    """
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    type: Optional[LogType] = None

    @model_validator(mode="after")
    def require_any_field(self) -> "LogUpdate":
        if not self.model_dump(exclude_none=True):
            raise ValueError("No fields to update")
        return self


class LogResponse(BaseModel):
    id: uuid.UUID
    name: str
    type: str
    created_at: datetime
    updated_at: datetime
    entry_count: int = Field(default=0, description="Number of entries in the log")

    model_config = {"from_attributes": True}


class LogEnvelope(BaseModel):
    log: LogResponse


class LogListResponse(BaseModel):
    """Logs owned by the caller, newest first."""
    logs: List[LogResponse]
