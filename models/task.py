# models/task.py

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import TaskStatus


# -------------------------------------------------
# Shared Fields
# -------------------------------------------------
class TaskBase(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    attachment: Optional[str] = Field(None, description="Object storage key of the task attachment")

    # -------------------------------------------------
    # Normalize timestamps like "2025-01-01T00:00:00Z"
    # -------------------------------------------------
    @field_validator("due_date", mode="before")
    def parse_due_date(cls, v):
        if isinstance(v, str) and v.endswith("Z"):
            return v.replace("Z", "+00:00")
        return v


class TaskCreate(TaskBase):
    domain: Optional[str] = Field(None, description="Defaults to the creating lead's domain")
    assignee_ids: List[str] = Field(default_factory=list)
    assigned_to_lead_id: Optional[str] = None
    notify: bool = True


class TaskUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    title: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    attachment: Optional[str] = None
    status: Optional[TaskStatus] = None
    assignee_ids: Optional[List[str]] = None
    assigned_to_lead_id: Optional[str] = None


# -------------------------------------------------
# Submissions / review
# -------------------------------------------------
class SubmissionCreate(BaseModel):
    file: str = Field(..., min_length=1, description="Object storage key of the submitted work")


class RatingUpdate(BaseModel):
    """0 clears the rating (not yet rated)."""
    quality_score: Optional[int] = Field(None, ge=0, le=5)
    remarks: Optional[str] = None


class CommentCreate(BaseModel):
    text: str = Field(..., min_length=1)
