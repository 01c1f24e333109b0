# models/announcement.py

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import AnnouncementStatus


def _validate_targets(targets):
    if targets is None:
        return targets
    for target in targets:
        if target == "all" or target.startswith(("role-", "domain-")) or "@" in target:
            continue
        raise ValueError(f"Invalid announcement target: {target}")
    return targets


class AnnouncementCreate(BaseModel):
    """
    targets: "all", "role-<role>", "domain-<name>" or an email address.
    """
    model_config = ConfigDict(use_enum_values=True)

    title: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    attachment: Optional[str] = None
    targets: List[str] = Field(default_factory=lambda: ["all"])
    status: AnnouncementStatus = AnnouncementStatus.draft

    @field_validator("targets")
    def check_targets(cls, v):
        return _validate_targets(v)


class AnnouncementUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    title: Optional[str] = None
    content: Optional[str] = None
    attachment: Optional[str] = None
    targets: Optional[List[str]] = None
    status: Optional[AnnouncementStatus] = None

    @field_validator("targets")
    def check_targets(cls, v):
        return _validate_targets(v)
