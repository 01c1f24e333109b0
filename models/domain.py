# models/domain.py

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

from .enums import BaseStrEnum, UserRole


class DomainRecord(BaseModel):
    """Document in the `domains` collection, keyed by name."""
    name: str
    leads: List[str] = Field(default_factory=list)
    members: List[str] = Field(default_factory=list)


class DomainConfigUpdate(BaseModel):
    """Add-member request. Both fields are checked by the service."""
    domain: Optional[str] = None
    email: Optional[str] = None


class PermissionAction(BaseStrEnum):
    add_domain = "add-domain"
    delete_domain = "delete-domain"
    add_member = "add-member"
    remove_member = "remove-member"
    add_lead = "add-lead"
    remove_lead = "remove-lead"
    add_special_role = "add-special-role"
    remove_special_role = "remove-special-role"


class PermissionsUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    action: PermissionAction
    domain: Optional[str] = None
    email: Optional[str] = None
    role: Optional[UserRole] = None
