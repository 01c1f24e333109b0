# models/role.py

from typing import List, Optional
from pydantic import BaseModel, Field


class RoleCreate(BaseModel):
    """Named permission bundle."""
    name: str = Field(..., min_length=1)
    permissions: List[str] = Field(default_factory=list)


class RoleUpdate(BaseModel):
    name: Optional[str] = None
    permissions: Optional[List[str]] = None


class RoleAssign(BaseModel):
    """Attach (or detach, with role_id=None) a Role record to a user."""
    user_id: str
    role_id: Optional[str] = None
