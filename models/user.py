# models/user.py

from typing import Optional, List
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from .enums import UserRole


# role_state marker: the configuration no longer yields a role for this user
ROLE_UNRESOLVED = "unresolved"


class UserSnapshot(BaseModel):
    """
    Denormalized author/assignee copy stored inside other documents.
    """
    id: str
    name: Optional[str] = None
    email: Optional[str] = None


class UserRecord(BaseModel):
    """
    Mirrors a document in the `users` collection.
    Created on first authorized sign-in.
    """
    model_config = ConfigDict(use_enum_values=True)

    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    avatar_url: Optional[str] = None
    phone_number: Optional[str] = None
    role: UserRole = UserRole.member
    domain: Optional[str] = None
    role_id: Optional[str] = None
    role_state: Optional[str] = None

    # Filled from the referenced Role record, never stored on the user
    permissions: List[str] = Field(default_factory=list)

    def snapshot(self) -> UserSnapshot:
        return UserSnapshot(id=self.id, name=self.name, email=self.email)


class ProfileUpdate(BaseModel):
    """Self-service profile edit."""
    name: Optional[str] = None
    avatar_url: Optional[str] = None
    phone_number: Optional[str] = None


class PasswordResetNotice(BaseModel):
    email: EmailStr
