# models/documentation.py

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

from .enums import DocItemType


class DocItemCreate(BaseModel):
    """
    Folder or file in the documentation hub.
    Files carry the object storage key (file_path) and MIME type.
    An empty viewable_by list means visible to everyone.
    """
    model_config = ConfigDict(use_enum_values=True)

    type: DocItemType
    name: str = Field(..., min_length=1)
    parent_id: Optional[str] = None
    file_path: Optional[str] = None
    mime_type: Optional[str] = None
    viewable_by: List[str] = Field(default_factory=list)


class DocItemUpdate(BaseModel):
    name: Optional[str] = None
    viewable_by: Optional[List[str]] = None
