# models/uploads.py

from typing import Optional
from pydantic import BaseModel, ConfigDict

from .enums import PresignAction


class PresignRequest(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    filename: Optional[str] = None
    content_type: Optional[str] = None
    action: PresignAction = PresignAction.upload
