# models/suggestion.py

from pydantic import BaseModel, ConfigDict, Field

from .enums import SuggestionPriority, SuggestionStatus


class SuggestionCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    category: str = "General"
    priority: SuggestionPriority = SuggestionPriority.medium
    is_anonymous: bool = False


class SuggestionStatusUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    status: SuggestionStatus


class SuggestionResponseCreate(BaseModel):
    text: str = Field(..., min_length=1)
