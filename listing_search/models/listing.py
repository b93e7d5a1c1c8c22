"""Listing data models"""

from pydantic import BaseModel, Field, model_validator
from datetime import datetime
from typing import List, Optional


class Listing(BaseModel):
    """
    Denormalized copy of a rentable listing as held by the search index.

    The canonical store owns this data; every field defaults to its zero
    value so partially populated payloads still decode.
    """
    id: str = ""
    title: str = ""
    description: str = ""
    city: str = ""
    country: str = ""
    price_per_night: float = 0.0
    bedrooms: int = 0
    bathrooms: int = 0
    max_guests: int = 0
    images: List[str] = Field(default_factory=list)
    owner_id: int = 0
    available: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data):
        # Nil slices and unset values arrive as JSON null; let field defaults apply
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data

    def to_document(self) -> dict:
        """Full engine document for this listing; unset timestamps are omitted."""
        return self.model_dump(mode="json", exclude_none=True)
