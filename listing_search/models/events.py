"""Change-event models consumed from the catalog queue"""

import json
from enum import Enum

from pydantic import BaseModel, ValidationError, field_validator

from listing_search.errors import MalformedEventError


class ChangeAction(str, Enum):
    """Kind of upstream listing change"""
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class ChangeEvent(BaseModel):
    """Notification that a listing was created, updated or deleted upstream"""
    action: ChangeAction
    property_id: str

    @field_validator("property_id")
    @classmethod
    def _require_id(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("property_id cannot be empty")
        return value

    @classmethod
    def from_body(cls, body: bytes) -> "ChangeEvent":
        """
        Decode a raw message body.

        Args:
            body: JSON bytes of the form {"action": ..., "property_id": ...}

        Returns:
            Parsed ChangeEvent

        Raises:
            MalformedEventError: body is not JSON, lacks an id, or names an unknown action
        """
        try:
            payload = json.loads(body)
        except (ValueError, UnicodeDecodeError) as e:
            raise MalformedEventError(f"message body is not valid JSON: {e}") from e

        if not isinstance(payload, dict):
            raise MalformedEventError("message body must be a JSON object")

        try:
            return cls.model_validate(payload)
        except ValidationError as e:
            raise MalformedEventError(f"invalid change event: {e.errors()}") from e
