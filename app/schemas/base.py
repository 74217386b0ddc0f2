"""
app/schemas/base.py

Purpose: Shared schema plumbing

- camelCase on the wire, snake_case in Python and MongoDB
- Helper to turn a stored document into its public JSON shape
- Partial updates may omit a field but never null out a required one
"""

from typing import Any, ClassVar, Dict, Optional, Tuple

from pydantic import BaseModel, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Base for request/response bodies.
    Accepts both `customerName` and `customer_name`; serializes as camelCase.
    """

    # Fields an update may leave out but may not send as null
    not_nullable: ClassVar[Tuple[str, ...]] = ()

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    @model_validator(mode="after")
    def reject_cleared_fields(self):
        cleared = [
            to_camel(name)
            for name in self.not_nullable
            if name in self.model_fields_set and getattr(self, name) is None
        ]
        if cleared:
            raise ValueError(f"{', '.join(cleared)} cannot be null")
        return self

    @classmethod
    def from_doc(cls, doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        """Validates a MongoDB document and dumps it as camelCase JSON."""
        if doc is None:
            return None
        return cls.model_validate(doc).model_dump(by_alias=True, mode="json")

    def to_doc(self, **overrides) -> Dict[str, Any]:
        """Dumps the fields the caller actually sent, in snake_case."""
        data = self.model_dump(exclude_unset=True)
        data.update(overrides)
        return data
