"""
Guest-related Pydantic schemas
"""

from typing import Optional
from pydantic import BaseModel
from pydantic.alias_generators import to_camel

class Guest(BaseModel):
    """Canonical guest record, serialized with camelCase keys"""
    id: str
    party_id: Optional[str] = None
    first_name: str
    last_name: str = ""
    seated: bool = False
    x: float = 0.0
    y: float = 0.0
    is_plus_one: bool = False
    plus_one_index: Optional[int] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def name_key(self) -> str:
        """Case-normalized name identity used to reconcile guest lists"""
        return f"{self.first_name}_{self.last_name}".lower()

    @property
    def initials(self) -> str:
        if self.is_plus_one and self.plus_one_index:
            return f"+{self.plus_one_index}"
        return f"{self.first_name[:1]}{self.last_name[:1]}"

class PlusOneRequest(BaseModel):
    """Free-text name for a manually added plus-one"""
    name: Optional[str] = None

class SeatRequest(BaseModel):
    """Drop point for a guest dragged from the list onto the floor plan"""
    x: float
    y: float
