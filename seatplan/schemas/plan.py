"""
Plan-related Pydantic schemas
"""

from datetime import datetime
from typing import Optional, List, Literal
from pydantic import BaseModel, EmailStr, Field
from pydantic.alias_generators import to_camel

from .guest import Guest
from .shape import Shape

class PlanCreate(BaseModel):
    """Schema for creating a floor plan"""
    name: str
    organizer_email: Optional[EmailStr] = None

class PlanResponse(BaseModel):
    """Basic plan response"""
    id: int
    name: str
    organizer_email: Optional[str] = None
    public_code: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class Snapshot(BaseModel):
    """Saved floor plan: the whole registry plus the shape list"""
    version: int = 2
    all_guests: List[Guest] = Field(default_factory=list)
    shapes: List[Shape] = Field(default_factory=list)

    class Config:
        alias_generator = to_camel
        populate_by_name = True

class TableStatus(BaseModel):
    """Derived occupancy figures for one table"""
    shape_id: str
    label: str
    capacity: int
    seated_count: int
    overfull: bool
    guest_ids: List[str]

class LegendEntry(BaseModel):
    """One table with its guests' display names, in seating order"""
    table: str
    guests: List[str]

class PointerRequest(BaseModel):
    """Pointer position on the floor plan"""
    x: float
    y: float

class DeletionRequest(BaseModel):
    """Item dragged over the trash"""
    kind: Literal["guest", "shape"]
    id: str
