"""
Floor plan shape schemas (tables and barriers)
"""

import uuid
from typing import Annotated, Literal, Optional, Union
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

def new_shape_id() -> str:
    return f"shape_{uuid.uuid4().hex[:12]}"

class ShapeBase(BaseModel):
    """Axis-aligned bounding box shared by every shape"""
    id: str = Field(default_factory=new_shape_id)
    x: float
    y: float
    width: float = Field(ge=0)
    height: float = Field(ge=0)

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    @property
    def center(self):
        return self.x + self.width / 2, self.y + self.height / 2

class Table(ShapeBase):
    type: Literal["table"] = "table"
    label: str = "Table"
    capacity: int = Field(default=8, ge=0)
    is_round: bool = False

    @property
    def radius(self) -> float:
        return self.width / 2

class Barrier(ShapeBase):
    type: Literal["barrier"] = "barrier"

Shape = Annotated[Union[Table, Barrier], Field(discriminator="type")]

class ShapeCreate(BaseModel):
    """Draw gesture from pointer-down to pointer-up"""
    type: Literal["table", "barrier"] = "table"
    start_x: float
    start_y: float
    end_x: float
    end_y: float
    round: bool = False

class TableUpdate(BaseModel):
    """Prompt answers for a table; empty or unparsable values leave it unchanged"""
    label: Optional[str] = None
    capacity: Optional[Union[int, str]] = None

class ShapeMove(BaseModel):
    """New top-left corner for a shape"""
    x: float
    y: float
