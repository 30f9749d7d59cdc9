"""
Pydantic schemas package
"""

from .common import *
from .guest import *
from .shape import *
from .plan import *

__all__ = [
    "StandardResponse",
    "ErrorResponse",
    "Guest",
    "PlusOneRequest",
    "SeatRequest",
    "Table",
    "Barrier",
    "Shape",
    "ShapeCreate",
    "TableUpdate",
    "ShapeMove",
    "PlanCreate",
    "PlanResponse",
    "Snapshot",
    "TableStatus",
    "LegendEntry",
    "PointerRequest",
    "DeletionRequest",
]
