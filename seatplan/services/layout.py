"""
Floor plan geometry: hit-testing and occupancy

Shapes are kept in z-order, so every lookup walks the list from the end
(topmost first). Occupancy is always computed from scratch from guest
positions and table geometry, never updated incrementally.
"""

import math
from typing import Dict, List, Optional, Sequence

from seatplan.core.config import settings
from seatplan.schemas.guest import Guest
from seatplan.schemas.plan import TableStatus
from seatplan.schemas.shape import Barrier, Table

Occupancy = Dict[str, List[str]]


def is_round(shape) -> bool:
    return isinstance(shape, Table) and shape.is_round


def shape_contains(shape, x: float, y: float) -> bool:
    """Point-in-shape test used for picking shapes"""
    if is_round(shape):
        cx, cy = shape.center
        return math.hypot(x - cx, y - cy) <= shape.radius
    return (
        shape.x <= x <= shape.x + shape.width
        and shape.y <= y <= shape.y + shape.height
    )


def shape_at(shapes: Sequence, x: float, y: float):
    for shape in reversed(shapes):
        if shape_contains(shape, x, y):
            return shape
    return None


def guest_at(
    placed: Sequence[Guest],
    x: float,
    y: float,
    hovered_id: Optional[str] = None,
    radius: float = None
) -> Optional[Guest]:
    """Topmost placed guest under the point; the hovered guest is tested first"""
    if radius is None:
        radius = settings.GUEST_RADIUS

    ordered = sorted(placed, key=lambda g: g.id == hovered_id)
    for guest in reversed(ordered):
        if math.hypot(x - guest.x, y - guest.y) <= radius:
            return guest
    return None


def table_claims_guest(table: Table, guest: Guest, radius: float) -> bool:
    """A guest whose circle touches the table counts as seated there"""
    if table.is_round:
        cx, cy = table.center
        return math.hypot(guest.x - cx, guest.y - cy) <= table.radius + radius

    closest_x = max(table.x, min(guest.x, table.x + table.width))
    closest_y = max(table.y, min(guest.y, table.y + table.height))
    return math.hypot(guest.x - closest_x, guest.y - closest_y) <= radius


def table_for_guest(guest: Guest, shapes: Sequence, radius: float = None) -> Optional[Table]:
    if radius is None:
        radius = settings.GUEST_RADIUS
    for shape in reversed(shapes):
        if isinstance(shape, Table) and table_claims_guest(shape, guest, radius):
            return shape
    return None


def compute_occupancy(guests: Sequence[Guest], shapes: Sequence, radius: float = None) -> Occupancy:
    """Map every table id to the ids of the seated guests it claims"""
    occupancy: Occupancy = {
        shape.id: [] for shape in shapes if isinstance(shape, Table)
    }
    for guest in guests:
        if not guest.seated:
            continue
        table = table_for_guest(guest, shapes, radius)
        if table is not None:
            occupancy[table.id].append(guest.id)
    return occupancy


def table_statuses(shapes: Sequence, occupancy: Occupancy) -> List[TableStatus]:
    statuses = []
    for shape in shapes:
        if not isinstance(shape, Table):
            continue
        guest_ids = occupancy.get(shape.id, [])
        statuses.append(TableStatus(
            shape_id=shape.id,
            label=shape.label,
            capacity=shape.capacity,
            seated_count=len(guest_ids),
            overfull=len(guest_ids) > shape.capacity,
            guest_ids=list(guest_ids),
        ))
    return statuses


def next_table_label(shapes: Sequence) -> str:
    count = sum(1 for shape in shapes if isinstance(shape, Table))
    return f"Table {count + 1}"


def shape_from_gesture(
    kind: str,
    start_x: float,
    start_y: float,
    end_x: float,
    end_y: float,
    round: bool = False,
    label: str = "Table",
    capacity: int = None
):
    """Build a shape from a pointer-down/pointer-up pair

    Round tables are centred on the start point with the drag length as
    radius; everything else spans the two corners.
    """
    if capacity is None:
        capacity = settings.DEFAULT_TABLE_CAPACITY

    if kind == "table" and round:
        r = math.hypot(end_x - start_x, end_y - start_y)
        return Table(
            x=start_x - r,
            y=start_y - r,
            width=r * 2,
            height=r * 2,
            is_round=True,
            label=label,
            capacity=capacity,
        )

    box = dict(
        x=min(start_x, end_x),
        y=min(start_y, end_y),
        width=abs(end_x - start_x),
        height=abs(end_y - start_y),
    )
    if kind == "barrier":
        return Barrier(**box)
    return Table(label=label, capacity=capacity, **box)
