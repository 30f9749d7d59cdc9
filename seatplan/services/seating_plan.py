"""
Seating plan state

SeatingPlan owns everything one floor plan needs: the guest registry, the
shape list (in z-order), the order in which guests were placed, the party
palette and the current interaction (hover, drag gesture, pending delete).
Every mutation is a method here and ends by recomputing occupancy, so the
derived table -> guests mapping can never drift from positions.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

from seatplan.core.config import settings
from seatplan.schemas.guest import Guest
from seatplan.schemas.plan import LegendEntry, Snapshot, TableStatus
from seatplan.schemas.shape import Barrier, Table
from seatplan.services import layout
from seatplan.services.party_palette import PartyPalette
from seatplan.services.reconciliation import MergeResult, reconcile_guest_lists
from seatplan.services.registry import GuestRegistry
from seatplan.services.snapshot_service import SnapshotService
from seatplan.utils.exceptions import InvalidSnapshot, UnknownShape
from seatplan.utils.parsing import parse_leading_int

logger = logging.getLogger(__name__)

Shape = Union[Table, Barrier]


@dataclass
class DragSession:
    """A guest or shape held by the pointer"""
    kind: str  # "guest" or "shape"
    target_id: str
    offset_x: float
    offset_y: float
    riders: List[str] = field(default_factory=list)


@dataclass
class PendingDeletion:
    """An item marked for removal, waiting for its commit"""
    kind: str  # "guest" or "shape"
    target_id: str
    affected_guest_ids: List[str] = field(default_factory=list)


class SeatingPlan:
    """One floor plan and its guest list"""

    def __init__(self, guests: Sequence[Guest] = (), shapes: Sequence[Shape] = (), guest_radius: float = None):
        self.guest_radius = settings.GUEST_RADIUS if guest_radius is None else guest_radius
        self.registry = GuestRegistry()
        self.shapes: List[Shape] = []
        self.palette = PartyPalette()
        self.occupancy: Dict[str, List[str]] = {}
        self._placed_ids: List[str] = []
        self.hovered_guest_id: Optional[str] = None
        self.drag: Optional[DragSession] = None
        self.pending_deletion: Optional[PendingDeletion] = None
        self._replace_state(guests, shapes)

    # -------- derived state --------

    def recompute(self) -> Dict[str, List[str]]:
        """Rebuild occupancy from guest positions and table geometry"""
        self.occupancy = layout.compute_occupancy(
            self.placed_guests, self.shapes, self.guest_radius
        )
        return self.occupancy

    @property
    def placed_guests(self) -> List[Guest]:
        """Seated guests in placement order (last placed is on top)"""
        return [g for g in map(self.registry.find, self._placed_ids) if g is not None]

    @property
    def unseated_guests(self) -> List[Guest]:
        return self.registry.unseated()

    def get_shape(self, shape_id: str) -> Shape:
        for shape in self.shapes:
            if shape.id == shape_id:
                return shape
        raise UnknownShape(shape_id)

    def get_table(self, shape_id: str) -> Table:
        shape = self.get_shape(shape_id)
        if not isinstance(shape, Table):
            raise UnknownShape(shape_id)
        return shape

    def table_guests(self, shape_id: str) -> List[Guest]:
        return [self.registry.get(guest_id) for guest_id in self.occupancy.get(shape_id, [])]

    def table_statuses(self) -> List[TableStatus]:
        return layout.table_statuses(self.shapes, self.occupancy)

    def is_overfull(self, shape_id: str) -> bool:
        table = self.get_table(shape_id)
        return len(self.occupancy.get(shape_id, [])) > table.capacity

    def legend(self) -> List[LegendEntry]:
        """Tables that have guests, each with its guests' names in seating order"""
        entries = []
        for index, shape in enumerate(self.shapes):
            if not isinstance(shape, Table):
                continue
            guests = self.table_guests(shape.id)
            if guests:
                entries.append(LegendEntry(
                    table=shape.label or f"Table {index + 1}",
                    guests=[g.display_name for g in guests],
                ))
        return entries

    # -------- guest list --------

    def load_guest_list(self, guests: Sequence[Guest]) -> None:
        """Start over from a new guest list: no shapes, nobody seated"""
        self.registry.replace(guests)
        self.clear()
        logger.info(f"Loaded guest list with {len(self.registry)} guests")

    def merge_guest_list(self, guests: Sequence[Guest]) -> MergeResult:
        """Replace the registry with a new list, keeping placement of name matches"""
        result = reconcile_guest_lists(self.registry.guests(), guests)
        self.registry.replace(result.guests)
        self._placed_ids = [g.id for g in self.registry.seated()]
        self.palette.reset()
        self.reset_interaction()
        self.recompute()
        logger.info(
            f"Merged guest list: {result.matched} matched, {result.added} new, "
            f"{len(result.dropped)} dropped"
        )
        return result

    def add_plus_one(self, parent_id: str, full_name: Optional[str]) -> Optional[Guest]:
        return self.registry.add_plus_one(parent_id, full_name)

    def clear(self) -> None:
        """Remove every shape and unseat every guest"""
        self.shapes = []
        self._placed_ids = []
        self.palette.reset()
        self.registry.unseat_all()
        self.reset_interaction()
        self.recompute()

    # -------- seating --------

    def seat_guest(self, guest_id: str, x: float, y: float) -> Guest:
        """Place a guest at a point; capacity is advisory and never blocks this"""
        guest = self.registry.get(guest_id)
        guest.x = x
        guest.y = y
        guest.seated = True
        if guest_id not in self._placed_ids:
            self._placed_ids.append(guest_id)
        self.recompute()
        return guest

    def move_guest(self, guest_id: str, x: float, y: float) -> Guest:
        guest = self.registry.get(guest_id)
        guest.x = x
        guest.y = y
        self.recompute()
        return guest

    def unseat_guest(self, guest_id: str) -> Guest:
        guest = self.registry.get(guest_id)
        guest.seated = False
        if guest_id in self._placed_ids:
            self._placed_ids.remove(guest_id)
        if self.hovered_guest_id == guest_id:
            self.hovered_guest_id = None
        self.recompute()
        return guest

    # -------- shapes --------

    def add_shape(
        self,
        kind: str,
        start_x: float,
        start_y: float,
        end_x: float,
        end_y: float,
        round: bool = False
    ) -> Shape:
        shape = layout.shape_from_gesture(
            kind, start_x, start_y, end_x, end_y,
            round=round,
            label=layout.next_table_label(self.shapes),
        )
        self.shapes.append(shape)
        self.recompute()
        return shape

    def update_table(self, shape_id: str, label: Optional[str] = None, capacity: Any = None) -> Table:
        """Apply prompt answers; blank or non-numeric answers leave the table unchanged"""
        table = self.get_table(shape_id)
        if label and label.strip():
            table.label = label.strip()
        if capacity is not None and str(capacity).strip():
            parsed = parse_leading_int(capacity)
            if parsed is not None and parsed >= 0:
                table.capacity = parsed
        return table

    def toggle_round(self, shape_id: str) -> Table:
        table = self.get_table(shape_id)
        table.is_round = not table.is_round
        self.recompute()
        return table

    def move_shape(self, shape_id: str, x: float, y: float) -> Shape:
        """Move a shape's corner; a table carries its seated guests along"""
        shape = self.get_shape(shape_id)
        riders = list(self.occupancy.get(shape_id, []))
        self._translate(shape, riders, x - shape.x, y - shape.y)
        self.recompute()
        return shape

    def delete_shape(self, shape_id: str) -> List[str]:
        """Remove a shape; guests at a deleted table are unseated, not removed"""
        shape = self.get_shape(shape_id)
        unseated = list(self.occupancy.get(shape_id, [])) if isinstance(shape, Table) else []
        self.shapes.remove(shape)
        for guest_id in unseated:
            guest = self.registry.find(guest_id)
            if guest is not None:
                guest.seated = False
            if guest_id in self._placed_ids:
                self._placed_ids.remove(guest_id)
        if self.drag and self.drag.target_id == shape_id:
            self.drag = None
        self.recompute()
        return unseated

    def _translate(self, shape: Shape, rider_ids: Sequence[str], dx: float, dy: float) -> None:
        if dx == 0 and dy == 0:
            return
        shape.x += dx
        shape.y += dy
        for guest_id in rider_ids:
            guest = self.registry.find(guest_id)
            if guest is not None:
                guest.x += dx
                guest.y += dy

    # -------- pointer interaction --------

    def shape_at(self, x: float, y: float) -> Optional[Shape]:
        return layout.shape_at(self.shapes, x, y)

    def guest_at(self, x: float, y: float) -> Optional[Guest]:
        return layout.guest_at(self.placed_guests, x, y, self.hovered_guest_id, self.guest_radius)

    def hover(self, x: float, y: float) -> Optional[Guest]:
        guest = self.guest_at(x, y)
        self.hovered_guest_id = guest.id if guest else None
        return guest

    def begin_drag(self, x: float, y: float) -> Optional[DragSession]:
        """Pick up the guest under the pointer, or else the topmost shape"""
        guest = self.guest_at(x, y)
        if guest is not None:
            self.hovered_guest_id = None
            self.drag = DragSession("guest", guest.id, x - guest.x, y - guest.y)
            return self.drag

        shape = self.shape_at(x, y)
        if shape is not None:
            self.drag = DragSession(
                "shape", shape.id, x - shape.x, y - shape.y,
                riders=list(self.occupancy.get(shape.id, [])),
            )
            return self.drag

        self.drag = None
        return None

    def drag_to(self, x: float, y: float) -> Optional[DragSession]:
        drag = self.drag
        if drag is None:
            return None

        if drag.kind == "guest":
            guest = self.registry.find(drag.target_id)
            if guest is None:
                self.drag = None
                return None
            guest.x = x - drag.offset_x
            guest.y = y - drag.offset_y
        else:
            shape = next((s for s in self.shapes if s.id == drag.target_id), None)
            if shape is None:
                self.drag = None
                return None
            self._translate(
                shape, drag.riders,
                (x - drag.offset_x) - shape.x,
                (y - drag.offset_y) - shape.y,
            )
        self.recompute()
        return drag

    def end_drag(self) -> Optional[DragSession]:
        """Release the pointer; the held item stays where it was last moved"""
        drag, self.drag = self.drag, None
        self.recompute()
        return drag

    def reset_interaction(self) -> None:
        self.hovered_guest_id = None
        self.drag = None
        self.pending_deletion = None

    # -------- two-phase deletion --------

    def mark_for_deletion(self, kind: str, target_id: str) -> PendingDeletion:
        """First phase: flag an item (and, for a table, its guests) for removal"""
        if kind == "shape":
            shape = self.get_shape(target_id)
            affected = list(self.occupancy.get(shape.id, [])) if isinstance(shape, Table) else []
        else:
            self.registry.get(target_id)
            affected = [target_id]
        self.pending_deletion = PendingDeletion(kind, target_id, affected)
        return self.pending_deletion

    def cancel_deletion(self) -> Optional[PendingDeletion]:
        pending, self.pending_deletion = self.pending_deletion, None
        return pending

    def commit_deletion(self, pending: Optional[PendingDeletion] = None) -> bool:
        """Second phase: apply the pending deletion if it is still the current one"""
        current = self.pending_deletion
        if current is None or (pending is not None and pending is not current):
            return False
        self.pending_deletion = None
        self.drag = None

        if current.kind == "shape":
            if not any(s.id == current.target_id for s in self.shapes):
                logger.warning(f"Shape {current.target_id} vanished before its deletion committed")
                return False
            self.delete_shape(current.target_id)
        else:
            if current.target_id not in self.registry:
                logger.warning(f"Guest {current.target_id} vanished before being unseated")
                return False
            self.unseat_guest(current.target_id)
        return True

    @property
    def deleting_ids(self) -> List[str]:
        pending = self.pending_deletion
        if pending is None:
            return []
        return [pending.target_id] + [g for g in pending.affected_guest_ids if g != pending.target_id]

    # -------- persistence --------

    def snapshot(self) -> Dict[str, Any]:
        return SnapshotService.dump(self.registry.guests(), self.shapes)

    def snapshot_json(self) -> str:
        return SnapshotService.dumps(self.registry.guests(), self.shapes)

    def restore(self, snapshot: Union[Snapshot, str, bytes, Dict[str, Any]]) -> None:
        """Replace guests and shapes wholesale from a snapshot"""
        if not isinstance(snapshot, Snapshot):
            snapshot = SnapshotService.loads(snapshot)
        try:
            self._replace_state(snapshot.all_guests, snapshot.shapes)
        except ValueError as e:
            raise InvalidSnapshot(str(e)) from e
        logger.info(
            f"Restored plan with {len(self.registry)} guests and {len(self.shapes)} shapes"
        )

    @classmethod
    def from_snapshot(cls, snapshot: Union[Snapshot, str, bytes, Dict[str, Any]]) -> "SeatingPlan":
        plan = cls()
        plan.restore(snapshot)
        return plan

    def _replace_state(self, guests: Sequence[Guest], shapes: Sequence[Shape]) -> None:
        registry = GuestRegistry(guests)
        self.registry = registry
        self.shapes = list(shapes)
        self._placed_ids = [g.id for g in registry.seated()]
        self.palette.reset()
        self.reset_interaction()
        self.recompute()

    # -------- rendering --------

    def render_state(self) -> Dict[str, Any]:
        """Read-only view for the rendering surface"""
        statuses = {status.shape_id: status for status in self.table_statuses()}
        shapes = []
        for shape in self.shapes:
            item = shape.model_dump(by_alias=True, mode="json")
            status = statuses.get(shape.id)
            if status is not None:
                item["seatedCount"] = status.seated_count
                item["overfull"] = status.overfull
            shapes.append(item)

        guests = []
        for guest in self.registry:
            item = guest.model_dump(by_alias=True, mode="json")
            item["color"] = self.palette.colors_for(guest.party_id)
            item["initials"] = guest.initials
            guests.append(item)

        return {
            "guests": guests,
            "placedGuestIds": list(self._placed_ids),
            "shapes": shapes,
            "occupancy": {k: list(v) for k, v in self.occupancy.items()},
            "hoveredGuestId": self.hovered_guest_id,
            "deletingIds": self.deleting_ids,
        }

