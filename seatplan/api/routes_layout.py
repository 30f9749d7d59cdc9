"""
Floor plan editing routes - shapes, guest placement and pointer gestures
"""

from fastapi import APIRouter, Depends

from seatplan.api.deps import deletion_scheduler, get_plan, notifier
from seatplan.schemas.guest import PlusOneRequest, SeatRequest
from seatplan.schemas.plan import DeletionRequest, PointerRequest
from seatplan.schemas.shape import ShapeCreate, ShapeMove, TableUpdate
from seatplan.services.seating_plan import SeatingPlan
from seatplan.utils.responses import success_response
from seatplan.utils.security import verify_admin_token

router = APIRouter(dependencies=[Depends(verify_admin_token)])

def _shape_data(plan: SeatingPlan, shape) -> dict:
    data = shape.model_dump(by_alias=True, mode="json")
    if shape.type == "table":
        data["seatedCount"] = len(plan.occupancy.get(shape.id, []))
        data["overfull"] = plan.is_overfull(shape.id)
    return data

def _drag_data(drag):
    if drag is None:
        return None
    return {
        "kind": drag.kind,
        "targetId": drag.target_id,
        "riders": list(drag.riders)
    }

# -------- shapes --------

@router.post("/shapes")
async def create_shape(
    plan_code: str,
    shape_data: ShapeCreate,
    plan: SeatingPlan = Depends(get_plan)
):
    """Draw a table or barrier from a pointer-down/pointer-up pair"""
    shape = plan.add_shape(
        shape_data.type,
        shape_data.start_x,
        shape_data.start_y,
        shape_data.end_x,
        shape_data.end_y,
        round=shape_data.round
    )
    await notifier.broadcast_plan_update(plan_code, plan)

    return success_response(
        message=f"{shape.type.capitalize()} added",
        data=_shape_data(plan, shape),
        status_code=201
    )

@router.patch("/shapes/{shape_id}")
async def update_table(
    plan_code: str,
    shape_id: str,
    update: TableUpdate,
    plan: SeatingPlan = Depends(get_plan)
):
    """Rename a table or change its capacity"""
    table = plan.update_table(shape_id, label=update.label, capacity=update.capacity)
    await notifier.broadcast_plan_update(plan_code, plan)

    return success_response(message="Table updated", data=_shape_data(plan, table))

@router.post("/shapes/{shape_id}/toggle-round")
async def toggle_round(
    plan_code: str,
    shape_id: str,
    plan: SeatingPlan = Depends(get_plan)
):
    """Switch a table between rectangular and round"""
    table = plan.toggle_round(shape_id)
    await notifier.broadcast_plan_update(plan_code, plan)

    return success_response(
        message="Table is now round" if table.is_round else "Table is now rectangular",
        data=_shape_data(plan, table)
    )

@router.put("/shapes/{shape_id}/position")
async def move_shape(
    plan_code: str,
    shape_id: str,
    move: ShapeMove,
    plan: SeatingPlan = Depends(get_plan)
):
    """Move a shape; a table carries its seated guests with it"""
    shape = plan.move_shape(shape_id, move.x, move.y)
    await notifier.broadcast_plan_update(plan_code, plan)

    return success_response(message="Shape moved", data=_shape_data(plan, shape))

@router.delete("/shapes/{shape_id}")
async def delete_shape(
    plan_code: str,
    shape_id: str,
    plan: SeatingPlan = Depends(get_plan)
):
    """Delete a shape right away; its guests go back to the unseated list"""
    unseated = plan.delete_shape(shape_id)
    await notifier.broadcast_plan_update(plan_code, plan)

    return success_response(
        message="Shape deleted",
        data={"deleted_shape_id": shape_id, "unseated_guest_ids": unseated}
    )

# -------- guests --------

@router.post("/guests/{guest_id}/seat")
async def seat_guest(
    plan_code: str,
    guest_id: str,
    seat: SeatRequest,
    plan: SeatingPlan = Depends(get_plan)
):
    """Drop a guest from the list onto the floor plan"""
    guest = plan.seat_guest(guest_id, seat.x, seat.y)
    await notifier.broadcast_plan_update(plan_code, plan)

    table = next(
        (shape_id for shape_id, ids in plan.occupancy.items() if guest.id in ids),
        None
    )
    return success_response(
        message=f"{guest.display_name} placed",
        data={"guest": guest.model_dump(by_alias=True), "table_id": table}
    )

@router.put("/guests/{guest_id}/position")
async def move_guest(
    plan_code: str,
    guest_id: str,
    seat: SeatRequest,
    plan: SeatingPlan = Depends(get_plan)
):
    """Move a placed guest"""
    guest = plan.move_guest(guest_id, seat.x, seat.y)
    await notifier.broadcast_plan_update(plan_code, plan)

    return success_response(message="Guest moved", data=guest.model_dump(by_alias=True))

@router.post("/guests/{guest_id}/unseat")
async def unseat_guest(
    plan_code: str,
    guest_id: str,
    plan: SeatingPlan = Depends(get_plan)
):
    """Take a guest off the floor plan"""
    guest = plan.unseat_guest(guest_id)
    await notifier.broadcast_plan_update(plan_code, plan)

    return success_response(message=f"{guest.display_name} unseated", data=guest.model_dump(by_alias=True))

@router.post("/guests/{guest_id}/plus-one")
async def add_plus_one(
    plan_code: str,
    guest_id: str,
    request: PlusOneRequest,
    plan: SeatingPlan = Depends(get_plan)
):
    """Add a named plus-one to a guest's party"""
    guest = plan.add_plus_one(guest_id, request.name)
    if guest is None:
        return success_response(message="No name given, nothing added", data=None)

    await notifier.broadcast_plan_update(plan_code, plan)
    return success_response(
        message=f"Added {guest.display_name}",
        data=guest.model_dump(by_alias=True),
        status_code=201
    )

# -------- pointer gestures --------

@router.post("/pointer/hover")
async def pointer_hover(
    pointer: PointerRequest,
    plan: SeatingPlan = Depends(get_plan)
):
    guest = plan.hover(pointer.x, pointer.y)
    return success_response(
        message="Hover updated",
        data={"hovered_guest_id": guest.id if guest else None}
    )

@router.post("/pointer/down")
async def pointer_down(
    pointer: PointerRequest,
    plan: SeatingPlan = Depends(get_plan)
):
    """Pick up the guest or shape under the pointer"""
    drag = plan.begin_drag(pointer.x, pointer.y)
    return success_response(
        message="Picked up item" if drag else "Nothing under pointer",
        data={"drag": _drag_data(drag)}
    )

@router.post("/pointer/move")
async def pointer_move(
    plan_code: str,
    pointer: PointerRequest,
    plan: SeatingPlan = Depends(get_plan)
):
    """Move the held item, or update hover when nothing is held"""
    if plan.drag is None:
        guest = plan.hover(pointer.x, pointer.y)
        return success_response(
            message="Hover updated",
            data={"drag": None, "hovered_guest_id": guest.id if guest else None}
        )

    drag = plan.drag_to(pointer.x, pointer.y)
    await notifier.broadcast_plan_update(plan_code, plan, update_type="drag_moved")
    return success_response(message="Item moved", data={"drag": _drag_data(drag)})

@router.post("/pointer/up")
async def pointer_up(
    plan_code: str,
    plan: SeatingPlan = Depends(get_plan)
):
    """Release the held item where it is"""
    drag = plan.end_drag()
    if drag is not None:
        await notifier.broadcast_plan_update(plan_code, plan)
    return success_response(message="Released", data={"drag": _drag_data(drag)})

# -------- trash --------

@router.post("/deletion")
async def mark_for_deletion(
    plan_code: str,
    request: DeletionRequest,
    plan: SeatingPlan = Depends(get_plan)
):
    """Drop an item on the trash; the removal commits after a short delay"""
    pending = plan.mark_for_deletion(request.kind, request.id)
    deletion_scheduler.schedule(plan_code, plan, pending)
    await notifier.broadcast_plan_update(plan_code, plan, update_type="deletion_pending")

    return success_response(
        message=f"{request.kind.capitalize()} marked for deletion",
        data={
            "deleting_ids": plan.deleting_ids,
            "commit_delay_seconds": deletion_scheduler.delay
        },
        status_code=202
    )

@router.delete("/deletion")
async def cancel_deletion(
    plan_code: str,
    plan: SeatingPlan = Depends(get_plan)
):
    """Cancel a pending deletion before it commits"""
    deletion_scheduler.cancel(plan_code)
    pending = plan.cancel_deletion()
    if pending is not None:
        await notifier.broadcast_plan_update(plan_code, plan)

    return success_response(
        message="Deletion cancelled" if pending else "Nothing pending",
        data={"cancelled": pending is not None}
    )
