"""
Admin API routes - requires authentication
"""

import logging
from fastapi import APIRouter, Depends, UploadFile, File
from fastapi.responses import Response
from sqlalchemy.orm import Session

from seatplan.api.deps import deletion_scheduler, notifier, read_upload
from seatplan.core.db import get_db
from seatplan.schemas.plan import PlanCreate, PlanResponse
from seatplan.services.export_service import ExportService
from seatplan.services.guest_list_service import GuestListService
from seatplan.services.plan_store import PlanRepo, plan_store
from seatplan.services.seating_plan import SeatingPlan
from seatplan.utils.exceptions import NothingToMergeInto, PlanNotFound
from seatplan.utils.responses import success_response
from seatplan.utils.security import verify_admin_token

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/plans")
async def create_plan(
    plan_data: PlanCreate,
    db: Session = Depends(get_db),
    token: str = Depends(verify_admin_token)
):
    """Create a new, empty floor plan"""
    plan = PlanRepo.create(db, name=plan_data.name, organizer_email=plan_data.organizer_email)
    plan_store.put(plan.public_code, SeatingPlan())
    logger.info(f"Created plan {plan.public_code}")

    return success_response(
        message="Plan created successfully",
        data=PlanResponse.model_validate(plan).model_dump(),
        status_code=201
    )

@router.get("/plans/{plan_code}")
async def get_plan_details(
    plan_code: str,
    db: Session = Depends(get_db),
    token: str = Depends(verify_admin_token)
):
    """Get plan metadata with guest and table counts"""
    row = PlanRepo.get_by_public_code(db, plan_code)
    if not row:
        raise PlanNotFound(plan_code)
    plan = plan_store.get(db, plan_code)
    statuses = plan.table_statuses()

    data = PlanResponse.model_validate(row).model_dump()
    data.update({
        "total_guests": len(plan.registry),
        "seated_guests": len(plan.placed_guests),
        "total_tables": len(statuses),
        "overfull_tables": [s.label for s in statuses if s.overfull],
        "has_saved_snapshot": bool(row.snapshot),
    })
    return success_response(message="Plan details retrieved", data=data)

@router.post("/plans/{plan_code}/guests/import")
async def import_guest_list(
    plan_code: str,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    token: str = Depends(verify_admin_token)
):
    """Load a new guest list; clears the floor plan"""
    plan = plan_store.get(db, plan_code)
    file_content = await read_upload(file)

    guests = GuestListService.parse_upload(file.filename, file_content)
    deletion_scheduler.cancel(plan_code)
    plan.load_guest_list(guests)

    await notifier.broadcast_plan_update(plan_code, plan, update_type="guest_list_loaded")

    return success_response(
        message=f"Guest list loaded. {len(guests)} guests imported.",
        data={
            "guest_count": len(guests),
            "filename": file.filename
        }
    )

@router.post("/plans/{plan_code}/guests/merge")
async def merge_guest_list(
    plan_code: str,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    token: str = Depends(verify_admin_token)
):
    """Merge an updated guest list, keeping placements of guests that match by name"""
    plan = plan_store.get(db, plan_code)
    if len(plan.registry) == 0:
        raise NothingToMergeInto()

    file_content = await read_upload(file)
    guests = GuestListService.parse_upload(file.filename, file_content)
    deletion_scheduler.cancel(plan_code)
    result = plan.merge_guest_list(guests)

    await notifier.broadcast_plan_update(plan_code, plan, update_type="guest_list_merged")

    return success_response(
        message="Guest list successfully merged!",
        data={
            "guest_count": len(result.guests),
            "matched": result.matched,
            "added": result.added,
            "dropped": result.dropped
        }
    )

@router.post("/plans/{plan_code}/save")
async def save_plan(
    plan_code: str,
    db: Session = Depends(get_db),
    token: str = Depends(verify_admin_token)
):
    """Store the current snapshot and return it as a download"""
    row = PlanRepo.get_by_public_code(db, plan_code)
    if not row:
        raise PlanNotFound(plan_code)
    plan = plan_store.get(db, plan_code)

    snapshot_json = plan.snapshot_json()
    PlanRepo.save_snapshot(db, row, snapshot_json)
    logger.info(f"Saved snapshot for plan {plan_code}")

    return Response(
        content=snapshot_json,
        media_type="application/json",
        headers={"Content-Disposition": "attachment; filename=seating_plan.json"}
    )

@router.post("/plans/{plan_code}/load")
async def load_plan(
    plan_code: str,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    token: str = Depends(verify_admin_token)
):
    """Replace guests and shapes from an uploaded snapshot file"""
    plan = plan_store.get(db, plan_code)
    file_content = await read_upload(file)

    deletion_scheduler.cancel(plan_code)
    plan.restore(file_content)

    await notifier.broadcast_plan_update(plan_code, plan, update_type="plan_loaded")

    return success_response(
        message="Plan loaded successfully!",
        data={
            "guest_count": len(plan.registry),
            "shape_count": len(plan.shapes)
        }
    )

@router.post("/plans/{plan_code}/clear")
async def clear_plan(
    plan_code: str,
    db: Session = Depends(get_db),
    token: str = Depends(verify_admin_token)
):
    """Remove every shape and unseat every guest"""
    plan = plan_store.get(db, plan_code)
    deletion_scheduler.cancel(plan_code)
    plan.clear()

    await notifier.broadcast_plan_update(plan_code, plan, update_type="plan_cleared")

    return success_response(message="Plan cleared", data={"guest_count": len(plan.registry)})

@router.get("/plans/{plan_code}/export/legend.xlsx")
async def export_legend(
    plan_code: str,
    db: Session = Depends(get_db),
    token: str = Depends(verify_admin_token)
):
    """Export the table legend and guest list to Excel"""
    plan = plan_store.get(db, plan_code)
    excel_content = ExportService.export_legend(plan)

    return Response(
        content=excel_content,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f"attachment; filename=seating_legend_{plan_code}.xlsx"}
    )

@router.delete("/plans/{plan_code}")
async def delete_plan(
    plan_code: str,
    db: Session = Depends(get_db),
    token: str = Depends(verify_admin_token)
):
    """Delete a plan and its saved snapshot"""
    row = PlanRepo.get_by_public_code(db, plan_code)
    if not row:
        raise PlanNotFound(plan_code)

    deletion_scheduler.cancel(plan_code)
    plan_store.discard(plan_code)
    PlanRepo.delete(db, row)

    return success_response(
        message="Plan deleted successfully",
        data={"deleted_plan_code": plan_code}
    )
