"""
Public API routes - no authentication required
"""

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response

from seatplan.api.deps import get_plan
from seatplan.services.guest_list_service import GuestListService
from seatplan.services.seating_plan import SeatingPlan
from seatplan.utils.responses import success_response
from seatplan.utils.security import enforce_rate_limit

router = APIRouter()

TEMPLATE_MEDIA_TYPES = {
    "csv": "text/csv",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}

@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "ok"}

@router.get("/template/guest_list.{extension}")
async def download_template(extension: str):
    """Download a guest list template (CSV or Excel)"""
    media_type = TEMPLATE_MEDIA_TYPES.get(extension)
    if media_type is None:
        raise HTTPException(status_code=404, detail="Template format not supported")

    template_bytes = GuestListService.create_template(format=extension)

    return Response(
        content=template_bytes,
        media_type=media_type,
        headers={"Content-Disposition": f"attachment; filename=guest_list_template.{extension}"}
    )

@router.get("/plans/{plan_code}", dependencies=[Depends(enforce_rate_limit)])
async def get_plan_state(plan: SeatingPlan = Depends(get_plan)):
    """Current render state of a plan"""
    return success_response(
        message="Plan retrieved successfully",
        data=plan.render_state()
    )

@router.get("/plans/{plan_code}/legend", dependencies=[Depends(enforce_rate_limit)])
async def get_legend(plan: SeatingPlan = Depends(get_plan)):
    """Tables with seated guests, in table order"""
    return success_response(
        message="Legend retrieved successfully",
        data=[entry.model_dump() for entry in plan.legend()]
    )

@router.get("/plans/{plan_code}/tables", dependencies=[Depends(enforce_rate_limit)])
async def get_table_statuses(plan: SeatingPlan = Depends(get_plan)):
    """Seated count and capacity for every table"""
    statuses = plan.table_statuses()
    return success_response(
        message="Table status retrieved successfully",
        data={
            "tables": [status.model_dump() for status in statuses],
            "overfull_count": sum(1 for status in statuses if status.overfull),
            "unseated_count": len(plan.unseated_guests)
        }
    )
