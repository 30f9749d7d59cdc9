"""
Shared route dependencies and service instances
"""

from fastapi import Depends, UploadFile
from sqlalchemy.orm import Session

from seatplan.api.ws import websocket_manager
from seatplan.core.config import settings
from seatplan.core.db import get_db
from seatplan.services.deletion_service import DeletionScheduler
from seatplan.services.notification_service import PlanNotifier
from seatplan.services.plan_store import plan_store
from seatplan.services.seating_plan import SeatingPlan
from seatplan.utils.responses import upload_too_large_error

notifier = PlanNotifier(websocket_manager)

async def _broadcast_committed_deletion(plan_code: str):
    await notifier.broadcast_plan_update(
        plan_code,
        plan_store.peek(plan_code),
        update_type="deletion_committed"
    )

deletion_scheduler = DeletionScheduler(on_commit=_broadcast_committed_deletion)

def get_plan(plan_code: str, db: Session = Depends(get_db)) -> SeatingPlan:
    """Live plan for the path's plan code"""
    return plan_store.get(db, plan_code)

async def read_upload(file: UploadFile) -> bytes:
    """Read an uploaded file, enforcing the size limit"""
    content = await file.read()
    if len(content) > settings.MAX_UPLOAD_SIZE:
        upload_too_large_error(settings.MAX_UPLOAD_SIZE)
    return content
