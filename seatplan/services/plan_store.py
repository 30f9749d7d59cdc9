"""
Plan storage: SQL rows for saved snapshots, live plans in memory
"""

from __future__ import annotations

import secrets
import logging
from datetime import datetime
from typing import Dict, Optional

from sqlalchemy.orm import Session

from seatplan.models import Plan
from seatplan.services.seating_plan import SeatingPlan
from seatplan.utils.exceptions import PlanNotFound

logger = logging.getLogger(__name__)


# -------- Plan repository --------

class PlanRepo:
    @staticmethod
    def get_by_public_code(db: Session, public_code: str) -> Optional[Plan]:
        return db.query(Plan).filter(Plan.public_code == public_code).first()

    @staticmethod
    def create(db: Session, name: str, organizer_email: Optional[str] = None) -> Plan:
        public_code = secrets.token_urlsafe(8)
        while PlanRepo.get_by_public_code(db, public_code):
            public_code = secrets.token_urlsafe(8)

        plan = Plan(name=name, organizer_email=organizer_email, public_code=public_code)
        db.add(plan)
        db.commit()
        db.refresh(plan)
        return plan

    @staticmethod
    def save_snapshot(db: Session, plan: Plan, snapshot_json: str) -> Plan:
        plan.snapshot = snapshot_json
        plan.updated_at = datetime.utcnow()
        db.commit()
        db.refresh(plan)
        return plan

    @staticmethod
    def delete(db: Session, plan: Plan) -> None:
        db.delete(plan)
        db.commit()


# -------- Live plans --------

class PlanStore:
    """Working copies of plans, keyed by public code

    A plan that is not in memory yet is restored from its last saved
    snapshot, or starts empty when it was never saved.
    """

    def __init__(self):
        self._plans: Dict[str, SeatingPlan] = {}

    def get(self, db: Session, public_code: str) -> SeatingPlan:
        plan = self._plans.get(public_code)
        if plan is not None:
            return plan

        row = PlanRepo.get_by_public_code(db, public_code)
        if row is None:
            raise PlanNotFound(public_code)

        if row.snapshot:
            plan = SeatingPlan.from_snapshot(row.snapshot)
            logger.info(f"Restored plan {public_code} from its saved snapshot")
        else:
            plan = SeatingPlan()
        self._plans[public_code] = plan
        return plan

    def peek(self, public_code: str) -> Optional[SeatingPlan]:
        return self._plans.get(public_code)

    def put(self, public_code: str, plan: SeatingPlan) -> None:
        self._plans[public_code] = plan

    def discard(self, public_code: str) -> None:
        self._plans.pop(public_code, None)

    def clear(self) -> None:
        self._plans.clear()

    def __contains__(self, public_code: str) -> bool:
        return public_code in self._plans

# Global plan store instance
plan_store = PlanStore()
