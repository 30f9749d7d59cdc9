"""
Plan update broadcasting
"""

from datetime import datetime
from typing import Optional

from seatplan.api.ws import WebSocketManager
from seatplan.services.seating_plan import SeatingPlan

class PlanNotifier:
    """Pushes the render state to every client watching a plan"""

    def __init__(self, websocket_manager: WebSocketManager):
        self.websocket_manager = websocket_manager

    async def broadcast_plan_update(
        self,
        plan_code: str,
        plan: Optional[SeatingPlan] = None,
        update_type: str = "plan_updated"
    ):
        """Broadcast the current plan state after a mutation"""
        message = {
            "type": update_type,
            "timestamp": datetime.utcnow().isoformat(),
        }
        if plan is not None:
            message["state"] = plan.render_state()

        await self.websocket_manager.broadcast_to_plan(plan_code, message)
