"""
WebSocket manager for pushing plan updates to the rendering surface
"""

import json
import logging
from typing import Dict, List
from fastapi import APIRouter, WebSocket, WebSocketDisconnect, Depends
from sqlalchemy.orm import Session

from seatplan.core.db import get_db
from seatplan.services.plan_store import PlanRepo

logger = logging.getLogger(__name__)

class WebSocketManager:
    """Manages WebSocket connections per plan"""

    def __init__(self):
        # plan_code -> list of websockets
        self.active_connections: Dict[str, List[WebSocket]] = {}

    async def connect(self, websocket: WebSocket, plan_code: str):
        """Accept WebSocket connection and add it to the plan's room"""
        await websocket.accept()
        self.active_connections.setdefault(plan_code, []).append(websocket)
        logger.info(f"WebSocket connected to plan {plan_code}. Total connections: {len(self.active_connections[plan_code])}")

    def disconnect(self, websocket: WebSocket, plan_code: str):
        """Remove WebSocket connection from the plan's room"""
        connections = self.active_connections.get(plan_code)
        if not connections or websocket not in connections:
            return

        connections.remove(websocket)
        logger.info(f"WebSocket disconnected from plan {plan_code}. Remaining connections: {len(connections)}")
        if not connections:
            del self.active_connections[plan_code]

    async def send_personal_message(self, message: dict, websocket: WebSocket):
        """Send message to specific WebSocket"""
        try:
            await websocket.send_text(json.dumps(message))
        except (WebSocketDisconnect, RuntimeError) as e:
            logger.error(f"Error sending personal message: {e}")

    async def broadcast_to_plan(self, plan_code: str, message: dict):
        """Broadcast message to all WebSockets watching a plan"""
        if plan_code not in self.active_connections:
            logger.debug(f"No active connections for plan {plan_code}")
            return

        # Copy so disconnects during the loop don't skip anyone
        connections = self.active_connections[plan_code].copy()

        disconnected = []
        for websocket in connections:
            try:
                await websocket.send_text(json.dumps(message))
            except (WebSocketDisconnect, RuntimeError) as e:
                logger.error(f"Error broadcasting to websocket: {e}")
                disconnected.append(websocket)

        for websocket in disconnected:
            self.disconnect(websocket, plan_code)

    def get_connection_count(self, plan_code: str) -> int:
        """Get number of active connections for a plan"""
        return len(self.active_connections.get(plan_code, []))

    def get_all_connection_counts(self) -> Dict[str, int]:
        return {
            plan_code: len(connections)
            for plan_code, connections in self.active_connections.items()
        }

# Global WebSocket manager instance
websocket_manager = WebSocketManager()

# Router for WebSocket endpoints
router = APIRouter()

@router.websocket("/plans/{plan_code}")
async def websocket_endpoint(
    websocket: WebSocket,
    plan_code: str,
    db: Session = Depends(get_db)
):
    """WebSocket endpoint for live plan updates"""

    plan = PlanRepo.get_by_public_code(db, plan_code)
    if not plan:
        await websocket.close(code=4004, reason="Plan not found")
        return

    await websocket_manager.connect(websocket, plan_code)

    try:
        welcome_message = {
            "type": "connection",
            "message": f"Connected to plan: {plan.name}",
            "plan_code": plan_code,
            "connection_count": websocket_manager.get_connection_count(plan_code)
        }
        await websocket_manager.send_personal_message(welcome_message, websocket)

        # Keep connection alive and answer heartbeats
        while True:
            data = await websocket.receive_text()
            try:
                client_message = json.loads(data)
            except json.JSONDecodeError:
                logger.warning(f"Invalid JSON received from WebSocket: {data}")
                continue

            if isinstance(client_message, dict) and client_message.get("type") == "ping":
                pong_message = {
                    "type": "pong",
                    "timestamp": client_message.get("timestamp")
                }
                await websocket_manager.send_personal_message(pong_message, websocket)

    except WebSocketDisconnect:
        pass
    finally:
        websocket_manager.disconnect(websocket, plan_code)

@router.get("/stats")
async def websocket_stats():
    """Get WebSocket connection statistics (for debugging)"""
    counts = websocket_manager.get_all_connection_counts()
    return {
        "total_plans_with_connections": len(counts),
        "connection_counts": counts,
        "total_connections": sum(counts.values())
    }
