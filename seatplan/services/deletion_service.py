"""
Deferred deletion

Dropping an item on the trash marks it for deletion right away; the actual
removal is committed after a short delay so the client can play its removal
animation. The commit is dropped if the plan's interaction state was reset
(or another deletion was marked) in the meantime.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, Optional, Set

from seatplan.core.config import settings
from seatplan.services.seating_plan import PendingDeletion, SeatingPlan

logger = logging.getLogger(__name__)

class DeletionScheduler:
    """One cancelable delayed commit per plan"""

    def __init__(
        self,
        delay: Optional[float] = None,
        on_commit: Optional[Callable[[str], Awaitable[None]]] = None
    ):
        self.delay = settings.DELETE_COMMIT_DELAY_SECONDS if delay is None else delay
        self.on_commit = on_commit
        self._handles: Dict[str, asyncio.TimerHandle] = {}
        self._tasks: Set[asyncio.Future] = set()

    def schedule(self, plan_code: str, plan: SeatingPlan, pending: PendingDeletion) -> asyncio.TimerHandle:
        """Commit `pending` on `plan` after the delay; replaces any earlier timer"""
        self.cancel(plan_code)
        loop = asyncio.get_running_loop()
        handle = loop.call_later(self.delay, self._fire, plan_code, plan, pending)
        self._handles[plan_code] = handle
        return handle

    def cancel(self, plan_code: str) -> bool:
        handle = self._handles.pop(plan_code, None)
        if handle is None:
            return False
        handle.cancel()
        return True

    def is_scheduled(self, plan_code: str) -> bool:
        return plan_code in self._handles

    def _fire(self, plan_code: str, plan: SeatingPlan, pending: PendingDeletion) -> None:
        self._handles.pop(plan_code, None)
        if not plan.commit_deletion(pending):
            logger.info(f"Deletion of {pending.kind} {pending.target_id} was superseded")
            return

        logger.info(f"Committed deletion of {pending.kind} {pending.target_id} in plan {plan_code}")
        if self.on_commit is not None:
            task = asyncio.ensure_future(self.on_commit(plan_code))
            self._tasks.add(task)
            task.add_done_callback(self._commit_done)

    def _commit_done(self, task: asyncio.Future) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Post-commit callback failed: {task.exception()}")
