"""
Tests for the deferred deletion commit
"""

import asyncio
import pytest

from seatplan.services.deletion_service import DeletionScheduler
from seatplan.services.guest_list_service import GuestListService
from seatplan.services.seating_plan import SeatingPlan

@pytest.fixture
def plan():
    """Plan with one guest seated at one table"""
    seating_plan = SeatingPlan(guest_radius=15.0)
    seating_plan.load_guest_list(GuestListService.expand_party("Ann", "Lee", "P1", 0))
    seating_plan.add_shape("table", 0, 0, 100, 50)
    seating_plan.seat_guest("P1_Ann_Lee", 50, 25)
    return seating_plan

@pytest.mark.asyncio
async def test_scheduled_deletion_commits_after_delay(plan):
    """Test the marked table is removed once the delay passes"""
    committed = []

    async def on_commit(plan_code):
        committed.append(plan_code)

    scheduler = DeletionScheduler(delay=0.01, on_commit=on_commit)
    table = plan.shapes[0]
    scheduler.schedule("PLAN1", plan, plan.mark_for_deletion("shape", table.id))

    assert scheduler.is_scheduled("PLAN1")
    assert len(plan.shapes) == 1

    await asyncio.sleep(0.1)

    assert plan.shapes == []
    assert plan.registry.get("P1_Ann_Lee").seated is False
    assert not scheduler.is_scheduled("PLAN1")
    assert committed == ["PLAN1"]

@pytest.mark.asyncio
async def test_cancelled_deletion_never_commits(plan):
    scheduler = DeletionScheduler(delay=0.01)
    scheduler.schedule("PLAN1", plan, plan.mark_for_deletion("shape", plan.shapes[0].id))

    assert scheduler.cancel("PLAN1") is True
    await asyncio.sleep(0.05)

    assert len(plan.shapes) == 1
    assert scheduler.cancel("PLAN1") is False

@pytest.mark.asyncio
async def test_reset_interaction_supersedes_pending_commit(plan):
    """Test a commit is dropped when the plan's interaction state was reset"""
    committed = []

    async def on_commit(plan_code):
        committed.append(plan_code)

    scheduler = DeletionScheduler(delay=0.01, on_commit=on_commit)
    scheduler.schedule("PLAN1", plan, plan.mark_for_deletion("guest", "P1_Ann_Lee"))
    plan.reset_interaction()

    await asyncio.sleep(0.05)

    assert plan.registry.get("P1_Ann_Lee").seated is True
    assert committed == []

@pytest.mark.asyncio
async def test_rescheduling_replaces_earlier_timer(plan):
    """Test only the latest marked item is deleted"""
    barrier = plan.add_shape("barrier", 300, 300, 310, 310)
    table = plan.shapes[0]
    scheduler = DeletionScheduler(delay=0.01)

    scheduler.schedule("PLAN1", plan, plan.mark_for_deletion("shape", table.id))
    scheduler.schedule("PLAN1", plan, plan.mark_for_deletion("shape", barrier.id))

    await asyncio.sleep(0.05)

    assert [s.id for s in plan.shapes] == [table.id]

@pytest.mark.asyncio
async def test_commit_callback_is_held_until_done(plan):
    """Test the post-commit callback task stays referenced while it runs"""
    release = asyncio.Event()
    committed = []

    async def on_commit(plan_code):
        await release.wait()
        committed.append(plan_code)

    scheduler = DeletionScheduler(delay=0.01, on_commit=on_commit)
    scheduler.schedule("PLAN1", plan, plan.mark_for_deletion("shape", plan.shapes[0].id))

    await asyncio.sleep(0.05)
    assert len(scheduler._tasks) == 1
    assert committed == []

    release.set()
    await asyncio.sleep(0.01)

    assert committed == ["PLAN1"]
    assert scheduler._tasks == set()

@pytest.mark.asyncio
async def test_failing_commit_callback_is_released(plan):
    async def on_commit(plan_code):
        raise RuntimeError("broadcast failed")

    scheduler = DeletionScheduler(delay=0.01, on_commit=on_commit)
    scheduler.schedule("PLAN1", plan, plan.mark_for_deletion("shape", plan.shapes[0].id))

    await asyncio.sleep(0.05)

    assert plan.shapes == []
    assert scheduler._tasks == set()
