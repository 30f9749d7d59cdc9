"""
Guest list reconciliation

A freshly parsed guest list replaces the registry, but guests whose name
matches an existing guest keep that guest's placement. Matching is by
case-normalized "first_last" name, not by id, so re-exported lists with
regenerated ids still line up.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

from seatplan.schemas.guest import Guest
from seatplan.utils.exceptions import NothingToMergeInto


@dataclass
class MergeResult:
    guests: List[Guest]
    matched: int = 0
    added: int = 0
    dropped: List[str] = field(default_factory=list)


def reconcile_guest_lists(existing: Sequence[Guest], incoming: Sequence[Guest]) -> MergeResult:
    if not existing:
        raise NothingToMergeInto()

    # later records win when two old guests share a name
    old_states: Dict[str, Tuple[bool, float, float]] = {
        guest.name_key: (guest.seated, guest.x, guest.y) for guest in existing
    }

    merged: List[Guest] = []
    matched = 0
    for guest in incoming:
        state = old_states.get(guest.name_key)
        if state is not None:
            seated, x, y = state
            matched += 1
        else:
            seated, x, y = False, 0.0, 0.0
        merged.append(guest.model_copy(update={"seated": seated, "x": x, "y": y}))

    incoming_keys = {guest.name_key for guest in incoming}
    dropped = [g.display_name for g in existing if g.name_key not in incoming_keys]

    return MergeResult(
        guests=merged,
        matched=matched,
        added=len(merged) - matched,
        dropped=dropped,
    )
