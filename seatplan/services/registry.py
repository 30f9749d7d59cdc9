"""
Guest registry: the ordered, id-unique collection of every known guest
"""

import logging
from typing import Dict, Iterator, List, Optional, Sequence

from seatplan.schemas.guest import Guest
from seatplan.utils.exceptions import PlusOneNotAllowed, UnknownGuest

logger = logging.getLogger(__name__)

class GuestRegistry:
    """Ordered guest records indexed by id"""

    def __init__(self, guests: Sequence[Guest] = ()):
        self._guests: List[Guest] = []
        self._index: Dict[str, Guest] = {}
        self.replace(guests)

    def __len__(self) -> int:
        return len(self._guests)

    def __iter__(self) -> Iterator[Guest]:
        return iter(self._guests)

    def __contains__(self, guest_id: str) -> bool:
        return guest_id in self._index

    def replace(self, guests: Sequence[Guest]) -> None:
        """Swap in a whole new guest list; ids must be unique"""
        index: Dict[str, Guest] = {}
        for guest in guests:
            if guest.id in index:
                raise ValueError(f"Duplicate guest id '{guest.id}'")
            index[guest.id] = guest
        self._guests = list(guests)
        self._index = index

    def find(self, guest_id: str) -> Optional[Guest]:
        return self._index.get(guest_id)

    def get(self, guest_id: str) -> Guest:
        guest = self._index.get(guest_id)
        if guest is None:
            raise UnknownGuest(guest_id)
        return guest

    def add(self, guest: Guest) -> Guest:
        if guest.id in self._index:
            raise ValueError(f"Duplicate guest id '{guest.id}'")
        self._guests.append(guest)
        self._index[guest.id] = guest
        return guest

    def guests(self) -> List[Guest]:
        return list(self._guests)

    def seated(self) -> List[Guest]:
        return [g for g in self._guests if g.seated]

    def unseated(self) -> List[Guest]:
        return [g for g in self._guests if not g.seated]

    def plus_ones_of(self, parent: Guest) -> List[Guest]:
        prefix = f"{parent.id}_plus"
        return [g for g in self._guests if g.is_plus_one and g.id.startswith(prefix)]

    def add_plus_one(self, parent_id: str, full_name: Optional[str]) -> Optional[Guest]:
        """Add a named extra guest to a primary guest's party

        An empty or missing name means the prompt was cancelled and nothing
        is added.
        """
        parent = self.get(parent_id)
        if parent.is_plus_one:
            raise PlusOneNotAllowed(
                f"{parent.display_name} is a plus-one and cannot bring additional guests"
            )

        name = (full_name or "").strip()
        if not name:
            return None

        first_name, _, rest = name.partition(" ")
        last_name = rest.strip() or "(Guest)"

        index = max(
            [g.plus_one_index or 0 for g in self.plus_ones_of(parent)],
            default=0
        ) + 1
        guest_id = f"{parent.id}_plus{index}"
        while guest_id in self._index:
            index += 1
            guest_id = f"{parent.id}_plus{index}"

        guest = Guest(
            id=guest_id,
            party_id=parent.party_id,
            first_name=first_name,
            last_name=last_name,
            is_plus_one=True,
            plus_one_index=index,
        )
        logger.info(f"Added plus-one {guest.display_name} to {parent.display_name}")
        return self.add(guest)

    def unseat_all(self) -> None:
        for guest in self._guests:
            guest.seated = False
