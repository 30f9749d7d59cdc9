"""
Snapshot codec: the whole plan as a self-describing JSON document

Only guests and shapes are stored. Occupancy, the seated subset and party
colors are derived and rebuilt on load, so caches written by other tools
(``placedGuests``, ``partyColors``) are ignored.
"""

import json
import logging
from typing import Any, Dict, Sequence, Union

from pydantic import ValidationError

from seatplan.core.config import settings
from seatplan.schemas.guest import Guest
from seatplan.schemas.plan import Snapshot
from seatplan.schemas.shape import new_shape_id
from seatplan.utils.exceptions import InvalidSnapshot

logger = logging.getLogger(__name__)

class SnapshotService:
    """Encode and decode plan snapshots"""

    @staticmethod
    def dump(guests: Sequence[Guest], shapes: Sequence) -> Dict[str, Any]:
        snapshot = Snapshot(
            version=settings.SNAPSHOT_VERSION,
            all_guests=list(guests),
            shapes=list(shapes),
        )
        return snapshot.model_dump(by_alias=True, mode="json")

    @staticmethod
    def dumps(guests: Sequence[Guest], shapes: Sequence) -> str:
        return json.dumps(SnapshotService.dump(guests, shapes), indent=2)

    @staticmethod
    def loads(raw: Union[str, bytes, Dict[str, Any]]) -> Snapshot:
        """Validate a snapshot document; raises InvalidSnapshot on any structural problem"""
        if isinstance(raw, (str, bytes, bytearray)):
            try:
                data = json.loads(raw)
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                raise InvalidSnapshot(f"Failed to parse the plan file. {e}") from e
        else:
            data = raw

        if not isinstance(data, dict):
            raise InvalidSnapshot("Plan file must contain a JSON object.")

        guests = data.get("allGuests", data.get("guests"))
        shapes = data.get("shapes")
        if guests is None and shapes is None:
            raise InvalidSnapshot("Plan file contains neither guests nor shapes.")
        for field_name, value in (("allGuests", guests), ("shapes", shapes)):
            if value is not None and not isinstance(value, list):
                raise InvalidSnapshot(f"'{field_name}' must be a list.")

        try:
            snapshot = Snapshot.model_validate({
                "version": data.get("version", 1),
                "allGuests": [g for g in guests or [] if g],
                "shapes": [s for s in shapes or [] if s],
            })
        except ValidationError as e:
            raise InvalidSnapshot(
                "Plan file has invalid guest or shape records.",
                details=[
                    f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
                    for err in e.errors()
                ]
            ) from e

        seen_guests = set()
        for guest in snapshot.all_guests:
            if guest.id in seen_guests:
                raise InvalidSnapshot(f"Duplicate guest id '{guest.id}' in plan file.")
            seen_guests.add(guest.id)

        seen_shapes = set()
        for shape in snapshot.shapes:
            if shape.id in seen_shapes:
                shape.id = new_shape_id()
            seen_shapes.add(shape.id)

        if snapshot.version != settings.SNAPSHOT_VERSION:
            logger.info(f"Loading snapshot version {snapshot.version}")
        return snapshot
