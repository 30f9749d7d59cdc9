"""
Seating legend export
"""

import io
from typing import Dict, List
import pandas as pd

from seatplan.schemas.shape import Table
from seatplan.services.seating_plan import SeatingPlan

class ExportService:
    """Read-only exports built from a plan's occupancy"""

    @staticmethod
    def legend_rows(plan: SeatingPlan) -> List[Dict]:
        rows = []
        for entry in plan.legend():
            for seat_no, name in enumerate(entry.guests, start=1):
                rows.append({
                    "Table": entry.table,
                    "Seat": seat_no,
                    "Guest": name,
                })
        return rows

    @staticmethod
    def guest_rows(plan: SeatingPlan) -> List[Dict]:
        table_by_guest = {}
        for shape in plan.shapes:
            if isinstance(shape, Table):
                for guest_id in plan.occupancy.get(shape.id, []):
                    table_by_guest[guest_id] = shape.label

        return [
            {
                "First Name": guest.first_name,
                "Last Name": guest.last_name,
                "Party": guest.party_id or "",
                "Plus One": "Yes" if guest.is_plus_one else "No",
                "Seated": "Yes" if guest.seated else "No",
                "Table": table_by_guest.get(guest.id, ""),
            }
            for guest in plan.registry
        ]

    @staticmethod
    def export_legend(plan: SeatingPlan) -> bytes:
        """Workbook with the table legend and the full guest list"""
        legend = pd.DataFrame(ExportService.legend_rows(plan), columns=["Table", "Seat", "Guest"])
        guests = pd.DataFrame(
            ExportService.guest_rows(plan),
            columns=["First Name", "Last Name", "Party", "Plus One", "Seated", "Table"]
        )

        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            legend.to_excel(writer, index=False, sheet_name="Seating Legend")
            guests.to_excel(writer, index=False, sheet_name="Guest List")

        return buffer.getvalue()
