"""
Guest list import service (CSV and Excel) and template generation
"""

import io
import re
import logging
import warnings
from typing import Dict, Iterable, List, Optional
import pandas as pd

from seatplan.core.config import settings
from seatplan.schemas.guest import Guest
from seatplan.utils.exceptions import MalformedInput, MissingRequiredColumn
from seatplan.utils.parsing import parse_leading_int

logger = logging.getLogger(__name__)

class GuestListService:
    """Turns raw guest lists into ordered Guest records"""

    # logical column -> accepted header spellings (lowercase, no whitespace)
    COLUMN_ALIASES = {
        "first_name": ("firstname",),
        "last_name": ("lastname",),
        "additional_guests": ("additionalguests", "additionalguest"),
        "party_id": ("partyid",),
    }
    REQUIRED_COLUMNS = ("first_name", "last_name")
    TEMPLATE_COLUMNS = ["FirstName", "LastName", "AdditionalGuests", "PartyID"]

    @staticmethod
    def detect_delimiter(header_line: str) -> str:
        return "\t" if "\t" in header_line else ","

    @staticmethod
    def normalize_header(name) -> str:
        return re.sub(r"\s", "", str(name).strip().strip('"')).lower()

    @staticmethod
    def map_columns(columns: Iterable) -> Dict[str, str]:
        """Map logical columns to the frame's actual column labels"""
        normalized = [(GuestListService.normalize_header(col), col) for col in columns]
        mapping = {}
        for logical, aliases in GuestListService.COLUMN_ALIASES.items():
            for alias in aliases:
                match = next((col for norm, col in normalized if norm == alias), None)
                if match is not None:
                    mapping[logical] = match
                    break

        missing = [col for col in GuestListService.REQUIRED_COLUMNS if col not in mapping]
        if missing:
            raise MissingRequiredColumn(
                "'FirstName' and 'LastName' columns not found.",
                details={"found": [str(col) for col in columns]}
            )
        return mapping

    @staticmethod
    def strip_stray_quote(value: str) -> str:
        """Drop an unbalanced quote left at either end of an unquoted field"""
        if value.count('"') % 2 == 1:
            if value.startswith('"'):
                value = value[1:]
            elif value.endswith('"'):
                value = value[:-1]
        return value.strip()

    @staticmethod
    def parse_additional_count(value) -> int:
        """Leading-integer parse; anything unparsable or negative counts as zero,
        anything above MAX_ADDITIONAL_GUESTS is capped"""
        count = max(0, parse_leading_int(value) or 0)
        if count > settings.MAX_ADDITIONAL_GUESTS:
            logger.warning(
                f"Capping {count} additional guests at {settings.MAX_ADDITIONAL_GUESTS}"
            )
            return settings.MAX_ADDITIONAL_GUESTS
        return count

    @staticmethod
    def parse_csv(text: str) -> List[Guest]:
        """Parse comma- or tab-delimited guest list text"""
        text = (text or "").strip()
        lines = text.splitlines()
        if len(lines) < 2:
            raise MalformedInput("CSV must have a header row and data.")

        delimiter = GuestListService.detect_delimiter(lines[0])
        try:
            with warnings.catch_warnings():
                # rows longer than the header keep their leading fields
                warnings.simplefilter("ignore", pd.errors.ParserWarning)
                df = pd.read_csv(
                    io.StringIO(text),
                    sep=delimiter,
                    quotechar='"',
                    doublequote=True,
                    skipinitialspace=True,
                    skip_blank_lines=True,
                    engine="python",
                    index_col=False,
                    dtype=str,
                    keep_default_na=False,
                )
        except (pd.errors.ParserError, pd.errors.EmptyDataError, ValueError) as e:
            raise MalformedInput(f"Could not read CSV: {e}") from e

        return GuestListService.guests_from_frame(df)

    @staticmethod
    def parse_excel(file_content: bytes) -> List[Guest]:
        """Parse the first sheet of an Excel workbook with the same column rules"""
        try:
            df = pd.read_excel(io.BytesIO(file_content), dtype=str)
        except Exception as e:
            raise MalformedInput(f"Could not read Excel file: {e}") from e

        if df.empty:
            raise MalformedInput("Spreadsheet must have a header row and data.")
        return GuestListService.guests_from_frame(df)

    @staticmethod
    def parse_upload(filename: str, file_content: bytes) -> List[Guest]:
        """Dispatch on the uploaded file's extension"""
        if (filename or "").lower().endswith((".xlsx", ".xls")):
            return GuestListService.parse_excel(file_content)
        try:
            text = file_content.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise MalformedInput("Guest list must be UTF-8 text.") from e
        return GuestListService.parse_csv(text)

    @staticmethod
    def guests_from_frame(df: pd.DataFrame) -> List[Guest]:
        column_mapping = GuestListService.map_columns(df.columns)
        df = df.fillna("")

        def cell(row, logical: str) -> str:
            column = column_mapping.get(logical)
            if column is None:
                return ""
            return GuestListService.strip_stray_quote(str(row[column]).strip())

        guests: List[Guest] = []
        seen_ids: Dict[str, int] = {}
        skipped = 0

        for _, row in df.iterrows():
            first_name = cell(row, "first_name")
            if not first_name:
                skipped += 1
                continue

            last_name = cell(row, "last_name")
            party_id = cell(row, "party_id") or f"{first_name}_{last_name}"
            additional = GuestListService.parse_additional_count(cell(row, "additional_guests"))

            guests.extend(GuestListService.expand_party(
                first_name, last_name, party_id, additional, seen_ids
            ))

        if skipped:
            logger.warning(f"Skipped {skipped} rows without a first name")
        logger.info(f"Parsed {len(guests)} guests from {len(df)} rows")
        return guests

    @staticmethod
    def expand_party(
        first_name: str,
        last_name: str,
        party_id: str,
        additional: int,
        seen_ids: Optional[Dict[str, int]] = None
    ) -> List[Guest]:
        """Primary guest followed by its numbered plus-ones"""
        guest_id = GuestListService.unique_id(
            f"{party_id}_{first_name}_{last_name}", seen_ids
        )
        primary = Guest(
            id=guest_id,
            party_id=party_id,
            first_name=first_name,
            last_name=last_name,
        )
        party = [primary]
        for i in range(1, additional + 1):
            party.append(Guest(
                id=GuestListService.unique_id(f"{guest_id}_plus{i}", seen_ids),
                party_id=party_id,
                first_name=f"{first_name} {last_name}'s",
                last_name=f"Guest {i}",
                is_plus_one=True,
                plus_one_index=i,
            ))
        return party

    @staticmethod
    def unique_id(candidate: str, seen_ids: Optional[Dict[str, int]]) -> str:
        """Suffix repeated ids with _2, _3, ... in file order"""
        if seen_ids is None:
            return candidate
        count = seen_ids.get(candidate, 0) + 1
        seen_ids[candidate] = count
        if count == 1:
            return candidate
        return GuestListService.unique_id(f"{candidate}_{count}", seen_ids)

    @staticmethod
    def create_template(format: str = "csv") -> bytes:
        """Create a guest list template with the recognised columns"""
        df = pd.DataFrame(columns=GuestListService.TEMPLATE_COLUMNS)

        # Add sample data for guidance
        sample_data = [
            ["Alice", "Smith", 2, "smith-family"],
            ["Bob", "Smith", 0, "smith-family"],
            ["Carol", "Jones", 1, ""],
        ]
        for row in sample_data:
            df.loc[len(df)] = row

        if format == "xlsx":
            buffer = io.BytesIO()
            with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
                df.to_excel(writer, index=False, sheet_name="Guest List")
            return buffer.getvalue()

        return df.to_csv(index=False).encode("utf-8")
