"""
Seating plan error taxonomy

Every error here is recoverable: the operation that raised it has not
touched the plan, and the HTTP layer turns it into an error envelope.
"""

from fastapi import status


class SeatingPlanError(Exception):
    """Base class for user-facing seating plan failures"""
    error_code = "SEATING_PLAN_ERROR"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, details=None):
        self.message = message
        self.details = details
        super().__init__(self.message)


class MalformedInput(SeatingPlanError):
    """Guest list is structurally broken (no header or no data rows)"""
    error_code = "MALFORMED_INPUT"
    status_code = 422


class MissingRequiredColumn(SeatingPlanError):
    """Guest list header lacks FirstName or LastName"""
    error_code = "MISSING_REQUIRED_COLUMN"
    status_code = 422


class NothingToMergeInto(SeatingPlanError):
    """Merge attempted while the registry is empty"""
    error_code = "NOTHING_TO_MERGE_INTO"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str = "Please load a guest list before merging.", details=None):
        super().__init__(message, details)


class InvalidSnapshot(SeatingPlanError):
    """Snapshot is not valid JSON or has the wrong structure"""
    error_code = "INVALID_SNAPSHOT"
    status_code = 422


class UnknownGuest(SeatingPlanError):
    error_code = "UNKNOWN_GUEST"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, guest_id: str):
        super().__init__(f"Guest '{guest_id}' not found")


class UnknownShape(SeatingPlanError):
    error_code = "UNKNOWN_SHAPE"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, shape_id: str):
        super().__init__(f"Shape '{shape_id}' not found")


class PlusOneNotAllowed(SeatingPlanError):
    """A plus-one cannot bring guests of its own"""
    error_code = "PLUS_ONE_NOT_ALLOWED"
    status_code = 422


class PlanNotFound(SeatingPlanError):
    error_code = "PLAN_NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, public_code: str):
        super().__init__(f"Plan '{public_code}' not found")
