"""
Error taxonomy for the character sheet API.

main.py maps every CharacterSheetError subclass onto the error envelope
(error, message, request_id, details) with the status code declared here.
Malformed scalars are not represented: they are recovered to 0 / "" in place.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class CharacterSheetError(Exception):
    status_code = 500
    error = "internal_error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class LayoutError(CharacterSheetError):
    """The field layout file cannot be loaded. Fatal at startup."""


class UnknownField(LayoutError):
    def __init__(self, field_id: Any) -> None:
        super().__init__(f"field not configured in layout: {field_id}", {"field": str(field_id)})
        self.field_id = field_id


class MissingMandatoryBlock(CharacterSheetError):
    """The store returned no (or a too short) block for a single-row field."""

    error = "upstream_error"

    def __init__(self, field_id: Any, reason: str = "no values returned") -> None:
        super().__init__(f"mandatory block missing for {field_id}: {reason}", {"field": str(field_id)})
        self.field_id = field_id


class UpstreamIOFailure(CharacterSheetError):
    error = "upstream_error"


class CharacterNotFound(CharacterSheetError):
    status_code = 404
    error = "not_found"


class FieldCapacityExceeded(CharacterSheetError):
    status_code = 422
    error = "capacity_exceeded"

    def __init__(self, field_id: Any, capacity: int, given: int) -> None:
        super().__init__(
            f"{field_id} holds at most {capacity} entries, got {given}",
            {"field": str(field_id), "capacity": capacity, "given": given},
        )
        self.field_id = field_id
        self.capacity = capacity
        self.given = given


class CacheUnavailable(CharacterSheetError):
    """Raised by the cache collaborator; callers log it and carry on without cache."""


class IncompleteTraitUpdate(CharacterSheetError):
    """Merits and flaws share one name column; an update must carry both lists."""

    status_code = 422
    error = "incomplete_update"

    def __init__(self, missing: str) -> None:
        super().__init__(
            f"merits and flaws are written together; send both lists ({missing} is missing)",
            {"missing": missing},
        )
        self.missing = missing
