"""
Error taxonomy for the slot swap core.

Every error carries the HTTP status it is rendered with and a detail message
suitable for showing to the user. None of them are retried internally.
"""

from typing import Optional


class SlotSwapError(Exception):
    """Base class for errors surfaced to the caller"""

    status_code = 400
    default_detail = "Request failed"

    def __init__(self, detail: Optional[str] = None, status_code: Optional[int] = None):
        self.detail = detail or self.default_detail
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.detail)


class ValidationError(SlotSwapError):
    """Malformed, missing or contradictory input"""

    status_code = 400
    default_detail = "Invalid input"


class NotFoundError(SlotSwapError):
    status_code = 404
    default_detail = "Not found"


class AuthorizationError(SlotSwapError):
    """Caller is not the resource owner, or no verified identity was supplied"""

    status_code = 403
    default_detail = "Not authorized"


class InvalidSlotError(SlotSwapError):
    """A slot or swap request fails a state-machine precondition"""

    status_code = 400
    default_detail = "Invalid slot"


class ConflictError(SlotSwapError):
    """Reserved for optimistic-concurrency conflicts"""

    status_code = 409
    default_detail = "Conflicting update"
