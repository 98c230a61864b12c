"""
Booking engine error taxonomy.

Services raise these; the HTTP layer maps them to status codes in one place
(see main.py). None of them are transient: callers surface them to the user,
except SlotUnavailable, which is worth one re-query and retry.
"""


class BookingEngineError(Exception):
    """Base class for all engine errors."""

    code = "booking_error"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(BookingEngineError):
    code = "not_found"
    status_code = 404

    def __init__(self, entity: str, entity_id):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class SlotUnavailable(BookingEngineError):
    code = "slot_unavailable"
    status_code = 409


class InvalidTransition(BookingEngineError):
    code = "invalid_transition"
    status_code = 409

    def __init__(self, current: str, attempted: str, message: str | None = None):
        super().__init__(message or f"Cannot {attempted} a booking in status {current}")
        self.current = current
        self.attempted = attempted


class RescheduleLimitExceeded(BookingEngineError):
    code = "reschedule_limit_exceeded"
    status_code = 409


class OutsideRescheduleWindow(BookingEngineError):
    code = "outside_reschedule_window"
    status_code = 409


class RequestAlreadyPending(BookingEngineError):
    code = "request_already_pending"
    status_code = 409


class InvalidPolicyConfig(BookingEngineError):
    code = "invalid_policy_config"
    status_code = 422
