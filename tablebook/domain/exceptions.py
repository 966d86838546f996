

class TablebookError(Exception):
    """
    Base exception for all domain-level errors
    inside the table reservation engine.
    """

    code = "TABLEBOOK_ERROR"


class InvalidArgumentError(TablebookError):
    """Raised for malformed identifiers or amounts."""

    code = "INVALID_ARGUMENT"


class NotFoundError(TablebookError):
    """Raised when a requested record does not exist."""

    code = "NOT_FOUND"
    entity = "Record"

    def __init__(self, record_id: str):
        self.record_id = record_id
        super().__init__(f"{self.entity} not found: {record_id}")


class TableNotFoundError(NotFoundError):
    code = "TABLE_NOT_FOUND"
    entity = "Table"


class ReservationNotFoundError(NotFoundError):
    code = "RESERVATION_NOT_FOUND"
    entity = "Reservation"


class PaymentNotFoundError(NotFoundError):
    code = "PAYMENT_NOT_FOUND"
    entity = "Payment"


class TicketNotFoundError(NotFoundError):
    code = "TICKET_NOT_FOUND"
    entity = "Ticket"


class UserNotFoundError(NotFoundError):
    code = "USER_NOT_FOUND"
    entity = "User"


class EventNotFoundError(NotFoundError):
    code = "EVENT_NOT_FOUND"
    entity = "Event"


class GuestNotFoundError(TablebookError):
    """Raised when no user is registered under a guest phone number."""

    code = "GUEST_NOT_FOUND"

    def __init__(self, phone: str):
        self.phone = phone
        super().__init__(f"No user registered with phone number {phone}")


class AmountMismatchError(TablebookError):
    """Raised when the declared payment differs from the table price."""

    code = "AMOUNT_MISMATCH"

    def __init__(self, expected, declared):
        self.expected = expected
        self.declared = declared
        super().__init__(
            f"Payment amount {declared} does not match expected amount {expected}"
        )


class CodeAllocationExhaustedError(TablebookError):
    """Raised when no unused code could be generated within the retry bound."""

    code = "CODE_ALLOCATION_EXHAUSTED"

    def __init__(self, prefix: str, attempts: int):
        self.prefix = prefix
        self.attempts = attempts
        super().__init__(
            f"Could not allocate a unique {prefix} code after {attempts} attempts"
        )


class GatewayError(TablebookError):
    """Raised when the payment provider is unreachable or rejects a call."""

    code = "GATEWAY_ERROR"


class StoreUnavailableError(TablebookError):
    """Raised for any persistence-layer failure."""

    code = "STORE_UNAVAILABLE"


class InvalidStateTransitionError(TablebookError):
    """
    Raised when an illegal payment state transition is attempted.
    """

    code = "INVALID_STATE_TRANSITION"

    def __init__(self, from_state: str, to_state: str):
        self.from_state = from_state
        self.to_state = to_state

        message = (
            f"Illegal state transition attempted: "
            f"{from_state} -> {to_state}"
        )
        super().__init__(message)
