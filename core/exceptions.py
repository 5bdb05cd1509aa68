"""Typed exceptions for console operations."""


class ConsoleError(Exception):
    """Base class for all domain errors surfaced to the view host."""


class ValidationError(ConsoleError):
    """
    Operator input is unusable: missing required field, illegal enum value,
    malformed date or time.

    Shown as an inline form message.
    """


class MissingFieldError(ValidationError):
    """A field required by the target job state is empty."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message)


class InvalidTransitionError(ConsoleError):
    """The requested job status change is not in the transition table."""

    def __init__(self, from_status: str, to_status: str):
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(f"Cannot move a job from '{from_status}' to '{to_status}'")


class NotFoundError(ConsoleError):
    """Referenced record does not exist in the entity store."""

    def __init__(self, kind: str, record_id):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} {record_id} not found")


class TransportError(ConsoleError):
    """
    The entity store (or another gateway) could not be reached.

    Never retried by the services; the view host prompts the operator.
    """
