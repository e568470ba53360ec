"""Domain errors raised by the timesheet and invoice services.

Routes translate these into HTTP responses; services never raise
``HTTPException`` themselves.
"""


class WorkforceError(Exception):
    """Base class for domain errors."""


class ValidationError(WorkforceError):
    """One or more preconditions failed. Carries every violation, not just the first."""

    def __init__(self, violations: list[str]):
        self.violations = list(violations)
        super().__init__("; ".join(self.violations))


class DuplicatePeriodError(WorkforceError):
    """A timesheet already exists for this user and week ending."""

    def __init__(self, user_id: int, week_ending, existing_id: int | None = None):
        self.user_id = user_id
        self.week_ending = week_ending
        self.existing_id = existing_id
        super().__init__(f"A timesheet for week ending {week_ending} already exists")


class InvalidTransitionError(WorkforceError):
    def __init__(self, from_status: str, to_status: str):
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(f"Cannot move timesheet from {from_status} to {to_status}")


class InvoiceStateError(WorkforceError):
    pass


class ExternalServiceError(WorkforceError):
    """A remote function call failed; nothing about its side effects can be assumed."""
