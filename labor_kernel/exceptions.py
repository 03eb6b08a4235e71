"""
Typed Exception Hierarchy for the Labor Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Wage calculation errors fall into categories that callers must treat
differently: a 14-day period is the operator's mistake and must be corrected,
a missing rate profile blocks one contractor, a concurrent calculation is a
conflict, and a dropped database connection may simply be retried.

Every exception therefore:
  1. Has a TYPED class (catch by type, not by message)
  2. Has a CODE class attribute (machine-readable, API-safe)
  3. Carries structured DATA as attributes (not just a message string)

Example:
    try:
        orchestrator.calculate(period_id, actor_id)
    except WageCalculationError as e:
        for failure in e.failures:
            report(failure.contractor_id, failure.code, failure.message)
    except ConflictError as e:
        api_response(status=409, code=e.code)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    LaborKernelError (base)
    |
    +-- ValidationError
    |   +-- InvalidPeriodSpanError
    |   +-- InvalidTimeSpanError
    |   +-- MissingRateFieldError
    |   +-- InvalidOvertimeWindowError
    |   +-- InvalidWorkTypeError
    |   +-- InvalidCrewError
    |   +-- NonEditableFieldError
    |   +-- InvalidLineItemError
    |
    +-- MissingDependencyError
    |   +-- RateProfileNotFoundError
    |   +-- ContractorNotFoundError
    |   +-- ProjectNotFoundError
    |
    +-- WagePeriodError
    |   +-- WagePeriodNotFoundError
    |   +-- WagePeriodExistsError
    |   +-- InvalidPeriodTransitionError
    |   +-- WageCalculationError
    |   +-- CalculationCancelledError
    |
    +-- ConflictError
    |   +-- PeriodRecalculationError
    |   +-- CalculationInProgressError
    |   +-- UnresolvedDiscrepanciesError
    |   +-- OptimisticLockError
    |
    +-- RecordError
    |   +-- AttendanceRecordNotFoundError
    |   +-- DiscrepancyNotFoundError
    |   +-- InvalidDiscrepancyTransitionError
    |
    +-- TransientIOError

===============================================================================
HANDLING PATTERNS
===============================================================================

- ValidationError        -> reject before any calculation, never retry
- MissingDependencyError -> per-contractor failure, period not committed
- ConflictError          -> surface as conflict, never auto-retry
- TransientIOError       -> eligible for retry with backoff (utils.retry)
"""


class LaborKernelError(Exception):
    """
    Base exception for all labor kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "LABOR_KERNEL_ERROR"


# Validation errors


class ValidationError(LaborKernelError):
    """Base exception for input validation failures."""

    code: str = "VALIDATION_ERROR"


class InvalidPeriodSpanError(ValidationError):
    """Wage period does not span exactly the required number of days."""

    code: str = "PERIOD_SPAN_INVALID"

    def __init__(self, start_date: str, end_date: str, actual_days: int, required_days: int):
        self.start_date = start_date
        self.end_date = end_date
        self.actual_days = actual_days
        self.required_days = required_days
        super().__init__(
            f"Wage period must span exactly {required_days} days: "
            f"{start_date} to {end_date} spans {actual_days}"
        )


class InvalidTimeSpanError(ValidationError):
    """Attendance end time precedes start time."""

    code: str = "TIME_SPAN_INVALID"

    def __init__(self, start: str, end: str, is_overnight: bool):
        self.start = start
        self.end = end
        self.is_overnight = is_overnight
        super().__init__(
            f"End time {end} precedes start time {start} "
            f"(overnight={is_overnight})"
        )


class MissingRateFieldError(ValidationError):
    """A rate profile is missing a required field or has an invalid value."""

    code: str = "RATE_FIELD_MISSING"

    def __init__(self, contractor_id: str, field_name: str, reason: str = "missing"):
        self.contractor_id = contractor_id
        self.field_name = field_name
        self.reason = reason
        super().__init__(
            f"Rate profile for contractor {contractor_id}: "
            f"field '{field_name}' is {reason}"
        )


class InvalidOvertimeWindowError(ValidationError):
    """Overtime start/end falls outside the window configured for its type."""

    code: str = "OT_WINDOW_INVALID"

    def __init__(self, work_type: str, start: str, end: str, window_start: str, window_end: str):
        self.work_type = work_type
        self.start = start
        self.end = end
        self.window_start = window_start
        self.window_end = window_end
        super().__init__(
            f"{work_type} time {start}-{end} is outside the configured "
            f"window {window_start}-{window_end}"
        )


class InvalidWorkTypeError(ValidationError):
    """Unknown work-type tag."""

    code: str = "WORK_TYPE_INVALID"

    def __init__(self, work_type: str, expected: str):
        self.work_type = work_type
        self.expected = expected
        super().__init__(f"Invalid work type '{work_type}': expected {expected}")


class InvalidCrewError(ValidationError):
    """A daily-report submission names no contractors or repeats one."""

    code: str = "CREW_INVALID"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid crew: {reason}")


class NonEditableFieldError(ValidationError):
    """An edit touches fields outside the editable set."""

    code: str = "FIELD_NOT_EDITABLE"

    def __init__(self, fields: list[str]):
        self.fields = fields
        super().__init__(f"Fields not editable: {fields}")


class InvalidLineItemError(ValidationError):
    """Additional income or expense with an unusable amount."""

    code: str = "LINE_ITEM_INVALID"

    def __init__(self, item_type: str, amount: str):
        self.item_type = item_type
        self.amount = amount
        super().__init__(f"Line item '{item_type}' amount cannot be negative: {amount}")


# Missing-dependency errors


class MissingDependencyError(LaborKernelError):
    """Base exception for missing upstream data."""

    code: str = "MISSING_DEPENDENCY"


class RateProfileNotFoundError(MissingDependencyError):
    """No rate profile is effective for the contractor on the given date."""

    code: str = "RATE_PROFILE_NOT_FOUND"

    def __init__(self, contractor_id: str, as_of: str):
        self.contractor_id = contractor_id
        self.as_of = as_of
        super().__init__(
            f"No rate profile effective on or before {as_of} "
            f"for contractor {contractor_id}"
        )


class ContractorNotFoundError(MissingDependencyError):
    """Daily contractor record does not exist."""

    code: str = "CONTRACTOR_NOT_FOUND"

    def __init__(self, contractor_id: str):
        self.contractor_id = contractor_id
        super().__init__(f"Daily contractor not found: {contractor_id}")


class ProjectNotFoundError(MissingDependencyError):
    """Project location lookup failed."""

    code: str = "PROJECT_NOT_FOUND"

    def __init__(self, project_id: str):
        self.project_id = project_id
        super().__init__(f"Project location not found: {project_id}")


# Wage period errors


class WagePeriodError(LaborKernelError):
    """Base exception for wage period errors."""

    code: str = "WAGE_PERIOD_ERROR"


class WagePeriodNotFoundError(WagePeriodError):
    """Wage period with given ID was not found."""

    code: str = "WAGE_PERIOD_NOT_FOUND"

    def __init__(self, period_id: str):
        self.period_id = period_id
        super().__init__(f"Wage period not found: {period_id}")


class WagePeriodExistsError(WagePeriodError):
    """A wage period with the same code already exists for the project."""

    code: str = "WAGE_PERIOD_EXISTS"

    def __init__(self, period_code: str, project_id: str):
        self.period_code = period_code
        self.project_id = project_id
        super().__init__(
            f"Wage period {period_code} already exists for project {project_id}"
        )


class InvalidPeriodTransitionError(WagePeriodError):
    """Requested status change is not a defined forward transition."""

    code: str = "INVALID_PERIOD_TRANSITION"

    def __init__(self, period_code: str, current_status: str, target_status: str):
        self.period_code = period_code
        self.current_status = current_status
        self.target_status = target_status
        super().__init__(
            f"Cannot move wage period {period_code} from "
            f"'{current_status}' to '{target_status}'"
        )


class WageCalculationError(WagePeriodError):
    """
    One or more contractors failed during a calculation pass.

    The period is NOT committed: totals would be incomplete.  ``failures``
    lists the per-contractor errors; ``succeeded`` lists contractors whose
    summaries were computed (and discarded).
    """

    code: str = "WAGE_CALCULATION_FAILED"

    def __init__(self, period_code: str, failures: list, succeeded: list[str]):
        self.period_code = period_code
        self.failures = failures
        self.succeeded = succeeded
        super().__init__(
            f"Wage calculation for period {period_code} failed for "
            f"{len(failures)} contractor(s); {len(succeeded)} succeeded"
        )


class CalculationCancelledError(WagePeriodError):
    """Calculation pass was aborted before commit."""

    code: str = "WAGE_CALCULATION_CANCELLED"

    def __init__(self, period_code: str, stage: str):
        self.period_code = period_code
        self.stage = stage
        super().__init__(
            f"Wage calculation for period {period_code} cancelled during {stage}"
        )


# Conflict errors


class ConflictError(LaborKernelError):
    """Base exception for conflicts. Never retried automatically."""

    code: str = "CONFLICT"


class PeriodRecalculationError(ConflictError):
    """Recalculation of a period beyond 'calculated' without override."""

    code: str = "PERIOD_RECALCULATION_FORBIDDEN"

    def __init__(self, period_code: str, status: str, reason: str):
        self.period_code = period_code
        self.status = status
        self.reason = reason
        super().__init__(
            f"Cannot recalculate wage period {period_code} in status "
            f"'{status}': {reason}"
        )


class CalculationInProgressError(ConflictError):
    """Another calculation pass holds the period."""

    code: str = "CALCULATION_IN_PROGRESS"

    def __init__(self, period_id: str):
        self.period_id = period_id
        super().__init__(
            f"A calculation for wage period {period_id} is already running"
        )


class UnresolvedDiscrepanciesError(ConflictError):
    """Approval blocked while scan discrepancies are pending or investigating."""

    code: str = "UNRESOLVED_DISCREPANCIES"

    def __init__(self, period_code: str):
        self.period_code = period_code
        super().__init__(
            f"Wage period {period_code} has unresolved scan discrepancies"
        )


class OptimisticLockError(ConflictError):
    """Optimistic locking conflict detected."""

    code: str = "OPTIMISTIC_LOCK_CONFLICT"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            f"Optimistic lock conflict on {entity_type} {entity_id}: "
            "entity was modified by another transaction"
        )


# Record errors


class RecordError(LaborKernelError):
    """Base exception for attendance/discrepancy record errors."""

    code: str = "RECORD_ERROR"


class AttendanceRecordNotFoundError(RecordError):
    """Attendance record with given ID was not found."""

    code: str = "ATTENDANCE_RECORD_NOT_FOUND"

    def __init__(self, record_id: str):
        self.record_id = record_id
        super().__init__(f"Attendance record not found: {record_id}")


class DiscrepancyNotFoundError(RecordError):
    """Scan discrepancy with given ID was not found."""

    code: str = "DISCREPANCY_NOT_FOUND"

    def __init__(self, discrepancy_id: str):
        self.discrepancy_id = discrepancy_id
        super().__init__(f"Scan discrepancy not found: {discrepancy_id}")


class InvalidDiscrepancyTransitionError(RecordError):
    """Discrepancy status change outside pending -> investigating -> resolved|ignored."""

    code: str = "INVALID_DISCREPANCY_TRANSITION"

    def __init__(self, discrepancy_id: str, current_status: str, target_status: str):
        self.discrepancy_id = discrepancy_id
        self.current_status = current_status
        self.target_status = target_status
        super().__init__(
            f"Cannot move discrepancy {discrepancy_id} from "
            f"'{current_status}' to '{target_status}'"
        )


# Transient I/O


class TransientIOError(LaborKernelError):
    """Recoverable I/O failure while fetching or persisting data."""

    code: str = "TRANSIENT_IO"

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"Transient failure during {operation}: {reason}")
