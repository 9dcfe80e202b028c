"""
Typed Exception Hierarchy for the HRIS Kernel.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from HrisError:

    HrisError (base)
    |
    +-- EntityNotFoundError
    |
    +-- ValidationError
    |   +-- RequiredFieldError
    |   +-- BenefitLimitExceededError
    |   +-- InvalidAmountError
    |   +-- InactiveBenefitTypeError
    |   +-- InvalidRoutingError
    |   +-- InvalidRangeError
    |
    +-- WorkflowError
    |   +-- InvalidTransitionError
    |   +-- UnknownWorkflowActionError
    |   +-- UnauthorizedActorError
    |   +-- RoutingOrderError
    |   +-- AlreadyAcknowledgedError
    |
    +-- ConcurrencyError
    |   +-- OptimisticLockError
    |
    +-- ImmutabilityError
    |   +-- ImmutabilityViolationError
    |
    +-- AuditError
    |   +-- AuditChainBrokenError
    |
    +-- StorageError
    |   +-- InvalidSignatureError
    |   +-- SignedUrlExpiredError
    |
    +-- ConfigurationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Lookup          | ENTITY_NOT_FOUND            | Row with given id doesn't exist
----------------|-----------------------------|-----------------------------------------
Validation      | REQUIRED_FIELD              | Mandatory field missing or blank
                | BENEFIT_LIMIT_EXCEEDED      | Amount above the type's max value
                | INVALID_AMOUNT              | Amount is zero or negative
                | INACTIVE_BENEFIT_TYPE       | Request against a deactivated type
                | INVALID_ROUTING             | Reviewer/approver list unusable
                | INVALID_RANGE               | Lower bound above upper bound
----------------|-----------------------------|-----------------------------------------
Workflow        | INVALID_TRANSITION          | Current status does not allow action
                | UNKNOWN_WORKFLOW_ACTION     | Action not declared by the workflow
                | UNAUTHORIZED_ACTOR          | Actor lacks role for the action
                | ROUTING_ORDER_VIOLATION     | Earlier routing step still open
                | ALREADY_ACKNOWLEDGED        | Second acknowledgement attempt
----------------|-----------------------------|-----------------------------------------
Concurrency     | OPTIMISTIC_LOCK_CONFLICT    | Row version moved underneath caller
----------------|-----------------------------|-----------------------------------------
Immutability    | IMMUTABILITY_VIOLATION      | Modifying an append-only record
----------------|-----------------------------|-----------------------------------------
Audit           | AUDIT_CHAIN_BROKEN          | Hash chain validation failed
----------------|-----------------------------|-----------------------------------------
Storage         | INVALID_SIGNATURE           | Signed URL tampered or malformed
                | SIGNED_URL_EXPIRED          | Signed URL past its expiry
----------------|-----------------------------|-----------------------------------------
Configuration   | CONFIGURATION_ERROR         | Config file missing or malformed

===============================================================================
HANDLING PATTERNS
===============================================================================

    try:
        benefits.hr_approve(request_id, actor_id=hr.id)
    except InvalidTransitionError as e:
        # Someone else already acted on the request
        return {"error": e.code, "status": e.current_status}
    except UnauthorizedActorError as e:
        return {"error": e.code, "action": e.action}

Transient and permanent failures are not distinguished here: every service
call either commits in full or rolls back in full and re-raises.
"""


class HrisError(Exception):
    """
    Base exception for all HRIS errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "HRIS_ERROR"


class EntityNotFoundError(HrisError):
    """Row with given id was not found."""

    code: str = "ENTITY_NOT_FOUND"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = str(entity_id)
        super().__init__(f"{entity_type} not found: {entity_id}")


# Validation exceptions


class ValidationError(HrisError):
    """Base exception for input validation failures."""

    code: str = "VALIDATION_ERROR"


class RequiredFieldError(ValidationError):
    """A mandatory field was missing or blank."""

    code: str = "REQUIRED_FIELD"

    def __init__(self, field_name: str, entity_type: str | None = None):
        self.field_name = field_name
        self.entity_type = entity_type
        where = f" on {entity_type}" if entity_type else ""
        super().__init__(f"Field '{field_name}' is required{where}")


class BenefitLimitExceededError(ValidationError):
    """Requested amount is above the benefit type's maximum value."""

    code: str = "BENEFIT_LIMIT_EXCEEDED"

    def __init__(self, benefit_type: str, amount: str, max_value: str):
        self.benefit_type = benefit_type
        self.amount = str(amount)
        self.max_value = str(max_value)
        super().__init__(
            f"Amount {amount} exceeds the maximum of {max_value} "
            f"for benefit '{benefit_type}'"
        )


class InvalidAmountError(ValidationError):
    """Amount must be strictly positive."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, field_name: str, amount: str):
        self.field_name = field_name
        self.amount = str(amount)
        super().__init__(f"{field_name} must be positive, got {amount}")


class InactiveBenefitTypeError(ValidationError):
    """Benefit type has been deactivated."""

    code: str = "INACTIVE_BENEFIT_TYPE"

    def __init__(self, benefit_type: str):
        self.benefit_type = benefit_type
        super().__init__(f"Benefit type '{benefit_type}' is not active")


class InvalidRoutingError(ValidationError):
    """Reviewer or approver selection cannot be used for routing."""

    code: str = "INVALID_ROUTING"

    def __init__(self, entity_type: str, reason: str):
        self.entity_type = entity_type
        self.reason = reason
        super().__init__(f"Invalid routing for {entity_type}: {reason}")


class InvalidRangeError(ValidationError):
    """A lower bound is above its upper bound."""

    code: str = "INVALID_RANGE"

    def __init__(self, field_name: str, low: str, high: str):
        self.field_name = field_name
        self.low = str(low)
        self.high = str(high)
        super().__init__(f"{field_name}: {low} is above {high}")


# Workflow exceptions


class WorkflowError(HrisError):
    """Base exception for workflow transition errors."""

    code: str = "WORKFLOW_ERROR"


class InvalidTransitionError(WorkflowError):
    """Current status does not allow the requested action."""

    code: str = "INVALID_TRANSITION"

    def __init__(
        self,
        entity_type: str,
        entity_id: str,
        current_status: str,
        action: str,
    ):
        self.entity_type = entity_type
        self.entity_id = str(entity_id)
        self.current_status = current_status
        self.action = action
        super().__init__(
            f"Cannot {action} {entity_type} {entity_id} "
            f"from status '{current_status}'"
        )


class UnknownWorkflowActionError(WorkflowError):
    """Action is not declared by the workflow."""

    code: str = "UNKNOWN_WORKFLOW_ACTION"

    def __init__(self, workflow: str, action: str):
        self.workflow = workflow
        self.action = action
        super().__init__(f"Workflow '{workflow}' has no action '{action}'")


class UnauthorizedActorError(WorkflowError):
    """Actor is not allowed to perform the action."""

    code: str = "UNAUTHORIZED_ACTOR"

    def __init__(self, actor_id: str, action: str, reason: str):
        self.actor_id = str(actor_id)
        self.action = action
        self.reason = reason
        super().__init__(f"Actor {actor_id} cannot {action}: {reason}")


class RoutingOrderError(WorkflowError):
    """An earlier routing step has not been approved yet."""

    code: str = "ROUTING_ORDER_VIOLATION"

    def __init__(self, entity_id: str, step_order: int, blocking_order: int):
        self.entity_id = str(entity_id)
        self.step_order = step_order
        self.blocking_order = blocking_order
        super().__init__(
            f"Step {step_order} of {entity_id} is waiting on step {blocking_order}"
        )


class AlreadyAcknowledgedError(WorkflowError):
    """Record was already acknowledged."""

    code: str = "ALREADY_ACKNOWLEDGED"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = str(entity_id)
        super().__init__(f"{entity_type} {entity_id} was already acknowledged")


# Concurrency exceptions


class ConcurrencyError(HrisError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"


class OptimisticLockError(ConcurrencyError):
    """Optimistic locking conflict detected."""

    code: str = "OPTIMISTIC_LOCK_CONFLICT"

    def __init__(
        self,
        entity_type: str,
        entity_id: str,
        expected_version: int | None = None,
        actual_version: int | None = None,
    ):
        self.entity_type = entity_type
        self.entity_id = str(entity_id)
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Optimistic lock conflict on {entity_type} {entity_id}: "
            "entity was modified by another transaction"
        )


# Immutability exceptions


class ImmutabilityError(HrisError):
    """Base exception for immutability-related errors."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """Attempted modification of an append-only or write-once record."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = str(entity_id)
        self.reason = reason
        super().__init__(
            f"Cannot modify {entity_type} {entity_id}: {reason}"
        )


# Audit exceptions


class AuditError(HrisError):
    """Base exception for audit-related errors."""

    code: str = "AUDIT_ERROR"


class AuditChainBrokenError(AuditError):
    """Audit hash chain validation failed."""

    code: str = "AUDIT_CHAIN_BROKEN"

    def __init__(self, audit_event_id: str, expected_hash: str, actual_hash: str):
        self.audit_event_id = str(audit_event_id)
        self.expected_hash = expected_hash
        self.actual_hash = actual_hash
        super().__init__(
            f"Audit chain broken at {audit_event_id}: "
            f"expected {expected_hash}, found {actual_hash}"
        )


# Storage exceptions


class StorageError(HrisError):
    """Base exception for object storage access errors."""

    code: str = "STORAGE_ERROR"


class InvalidSignatureError(StorageError):
    """Signed URL is malformed or its signature does not match."""

    code: str = "INVALID_SIGNATURE"

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Invalid signed URL: {reason}")


class SignedUrlExpiredError(StorageError):
    """Signed URL is past its expiry."""

    code: str = "SIGNED_URL_EXPIRED"

    def __init__(self, url: str, expired_at: int):
        self.url = url
        self.expired_at = expired_at
        super().__init__(f"Signed URL expired at {expired_at}")


class ConfigurationError(HrisError):
    """Configuration file is missing or malformed."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Invalid configuration in {source}: {reason}")
