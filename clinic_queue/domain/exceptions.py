"""Base exception classes for the queue scheduling domain layer."""


class QueueEngineError(Exception):
    """Base exception for all domain errors.

    All domain-specific exceptions MUST inherit from this class.
    This lets callers catch every queue failure with a single handler
    while still distinguishing the failure class by subtype:

    - ValidationError: malformed input
    - NotFoundError: missing entry, or nobody eligible to call
    - BusinessRuleError: operation not permitted in the current status
    - ConflictError: operation would repeat an already-applied state
    """

    def __init__(self, message: str = "") -> None:
        """Initialize the exception with an optional message.

        Args:
            message: Human-readable error description.
        """
        super().__init__(message)
