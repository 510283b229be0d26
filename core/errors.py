"""
Error taxonomy for the evaluation pipeline.

- Validation: malformed plan input, rejected before any network call.
- Transport/availability: library exceptions plus AttemptTimeoutError and
  UpstreamAPIError, classified by core.retry.is_retryable_error.
- Content: MalformedOutputError, a 2xx response that cannot be used.
- Stage failure: EvaluationFailedError, raised once an evaluator gives up.
- Persistence: RecordConflictError, a second create for an id with new content.
"""

from typing import Optional


class AssessorError(Exception):
    """Base class for all pipeline errors."""


class PlanValidationError(AssessorError, ValueError):
    """The submitted plan is malformed."""


class CapacityValidationError(AssessorError, ValueError):
    """Non-positive accelerator count or throughput target."""


class AttemptTimeoutError(AssessorError, TimeoutError):
    """A single invocation attempt exceeded its timeout."""

    def __init__(self, timeout_ms: int):
        self.timeout_ms = timeout_ms
        super().__init__(f"Request timeout after {timeout_ms}ms")


class InvocationCancelledError(AssessorError):
    """The caller signalled cancellation while an attempt was in flight."""


class UpstreamAPIError(AssessorError):
    """The endpoint answered with an error payload instead of a completion."""

    def __init__(self, code: Optional[str], message: str):
        self.code = code
        self.message = message
        super().__init__(f"Upstream error {code}: {message}" if code else f"Upstream error: {message}")


class MalformedOutputError(AssessorError):
    """A successful response whose payload is empty, unparseable or incomplete."""

    def __init__(self, evaluator: str, payload_length: int, reason: str):
        self.evaluator = evaluator
        self.payload_length = payload_length
        self.reason = reason
        super().__init__(
            f"{evaluator} evaluator returned malformed output "
            f"(payload length {payload_length}): {reason}"
        )


class EvaluationFailedError(AssessorError):
    """An evaluator could not produce a verdict."""

    def __init__(self, evaluator: str, cause: BaseException):
        self.evaluator = evaluator
        self.cause = cause
        super().__init__(f"{evaluator} evaluation failed: {cause}")


class RecordConflictError(AssessorError):
    """A record with the same id but different content already exists."""

    def __init__(self, record_id: str):
        self.record_id = record_id
        super().__init__(f"Record {record_id} already exists with different content")
