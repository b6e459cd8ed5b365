"""Error taxonomy for the progress and grading core.

Every failure the core reports falls into one of three kinds:

  NotFoundError         the referenced course, quiz, assignment,
                        submission or enrollment does not exist
  PolicyViolationError  the request is well-formed but a business rule
                        says no: max attempts, cooldown, late window,
                        unenroll after 50%, duplicate enrollment
  InvalidInputError     the payload itself is wrong: out-of-range score,
                        answer count mismatch, second submission

The HTTP layer renders all three through one exception handler (see
app/main.py) so callers always receive a machine-readable ``kind`` next
to the human-readable ``detail``.  Nothing here is retried; when a wait
period is known it travels on the exception as ``retry_after_seconds``
and becomes a Retry-After header.
"""

from __future__ import annotations


class ProgressCoreError(Exception):
    """Base class for errors surfaced directly to the caller."""

    kind = "error"
    status_code = 400

    def __init__(
        self,
        reason: str,
        *,
        retry_after_seconds: int | None = None,
        attempts_remaining: int | None = None,
    ) -> None:
        self.reason = reason
        self.retry_after_seconds = retry_after_seconds
        self.attempts_remaining = attempts_remaining
        super().__init__(reason)

    def to_dict(self) -> dict[str, object]:
        body: dict[str, object] = {"kind": self.kind, "detail": self.reason}
        if self.retry_after_seconds is not None:
            body["retry_after_seconds"] = self.retry_after_seconds
        if self.attempts_remaining is not None:
            body["attempts_remaining"] = self.attempts_remaining
        return body


class NotFoundError(ProgressCoreError):
    kind = "not_found"
    status_code = 404


class PolicyViolationError(ProgressCoreError):
    kind = "policy_violation"
    status_code = 409


class InvalidInputError(ProgressCoreError):
    kind = "invalid_input"
    status_code = 422
