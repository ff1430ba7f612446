"""Per-source read results so failure isolation is data, not exception flow."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable


class ReadStatus(str, Enum):
    OK = "ok"
    DEGRADED = "degraded"
    FAILED = "failed"


class FailureKind(str, Enum):
    PERMISSION = "permission"
    ERROR = "error"


@dataclass(frozen=True)
class ReadOutcome:
    """Normalized result of one reader call.

    ``value`` is set for OK and DEGRADED results; ``failure`` and the error
    fields are set for DEGRADED and FAILED results.
    """

    source: str
    status: ReadStatus
    value: Any = None
    failure: FailureKind | None = None
    error_type: str | None = None
    error_message: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is ReadStatus.OK

    @classmethod
    def success(cls, source: str, value: Any) -> "ReadOutcome":
        return cls(source=source, status=ReadStatus.OK, value=value)

    @classmethod
    def degraded(cls, source: str, value: Any, exc: BaseException) -> "ReadOutcome":
        return cls(
            source=source,
            status=ReadStatus.DEGRADED,
            value=value,
            failure=classify_failure(exc),
            error_type=type(exc).__name__,
            error_message=str(exc),
        )

    @classmethod
    def failed(cls, source: str, exc: BaseException) -> "ReadOutcome":
        return cls(
            source=source,
            status=ReadStatus.FAILED,
            failure=classify_failure(exc),
            error_type=type(exc).__name__,
            error_message=str(exc),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "failure": self.failure.value if self.failure else None,
            "error_type": self.error_type,
            "error_message": self.error_message,
        }


def classify_failure(exc: BaseException) -> FailureKind:
    if isinstance(exc, PermissionError):
        return FailureKind.PERMISSION
    return FailureKind.ERROR


def guarded(source: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> ReadOutcome:
    """Run a reader call and capture any failure as a FAILED outcome."""
    try:
        return ReadOutcome.success(source, fn(*args, **kwargs))
    except Exception as exc:
        return ReadOutcome.failed(source, exc)
