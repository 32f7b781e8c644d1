from dataclasses import dataclass
from typing import Any

NOT_FOUND = "not_found"
CONFLICT = "conflict"
INVALID = "invalid"
FORBIDDEN = "forbidden"


@dataclass
class ServiceResult:
    """Outcome of a business operation.

    Eligibility failures (closed job, incomplete profile, duplicate or
    already-withdrawn application) are expected outcomes and are returned
    here rather than raised.
    """

    success: bool
    message: str | None = None
    data: Any = None
    reason: str | None = None

    @classmethod
    def ok(cls, data: Any = None, message: str | None = None) -> "ServiceResult":
        return cls(success=True, data=data, message=message)

    @classmethod
    def fail(cls, reason: str, message: str) -> "ServiceResult":
        return cls(success=False, message=message, reason=reason)
