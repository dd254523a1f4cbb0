# Overview: Result records returned by the status model and mutation service.

"""
Mutation results.

Business-rule failures (forbidden status, terminal item, unknown id,
concurrent modification) are returned, not raised. Every failure carries a
message naming the role and the offending status or id so the caller can
show the user exactly why nothing happened.

Raised exceptions are reserved for malformed input (ValidationError) and
for persistence outages.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


class FailureKind:
    """Failure codes for rejected mutations."""
    FORBIDDEN = "FORBIDDEN"
    TERMINAL_STATE = "TERMINAL_STATE"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"


@dataclass(frozen=True)
class MutationResult:
    """
    Outcome of a single mutation.

    ok=True, noop=True means the record already had the requested value and
    nothing was written.
    """
    ok: bool
    record: Any = None
    noop: bool = False
    error: str | None = None
    message: str | None = None
    role: str | None = None
    current: str | None = None
    requested: str | None = None

    @classmethod
    def success(cls, record: Any = None, *, noop: bool = False, message: str | None = None) -> "MutationResult":
        return cls(ok=True, record=record, noop=noop, message=message)

    @classmethod
    def failure(
        cls,
        error: str,
        message: str,
        *,
        record: Any = None,
        role: str | None = None,
        current: str | None = None,
        requested: str | None = None,
    ) -> "MutationResult":
        return cls(
            ok=False,
            record=record,
            error=error,
            message=message,
            role=role,
            current=current,
            requested=requested,
        )

    def to_dict(self) -> dict:
        data = {
            "ok": self.ok,
            "noop": self.noop,
            "error": self.error,
            "message": self.message,
        }
        if self.role is not None:
            data["role"] = self.role
        if self.current is not None:
            data["current"] = self.current
        if self.requested is not None:
            data["requested"] = self.requested
        if self.record is not None and hasattr(self.record, "to_dict"):
            data["record"] = self.record.to_dict()
        return data


@dataclass(frozen=True)
class BulkMutationResult:
    """
    Per-id outcomes of a bulk operation. One failure never blocks the rest.

    failure is set when the request as a whole could not start (unknown
    order or printshop); results is then empty.
    """
    results: dict[int, MutationResult] = field(default_factory=dict)
    failure: MutationResult | None = None

    @property
    def succeeded(self) -> list[int]:
        return [record_id for record_id, result in self.results.items() if result.ok]

    @property
    def failed(self) -> list[tuple[int, MutationResult]]:
        return [(record_id, result) for record_id, result in self.results.items() if not result.ok]

    @property
    def all_ok(self) -> bool:
        return self.failure is None and all(result.ok for result in self.results.values())

    def __getitem__(self, record_id: int) -> MutationResult:
        return self.results[record_id]

    def to_dict(self) -> dict:
        return {
            "ok": self.all_ok,
            "failure": self.failure.to_dict() if self.failure else None,
            "results": {str(record_id): result.to_dict() for record_id, result in self.results.items()},
        }
