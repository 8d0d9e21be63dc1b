"""Step results: a value plus an optional failure reason."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Iterable, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class StepResult(Generic[T]):
    """Outcome of one extraction or LLM step.

    A failed step still carries a usable default ``value`` so callers can keep
    going; ``error`` holds the human-readable reason.
    """

    value: T
    error: str = ""
    step: str = ""

    @property
    def ok(self) -> bool:
        return not self.error

    @classmethod
    def success(cls, value: T, step: str = "") -> StepResult[T]:
        return cls(value=value, step=step)

    @classmethod
    def failure(cls, reason: str, default: T, step: str = "") -> StepResult[T]:
        return cls(value=default, error=reason or "unknown error", step=step)


def collect_failures(results: Iterable[StepResult]) -> list[str]:
    """Return ``"<step>: <reason>"`` for each failed result, in order."""
    failures: list[str] = []
    for r in results:
        if not r.ok:
            failures.append(f"{r.step}: {r.error}" if r.step else r.error)
    return failures
