"""Typed success/failure results for collaborator calls.

Expected upstream conditions (429, 402, other non-success statuses, broken
payloads) are returned as ``Failure`` values instead of being raised, so
callers decide per call site whether a failure is fatal (extraction),
degradable (retrieval) or merely logged (embedding during enrichment).
"""

from dataclasses import dataclass
from typing import Generic, NoReturn, TypeVar

from .base import ApplicationError

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True, slots=True)
class Failure:
    error: ApplicationError

    @property
    def ok(self) -> bool:
        return False

    def unwrap(self) -> NoReturn:
        raise self.error


Result = Ok[T] | Failure
