"""Tagged success/failure results for concurrent sub-fetches."""

from dataclasses import dataclass
from typing import Awaitable, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class FetchOutcome(Generic[T]):
    """Result of one sub-fetch. Caller must check .success before using value."""
    value: T | None = None
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.error is None


async def settle(awaitable: Awaitable[T]) -> FetchOutcome[T]:
    """Await and capture the outcome instead of letting it raise.

    Cancellation still propagates.
    """
    try:
        return FetchOutcome(value=await awaitable)
    except Exception as e:
        return FetchOutcome(error=str(e) or type(e).__name__)


def value_or(outcome: FetchOutcome[T], default: T, label: str, errors: list[str]) -> T:
    """Unwrap an outcome, recording "<label>: <reason>" in errors on failure."""
    if outcome.success:
        return outcome.value
    errors.append(f"{label}: {outcome.error}")
    return default
