"""Verification timing and retry policies."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from src.commons.settings.models import VerificationSettings
from src.domain.models.upload import VerificationStatus


@dataclass
class VerificationOutcome:
    """Classified result of one verification query.

    Attributes:
        status: Terminal status the upload should take.
        reason: Human readable reason for REJECTED and FAILED.
        content_conflict: The platform detected a copyright conflict.
        retryable: Asking again later may change the answer.
    """

    status: VerificationStatus
    reason: str | None = None
    content_conflict: bool = False
    retryable: bool = False


class VerificationPolicy(ABC):
    """Decides when to query the platform and whether to ask again."""

    def __init__(self, initial_delay_seconds: float) -> None:
        self.initial_delay_seconds = initial_delay_seconds

    @abstractmethod
    def should_retry(self, outcome: VerificationOutcome, attempts: int) -> bool:
        """Whether to query again after ``attempts`` queries produced ``outcome``."""

    def retry_delay_seconds(self, attempts: int) -> float:
        """Pause before the next query."""
        return 0.0


class SingleAttemptPolicy(VerificationPolicy):
    """One query after the initial delay; whatever it says is final."""

    def should_retry(self, outcome: VerificationOutcome, attempts: int) -> bool:
        return False


class BoundedRetryPolicy(VerificationPolicy):
    """Poll again while the answer is retryable, up to ``max_attempts`` queries."""

    def __init__(
        self,
        initial_delay_seconds: float,
        max_attempts: int,
        retry_interval_seconds: float,
    ) -> None:
        super().__init__(initial_delay_seconds)
        self.max_attempts = max_attempts
        self.retry_interval_seconds = retry_interval_seconds

    def should_retry(self, outcome: VerificationOutcome, attempts: int) -> bool:
        return outcome.retryable and attempts < self.max_attempts

    def retry_delay_seconds(self, attempts: int) -> float:
        return self.retry_interval_seconds


def build_policy(settings: VerificationSettings) -> VerificationPolicy:
    """Create the configured verification policy."""
    if settings.retry_policy == "bounded_retry":
        return BoundedRetryPolicy(
            initial_delay_seconds=settings.delay_seconds,
            max_attempts=settings.max_attempts,
            retry_interval_seconds=settings.retry_interval_seconds,
        )
    return SingleAttemptPolicy(initial_delay_seconds=settings.delay_seconds)
