"""
Outcome records for retried operations, provisioning steps and whole runs.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional


class StepStatus(str, Enum):
    """Outcome of a single provisioning step."""

    SUCCEEDED = "succeeded"
    RETRYABLE_FAILURE = "retryable-failure"  # retry budget exhausted
    BEST_EFFORT_FAILURE = "best-effort-failure"
    SKIPPED = "skipped"


@dataclass
class RetryOutcome:
    """Result of running an operation under the retry executor."""

    succeeded: bool
    attempts: int
    value: Any = None
    error: Optional[str] = None

    @property
    def exhausted(self) -> bool:
        return not self.succeeded


@dataclass
class StepResult:
    """Result of one provisioning step."""

    step: str
    status: StepStatus = StepStatus.SUCCEEDED
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status in (StepStatus.SUCCEEDED, StepStatus.SKIPPED)


@dataclass
class RunReport:
    """Everything a completed run did."""

    applied: List[str] = field(default_factory=list)
    steps: List[StepResult] = field(default_factory=list)
    urls: List[str] = field(default_factory=list)

    def record(self, result: StepResult) -> StepResult:
        """
        Appends a step result and returns it.
        """
        self.steps.append(result)
        return result

    def step(self, name: str) -> Optional[StepResult]:
        """Returns the last result recorded for a step, if any."""
        for result in reversed(self.steps):
            if result.step == name:
                return result
        return None

    @property
    def warnings(self) -> List[StepResult]:
        """Steps that did not fully succeed."""
        return [s for s in self.steps if not s.ok]
