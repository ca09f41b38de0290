"""
Bounded retries for network-facing and eventually-consistent operations.
"""
import time
from typing import Any, Callable

from tenacity import RetryError, Retrying, retry_if_exception_type, stop_after_attempt, wait_fixed

from ..errors import CommandError
from ..MODELS.results import RetryOutcome

DEFAULT_ATTEMPTS = 10
DEFAULT_INTERVAL = 3.0


class RetryExecutor:
    """
    Runs an operation until it succeeds or the attempt budget runs out.

    Only CommandError and OSError are retried; anything else is a bug and propagates.
    """
    def __init__(self,
                 attempts: int = DEFAULT_ATTEMPTS,
                 interval: float = DEFAULT_INTERVAL,
                 sleep: Callable[[float], None] = time.sleep):
        """
        :param attempts: Maximum number of attempts, including the first one.
        :param interval: Seconds to wait between attempts.
        :param sleep: Function used to wait; swapped out in tests.
        """
        self.attempts = attempts
        self.interval = interval
        self.sleep = sleep

    def run(self, operation: Callable[[], Any]) -> RetryOutcome:
        """
        Runs the operation under the retry policy.

        :param operation: Zero-argument callable; raising CommandError or OSError means "try again".
        :return: The outcome, with the number of attempts used.
        """
        retrying = Retrying(
            stop=stop_after_attempt(self.attempts),
            wait=wait_fixed(self.interval),
            retry=retry_if_exception_type((CommandError, OSError)),
            sleep=self.sleep,
        )
        try:
            for attempt in retrying:
                with attempt:
                    value = operation()
        except RetryError as e:
            last = e.last_attempt
            return RetryOutcome(
                succeeded=False,
                attempts=last.attempt_number,
                error=str(last.exception()),
            )
        return RetryOutcome(
            succeeded=True,
            attempts=attempt.retry_state.attempt_number,
            value=value,
        )
