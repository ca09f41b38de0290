# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Unit tests for the retry executor.
"""
import pytest
from swarmstack.errors import CommandError
from swarmstack.RUNNERS.retry_executor import RetryExecutor


def flaky(failures):
    """Operation that fails `failures` times, then returns 'ok'."""
    calls = []

    def operation():
        calls.append(1)
        if len(calls) <= failures:
            raise CommandError(["git"], 128, stderr="network unreachable")
        return "ok"
    return operation, calls


class TestRetryExecutor:
    """Tests for RetryExecutor."""

    def test_first_attempt_succeeds(self, sleeps):
        """Test that a working operation runs once and never waits."""
        operation, calls = flaky(0)
        outcome = RetryExecutor(sleep=sleeps).run(operation)
        assert outcome.succeeded
        assert outcome.attempts == 1
        assert outcome.value == "ok"
        assert len(calls) == 1
        assert sleeps.calls == []

    @pytest.mark.parametrize("k", [2, 5, 10])
    def test_succeeds_on_kth_attempt(self, sleeps, k):
        """Test that success on attempt k takes exactly k attempts."""
        operation, calls = flaky(k - 1)
        outcome = RetryExecutor(attempts=10, interval=3, sleep=sleeps).run(operation)
        assert outcome.succeeded
        assert outcome.attempts == k
        assert len(calls) == k
        assert sleeps.calls == [3] * (k - 1)

    def test_exhausts_budget(self, sleeps):
        """Test that a failing operation stops after exactly the budget."""
        operation, calls = flaky(100)
        outcome = RetryExecutor(attempts=10, interval=3, sleep=sleeps).run(operation)
        assert not outcome.succeeded
        assert outcome.exhausted
        assert outcome.attempts == 10
        assert len(calls) == 10
        assert "network unreachable" in outcome.error

    def test_os_error_is_retried(self, sleeps):
        """Test that a missing executable is retried like a failed command."""
        calls = []

        def operation():
            calls.append(1)
            raise FileNotFoundError("git")

        outcome = RetryExecutor(attempts=3, interval=0, sleep=sleeps).run(operation)
        assert not outcome.succeeded
        assert len(calls) == 3

    def test_programming_errors_propagate(self, sleeps):
        """Test that unexpected exceptions are not swallowed."""
        def operation():
            raise KeyError("bug")

        with pytest.raises(KeyError):
            RetryExecutor(sleep=sleeps).run(operation)
        assert sleeps.calls == []
