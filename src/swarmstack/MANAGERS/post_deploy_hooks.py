"""
One-time commands run inside freshly deployed application containers.
"""
from typing import List

from ..CLIENTS.runtime_client import RuntimeClient
from ..MODELS.results import StepResult, StepStatus
from ..RUNNERS.retry_executor import RetryExecutor
from ..UTILS.console import log, warn
from .readiness import ContainerLocator

CHATWOOT_CONTAINER = "chatwoot_chatwoot_app"
CHATWOOT_PREPARE = ["bundle", "exec", "rails", "db:chatwoot_prepare"]


class PostDeployHookRunner:
    """
    Finds an application container and runs a migration command in it.
    """
    def __init__(self, runtime: RuntimeClient, locator: ContainerLocator, retry: RetryExecutor):
        self.runtime = runtime
        self.locator = locator
        self.retry = retry

    def run(self, step: str, container_filter: str, command: List[str]) -> StepResult:
        """
        Runs the command once the container is up. Never fatal.

        :param step: Step name for the result.
        :param container_filter: Name pattern of the application container.
        :param command: Command to run inside it.
        :return: Skipped when the container never appeared, retryable failure when the
            command kept failing, succeeded otherwise.
        """
        container_id = self.locator.locate(container_filter)
        if not container_id:
            warn(f"Container {container_filter} not found; skipping '{' '.join(command)}'. "
                 "This does not block the installation.")
            return StepResult(step, StepStatus.SKIPPED, "container not found")

        outcome = self.retry.run(lambda: self.runtime.exec(container_id, command))
        if not outcome.succeeded:
            warn(f"'{' '.join(command)}' failed after {outcome.attempts} attempts: {outcome.error}")
            return StepResult(step, StepStatus.RETRYABLE_FAILURE, outcome.error or "")
        return StepResult(step)

    def prepare_chatwoot(self) -> StepResult:
        """
        Prepares the Chatwoot database schema.
        """
        log("Preparing the Chatwoot database...")
        return self.run("chatwoot:prepare", CHATWOOT_CONTAINER, CHATWOOT_PREPARE)
