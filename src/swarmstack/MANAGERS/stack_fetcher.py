"""
Fetching of the stack manifest repository.
"""
import shutil
from typing import Iterable

from ..errors import FatalError
from ..MODELS.deployment_config import DeploymentConfig
from ..MODELS.stack_definition import StackDefinition
from ..PARSERS.manifest_parser import ManifestParser
from ..RUNNERS.command_runner import CommandRunner
from ..RUNNERS.retry_executor import RetryExecutor
from ..UTILS.console import log


class StackFetcher:
    """
    Replaces the local manifest checkout with a fresh shallow clone.
    """
    def __init__(self, config: DeploymentConfig, runner: CommandRunner, retry: RetryExecutor):
        """
        :param config: The run configuration.
        :param runner: Command runner used for git.
        :param retry: Retry policy for the clone.
        """
        self.config = config
        self.runner = runner
        self.retry = retry

    def fetch(self, plan: Iterable[StackDefinition]) -> str:
        """
        Clones the manifests and checks that every stack in the plan has one.

        :param plan: Stacks that will be deployed.
        :return: Path of the checkout.
        :raises FatalError: If the clone keeps failing or a manifest is unusable.
        """
        repo_dir = self.config.repo_dir
        log(f"Fetching stack repository ({self.config.branch})...")
        try:
            repo_dir.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FatalError(f"Cannot prepare {repo_dir.parent}: {e}") from e

        def clone():
            # Each attempt starts from scratch; a failed clone may leave a partial tree
            shutil.rmtree(repo_dir, ignore_errors=True)
            self.runner.run([
                "git", "clone", "--depth", "1", "-b", self.config.branch,
                self.config.repo_url, str(repo_dir),
            ])

        outcome = self.retry.run(clone)
        if not outcome.succeeded:
            raise FatalError(
                f"Could not clone {self.config.repo_url} after {outcome.attempts} attempts: {outcome.error}"
            )

        parser = ManifestParser(str(repo_dir))
        for stack in plan:
            services = parser.service_names(stack.manifest)
            log(f"{stack.manifest}: {', '.join(services)}")
        return str(repo_dir)
