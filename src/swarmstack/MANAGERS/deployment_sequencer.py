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
Orchestration of a full install: prerequisites, manifests, then every stack in
order with settle delays, readiness checks and one-time setup in between.
"""
import time
from typing import Callable, Dict, List, Optional, Tuple

from ..CLIENTS.database_client import DatabaseClient, PostgresClient
from ..CLIENTS.http_probe import HttpProbe, UrllibHttpProbe
from ..CLIENTS.runtime_client import DockerRuntimeClient, RuntimeClient
from ..CLIENTS.storage_admin_client import MinioAdminClient, StorageAdminClient
from ..errors import CommandError, DeploymentError, FatalError
from ..MODELS.deployment_config import DeploymentConfig
from ..MODELS.readiness_check import ReadinessCheck
from ..MODELS.results import RunReport, StepResult, StepStatus
from ..MODELS.stack_definition import DEFAULT_STACK_PLAN, PostDeployAction, StackDefinition, verify_order
from ..RUNNERS.command_runner import CommandRunner
from ..RUNNERS.retry_executor import RetryExecutor
from ..UTILS.console import log, warn
from ..UTILS.credentials import ACCESS_KEY_NAME, SECRET_KEY_NAME, resolve_storage_credentials
from ..UTILS.summary import service_urls
from .database_provisioner import DatabaseProvisioner
from .environment_materializer import EnvironmentMaterializer
from .post_deploy_hooks import PostDeployHookRunner
from .readiness import ContainerLocator, ReadinessProber
from .resource_bootstrapper import ResourceBootstrapper
from .stack_fetcher import StackFetcher
from .storage_configurator import StorageConfigurator

STORAGE_HOST = "miniobackapp"
STORAGE_HEALTH_PATH = "/minio/health/ready"
STORAGE_ROOT_USER = "root"


class DeploymentSequencer:
    """
    Applies the stack plan strictly in order.

    A failed stack deploy aborts the run. Readiness timeouts, database creation,
    storage setup and migration hooks are best-effort: they are reported and the
    run carries on. Nothing is rolled back; rerunning converges.
    """
    def __init__(self,
                 config: DeploymentConfig,
                 runtime: RuntimeClient,
                 storage: StorageAdminClient,
                 database: DatabaseClient,
                 probe: HttpProbe,
                 runner: Optional[CommandRunner] = None,
                 plan: Tuple[StackDefinition, ...] = DEFAULT_STACK_PLAN,
                 sleep: Callable[[float], None] = time.sleep):
        """
        Initializes the sequencer.

        :param config: The run configuration.
        :param runtime: Runtime client for prerequisites, deploys and container lookups.
        :param storage: Storage admin client.
        :param database: Database client.
        :param probe: HTTP client for readiness checks.
        :param runner: Command runner for git.
        :param plan: Stacks in deployment order.
        :param sleep: Function used for every wait; swapped out in tests.
        """
        self.config = config
        self.runtime = runtime
        self.plan = plan
        self.sleep = sleep

        self.retry = RetryExecutor(config.retry_attempts, config.retry_interval, sleep)
        self.locator = ContainerLocator(runtime, config.poll_attempts, config.poll_interval, sleep)
        self.prober = ReadinessProber(probe, sleep)

        self.bootstrapper = ResourceBootstrapper(config, runtime)
        self.fetcher = StackFetcher(config, runner or CommandRunner(), self.retry)
        self.environment = EnvironmentMaterializer(config.env_file)
        self.databases = DatabaseProvisioner(database, self.locator)
        self.storage = StorageConfigurator(storage, self.retry)
        self.hooks = PostDeployHookRunner(runtime, self.locator, self.retry)

        self._actions: Dict[PostDeployAction, Callable[[], List[StepResult]]] = {
            PostDeployAction.PROVISION_DATABASES: lambda: [self.databases.provision()],
            PostDeployAction.CONFIGURE_STORAGE: self.configure_storage,
            PostDeployAction.PREPARE_CHATWOOT: lambda: [self.hooks.prepare_chatwoot()],
        }

    @classmethod
    def for_host(cls, config: DeploymentConfig) -> "DeploymentSequencer":
        """
        Builds a sequencer that drives the local docker CLI.

        :param config: The run configuration.
        """
        runner = CommandRunner()
        return cls(
            config,
            runtime=DockerRuntimeClient(runner),
            storage=MinioAdminClient(
                config.service_url(STORAGE_HOST), STORAGE_ROOT_USER, config.master_password, runner
            ),
            database=PostgresClient(runner),
            probe=UrllibHttpProbe(),
            runner=runner,
        )

    def run(self) -> RunReport:
        """
        Performs the whole install.

        :return: What was applied, every step outcome, and the public URLs.
        :raises FatalError: On missing prerequisites, an unreachable manifest
            repository, or a failed stack deploy.
        """
        verify_order(self.plan)
        report = RunReport()

        for result in self.bootstrapper.bootstrap():
            report.record(result)

        repo_dir = self.fetcher.fetch(self.plan)
        try:
            self.environment.write_base(self.config)
        except OSError as e:
            raise FatalError(f"Cannot write {self.config.env_file}: {e}") from e

        for stack in self.plan:
            self.deploy(stack, repo_dir, report)
            for result in self._after_deploy(stack):
                report.record(result)

        report.urls = [url for _, url in service_urls(self.config.domain)]
        if report.warnings:
            warn(f"Finished with {len(report.warnings)} warning(s): "
                 f"{', '.join(s.step for s in report.warnings)}")
        log("Done!")
        return report

    def deploy(self, stack: StackDefinition, repo_dir: str, report: RunReport):
        """
        Applies one stack. Any failure here is fatal.

        :param stack: The stack to deploy.
        :param repo_dir: Directory holding the manifests.
        :param report: Report to add the stack to once applied.
        """
        log(f"Deploying {stack.name}...")
        try:
            self.runtime.deploy_stack(
                stack.name, stack.manifest, cwd=repo_dir,
                env=self.environment.deploy_environment(),
            )
        except (CommandError, OSError) as e:
            raise DeploymentError(stack.name, str(e), applied=list(report.applied)) from e
        report.applied.append(stack.name)

    def _after_deploy(self, stack: StackDefinition) -> List[StepResult]:
        results = []
        if stack.settle_seconds:
            self.sleep(stack.settle_seconds)
        if stack.wait_for_ready:
            results.append(self.wait_for_storage())
        for action in stack.post_deploy:
            results.extend(self._actions[action]())
        return results

    def storage_readiness_check(self) -> ReadinessCheck:
        """The health probe gating everything that talks to object storage."""
        return ReadinessCheck(
            endpoint=self.config.service_url(STORAGE_HOST, STORAGE_HEALTH_PATH),
            expected_status=200,
            interval=self.config.poll_interval,
            attempts=self.config.poll_attempts,
        )

    def wait_for_storage(self) -> StepResult:
        """
        Waits for object storage to report ready. A timeout is only a warning.
        """
        check = self.storage_readiness_check()
        log(f"Waiting for {check.endpoint}...")
        if self.prober.wait(check):
            return StepResult("minio:ready")
        warn("MinIO did not become ready in time; continuing anyway")
        return StepResult("minio:ready", StepStatus.BEST_EFFORT_FAILURE, "not ready before timeout")

    def configure_storage(self) -> List[StepResult]:
        """
        Resolves the storage user's credentials, publishes them to the substitution
        file for the stacks that follow, then creates bucket, policy and user.
        """
        try:
            access, secret = resolve_storage_credentials(self.config)
            self.environment.append({
                "MINIO_BUCKET": self.config.minio_bucket,
                ACCESS_KEY_NAME: access.value,
                SECRET_KEY_NAME: secret.value,
            })
        except OSError as e:
            warn(f"Could not store object storage credentials: {e}; skipping storage setup")
            return [StepResult("storage:credentials", StepStatus.BEST_EFFORT_FAILURE, str(e))]
        return self.storage.configure(self.config.minio_bucket, access, secret)
