"""
Shared fixtures: in-memory fakes for the runtime, storage, database and HTTP
clients, so no test needs docker, a network or real sleeping.
"""
import os
from typing import Dict, List, Optional

import pytest

from swarmstack.CLIENTS.database_client import DatabaseClient
from swarmstack.CLIENTS.http_probe import HttpProbe
from swarmstack.CLIENTS.runtime_client import RuntimeClient
from swarmstack.CLIENTS.storage_admin_client import StorageAdminClient
from swarmstack.errors import CommandError
from swarmstack.MANAGERS.deployment_sequencer import DeploymentSequencer
from swarmstack.MODELS.deployment_config import DeploymentConfig
from swarmstack.MODELS.stack_definition import DEFAULT_STACK_PLAN
from swarmstack.RUNNERS.command_runner import CommandRunner

MASTER_PASSWORD = "a" * 16 + "B" * 16


class FakeRuntime(RuntimeClient):
    """Runtime that keeps its objects in memory."""

    def __init__(self):
        self.installed = True
        self.swarm = True
        self.swarm_inits: List[str] = []
        self.install_calls = 0
        self.networks = set()
        self.volumes = set()
        self.ephemeral: List[List[str]] = []
        self.containers: Dict[str, List[str]] = {
            "postgres_postgres": ["pg1"],
            "chatwoot_chatwoot_app": ["cw1"],
        }
        self.deployed: List[str] = []
        self.deploy_envs: Dict[str, Dict[str, str]] = {}
        self.fail_deploy = set()
        self.exec_calls: List[tuple] = []
        self.exec_failures = 0
        self.list_calls = 0

    def is_installed(self) -> bool:
        return self.installed

    def install_engine(self) -> None:
        self.install_calls += 1
        self.installed = True

    def swarm_active(self) -> bool:
        return self.swarm

    def swarm_init(self, advertise_addr: str) -> None:
        self.swarm_inits.append(advertise_addr)
        self.swarm = True

    def network_exists(self, name: str) -> bool:
        return name in self.networks

    def create_overlay_network(self, name: str) -> None:
        if name in self.networks:
            raise CommandError(["docker"], 1, stderr=f"network with name {name} already exists")
        self.networks.add(name)

    def create_volume(self, name: str) -> None:
        self.volumes.add(name)

    def run_ephemeral(self, image, command, volumes=None) -> str:
        self.ephemeral.append([image] + list(command))
        return ""

    def list_containers(self, name_filter: str) -> List[str]:
        self.list_calls += 1
        return list(self.containers.get(name_filter, []))

    def deploy_stack(self, name, manifest, cwd, env=None) -> None:
        if name in self.fail_deploy:
            raise CommandError(["docker", "stack", "deploy"], 1, stderr="manifest rejected")
        assert os.path.isfile(os.path.join(cwd, manifest))
        self.deployed.append(name)
        self.deploy_envs[name] = dict(env or {})

    def exec(self, container_id, command) -> str:
        self.exec_calls.append((container_id, list(command)))
        if self.exec_failures > 0:
            self.exec_failures -= 1
            raise CommandError(["docker", "exec"], 1, stderr="app still booting")
        return ""


class FakeStorage(StorageAdminClient):
    """Object storage admin API kept in memory."""

    def __init__(self):
        self.buckets = set()
        self.policies: Dict[str, dict] = {}
        self.users: Dict[str, str] = {}
        self.attachments = set()
        self.unreachable = False
        self.calls = 0

    def _call(self):
        self.calls += 1
        if self.unreachable:
            raise CommandError(["docker", "run"], 1, stderr="dial tcp: connection refused")

    def make_bucket(self, bucket):
        self._call()
        self.buckets.add(bucket)

    def create_policy(self, name, document):
        self._call()
        self.policies[name] = document

    def add_user(self, access_key, secret_key):
        self._call()
        self.users[access_key] = secret_key

    def attach_policy(self, policy, user):
        self._call()
        if (policy, user) in self.attachments:
            raise CommandError(["docker", "run"], 1, stderr="policy is already attached to the user")
        self.attachments.add((policy, user))


class FakeDatabase(DatabaseClient):
    """Database server kept in memory."""

    def __init__(self):
        self.databases = set()
        self.calls: List[tuple] = []

    def create_database(self, container_id, name):
        self.calls.append((container_id, name))
        if name in self.databases:
            raise CommandError(["psql"], 1, stderr=f'ERROR:  database "{name}" already exists')
        self.databases.add(name)


class FakeProbe(HttpProbe):
    """Returns queued status codes, repeating the last one."""

    def __init__(self, statuses: Optional[List[Optional[int]]] = None):
        self.statuses = list(statuses if statuses is not None else [200])
        self.urls: List[str] = []

    def status(self, url):
        self.urls.append(url)
        if len(self.statuses) > 1:
            return self.statuses.pop(0)
        return self.statuses[0]


class FakeGitRunner(CommandRunner):
    """Command runner whose git clone writes a manifest per planned stack."""

    def __init__(self, failures: int = 0):
        super().__init__()
        self.failures = failures
        self.commands: List[List[str]] = []

    def run(self, command, env=None, cwd=None, input=None):
        self.commands.append(list(command))
        if command[0] != "git":
            raise AssertionError(f"unexpected command {command}")
        if self.failures > 0:
            self.failures -= 1
            raise CommandError(command, 128, stderr="Could not resolve host: github.com")
        target = command[-1]
        os.makedirs(target)
        for stack in DEFAULT_STACK_PLAN:
            with open(os.path.join(target, stack.manifest), "w") as f:
                f.write(f"services:\n  {stack.name}:\n    image: {stack.name}:latest\n")
        return None


class SleepRecorder:
    """Stands in for time.sleep and remembers every wait."""

    def __init__(self):
        self.calls: List[float] = []

    def __call__(self, seconds):
        self.calls.append(seconds)


@pytest.fixture
def sleeps():
    return SleepRecorder()


@pytest.fixture
def config(tmp_path):
    return DeploymentConfig(
        domain="example.com",
        admin_email="admin@example.com",
        master_password=MASTER_PASSWORD,
        stacks_root=tmp_path / "stacks",
    )


@pytest.fixture
def runtime():
    return FakeRuntime()


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def database():
    return FakeDatabase()


@pytest.fixture
def probe():
    return FakeProbe()


@pytest.fixture
def git_runner():
    return FakeGitRunner()


@pytest.fixture
def make_sequencer(runtime, storage, database, probe, git_runner, sleeps):
    """Builds a sequencer wired to the fakes."""
    def build(config, **overrides):
        parts = dict(runtime=runtime, storage=storage, database=database,
                     probe=probe, runner=git_runner, sleep=sleeps)
        parts.update(overrides)
        return DeploymentSequencer(config, **parts)
    return build
