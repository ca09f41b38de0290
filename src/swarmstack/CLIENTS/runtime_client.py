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
Container runtime client.
Wraps the docker CLI for the handful of operations the installer needs.
"""

import os
import shutil
import tempfile
import urllib.request
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from ..RUNNERS.command_runner import CommandRunner

DOCKER_INSTALL_SCRIPT_URL = "https://get.docker.com"


class RuntimeClient(ABC):
    """
    Operations against the container runtime used by the installer.
    Every method that changes state raises CommandError on failure.
    """

    @abstractmethod
    def is_installed(self) -> bool:
        """Whether the engine binary is available."""

    @abstractmethod
    def install_engine(self) -> None:
        """Installs the engine."""

    @abstractmethod
    def swarm_active(self) -> bool:
        """Whether this host is part of an active swarm."""

    @abstractmethod
    def swarm_init(self, advertise_addr: str) -> None:
        """Initializes a single-node swarm."""

    @abstractmethod
    def network_exists(self, name: str) -> bool:
        """Whether a network with this name exists."""

    @abstractmethod
    def create_overlay_network(self, name: str) -> None:
        """Creates an attachable overlay network."""

    @abstractmethod
    def create_volume(self, name: str) -> None:
        """Creates a named volume; creating an existing volume is a no-op."""

    @abstractmethod
    def run_ephemeral(self, image: str, command: List[str],
                      volumes: Optional[Dict[str, str]] = None) -> str:
        """Runs a throwaway container and returns its stdout."""

    @abstractmethod
    def list_containers(self, name_filter: str) -> List[str]:
        """Ids of running containers whose name matches the filter."""

    @abstractmethod
    def deploy_stack(self, name: str, manifest: str, cwd: str,
                     env: Optional[Dict[str, str]] = None) -> None:
        """Applies a manifest as a named stack. Returns before services are healthy."""

    @abstractmethod
    def exec(self, container_id: str, command: List[str]) -> str:
        """Runs a command inside a running container and returns its stdout."""


class DockerRuntimeClient(RuntimeClient):
    """
    RuntimeClient backed by the docker CLI.
    """

    def __init__(self, runner: Optional[CommandRunner] = None, docker: str = "docker"):
        """
        Initialize the docker client.

        Args:
            runner: Command runner used for every docker call.
            docker: Name or path of the docker executable.
        """
        self.runner = runner or CommandRunner()
        self.docker = docker

    def is_installed(self) -> bool:
        return shutil.which(self.docker) is not None

    def install_engine(self) -> None:
        """Downloads and runs the upstream convenience install script."""
        with tempfile.TemporaryDirectory() as tmp:
            script = os.path.join(tmp, "get-docker.sh")
            with urllib.request.urlopen(DOCKER_INSTALL_SCRIPT_URL, timeout=60) as response:
                with open(script, "wb") as f:
                    f.write(response.read())
            self.runner.run(["sh", script])

    def swarm_active(self) -> bool:
        if not self.runner.succeeds([self.docker, "info"]):
            return False
        result = self.runner.run(
            [self.docker, "info", "--format", "{{.Swarm.LocalNodeState}}"]
        )
        return result.stdout.strip() == "active"

    def swarm_init(self, advertise_addr: str) -> None:
        self.runner.run([self.docker, "swarm", "init", f"--advertise-addr={advertise_addr}"])

    def network_exists(self, name: str) -> bool:
        return self.runner.succeeds([self.docker, "network", "inspect", name])

    def create_overlay_network(self, name: str) -> None:
        self.runner.run([self.docker, "network", "create", "-d", "overlay", "--attachable", name])

    def create_volume(self, name: str) -> None:
        self.runner.run([self.docker, "volume", "create", name])

    def run_ephemeral(self, image: str, command: List[str],
                      volumes: Optional[Dict[str, str]] = None) -> str:
        args = [self.docker, "run", "--rm"]
        for source, target in (volumes or {}).items():
            args += ["-v", f"{source}:{target}"]
        result = self.runner.run(args + [image] + command)
        return result.stdout

    def list_containers(self, name_filter: str) -> List[str]:
        result = self.runner.run(
            [self.docker, "ps", "--filter", f"name={name_filter}", "--format", "{{.ID}}"]
        )
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    def deploy_stack(self, name: str, manifest: str, cwd: str,
                     env: Optional[Dict[str, str]] = None) -> None:
        self.runner.run([self.docker, "stack", "deploy", "-c", manifest, name], env=env, cwd=cwd)

    def exec(self, container_id: str, command: List[str]) -> str:
        result = self.runner.run([self.docker, "exec", "-i", container_id] + command)
        return result.stdout
