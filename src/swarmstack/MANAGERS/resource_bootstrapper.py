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
Runtime prerequisites: engine, swarm mode, overlay networks, named volumes and
the certificate store. Every step is safe to repeat.
"""
from http.client import HTTPException
from typing import Callable, List, Optional, Tuple
import urllib.error

from ..CLIENTS.runtime_client import RuntimeClient
from ..errors import CommandError, FatalError
from ..MODELS.deployment_config import DeploymentConfig
from ..MODELS.results import StepResult, StepStatus
from ..MODELS.stack_definition import CERTIFICATE_VOLUME, NETWORKS, VOLUMES
from ..UTILS.console import log, warn
from ..UTILS.host_address import primary_ipv4_address

ACME_IMAGE = "alpine"
ACME_MOUNT = "/letsencrypt"
ACME_FILE = f"{ACME_MOUNT}/acme.json"


class ResourceBootstrapper:
    """
    Makes sure the runtime objects every stack relies on exist.
    """

    def __init__(
        self,
        config: DeploymentConfig,
        runtime: RuntimeClient,
        networks: Tuple[str, ...] = NETWORKS,
        volumes: Tuple[str, ...] = VOLUMES,
        address_finder: Callable[[], Optional[str]] = primary_ipv4_address,
    ):
        """
        Initializes the bootstrapper.

        :param config: The run configuration.
        :param runtime: Runtime client.
        :param networks: Overlay networks to ensure.
        :param volumes: Named volumes to ensure.
        :param address_finder: Returns the address to advertise when initializing swarm mode.
        """
        self.config = config
        self.runtime = runtime
        self.networks = networks
        self.volumes = volumes
        self.address_finder = address_finder

    def bootstrap(self) -> List[StepResult]:
        """
        Runs every prerequisite step in order.

        :return: One result per idempotent creation step.
        :raises FatalError: If the engine cannot be installed or swarm mode cannot be activated.
        """
        self.ensure_engine()
        self.ensure_swarm()
        results = [self.ensure_network(name) for name in self.networks]
        results += [self.ensure_volume(name) for name in self.volumes]
        results.append(self.ensure_certificate_store())
        return results

    def ensure_engine(self):
        """
        Installs the container engine when it is missing.
        """
        if self.runtime.is_installed():
            return
        log("Installing Docker...")
        try:
            self.runtime.install_engine()
        except (CommandError, OSError, urllib.error.URLError, HTTPException) as e:
            raise FatalError(f"Could not install Docker: {e}") from e
        if not self.runtime.is_installed():
            raise FatalError("Docker install finished but the docker command is still missing")

    def ensure_swarm(self):
        """
        Initializes swarm mode when the host is not part of a swarm.
        """
        if self.runtime.swarm_active():
            return
        address = self.config.advertise_addr or self.address_finder()
        if not address:
            raise FatalError("Could not determine an address to advertise for swarm mode")
        log(f"Initializing Docker Swarm on {address}...")
        try:
            self.runtime.swarm_init(address)
        except (CommandError, OSError) as e:
            # A concurrent or half-finished init may still have left an active swarm
            warn(f"swarm init reported an error: {e}")
        if not self.runtime.swarm_active():
            raise FatalError("Docker Swarm is not active after initialization")

    def ensure_network(self, name: str) -> StepResult:
        """
        Creates an attachable overlay network unless it already exists.
        """
        step = f"network:{name}"
        if self.runtime.network_exists(name):
            return StepResult(step, StepStatus.SKIPPED, "already exists")
        try:
            self.runtime.create_overlay_network(name)
        except (CommandError, OSError) as e:
            if isinstance(e, CommandError) and e.mentions("already exists"):
                return StepResult(step, StepStatus.SKIPPED, "already exists")
            warn(f"Could not create network {name}: {e}")
            return StepResult(step, StepStatus.BEST_EFFORT_FAILURE, str(e))
        return StepResult(step)

    def ensure_volume(self, name: str) -> StepResult:
        """
        Creates a named volume. Creating an existing volume is a no-op for the runtime.
        """
        step = f"volume:{name}"
        try:
            self.runtime.create_volume(name)
        except (CommandError, OSError) as e:
            warn(f"Could not create volume {name}: {e}")
            return StepResult(step, StepStatus.BEST_EFFORT_FAILURE, str(e))
        return StepResult(step)

    def ensure_certificate_store(self) -> StepResult:
        """
        Creates acme.json in the certificate volume with owner-only permissions.
        """
        step = "certificate-store"
        try:
            self.runtime.run_ephemeral(
                ACME_IMAGE,
                ["sh", "-c", f"touch {ACME_FILE} && chmod 600 {ACME_FILE}"],
                volumes={CERTIFICATE_VOLUME: ACME_MOUNT},
            )
        except (CommandError, OSError) as e:
            warn(f"Could not prepare {ACME_FILE}: {e}")
            return StepResult(step, StepStatus.BEST_EFFORT_FAILURE, str(e))
        return StepResult(step)
