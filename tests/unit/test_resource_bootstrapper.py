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
Unit tests for the resource bootstrapper.
"""
import pytest
from swarmstack.errors import CommandError, FatalError
from swarmstack.MANAGERS.resource_bootstrapper import ResourceBootstrapper
from swarmstack.MODELS.results import StepStatus
from swarmstack.MODELS.stack_definition import NETWORKS, VOLUMES


class TestResourceBootstrapper:
    """Tests for ResourceBootstrapper."""

    def test_creates_everything_on_fresh_host(self, config, runtime):
        """Test that networks, volumes and the certificate store are created."""
        results = ResourceBootstrapper(config, runtime).bootstrap()
        assert runtime.networks == set(NETWORKS)
        assert runtime.volumes == set(VOLUMES)
        assert all(r.ok for r in results)
        image, *command = runtime.ephemeral[0]
        assert image == "alpine"
        assert "chmod 600 /letsencrypt/acme.json" in command[-1]

    def test_second_run_is_a_no_op(self, config, runtime):
        """Test that existing networks are left alone."""
        bootstrapper = ResourceBootstrapper(config, runtime)
        bootstrapper.bootstrap()
        results = bootstrapper.bootstrap()
        network_results = [r for r in results if r.step.startswith("network:")]
        assert all(r.status == StepStatus.SKIPPED for r in network_results)
        assert runtime.networks == set(NETWORKS)

    def test_network_race_already_exists_is_not_a_failure(self, config, runtime):
        """Test that an 'already exists' error from create counts as done."""
        class Racy(type(runtime)):
            def network_exists(self, name):
                return False

        racy = Racy()
        racy.networks.add("agent_network")
        result = ResourceBootstrapper(config, racy).ensure_network("agent_network")
        assert result.status == StepStatus.SKIPPED

    def test_volume_failure_is_best_effort(self, config, runtime):
        """Test that a failing volume create is reported, not raised."""
        def broken(name):
            raise CommandError(["docker", "volume", "create", name], 1, stderr="disk full")

        runtime.create_volume = broken
        results = ResourceBootstrapper(config, runtime).bootstrap()
        volume_results = [r for r in results if r.step.startswith("volume:")]
        assert len(volume_results) == len(VOLUMES)
        assert all(r.status == StepStatus.BEST_EFFORT_FAILURE for r in volume_results)
        assert runtime.ephemeral  # later steps still ran

    def test_installs_missing_engine(self, config, runtime):
        """Test that the engine is installed when missing."""
        runtime.installed = False
        ResourceBootstrapper(config, runtime).ensure_engine()
        assert runtime.install_calls == 1

    def test_engine_install_failure_is_fatal(self, config, runtime):
        """Test that a failed engine install aborts."""
        runtime.installed = False

        def broken():
            raise CommandError(["sh", "get-docker.sh"], 1, stderr="unsupported distribution")

        runtime.install_engine = broken
        with pytest.raises(FatalError):
            ResourceBootstrapper(config, runtime).ensure_engine()

    def test_initializes_swarm_with_primary_address(self, config, runtime):
        """Test that swarm init advertises the detected address."""
        runtime.swarm = False
        ResourceBootstrapper(config, runtime, address_finder=lambda: "10.0.0.5").ensure_swarm()
        assert runtime.swarm_inits == ["10.0.0.5"]

    def test_configured_address_wins(self, config, runtime):
        """Test that an explicit advertise address is used as-is."""
        runtime.swarm = False
        config = config.model_copy(update={"advertise_addr": "192.0.2.10"})
        ResourceBootstrapper(config, runtime, address_finder=lambda: "10.0.0.5").ensure_swarm()
        assert runtime.swarm_inits == ["192.0.2.10"]

    def test_swarm_still_inactive_is_fatal(self, config, runtime):
        """Test that a swarm that never activates aborts."""
        runtime.swarm = False

        def failing_init(addr):
            raise CommandError(["docker", "swarm", "init"], 1, stderr="bad address")

        runtime.swarm_init = failing_init
        with pytest.raises(FatalError):
            ResourceBootstrapper(config, runtime, address_finder=lambda: "10.0.0.5").ensure_swarm()

    def test_active_swarm_is_left_alone(self, config, runtime):
        """Test that an active swarm is not re-initialized."""
        ResourceBootstrapper(config, runtime, address_finder=lambda: None).ensure_swarm()
        assert runtime.swarm_inits == []
