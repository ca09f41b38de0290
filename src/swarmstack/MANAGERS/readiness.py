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
Bounded polling for freshly deployed services: finding their containers and
waiting for their health endpoints.
"""
import time
from typing import Callable, Optional

from ..CLIENTS.http_probe import HttpProbe
from ..CLIENTS.runtime_client import RuntimeClient
from ..errors import CommandError
from ..MODELS.readiness_check import ReadinessCheck

DEFAULT_POLL_ATTEMPTS = 40
DEFAULT_POLL_INTERVAL = 3.0


class ContainerLocator:
    """
    Finds a running container by name pattern, waiting for it to appear.
    """

    def __init__(
        self,
        runtime: RuntimeClient,
        attempts: int = DEFAULT_POLL_ATTEMPTS,
        interval: float = DEFAULT_POLL_INTERVAL,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initializes the locator.

        :param runtime: Runtime client to list containers with.
        :param attempts: Number of listings before giving up.
        :param interval: Seconds between listings.
        :param sleep: Function used to wait; swapped out in tests.
        """
        self.runtime = runtime
        self.attempts = attempts
        self.interval = interval
        self.sleep = sleep

    def locate(self, name_filter: str) -> Optional[str]:
        """
        Polls the runtime until a container matching the filter is running.

        Container ids change on every redeploy, so nothing is cached.

        :param name_filter: Name pattern, e.g. 'postgres_postgres'.
        :return: The first matching container id, or None after the full window.
        """
        for _ in range(self.attempts):
            try:
                ids = self.runtime.list_containers(name_filter)
            except (CommandError, OSError):
                # A listing failure counts as "not there yet"
                ids = []
            if ids:
                return ids[0]
            self.sleep(self.interval)
        return None


class ReadinessProber:
    """
    Polls an HTTPS health endpoint until it returns the expected status.
    """

    def __init__(self, probe: HttpProbe, sleep: Callable[[float], None] = time.sleep):
        """
        :param probe: HTTP client used for each poll.
        :param sleep: Function used to wait; swapped out in tests.
        """
        self.probe = probe
        self.sleep = sleep

    def wait(self, check: ReadinessCheck) -> bool:
        """
        Polls until the endpoint is ready or the attempts run out.

        Transport errors and unexpected status codes both mean "not ready yet".

        :param check: Endpoint, expected status and polling bounds.
        :return: True as soon as the expected status is seen, False after the window.
        """
        for _ in range(check.attempts):
            if self.probe.status(check.endpoint) == check.expected_status:
                return True
            self.sleep(check.interval)
        return False
