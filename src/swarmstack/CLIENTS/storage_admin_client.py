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
Object storage administration client.
Drives the MinIO admin API through the minio/mc image, so nothing has to be
installed on the host besides docker.
"""

import json
import os
import tempfile
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from ..RUNNERS.command_runner import CommandRunner

MC_IMAGE = "minio/mc"
MC_ALIAS = "myminio"


class StorageAdminClient(ABC):
    """
    Bucket, policy and user management on the object storage service.
    Every method raises CommandError on failure.
    """

    @abstractmethod
    def make_bucket(self, bucket: str) -> None:
        """Creates a bucket; an existing bucket is not an error."""

    @abstractmethod
    def create_policy(self, name: str, document: Dict[str, Any]) -> None:
        """Creates or replaces a named access policy."""

    @abstractmethod
    def add_user(self, access_key: str, secret_key: str) -> None:
        """Creates a user with the given credentials."""

    @abstractmethod
    def attach_policy(self, policy: str, user: str) -> None:
        """Attaches a policy to a user."""


class MinioAdminClient(StorageAdminClient):
    """
    StorageAdminClient backed by `docker run minio/mc`.

    The admin credentials travel in the MC_HOST_<alias> environment variable of
    the docker client process, never on its command line.
    """

    def __init__(self, endpoint: str, root_user: str, root_password: str,
                 runner: Optional[CommandRunner] = None, docker: str = "docker"):
        """
        Args:
            endpoint: Base HTTPS URL of the storage API, e.g. https://miniobackapp.example.com
            root_user: Administrative user.
            root_password: Administrative password.
            runner: Command runner used for every docker call.
            docker: Name or path of the docker executable.
        """
        self.endpoint = endpoint
        self.root_user = root_user
        self._root_password = root_password
        self.runner = runner or CommandRunner()
        self.docker = docker

    @property
    def host_url(self) -> str:
        """The MC_HOST value: the endpoint with credentials embedded."""
        scheme, _, host = self.endpoint.partition("://")
        user = quote(self.root_user, safe="")
        password = quote(self._root_password, safe="")
        return f"{scheme}://{user}:{password}@{host}"

    def _mc(self, args: List[str], mounts: Optional[Dict[str, str]] = None) -> str:
        env = dict(os.environ)
        env[f"MC_HOST_{MC_ALIAS}"] = self.host_url
        command = [self.docker, "run", "--rm", "--network", "host", "-e", f"MC_HOST_{MC_ALIAS}"]
        for source, target in (mounts or {}).items():
            command += ["-v", f"{source}:{target}:ro"]
        command += [MC_IMAGE, "--insecure"] + args
        return self.runner.run(command, env=env).stdout

    def make_bucket(self, bucket: str) -> None:
        self._mc(["mb", "--ignore-existing", f"{MC_ALIAS}/{bucket}"])

    def create_policy(self, name: str, document: Dict[str, Any]) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with open(os.path.join(tmp, "policy.json"), "w") as f:
                json.dump(document, f)
            self._mc(
                ["admin", "policy", "create", MC_ALIAS, name, "/policy/policy.json"],
                mounts={tmp: "/policy"},
            )

    def add_user(self, access_key: str, secret_key: str) -> None:
        self._mc(["admin", "user", "add", MC_ALIAS, access_key, secret_key])

    def attach_policy(self, policy: str, user: str) -> None:
        self._mc(["admin", "policy", "attach", MC_ALIAS, policy, "--user", user])
