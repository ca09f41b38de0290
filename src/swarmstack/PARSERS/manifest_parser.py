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
Parsers for stack manifests (compose-format YAML files).
"""
import os
from typing import Any, Dict, List

import yaml

from ..errors import FatalError


class ManifestError(FatalError):
    """A stack manifest is missing or unusable."""


class ManifestParser:
    """
    Loads stack manifests just far enough to know they are deployable.

    Variable references like ${DOMAIN} are left alone; the runtime substitutes
    them at deploy time.
    """
    def __init__(self, base_dir: str):
        """
        Initializes the parser.

        :param base_dir: Directory the manifests live in.
        """
        self.base_dir = base_dir

    def parse(self, manifest: str) -> Dict[str, Any]:
        """
        Parses a manifest file.

        :param manifest: File name relative to the base directory.
        :return: The parsed document.
        :raises ManifestError: If the file is missing, not YAML, or declares no services.
        """
        path = os.path.join(self.base_dir, manifest)
        if not os.path.isfile(path):
            raise ManifestError(f"Manifest {manifest} not found in {self.base_dir}")
        try:
            with open(path, 'r') as f:
                content = f.read()
        except OSError as e:
            raise ManifestError(f"Manifest {manifest} cannot be read: {e}") from e
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ManifestError(f"Manifest {manifest} is not valid YAML: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get('services'), dict) or not data['services']:
            raise ManifestError(f"Manifest {manifest} declares no services")
        return data

    def service_names(self, manifest: str) -> List[str]:
        """
        Returns the service names a manifest declares.

        :param manifest: File name relative to the base directory.
        """
        return [str(name) for name in self.parse(manifest)['services']]
