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
Immutable run configuration, built once at startup and passed to every component.
"""
from pathlib import Path
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..errors import ConfigurationError

DEFAULT_REPO_URL = "https://github.com/FrontierAI-Academy/install-vps.git"
DEFAULT_BRANCH = "main"
DEFAULT_STACKS_ROOT = "/opt/stacks"
DEFAULT_BUCKET = "evolutionapi"
MIN_PASSWORD_LENGTH = 32


class DeploymentConfig(BaseModel):
    """
    Validated inputs for one installer run.
    """
    model_config = ConfigDict(frozen=True)

    domain: str
    admin_email: str
    master_password: str = Field(repr=False)

    repo_url: str = DEFAULT_REPO_URL
    branch: str = DEFAULT_BRANCH
    stacks_root: Path = Path(DEFAULT_STACKS_ROOT)

    # Object storage
    minio_bucket: str = DEFAULT_BUCKET
    minio_access_key: Optional[str] = Field(default=None, repr=False)
    minio_secret_key: Optional[str] = Field(default=None, repr=False)

    advertise_addr: Optional[str] = None

    # Timing
    retry_attempts: int = Field(default=10, ge=1)
    retry_interval: float = Field(default=3.0, ge=0)
    poll_attempts: int = Field(default=40, ge=1)
    poll_interval: float = Field(default=3.0, ge=0)

    @field_validator("domain")
    @classmethod
    def _check_domain(cls, value: str) -> str:
        value = value.strip().rstrip(".")
        if not value:
            raise ValueError("domain is required")
        if "://" in value or "/" in value:
            raise ValueError("domain must be a bare host name, without scheme or path")
        return value.lower()

    @field_validator("admin_email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        value = value.strip()
        if "@" not in value:
            raise ValueError("admin email must contain '@'")
        return value

    @field_validator("master_password")
    @classmethod
    def _check_password(cls, value: str) -> str:
        if len(value) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"master password must be at least {MIN_PASSWORD_LENGTH} characters")
        return value

    @field_validator("minio_bucket")
    @classmethod
    def _check_bucket(cls, value: str) -> str:
        if not value:
            raise ValueError("bucket name must not be empty")
        return value

    @classmethod
    def build(cls, **values) -> "DeploymentConfig":
        """
        Builds a config, turning validation failures into a fatal ConfigurationError.

        :param values: Field values; None entries fall back to defaults.
        :return: The validated configuration.
        """
        try:
            return cls(**{k: v for k, v in values.items() if v is not None})
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            raise ConfigurationError(f"Invalid configuration: {problems}") from e

    @property
    def repo_dir(self) -> Path:
        """Local checkout of the stack manifests."""
        return self.stacks_root / "repo"

    @property
    def env_file(self) -> Path:
        """Substitution file consumed by stack deploys."""
        return self.repo_dir / ".env"

    @property
    def credentials_file(self) -> Path:
        """Generated storage credentials, kept outside the checkout so reruns reuse them."""
        return self.stacks_root / "storage-credentials.env"

    def service_url(self, prefix: str, path: str = "") -> str:
        """
        Builds the public HTTPS URL for a service subdomain.
        """
        return f"https://{prefix}.{self.domain}{path}"
