"""
Utilities for generating and resolving object storage credentials.
"""
import os
import secrets
from pathlib import Path
from typing import Tuple

from dotenv import dotenv_values

from ..MODELS.credential import Credential, CredentialSource
from ..MODELS.deployment_config import DeploymentConfig

ACCESS_KEY_BYTES = 12  # 24 hex characters
SECRET_KEY_BYTES = 24  # 48 hex characters

ACCESS_KEY_NAME = "MINIO_ACCESS_KEY"
SECRET_KEY_NAME = "MINIO_SECRET_KEY"


def generate_access_key() -> str:
    """
    Generates a random access key of 24 hex characters.
    """
    return secrets.token_hex(ACCESS_KEY_BYTES)


def generate_secret_key() -> str:
    """
    Generates a random secret key of 48 hex characters.
    """
    return secrets.token_hex(SECRET_KEY_BYTES)


def _resolve(name: str, supplied, stored: dict, generate) -> Credential:
    if supplied:
        return Credential(name=name, value=supplied, source=CredentialSource.SUPPLIED)
    if stored.get(name):
        return Credential(name=name, value=stored[name], source=CredentialSource.GENERATED)
    return Credential(name=name, value=generate(), source=CredentialSource.GENERATED)


def resolve_storage_credentials(config: DeploymentConfig) -> Tuple[Credential, Credential]:
    """
    Returns the access and secret key for the storage user.

    Supplied values are used verbatim. Otherwise keys generated by an earlier run
    are reused from the credentials file, and only missing ones are generated.
    Newly generated keys are persisted there with owner-only permissions.

    :param config: The run configuration.
    :return: (access key, secret key)
    """
    path = Path(config.credentials_file)
    stored = dotenv_values(path, interpolate=False) if path.exists() else {}

    access = _resolve(ACCESS_KEY_NAME, config.minio_access_key, stored, generate_access_key)
    secret = _resolve(SECRET_KEY_NAME, config.minio_secret_key, stored, generate_secret_key)

    generated = {c.name: c.value for c in (access, secret) if c.source == CredentialSource.GENERATED}
    if generated and any(stored.get(k) != v for k, v in generated.items()):
        path.parent.mkdir(parents=True, exist_ok=True)
        merged = dict(stored)
        merged.update(generated)
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w") as f:
            for key, value in merged.items():
                f.write(f"{key}={value}\n")
        os.chmod(path, 0o600)

    return access, secret
