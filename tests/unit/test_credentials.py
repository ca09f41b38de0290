"""
Unit tests for storage credential resolution.
"""
import os
import stat
from swarmstack.MODELS.credential import CredentialSource
from swarmstack.UTILS.credentials import generate_access_key, generate_secret_key, resolve_storage_credentials


def test_generated_lengths():
    assert len(generate_access_key()) >= 24
    assert len(generate_secret_key()) >= 48
    assert generate_access_key() != generate_access_key()


def test_generates_and_persists(config):
    access, secret = resolve_storage_credentials(config)
    assert access.source == CredentialSource.GENERATED
    assert secret.source == CredentialSource.GENERATED
    assert len(access.value) >= 24
    assert len(secret.value) >= 48
    mode = stat.S_IMODE(os.stat(config.credentials_file).st_mode)
    assert mode == 0o600


def test_rerun_reuses_generated_keys(config):
    first = resolve_storage_credentials(config)
    second = resolve_storage_credentials(config)
    assert [c.value for c in first] == [c.value for c in second]


def test_overrides_used_verbatim(config):
    config = config.model_copy(update={"minio_access_key": "myaccess", "minio_secret_key": "mysecret"})
    access, secret = resolve_storage_credentials(config)
    assert access.value == "myaccess"
    assert secret.value == "mysecret"
    assert access.source == CredentialSource.SUPPLIED
    assert not os.path.exists(config.credentials_file)


def test_partial_override(config):
    config = config.model_copy(update={"minio_access_key": "myaccess"})
    access, secret = resolve_storage_credentials(config)
    assert access.value == "myaccess"
    assert secret.source == CredentialSource.GENERATED
    assert len(secret.value) >= 48


def test_secret_not_in_repr(config):
    access, _ = resolve_storage_credentials(config)
    assert access.value not in repr(access)
