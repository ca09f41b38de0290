"""
Unit tests for the environment materializer.
"""
import os
from pathlib import Path
from swarmstack.MANAGERS.environment_materializer import EnvironmentMaterializer
from swarmstack.MANAGERS import environment_materializer

from conftest import MASTER_PASSWORD


def test_write_base(tmp_path, config):
    env = EnvironmentMaterializer(tmp_path / ".env")
    snapshot = env.write_base(config)
    assert list(snapshot.items()) == [
        ("DOMAIN", "example.com"),
        ("ADMIN_EMAIL", "admin@example.com"),
        ("PASSWORD_32_LENGTH", MASTER_PASSWORD),
    ]


def test_append_keeps_existing_keys_and_order(tmp_path, config):
    env = EnvironmentMaterializer(tmp_path / ".env")
    env.write_base(config)
    snapshot = env.append({
        "DOMAIN": "other.org",
        "MINIO_BUCKET": "evolutionapi",
        "MINIO_ACCESS_KEY": "k" * 24,
    })
    assert list(snapshot.keys()) == [
        "DOMAIN", "ADMIN_EMAIL", "PASSWORD_32_LENGTH", "MINIO_BUCKET", "MINIO_ACCESS_KEY",
    ]
    assert snapshot["DOMAIN"] == "example.com"


def test_write_base_replaces_previous_file(tmp_path, config):
    path = tmp_path / ".env"
    path.write_text("STALE=1\n")
    snapshot = EnvironmentMaterializer(path).write_base(config)
    assert "STALE" not in snapshot


def test_values_with_special_characters_read_back_verbatim(tmp_path, config):
    password = "p@ss word #1 'quoted' ${HOME} \\slash" + "x" * 10
    config = config.model_copy(update={"master_password": password})
    snapshot = EnvironmentMaterializer(tmp_path / ".env").write_base(config)
    assert snapshot["PASSWORD_32_LENGTH"] == password


def test_replace_is_atomic(tmp_path, config, monkeypatch):
    path = tmp_path / ".env"
    env = EnvironmentMaterializer(path)
    env.write_base(config)
    before = path.read_text()
    seen = {}
    real_replace = os.replace

    def spying_replace(src, dst):
        # While the new file is being prepared the old one is untouched
        seen["old"] = Path(dst).read_text()
        seen["new"] = Path(src).read_text()
        real_replace(src, dst)

    monkeypatch.setattr(environment_materializer.os, "replace", spying_replace)
    env.append({"MINIO_BUCKET": "evolutionapi"})
    assert seen["old"] == before
    assert seen["new"] == before + "MINIO_BUCKET=evolutionapi\n"
    assert [p.name for p in tmp_path.iterdir()] == [".env"]


def test_deploy_environment_overlays_process_env(tmp_path, config, monkeypatch):
    monkeypatch.setenv("DOMAIN", "stale.example.org")
    monkeypatch.setenv("PATH_MARKER", "kept")
    env = EnvironmentMaterializer(tmp_path / ".env")
    env.write_base(config)
    merged = env.deploy_environment()
    assert merged["DOMAIN"] == "example.com"
    assert merged["PATH_MARKER"] == "kept"
