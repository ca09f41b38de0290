"""
The substitution file that stack deploys read their ${VAR} values from.
"""
import os
import string
import tempfile
from pathlib import Path
from typing import Dict, Optional

from dotenv import dotenv_values

from ..MODELS.deployment_config import DeploymentConfig

PASSWORD_KEY = "PASSWORD_32_LENGTH"
PLAIN_CHARS = frozenset(string.ascii_letters + string.digits + "@%+,-./:=_")


def _quote(value: str) -> str:
    """Single-quotes values that would otherwise be read back differently."""
    if value and all(c in PLAIN_CHARS for c in value):
        return value
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


class EnvironmentMaterializer:
    """
    Writes and extends the .env file in the manifest checkout.

    The file only ever grows: existing keys are never edited or reordered, and
    every write replaces the file atomically.
    """
    def __init__(self, path: Path):
        """
        :param path: Location of the substitution file.
        """
        self.path = Path(path)

    def write_base(self, config: DeploymentConfig) -> Dict[str, Optional[str]]:
        """
        Writes the base parameters, replacing any file from an earlier run.

        :param config: The run configuration.
        :return: The resulting snapshot.
        """
        self._replace({
            "DOMAIN": config.domain,
            "ADMIN_EMAIL": config.admin_email,
            PASSWORD_KEY: config.master_password,
        }, keep_existing=False)
        return self.snapshot()

    def append(self, values: Dict[str, str]) -> Dict[str, Optional[str]]:
        """
        Adds keys that are not in the file yet. Keys already present keep their value.

        :param values: Keys to add, in order.
        :return: The resulting snapshot.
        """
        self._replace(values, keep_existing=True)
        return self.snapshot()

    def snapshot(self) -> Dict[str, Optional[str]]:
        """
        Reads the file back as an ordered mapping.
        """
        if not self.path.exists():
            return {}
        return dict(dotenv_values(self.path, interpolate=False))

    def deploy_environment(self) -> Dict[str, str]:
        """
        Merges the process environment with the substitution file, file values winning.

        :return: Environment for stack deploy commands.
        """
        merged = os.environ.copy()
        merged.update({k: v for k, v in self.snapshot().items() if v is not None})
        return merged

    def _replace(self, values: Dict[str, str], keep_existing: bool):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        existing = ""
        present = {}
        if keep_existing and self.path.exists():
            existing = self.path.read_text()
            present = self.snapshot()
        if existing and not existing.endswith("\n"):
            existing += "\n"

        lines = [f"{key}={_quote(value)}\n" for key, value in values.items() if key not in present]

        fd, tmp_path = tempfile.mkstemp(dir=str(self.path.parent), prefix=".env.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w") as f:
                f.write(existing)
                f.writelines(lines)
            os.chmod(tmp_path, 0o600)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
