"""
Relational database client, talking to postgres through psql inside its container.
"""
from abc import ABC, abstractmethod
from typing import Optional

from ..RUNNERS.command_runner import CommandRunner


class DatabaseClient(ABC):
    """
    Database administration needed by the installer.
    """

    @abstractmethod
    def create_database(self, container_id: str, name: str) -> None:
        """Creates a database. Raises CommandError, including when it already exists."""


class PostgresClient(DatabaseClient):
    """
    DatabaseClient that runs psql through `docker exec`.
    """

    def __init__(self, runner: Optional[CommandRunner] = None,
                 user: str = "postgres", docker: str = "docker"):
        self.runner = runner or CommandRunner()
        self.user = user
        self.docker = docker

    def create_database(self, container_id: str, name: str) -> None:
        self.runner.run([
            self.docker, "exec", "-i", container_id,
            "psql", "-U", self.user, "-v", "ON_ERROR_STOP=1",
            "-c", f'CREATE DATABASE "{name}";',
        ])
