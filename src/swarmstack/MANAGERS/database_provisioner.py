"""
Creation of the logical databases the application stacks expect.
"""
from typing import List, Tuple

from ..CLIENTS.database_client import DatabaseClient
from ..errors import CommandError
from ..MODELS.results import StepResult, StepStatus
from ..MODELS.stack_definition import DATABASES
from ..UTILS.console import log, warn
from .readiness import ContainerLocator

DATABASE_CONTAINER = "postgres_postgres"


class DatabaseProvisioner:
    """
    Issues one CREATE DATABASE per required database. Never aborts the run.
    """
    def __init__(self, client: DatabaseClient, locator: ContainerLocator,
                 databases: Tuple[str, ...] = DATABASES,
                 container_filter: str = DATABASE_CONTAINER):
        """
        :param client: Database client.
        :param locator: Used to find the database container.
        :param databases: Names of the databases to create.
        :param container_filter: Name pattern of the database container.
        """
        self.client = client
        self.locator = locator
        self.databases = databases
        self.container_filter = container_filter

    def provision(self) -> StepResult:
        """
        Creates every database, treating "already exists" as success.

        :return: Skipped when no container was found, a best-effort failure when any
            database could not be created, succeeded otherwise.
        """
        log(f"Creating databases ({', '.join(self.databases)})...")
        container_id = self.locator.locate(self.container_filter)
        if not container_id:
            warn(f"No {self.container_filter} container found; skipping database creation")
            return StepResult("databases", StepStatus.SKIPPED, "database container not found")

        failed: List[str] = []
        for name in self.databases:
            try:
                self.client.create_database(container_id, name)
            except CommandError as e:
                if e.mentions("already exists"):
                    continue
                warn(f"Could not create database {name}: {e}")
                failed.append(name)
            except OSError as e:
                warn(f"Could not create database {name}: {e}")
                failed.append(name)

        if failed:
            return StepResult("databases", StepStatus.BEST_EFFORT_FAILURE,
                              f"failed: {', '.join(failed)}")
        return StepResult("databases")
